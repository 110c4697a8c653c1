"""Database package for the journal.

This package provides:
- Database models (User with its quota ledger columns, CreditLog)
- Asynchronous session management
- CRUD operations for all models
- FastAPI dependency injection support
"""

from journal.app.db.base import Base
from journal.app.db.models import CreditLog, User
from journal.app.db.async_session import (
    close_async_engine,
    get_async_engine,
    get_async_session,
    get_async_session_maker,
    get_db,
    init_async_db,
    SessionDep,
)
from journal.app.db.crud import (
    apply_subscription_state,
    consume_credit,
    create_credit_log,
    create_user,
    get_credit_logs_by_user,
    get_user_by_id,
    get_user_by_subscription_id,
    reset_monthly_credits,
)

__all__ = [
    # Base
    "Base",
    # Models
    "CreditLog",
    "User",
    # Async session
    "close_async_engine",
    "get_async_engine",
    "get_async_session",
    "get_async_session_maker",
    "get_db",
    "init_async_db",
    "SessionDep",
    # CRUD
    "apply_subscription_state",
    "consume_credit",
    "create_credit_log",
    "create_user",
    "get_credit_logs_by_user",
    "get_user_by_id",
    "get_user_by_subscription_id",
    "reset_monthly_credits",
]
