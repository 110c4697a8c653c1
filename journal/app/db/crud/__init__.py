"""CRUD operations package."""

from journal.app.db.crud.ledger import (
    apply_subscription_state,
    consume_credit,
    create_credit_log,
    get_credit_logs_by_user,
    reset_monthly_credits,
)
from journal.app.db.crud.user import (
    create_user,
    get_user_by_id,
    get_user_by_subscription_id,
)

__all__ = [
    # User
    "create_user",
    "get_user_by_id",
    "get_user_by_subscription_id",
    # Ledger
    "apply_subscription_state",
    "consume_credit",
    "create_credit_log",
    "get_credit_logs_by_user",
    "reset_monthly_credits",
]
