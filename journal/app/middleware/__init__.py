"""Middleware and request dependencies."""

from journal.app.middleware.auth import require_user, require_user_id, verify_cron_secret
from journal.app.middleware.request_id import RequestIdMiddleware, get_request_id

__all__ = [
    "require_user",
    "require_user_id",
    "verify_cron_secret",
    "RequestIdMiddleware",
    "get_request_id",
]
