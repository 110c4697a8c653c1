"""API endpoints package for the journal."""

from journal.app.api.generate import router as generate_router
from journal.app.api.subscription import router as subscription_router
from journal.app.api.webhook import router as webhook_router

__all__ = [
    "generate_router",
    "subscription_router",
    "webhook_router",
]
