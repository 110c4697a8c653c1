"""Core utilities for the journal application."""

from journal.app.core.cache import (
    CompletionStore,
    InMemoryStore,
    RedisStore,
    get_store,
    reset_store,
)
from journal.app.core.config import settings
from journal.app.core.logging import get_logger, setup_logging

__all__ = [
    "CompletionStore",
    "InMemoryStore",
    "RedisStore",
    "get_store",
    "reset_store",
    "settings",
    "get_logger",
    "setup_logging",
]
