"""Database dependencies for FastAPI dependency injection.

Usage:
    from journal.app.db.dependencies import SessionDep

    @router.get("/api/subscription")
    async def get_subscription(session: SessionDep):
        ...
"""

from journal.app.db.async_session import SessionDep

__all__ = ["SessionDep"]
