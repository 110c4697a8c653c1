import hmac

from fastapi import HTTPException, Request

from journal.app.core.config import settings
from journal.app.db.crud import get_user_by_id
from journal.app.db.dependencies import SessionDep
from journal.app.db.models import User
from journal.app.exceptions import AuthenticationError, UserNotFoundError

USER_ID_HEADER = "X-User-Id"
MAX_USER_ID_LENGTH = 256


def get_user_id(request: Request) -> str | None:
    """Extract the upstream-authenticated user id header.

    Returns:
        The user id if present and non-empty, None otherwise
    """
    user_id = request.headers.get(USER_ID_HEADER, "").strip()
    return user_id or None


def require_user_id(request: Request) -> str:
    """Caller identity for endpoints that do not need the ledger row.

    Raises:
        AuthenticationError: If the header is missing or implausibly long
    """
    user_id = get_user_id(request)
    if not user_id:
        raise AuthenticationError()
    if len(user_id) > MAX_USER_ID_LENGTH:
        raise AuthenticationError(f"User id too long (max {MAX_USER_ID_LENGTH} characters)")
    return user_id


async def require_user(request: Request, session: SessionDep) -> User:
    """Validate the caller identity and return the user.

    Raises:
        AuthenticationError: 401 if the identity header is missing
        UserNotFoundError: 404 if no user has that id
    """
    user_id = require_user_id(request)
    user = await get_user_by_id(session, user_id)
    if user is None:
        raise UserNotFoundError(user_id)
    return user


def verify_cron_secret(secret: str) -> None:
    """Check the path secret of the scheduled credit reset.

    Raises:
        HTTPException: 500 if no secret is configured, 401 if it does not match
    """
    expected = settings.cron_secret.strip()
    if not expected:
        raise HTTPException(status_code=500, detail="CRON_SECRET is not configured")

    # Constant-time comparison; same message for every mismatch.
    if not hmac.compare_digest(secret.encode(), expected.encode()):
        raise HTTPException(status_code=401, detail="Invalid cron secret")
