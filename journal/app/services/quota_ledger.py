"""Per-user AI credit ledger.

Reads go through the User row; the only relative write is the atomic
conditional decrement in consume(). Everything else writes absolute
values (see the webhook reconciler and the monthly reset).
"""

from dataclasses import dataclass
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from journal.app.core.logging import get_log_context, get_logger
from journal.app.db import crud
from journal.app.db.models import User
from journal.app.exceptions import EntitlementError, QuotaExhaustedError, UserNotFoundError
from journal.app.services.tiers import (
    Feature,
    SubscriptionTier,
    has_access,
    parse_tier,
    required_tier_for,
)

logger = get_logger(__name__)


@dataclass
class LedgerSnapshot:
    user_id: str
    tier: SubscriptionTier
    credits_remaining: int
    credits_total: int


class QuotaLedger:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def load(self, user_id: str) -> User:
        user = await crud.get_user_by_id(self.session, user_id)
        if user is None:
            raise UserNotFoundError(user_id)
        return user

    async def snapshot(self, user_id: str) -> LedgerSnapshot:
        user = await self.load(user_id)
        return LedgerSnapshot(
            user_id=user.id,
            tier=parse_tier(user.tier),
            credits_remaining=user.ai_credits_remaining,
            credits_total=user.ai_credits_total,
        )

    async def check_access(
        self,
        user_id: str,
        feature: Optional[Feature] = None,
        require_credit: bool = True,
        request_id: Optional[str] = None,
    ) -> LedgerSnapshot:
        """Reject the request before any inference work is done.

        Raises:
            UserNotFoundError: No ledger entry for the user
            EntitlementError: The tier does not include the feature
            QuotaExhaustedError: No credits left (when require_credit)
        """
        snap = await self.snapshot(user_id)

        if feature is not None and not has_access(snap.tier, feature):
            required = required_tier_for(feature)
            logger.info(
                f"Feature '{feature.value}' denied for tier '{snap.tier.value}'",
                extra=get_log_context(request_id=request_id, user_id=user_id),
            )
            raise EntitlementError(
                feature=feature.value,
                tier=snap.tier.value,
                required_tier=required.value if required else None,
            )

        if require_credit and snap.credits_remaining <= 0:
            logger.info(
                f"Credits exhausted ({snap.credits_remaining}/{snap.credits_total})",
                extra=get_log_context(request_id=request_id, user_id=user_id),
            )
            raise QuotaExhaustedError(remaining=snap.credits_remaining, total=snap.credits_total)

        return snap

    async def consume(self, user_id: str, request_id: Optional[str] = None) -> LedgerSnapshot:
        """Spend exactly one credit.

        Raises:
            UserNotFoundError: No ledger entry for the user
            QuotaExhaustedError: The conditional decrement matched no row
        """
        success, remaining, total = await crud.consume_credit(self.session, user_id)
        if not success:
            user = await crud.get_user_by_id(self.session, user_id)
            if user is None:
                raise UserNotFoundError(user_id)
            logger.warning(
                "Credit decrement rejected: balance already at zero",
                extra=get_log_context(request_id=request_id, user_id=user_id),
            )
            raise QuotaExhaustedError(remaining=remaining, total=total)

        logger.info(
            f"Consumed 1 AI credit ({remaining}/{total} left)",
            extra=get_log_context(request_id=request_id, user_id=user_id),
        )
        snap = await self.snapshot(user_id)
        snap.credits_remaining = remaining
        snap.credits_total = total
        return snap
