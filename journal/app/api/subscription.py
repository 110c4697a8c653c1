"""Subscription read, client-side credit use and the monthly credit reset."""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Request

from journal.app.api.generate import CamelModel
from journal.app.core.logging import get_logger
from journal.app.db.crud import reset_monthly_credits
from journal.app.db.dependencies import SessionDep
from journal.app.db.models import User
from journal.app.middleware.auth import require_user, verify_cron_secret
from journal.app.middleware.request_id import get_request_id
from journal.app.services.quota_ledger import QuotaLedger
from journal.app.services.tiers import SubscriptionTier, credits_for_tier, get_limits

logger = get_logger(__name__)

router = APIRouter()

# Tiers whose credits renew monthly through the scheduled reset.
RESETTABLE_TIERS = (SubscriptionTier.BASIC, SubscriptionTier.PREMIUM)


class SubscriptionResponse(CamelModel):
    tier: str
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    is_yearly: bool
    ai_credits_total: int
    ai_credits_remaining: int
    auto_renew: bool
    last_renewal_date: Optional[datetime] = None
    next_renewal_date: Optional[datetime] = None
    cancel_at_period_end: bool
    max_books: Optional[int] = None
    features: list[str]


class CreditUseResponse(CamelModel):
    credits_remaining: int
    credits_total: int


class CreditResetResponse(CamelModel):
    success: bool
    matched: int
    modified: int


@router.get("/api/subscription", response_model=SubscriptionResponse)
async def get_subscription(user: User = Depends(require_user)) -> SubscriptionResponse:
    limits = get_limits(user.tier)
    return SubscriptionResponse(
        tier=user.tier,
        start_date=user.start_date,
        end_date=user.end_date,
        is_yearly=user.is_yearly,
        ai_credits_total=user.ai_credits_total,
        ai_credits_remaining=user.ai_credits_remaining,
        auto_renew=user.auto_renew,
        last_renewal_date=user.last_renewal_date,
        next_renewal_date=user.next_renewal_date,
        cancel_at_period_end=user.cancel_at_period_end,
        max_books=limits.max_books,
        features=sorted(feature.value for feature in limits.features),
    )


@router.post("/api/subscription/use-credit", response_model=CreditUseResponse)
async def use_credit(
    request: Request, session: SessionDep, user: User = Depends(require_user)
) -> CreditUseResponse:
    """Spend one credit ahead of a generation (pre-deduction)."""
    snap = await QuotaLedger(session).consume(user.id, request_id=get_request_id(request))
    return CreditUseResponse(
        credits_remaining=snap.credits_remaining,
        credits_total=snap.credits_total,
    )


@router.get("/api/cron/reset-credits/{secret}", response_model=CreditResetResponse)
async def reset_credits(secret: str, session: SessionDep) -> CreditResetResponse:
    """Reset every paying user's remaining credits to the monthly allotment."""
    verify_cron_secret(secret)
    allotments = {tier.value: credits_for_tier(tier) for tier in RESETTABLE_TIERS}
    matched, modified = await reset_monthly_credits(session, allotments)
    logger.info(f"Monthly credit reset: matched={matched} modified={modified}")
    return CreditResetResponse(success=True, matched=matched, modified=modified)
