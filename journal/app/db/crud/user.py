"""User CRUD operations."""
from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from journal.app.db.models import CreditLog, User
from journal.app.services.tiers import SubscriptionTier, credits_for_tier


async def create_user(
    session: AsyncSession,
    user_id: str,
    email: str,
    name: str | None = None,
    auto_commit: bool = True,
) -> User:
    """Create a user with the free tier ledger defaults.

    Args:
        session: Database session
        user_id: Identifier issued by the auth provider
        email: Contact email
        name: Optional display name
        auto_commit: Whether to commit the transaction

    Returns:
        The created User
    """
    now = datetime.now(timezone.utc)
    credits = credits_for_tier(SubscriptionTier.FREE)
    user = User(
        id=user_id,
        email=email.strip().lower(),
        name=name,
        created_at=now,
        tier=SubscriptionTier.FREE.value,
        start_date=now,
        is_yearly=False,
        ai_credits_total=credits,
        ai_credits_remaining=credits,
        auto_renew=False,
        last_renewal_date=now,
        cancel_at_period_end=False,
    )
    session.add(user)
    session.add(
        CreditLog(
            user_id=user_id,
            tier=SubscriptionTier.FREE.value,
            credits_granted=credits,
            credits_remaining_before=0,
            reason="signup",
            created_at=now,
        )
    )
    if auto_commit:
        await session.commit()
        await session.refresh(user)
    else:
        await session.flush()
    return user


async def get_user_by_id(session: AsyncSession, user_id: str) -> User | None:
    """Get a user by id."""
    result = await session.execute(
        select(User)
        .where(User.id == user_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def get_user_by_subscription_id(
    session: AsyncSession, subscription_id: str
) -> User | None:
    """Get the user holding an external subscription identifier."""
    result = await session.execute(
        select(User)
        .where(User.stripe_subscription_id == subscription_id)
        .execution_options(populate_existing=True)
    )
    return result.scalars().first()
