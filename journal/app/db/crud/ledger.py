"""Quota ledger CRUD operations.

Every credit write here is absolute (SET credits = N) except the single
conditional decrement used when a generation is delivered.
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from journal.app.db.models import CreditLog, User


async def consume_credit(
    session: AsyncSession,
    user_id: str,
    auto_commit: bool = True,
) -> tuple[bool, int, int]:
    """Atomically decrement one credit iff the user has one left.

    A single conditional UPDATE with RETURNING, so two concurrent
    generations for the same user can never both spend the last credit.

    Args:
        session: Database session
        user_id: The user ID
        auto_commit: Whether to commit the transaction

    Returns:
        Tuple of (success, remaining, total)
        - success: True if a credit was consumed
        - remaining: Credits remaining after the operation
        - total: Credit allotment of the current period
    """
    result = await session.execute(
        update(User)
        .where(User.id == user_id, User.ai_credits_remaining > 0)
        .values(ai_credits_remaining=User.ai_credits_remaining - 1)
        .returning(User.ai_credits_remaining, User.ai_credits_total)
        .execution_options(synchronize_session=False)
    )
    row = result.fetchone()

    if row is None:
        result = await session.execute(
            select(User.ai_credits_remaining, User.ai_credits_total).where(
                User.id == user_id
            )
        )
        row = result.fetchone()
        if row is None:
            return False, 0, 0
        remaining, total = row
        return False, remaining, total

    remaining, total = row
    if auto_commit:
        await session.commit()
    return True, remaining, total


async def apply_subscription_state(
    session: AsyncSession,
    user_id: str,
    values: dict[str, Any],
    auto_commit: bool = True,
) -> None:
    """Overwrite subscription columns of a user with absolute values."""
    await session.execute(
        update(User)
        .where(User.id == user_id)
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    if auto_commit:
        await session.commit()


async def create_credit_log(
    session: AsyncSession,
    user_id: str,
    tier: str,
    credits_granted: int,
    credits_remaining_before: int,
    reason: str,
    auto_commit: bool = True,
) -> CreditLog:
    """Record an absolute credit write."""
    log = CreditLog(
        user_id=user_id,
        tier=tier,
        credits_granted=credits_granted,
        credits_remaining_before=credits_remaining_before,
        reason=reason,
        created_at=datetime.now(timezone.utc),
    )
    session.add(log)
    if auto_commit:
        await session.commit()
        await session.refresh(log)
    return log


async def get_credit_logs_by_user(
    session: AsyncSession, user_id: str
) -> list[CreditLog]:
    """Credit logs of a user, newest first."""
    result = await session.execute(
        select(CreditLog)
        .where(CreditLog.user_id == user_id)
        .order_by(CreditLog.created_at.desc(), CreditLog.id.desc())
    )
    return list(result.scalars().all())


async def reset_monthly_credits(
    session: AsyncSession,
    allotments: dict[str, int],
    auto_commit: bool = True,
) -> tuple[int, int]:
    """Reset remaining credits of every user in the given tiers.

    Args:
        session: Database session
        allotments: Mapping tier value -> monthly credit allotment
        auto_commit: Whether to commit the transaction

    Returns:
        Tuple of (matched, modified)
    """
    result = await session.execute(
        select(User.id, User.tier, User.ai_credits_remaining).where(
            User.tier.in_(list(allotments))
        )
    )
    rows = result.fetchall()

    modified = 0
    for user_id, tier, remaining_before in rows:
        credits = allotments[tier]
        await session.execute(
            update(User)
            .where(User.id == user_id)
            .values(ai_credits_total=credits, ai_credits_remaining=credits)
            .execution_options(synchronize_session=False)
        )
        await create_credit_log(
            session,
            user_id=user_id,
            tier=tier,
            credits_granted=credits,
            credits_remaining_before=remaining_before,
            reason="monthly_reset",
            auto_commit=False,
        )
        modified += 1

    if auto_commit:
        await session.commit()
    return len(rows), modified
