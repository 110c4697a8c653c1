from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
)
from sqlalchemy.orm import Mapped, mapped_column

from journal.app.db.base import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class User(Base):
    """A journal user together with their quota ledger entry."""

    __tablename__ = "users"
    __table_args__ = (
        Index("idx_users_email", "email"),
        Index("idx_users_stripe_subscription", "stripe_subscription_id"),
        Index("idx_users_tier", "tier"),
        CheckConstraint(
            "ai_credits_remaining >= 0 AND ai_credits_remaining <= ai_credits_total",
            name="ck_users_credit_bounds",
        ),
    )

    id: Mapped[str] = mapped_column(String, primary_key=True)
    email: Mapped[str] = mapped_column(String, unique=True)
    name: Mapped[str | None] = mapped_column(String, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)

    # Subscription / quota ledger
    tier: Mapped[str] = mapped_column(String(20), default="free")
    start_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
    end_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    is_yearly: Mapped[bool] = mapped_column(Boolean, default=False)
    ai_credits_total: Mapped[int] = mapped_column(Integer, default=0)
    ai_credits_remaining: Mapped[int] = mapped_column(Integer, default=0)
    auto_renew: Mapped[bool] = mapped_column(Boolean, default=False)
    last_renewal_date: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    next_renewal_date: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    stripe_customer_id: Mapped[str | None] = mapped_column(String, nullable=True)
    stripe_subscription_id: Mapped[str | None] = mapped_column(String, nullable=True)
    stripe_price_id: Mapped[str | None] = mapped_column(String, nullable=True)
    cancel_at_period_end: Mapped[bool] = mapped_column(Boolean, default=False)

    def __repr__(self) -> str:
        return (
            f"<User(id={self.id}, tier={self.tier}, "
            f"credits={self.ai_credits_remaining}/{self.ai_credits_total})>"
        )


class CreditLog(Base):
    """Audit row written for every absolute credit write."""

    __tablename__ = "credit_logs"
    __table_args__ = (Index("idx_credit_logs_user_created", "user_id", "created_at"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(ForeignKey("users.id"))
    tier: Mapped[str] = mapped_column(String(20))
    credits_granted: Mapped[int] = mapped_column(Integer)
    credits_remaining_before: Mapped[int] = mapped_column(Integer)
    reason: Mapped[str] = mapped_column(String(40))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
