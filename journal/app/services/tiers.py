"""Subscription tiers and their limits.

The limits table is an exhaustive map over the closed SubscriptionTier
enum; a missing tier fails at import time rather than at lookup time.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from journal.app.core.config import settings


class SubscriptionTier(str, Enum):
    FREE = "free"
    BASIC = "basic"
    PREMIUM = "premium"


class Feature(str, Enum):
    """Boolean features gated by tier."""
    EXPORT_TO_PDF = "export_to_pdf"
    ADVANCED_NOTE_FORMAT = "advanced_note_format"
    AI_AUTHOR_SUMMARY = "ai_author_summary"
    AI_CUSTOMIZATION = "ai_customization"
    DETAILED_AUTHOR_INFO = "detailed_author_info"
    EXTENDED_AI_SUMMARY = "extended_ai_summary"


@dataclass(frozen=True)
class TierLimits:
    max_books: Optional[int]  # None = unlimited
    ai_credits_per_month: int
    features: frozenset


SUBSCRIPTION_LIMITS: dict[SubscriptionTier, TierLimits] = {
    SubscriptionTier.FREE: TierLimits(
        max_books=5,
        ai_credits_per_month=3,
        features=frozenset(),
    ),
    SubscriptionTier.BASIC: TierLimits(
        max_books=50,
        ai_credits_per_month=50,
        features=frozenset(
            {
                Feature.EXPORT_TO_PDF,
                Feature.ADVANCED_NOTE_FORMAT,
                Feature.AI_AUTHOR_SUMMARY,
            }
        ),
    ),
    SubscriptionTier.PREMIUM: TierLimits(
        max_books=None,
        ai_credits_per_month=100,
        features=frozenset(Feature),
    ),
}

_missing = set(SubscriptionTier) - set(SUBSCRIPTION_LIMITS)
if _missing:
    raise RuntimeError(f"SUBSCRIPTION_LIMITS is missing tiers: {sorted(t.value for t in _missing)}")


def parse_tier(value: str | SubscriptionTier) -> SubscriptionTier:
    """Parse a stored tier value. Unknown values raise ValueError."""
    return SubscriptionTier(value)


def get_limits(tier: str | SubscriptionTier) -> TierLimits:
    return SUBSCRIPTION_LIMITS[parse_tier(tier)]


def credits_for_tier(tier: str | SubscriptionTier) -> int:
    return get_limits(tier).ai_credits_per_month


def has_access(tier: str | SubscriptionTier, feature: Feature) -> bool:
    return feature in get_limits(tier).features


def required_tier_for(feature: Feature) -> Optional[SubscriptionTier]:
    """The lowest tier that includes a feature."""
    for tier in SubscriptionTier:
        if feature in SUBSCRIPTION_LIMITS[tier].features:
            return tier
    return None


@dataclass(frozen=True)
class PricePlan:
    tier: SubscriptionTier
    is_yearly: bool


def get_price_table() -> dict[str, PricePlan]:
    """Static price identifier -> plan lookup built from settings."""
    table = {
        settings.stripe_price_basic_monthly: PricePlan(SubscriptionTier.BASIC, False),
        settings.stripe_price_basic_yearly: PricePlan(SubscriptionTier.BASIC, True),
        settings.stripe_price_premium_monthly: PricePlan(SubscriptionTier.PREMIUM, False),
        settings.stripe_price_premium_yearly: PricePlan(SubscriptionTier.PREMIUM, True),
    }
    # Unconfigured prices are empty strings and must never match.
    table.pop("", None)
    return table


def price_to_tier(price_id: Optional[str]) -> Optional[PricePlan]:
    if not price_id:
        return None
    return get_price_table().get(price_id)
