"""Services package for the journal.

This package provides:
- Subscription tiers and their limits
- The completion cache

The quota ledger, the generation pipeline and the webhook reconciler
depend on the database layer and are imported from their own modules.
"""

from journal.app.services.tiers import (
    SUBSCRIPTION_LIMITS,
    Feature,
    PricePlan,
    SubscriptionTier,
    TierLimits,
    credits_for_tier,
    has_access,
    price_to_tier,
)
from journal.app.services.completion_cache import (
    CacheEntry,
    CompletionCache,
    fingerprint,
    get_completion_cache,
    reset_completion_cache,
)

__all__ = [
    # Tiers
    "SUBSCRIPTION_LIMITS",
    "Feature",
    "PricePlan",
    "SubscriptionTier",
    "TierLimits",
    "credits_for_tier",
    "has_access",
    "price_to_tier",
    # Completion cache
    "CacheEntry",
    "CompletionCache",
    "fingerprint",
    "get_completion_cache",
    "reset_completion_cache",
]
