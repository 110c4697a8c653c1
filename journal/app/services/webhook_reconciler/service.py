"""Apply payment-provider events to the quota ledger.

Every handler computes absolute state from the authoritative payload and
writes it with SET, never with increments, so redelivery of an event
leaves the ledger as a single delivery would.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Optional

import stripe
from sqlalchemy.ext.asyncio import AsyncSession

from journal.app.core.logging import get_log_context, get_logger
from journal.app.db import crud
from journal.app.exceptions import ReconciliationValidationError
from journal.app.providers.stripe_client import PaymentGateway
from journal.app.services.tiers import SubscriptionTier, credits_for_tier, price_to_tier
from journal.app.services.webhook_reconciler.models import (
    CheckoutCompleted,
    EventKind,
    PaymentEvent,
    SubscriptionCancelled,
    SubscriptionUpdated,
    UnsupportedEvent,
    parse_event,
    parse_subscription,
)

logger = get_logger(__name__)


@dataclass
class ReconcileOutcome:
    action: str
    user_id: Optional[str] = None


class WebhookReconciler:
    def __init__(self, session: AsyncSession, gateway: PaymentGateway):
        self.session = session
        self.gateway = gateway

    async def handle(self, raw_event: dict[str, Any]) -> ReconcileOutcome:
        """Parse and apply one raw event.

        Raises:
            ReconciliationValidationError: The event is invalid and nothing
                was written.
        """
        try:
            event = parse_event(raw_event)
        except ReconciliationValidationError as e:
            logger.warning(f"Rejected payment event: {e.message}", extra=get_log_context(event_type=e.event_type))
            raise
        return await self.apply(event)

    async def apply(self, event: PaymentEvent) -> ReconcileOutcome:
        if isinstance(event, CheckoutCompleted):
            return await self._checkout_completed(event)
        if isinstance(event, SubscriptionUpdated):
            return await self._subscription_updated(event)
        if isinstance(event, SubscriptionCancelled):
            return await self._subscription_cancelled(event)
        logger.info(
            f"Ignoring unsupported payment event {event.event_id}",
            extra=get_log_context(event_type=event.event_type),
        )
        return ReconcileOutcome(action="ignored")

    async def _checkout_completed(self, event: CheckoutCompleted) -> ReconcileOutcome:
        event_type = EventKind.CHECKOUT_COMPLETED.value
        log_extra = get_log_context(user_id=event.user_id, event_type=event_type)

        user = await crud.get_user_by_id(self.session, event.user_id)
        if user is None:
            logger.warning("Checkout completed for unknown user", extra=log_extra)
            raise ReconciliationValidationError(event_type, "unknown user", field="metadata.user_id")

        try:
            subscription = await self.gateway.retrieve_subscription(event.subscription_id)
        except stripe.StripeError as e:
            logger.error(f"Subscription lookup failed: {e}", extra=log_extra)
            raise ReconciliationValidationError(
                event_type, "subscription lookup failed", field="subscription"
            ) from e

        try:
            details = parse_subscription(subscription, event_type)
        except ReconciliationValidationError as e:
            logger.warning(f"Rejected checkout: {e.message}", extra=log_extra)
            raise

        plan = price_to_tier(details.price_id)
        if plan is None:
            logger.warning(f"Checkout with unknown price {details.price_id}", extra=log_extra)
            raise ReconciliationValidationError(event_type, f"unknown price {details.price_id}", field="price")

        credits = credits_for_tier(plan.tier)
        period_start = details.current_period_start or datetime.now(timezone.utc)
        values = {
            "tier": plan.tier.value,
            "stripe_customer_id": details.customer_id or event.customer_id,
            "stripe_subscription_id": details.subscription_id,
            "stripe_price_id": details.price_id,
            "start_date": period_start,
            "last_renewal_date": period_start,
            "next_renewal_date": details.current_period_end,
            "end_date": details.current_period_end,
            "is_yearly": details.is_yearly,
            "ai_credits_total": credits,
            "ai_credits_remaining": credits,
            "auto_renew": True,
            "cancel_at_period_end": False,
        }
        await crud.apply_subscription_state(self.session, user.id, values, auto_commit=False)
        await crud.create_credit_log(
            self.session,
            user_id=user.id,
            tier=plan.tier.value,
            credits_granted=credits,
            credits_remaining_before=user.ai_credits_remaining,
            reason="checkout_completed",
            auto_commit=False,
        )
        await self.session.commit()

        logger.info(f"Activated {plan.tier.value} subscription", extra=log_extra)
        return ReconcileOutcome(action="subscription_activated", user_id=user.id)

    async def _subscription_updated(self, event: SubscriptionUpdated) -> ReconcileOutcome:
        event_type = EventKind.SUBSCRIPTION_UPDATED.value
        details = event.details

        user = await crud.get_user_by_subscription_id(self.session, details.subscription_id)
        if user is None:
            logger.warning(
                f"Subscription {details.subscription_id} not linked to any user",
                extra=get_log_context(event_type=event_type),
            )
            raise ReconciliationValidationError(event_type, "unknown subscription", field="id")
        log_extra = get_log_context(user_id=user.id, event_type=event_type)

        values: dict[str, Any] = {
            "next_renewal_date": details.current_period_end,
            "end_date": details.current_period_end,
            "is_yearly": details.is_yearly,
            "cancel_at_period_end": details.cancel_at_period_end,
            "auto_renew": not details.cancel_at_period_end,
        }

        plan = price_to_tier(details.price_id)
        if plan is None:
            # Tier, price and credits stay as they are; the rest still applies.
            logger.warning(f"Unknown price {details.price_id}; tier and credits left unchanged", extra=log_extra)
            await crud.apply_subscription_state(self.session, user.id, values, auto_commit=False)
            await self.session.commit()
            return ReconcileOutcome(action="subscription_updated_partial", user_id=user.id)

        credits = credits_for_tier(plan.tier)
        values.update(
            tier=plan.tier.value,
            stripe_price_id=details.price_id,
            ai_credits_total=credits,
            ai_credits_remaining=credits,
        )
        await crud.apply_subscription_state(self.session, user.id, values, auto_commit=False)
        await crud.create_credit_log(
            self.session,
            user_id=user.id,
            tier=plan.tier.value,
            credits_granted=credits,
            credits_remaining_before=user.ai_credits_remaining,
            reason="subscription_updated",
            auto_commit=False,
        )
        await self.session.commit()

        logger.info(f"Updated subscription to {plan.tier.value}", extra=log_extra)
        return ReconcileOutcome(action="subscription_updated", user_id=user.id)

    async def _subscription_cancelled(self, event: SubscriptionCancelled) -> ReconcileOutcome:
        event_type = EventKind.SUBSCRIPTION_CANCELLED.value

        user = await crud.get_user_by_subscription_id(self.session, event.subscription_id)
        if user is None:
            # Already reverted by an earlier delivery.
            logger.info(
                f"Cancellation for unlinked subscription {event.subscription_id}; nothing to do",
                extra=get_log_context(event_type=event_type),
            )
            return ReconcileOutcome(action="ignored_unknown_subscription")
        log_extra = get_log_context(user_id=user.id, event_type=event_type)

        credits = credits_for_tier(SubscriptionTier.FREE)
        values = {
            "tier": SubscriptionTier.FREE.value,
            "stripe_customer_id": None,
            "stripe_subscription_id": None,
            "stripe_price_id": None,
            "next_renewal_date": None,
            "end_date": datetime.now(timezone.utc),
            "is_yearly": False,
            "ai_credits_total": credits,
            "ai_credits_remaining": credits,
            "auto_renew": False,
            "cancel_at_period_end": False,
        }
        await crud.apply_subscription_state(self.session, user.id, values, auto_commit=False)
        await crud.create_credit_log(
            self.session,
            user_id=user.id,
            tier=SubscriptionTier.FREE.value,
            credits_granted=credits,
            credits_remaining_before=user.ai_credits_remaining,
            reason="subscription_cancelled",
            auto_commit=False,
        )
        await self.session.commit()

        logger.info("Subscription cancelled; reverted to free tier", extra=log_extra)
        return ReconcileOutcome(action="subscription_cancelled", user_id=user.id)
