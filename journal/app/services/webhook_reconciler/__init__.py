"""Payment-provider webhook reconciliation."""

from journal.app.services.webhook_reconciler.models import (
    CheckoutCompleted,
    EventKind,
    PaymentEvent,
    SubscriptionCancelled,
    SubscriptionDetails,
    SubscriptionUpdated,
    UnsupportedEvent,
    parse_event,
    parse_subscription,
)
from journal.app.services.webhook_reconciler.service import ReconcileOutcome, WebhookReconciler

__all__ = [
    "CheckoutCompleted",
    "EventKind",
    "PaymentEvent",
    "SubscriptionCancelled",
    "SubscriptionDetails",
    "SubscriptionUpdated",
    "UnsupportedEvent",
    "parse_event",
    "parse_subscription",
    "ReconcileOutcome",
    "WebhookReconciler",
]
