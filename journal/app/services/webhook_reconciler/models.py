"""Typed payment-provider events.

Raw event dicts are parsed once into one of the dataclasses below; the
reconciler never reads the raw payload.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional, Union

from journal.app.exceptions import ReconciliationValidationError


class EventKind(str, Enum):
    CHECKOUT_COMPLETED = "checkout.session.completed"
    SUBSCRIPTION_UPDATED = "customer.subscription.updated"
    SUBSCRIPTION_CANCELLED = "customer.subscription.deleted"


@dataclass(frozen=True)
class SubscriptionDetails:
    subscription_id: str
    customer_id: Optional[str]
    price_id: str
    interval: str
    current_period_start: Optional[datetime]
    current_period_end: datetime
    cancel_at_period_end: bool

    @property
    def is_yearly(self) -> bool:
        return self.interval == "year"


@dataclass(frozen=True)
class CheckoutCompleted:
    event_id: Optional[str]
    user_id: str
    subscription_id: str
    customer_id: Optional[str]


@dataclass(frozen=True)
class SubscriptionUpdated:
    event_id: Optional[str]
    details: SubscriptionDetails


@dataclass(frozen=True)
class SubscriptionCancelled:
    event_id: Optional[str]
    subscription_id: str


@dataclass(frozen=True)
class UnsupportedEvent:
    event_id: Optional[str]
    event_type: str


PaymentEvent = Union[CheckoutCompleted, SubscriptionUpdated, SubscriptionCancelled, UnsupportedEvent]


def _id_of(value: Any) -> Optional[str]:
    """Identifier of a field that may be a bare id or an expanded object."""
    if isinstance(value, dict):
        value = value.get("id")
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def _timestamp(value: Any) -> Optional[datetime]:
    if value is None or isinstance(value, bool):
        return None
    try:
        seconds = int(value)
    except (TypeError, ValueError):
        return None
    if seconds <= 0:
        return None
    return datetime.fromtimestamp(seconds, tz=timezone.utc)


def parse_subscription(obj: Any, event_type: str) -> SubscriptionDetails:
    """Validate a subscription object.

    Raises:
        ReconciliationValidationError: If the id, renewal timestamp, price
            identifier or billing interval is missing.
    """
    if not isinstance(obj, dict):
        raise ReconciliationValidationError(event_type, "subscription object missing", field="data.object")

    subscription_id = _id_of(obj.get("id"))
    if not subscription_id:
        raise ReconciliationValidationError(event_type, "subscription id missing", field="id")

    items = (obj.get("items") or {}).get("data") or []
    item = items[0] if items and isinstance(items[0], dict) else {}
    price = item.get("price") or obj.get("plan") or {}

    # Newer API versions moved the period fields onto the subscription item.
    period_end = _timestamp(obj.get("current_period_end")) or _timestamp(item.get("current_period_end"))
    if period_end is None:
        raise ReconciliationValidationError(event_type, "renewal timestamp missing", field="current_period_end")
    period_start = _timestamp(obj.get("current_period_start")) or _timestamp(item.get("current_period_start"))

    price_id = _id_of(price)
    if not price_id:
        raise ReconciliationValidationError(event_type, "price identifier missing", field="items.data[0].price.id")

    interval = (price.get("recurring") or {}).get("interval") or price.get("interval")
    if interval not in ("month", "year"):
        raise ReconciliationValidationError(event_type, f"invalid billing interval {interval!r}", field="interval")

    return SubscriptionDetails(
        subscription_id=subscription_id,
        customer_id=_id_of(obj.get("customer")),
        price_id=price_id,
        interval=interval,
        current_period_start=period_start,
        current_period_end=period_end,
        cancel_at_period_end=bool(obj.get("cancel_at_period_end", False)),
    )


def parse_event(event: Any) -> PaymentEvent:
    """Parse a raw event dict into a typed event.

    Raises:
        ReconciliationValidationError: If a supported event is missing
            required fields.
    """
    if not isinstance(event, dict):
        raise ReconciliationValidationError("unknown", "event payload is not an object")

    event_type = event.get("type") or ""
    event_id = event.get("id")
    obj = (event.get("data") or {}).get("object")

    if event_type == EventKind.CHECKOUT_COMPLETED.value:
        if not isinstance(obj, dict):
            raise ReconciliationValidationError(event_type, "session object missing", field="data.object")
        metadata = obj.get("metadata") or {}
        user_id = (
            metadata.get("user_id")
            or metadata.get("userId")
            or obj.get("client_reference_id")
        )
        if not user_id:
            raise ReconciliationValidationError(event_type, "user identifier missing", field="metadata.user_id")
        subscription_id = _id_of(obj.get("subscription"))
        if not subscription_id:
            raise ReconciliationValidationError(event_type, "subscription id missing", field="subscription")
        return CheckoutCompleted(
            event_id=event_id,
            user_id=str(user_id),
            subscription_id=subscription_id,
            customer_id=_id_of(obj.get("customer")),
        )

    if event_type == EventKind.SUBSCRIPTION_UPDATED.value:
        return SubscriptionUpdated(event_id=event_id, details=parse_subscription(obj, event_type))

    if event_type == EventKind.SUBSCRIPTION_CANCELLED.value:
        subscription_id = _id_of(obj.get("id")) if isinstance(obj, dict) else None
        if not subscription_id:
            raise ReconciliationValidationError(event_type, "subscription id missing", field="id")
        return SubscriptionCancelled(event_id=event_id, subscription_id=subscription_id)

    return UnsupportedEvent(event_id=event_id, event_type=event_type)
