"""Payment provider client.

The stripe library is synchronous; blocking calls run in a worker thread.
"""

import asyncio
import json
from typing import Any, Dict, Optional

import stripe

from journal.app.core.config import settings
from journal.app.core.logging import get_logger

logger = get_logger(__name__)


class PaymentGateway:
    """Signature verification and authoritative subscription lookups."""

    def __init__(self, api_key: str = "", webhook_secret: str = ""):
        self.api_key = api_key
        self.webhook_secret = webhook_secret

    def parse_event(self, payload: bytes, signature: Optional[str]) -> Dict[str, Any]:
        """Verify and decode a webhook payload.

        Raises:
            ValueError: If the payload is not valid JSON or the signature
                header is missing.
            stripe.SignatureVerificationError: If the signature does not match.
        """
        if not self.webhook_secret:
            logger.warning("Webhook secret not set: parsing payment event WITHOUT verification")
            return json.loads(payload.decode("utf-8"))

        if not signature:
            raise ValueError("Missing Stripe-Signature header")

        stripe.Webhook.construct_event(
            payload=payload, sig_header=signature, secret=self.webhook_secret
        )
        return json.loads(payload.decode("utf-8"))

    async def retrieve_subscription(self, subscription_id: str) -> Dict[str, Any]:
        """Fetch the current subscription object from the provider.

        Raises:
            stripe.StripeError: On API failures
        """
        subscription = await asyncio.to_thread(
            stripe.Subscription.retrieve, subscription_id, api_key=self.api_key
        )
        return subscription.to_dict()


_payment_gateway: Optional[PaymentGateway] = None


def get_payment_gateway() -> PaymentGateway:
    global _payment_gateway
    if _payment_gateway is None:
        _payment_gateway = PaymentGateway(
            api_key=settings.stripe_secret_key,
            webhook_secret=settings.stripe_webhook_secret,
        )
    return _payment_gateway
