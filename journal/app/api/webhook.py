"""Payment-provider webhook endpoint."""

from typing import Any

import stripe
from fastapi import APIRouter, Depends, HTTPException, Request

from journal.app.core.logging import get_log_context, get_logger
from journal.app.db.dependencies import SessionDep
from journal.app.providers.stripe_client import PaymentGateway, get_payment_gateway
from journal.app.services.webhook_reconciler import WebhookReconciler

logger = get_logger(__name__)

router = APIRouter()


@router.post("/api/webhook")
async def payment_webhook(
    request: Request,
    session: SessionDep,
    gateway: PaymentGateway = Depends(get_payment_gateway),
) -> dict[str, Any]:
    """Verify, parse and reconcile one payment event.

    Invalid signatures and undecodable bodies are 400; events that fail
    validation are 400 through ReconciliationValidationError, so the
    provider retries delivery.
    """
    payload = await request.body()
    signature = request.headers.get("Stripe-Signature")

    try:
        event = gateway.parse_event(payload, signature)
    except stripe.SignatureVerificationError:
        logger.warning("Payment event signature verification failed")
        raise HTTPException(status_code=400, detail="Invalid signature")
    except ValueError as e:
        logger.warning(f"Undecodable payment event: {e}")
        raise HTTPException(status_code=400, detail="Invalid payload")

    if not isinstance(event, dict):
        raise HTTPException(status_code=400, detail="Invalid payload")

    logger.info(
        f"Received payment event {event.get('id')}",
        extra=get_log_context(event_type=event.get("type")),
    )
    outcome = await WebhookReconciler(session, gateway).handle(event)
    return {"received": True, "action": outcome.action}
