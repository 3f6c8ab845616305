"""
Stripe webhooks. Register this URL in the Stripe dashboard:
https://your-backend.com/webhooks/stripe

Subscription events refresh the subscribers row for the customer's email and
the owning profile's subscription_status. Payment events are only logged.
"""
import logging

import stripe
from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from app.core import config
from app.core.errors import ConfigurationError, InvalidRequest, ServiceError
from app.db.session import get_db
from app.services.subscription import sync_subscription_event

logger = logging.getLogger(__name__)

router = APIRouter()

SUBSCRIPTION_EVENTS = (
    "customer.subscription.created",
    "customer.subscription.updated",
    "customer.subscription.deleted",
)
PAYMENT_EVENTS = (
    "invoice.payment_succeeded",
    "invoice.payment_failed",
)


def _construct_event(payload: bytes, signature: str):
    if not config.STRIPE_SECRET_KEY or not config.STRIPE_WEBHOOK_SECRET:
        raise ConfigurationError("Missing Stripe configuration")
    try:
        return stripe.Webhook.construct_event(payload, signature, config.STRIPE_WEBHOOK_SECRET)
    except (ValueError, stripe.SignatureVerificationError) as e:
        raise InvalidRequest(f"Webhook signature verification failed: {e}")


@router.post("/stripe")
async def stripe_webhook(request: Request, db: Session = Depends(get_db)):
    payload = await request.body()
    signature = request.headers.get("stripe-signature")
    if not signature:
        logger.warning("[STRIPE-WEBHOOK] Missing Stripe signature")
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"error": "Missing Stripe signature"})

    try:
        event = _construct_event(payload, signature).to_dict()
        event_type = event["type"]
        obj = event["data"]["object"]
        logger.info("[STRIPE-WEBHOOK] Event verified: %s (%s)", event_type, event.get("id"))

        if event_type in SUBSCRIPTION_EVENTS:
            sync_subscription_event(db, obj)
        elif event_type in PAYMENT_EVENTS:
            logger.info("[STRIPE-WEBHOOK] %s for invoice %s", event_type, obj.get("id"))
        else:
            logger.info("[STRIPE-WEBHOOK] Unhandled event type: %s", event_type)
    except ServiceError as e:
        logger.error("[STRIPE-WEBHOOK] ERROR: %s", e.message)
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"error": e.message})

    return {"received": True}
