"""
Stripe subscription state for the dashboard.

The subscribers table is the local cache of what Stripe knows about an email.
It is refreshed on demand (check_subscription, at most once an hour per user)
and by Stripe webhooks.
"""
import logging
from datetime import timedelta
from typing import Any, Dict, Optional

import stripe
from sqlalchemy.orm import Session

from app.core import config
from app.core.errors import ConfigurationError, InvalidRequest, UpstreamFailure
from app.core.plans import get_tier_for_price
from app.models.profile import Profile
from app.models.subscriber import Subscriber
from app.utils.timestamps import from_unix, to_iso, utcnow

logger = logging.getLogger(__name__)


def _configure_stripe() -> None:
    if not config.STRIPE_SECRET_KEY:
        raise ConfigurationError("STRIPE_SECRET_KEY environment variable is not configured")
    stripe.api_key = config.STRIPE_SECRET_KEY


def upsert_subscriber(db: Session, email: str, **fields) -> Subscriber:
    """Insert or update the subscriber row keyed by email."""
    subscriber = db.query(Subscriber).filter(Subscriber.email == email).first()
    if subscriber is None:
        subscriber = Subscriber(email=email)
        db.add(subscriber)
    for key, value in fields.items():
        setattr(subscriber, key, value)
    subscriber.updated_at = utcnow()
    db.commit()
    db.refresh(subscriber)
    return subscriber


def subscription_payload(subscriber: Subscriber) -> Dict[str, Any]:
    return {
        "subscribed": subscriber.subscribed,
        "subscription_tier": subscriber.subscription_tier,
        "subscription_end": to_iso(subscriber.subscription_end),
        "is_trial": subscriber.is_trial,
        "trial_end": to_iso(subscriber.trial_end),
    }


def describe_subscription(subscription: Dict[str, Any]):
    """Return (tier, period_end) for a Stripe subscription, as a plain dict (`.to_dict()`)."""
    items = (subscription.get("items") or {}).get("data") or []
    if not items:
        return None, None
    item = items[0]
    price_id = (item.get("price") or {}).get("id")
    # Newer Stripe API versions report the period on the item
    period_end = subscription.get("current_period_end") or item.get("current_period_end")
    return get_tier_for_price(price_id), from_unix(period_end)


def check_subscription(db: Session, user_id: str, email: str) -> Dict[str, Any]:
    cached = db.query(Subscriber).filter(Subscriber.user_id == user_id).first()
    if cached is not None and cached.updated_at:
        max_age = timedelta(seconds=config.SUBSCRIPTION_CACHE_TTL_SECONDS)
        if cached.updated_at > utcnow() - max_age:
            logger.info("[CHECK-SUBSCRIPTION] Using cached subscription data for %s", email)
            return subscription_payload(cached)
        logger.info("[CHECK-SUBSCRIPTION] Cached data is stale, checking with Stripe")

    _configure_stripe()
    try:
        customers = stripe.Customer.list(email=email, limit=1)
        if not customers.data:
            logger.info("[CHECK-SUBSCRIPTION] No customer found for %s", email)
            subscriber = upsert_subscriber(
                db, email,
                user_id=user_id,
                stripe_customer_id=None,
                subscribed=False,
                subscription_tier=None,
                subscription_end=None,
            )
            return subscription_payload(subscriber)

        customer_id = customers.data[0].id
        subscriptions = stripe.Subscription.list(customer=customer_id, status="active", limit=1)
    except stripe.StripeError as e:
        logger.error("[CHECK-SUBSCRIPTION] Stripe error: %s", e)
        raise UpstreamFailure(f"Stripe error: {e}")

    tier, period_end = None, None
    has_active_sub = len(subscriptions.data) > 0
    if has_active_sub:
        tier, period_end = describe_subscription(subscriptions.data[0].to_dict())
        logger.info("[CHECK-SUBSCRIPTION] Active subscription for %s: tier=%s end=%s", email, tier, period_end)

    subscriber = upsert_subscriber(
        db, email,
        user_id=user_id,
        stripe_customer_id=customer_id,
        subscribed=has_active_sub,
        subscription_tier=tier,
        subscription_end=period_end,
    )
    return subscription_payload(subscriber)


def create_checkout_session(email: str, price_id: Optional[str], origin: str) -> str:
    """Create a subscription-mode Checkout session and return its URL."""
    if not price_id:
        raise InvalidRequest("Price ID is required")
    _configure_stripe()

    try:
        customers = stripe.Customer.list(email=email, limit=1)
        customer_id = customers.data[0].id if customers.data else None

        params: Dict[str, Any] = {
            "line_items": [{"price": price_id, "quantity": 1}],
            "mode": "subscription",
            "success_url": f"{origin}/onboarding?success=true",
            "cancel_url": f"{origin}/onboarding",
        }
        if customer_id:
            params["customer"] = customer_id
        else:
            params["customer_email"] = email

        session = stripe.checkout.Session.create(**params)
    except stripe.StripeError as e:
        logger.error("[CREATE-CHECKOUT] Stripe error: %s", e)
        raise UpstreamFailure(f"Failed to create checkout session: {e}")

    logger.info("[CREATE-CHECKOUT] Checkout session %s created for %s", session.id, email)
    return session.url


def sync_subscription_event(db: Session, subscription: Dict[str, Any]) -> Optional[Subscriber]:
    """Apply a customer.subscription.* webhook object (plain dict) to the subscriber and profile rows."""
    _configure_stripe()
    customer_id = subscription.get("customer")
    try:
        customer = stripe.Customer.retrieve(customer_id).to_dict()
    except stripe.StripeError as e:
        raise UpstreamFailure(f"Stripe error: {e}")

    email = customer.get("email")
    if not email:
        logger.info("[STRIPE-WEBHOOK] No email found for customer %s", customer_id)
        return None

    is_active = subscription.get("status") == "active"
    tier, period_end = (None, None)
    if is_active:
        tier, period_end = describe_subscription(subscription)

    now = utcnow()
    subscriber = upsert_subscriber(
        db, email,
        stripe_customer_id=customer.get("id") or customer_id,
        subscribed=is_active,
        subscription_tier=tier,
        subscription_end=period_end,
        webhook_received=now,
    )
    logger.info("[STRIPE-WEBHOOK] Updated subscriber %s: subscribed=%s tier=%s", email, is_active, tier)

    if subscriber.user_id:
        profile = db.query(Profile).filter(Profile.id == subscriber.user_id).first()
        if profile is not None:
            profile.subscription_status = ((tier or "active").lower() if is_active else "inactive")
            profile.updated_at = now
            db.commit()
            logger.info("[STRIPE-WEBHOOK] Profile %s subscription_status=%s", profile.id, profile.subscription_status)

    return subscriber
