"""
Trial, subscription status and Stripe Checkout for the signed-in user.
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header
from sqlalchemy.orm import Session

from app.core import config
from app.db.session import get_db
from app.dependencies.auth import get_current_user_with_email
from app.schemas.subscription import (
    CheckoutRequest,
    CheckoutResponse,
    SubscriptionStatusResponse,
    TrialResponse,
)
from app.services import subscription, trial
from app.services.identity_client import AuthUser
from app.utils.timestamps import to_iso

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/start-trial", response_model=TrialResponse)
def start_trial(
    db: Session = Depends(get_db),
    user: AuthUser = Depends(get_current_user_with_email),
):
    """Grant the 14-day trial. Each email can start it once."""
    logger.info("[START-TRIAL] User authenticated: %s", user.email)
    trial_end = trial.start_trial(db, user.id, user.email)
    return {"success": True, "trial_end": to_iso(trial_end)}


@router.post("/check-subscription", response_model=SubscriptionStatusResponse)
def check_subscription(
    db: Session = Depends(get_db),
    user: AuthUser = Depends(get_current_user_with_email),
):
    return subscription.check_subscription(db, user.id, user.email)


@router.post("/create-checkout", response_model=CheckoutResponse)
def create_checkout(
    request: CheckoutRequest,
    origin: Optional[str] = Header(None),
    user: AuthUser = Depends(get_current_user_with_email),
):
    url = subscription.create_checkout_session(user.email, request.price_id, origin or config.FRONTEND_URL)
    return {"url": url}
