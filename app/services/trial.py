"""
14-day trial grants.

A given email gets the trial at most once: the grant is refused when the
subscriber row already has subscribed or is_trial set. The write itself is
conditional (UPDATE ... WHERE neither flag is set, or INSERT guarded by the
unique email) so concurrent requests cannot both win.
"""
import logging
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core import config
from app.core.errors import Conflict
from app.models.subscriber import Subscriber
from app.utils.timestamps import utcnow

logger = logging.getLogger(__name__)

ALREADY_GRANTED = "User already has an active subscription or trial"


def _trial_fields(user_id: str, trial_end: datetime, now: datetime) -> dict:
    return {
        "user_id": user_id,
        "subscribed": False,
        "is_trial": True,
        "trial_end": trial_end,
        "subscription_tier": None,
        "subscription_end": None,
        "updated_at": now,
    }


def _find_subscriber(db: Session, email: str) -> Optional[Subscriber]:
    return db.query(Subscriber).filter(Subscriber.email == email).first()


def start_trial(db: Session, user_id: str, email: str) -> datetime:
    """Grant the trial and return its end time. Raises Conflict if already granted."""
    now = utcnow()
    trial_end = now + timedelta(days=config.TRIAL_DAYS)
    fields = _trial_fields(user_id, trial_end, now)

    existing = _find_subscriber(db, email)
    if existing is not None:
        if existing.subscribed or existing.is_trial:
            raise Conflict(ALREADY_GRANTED)
        result = db.execute(
            update(Subscriber)
            .where(
                Subscriber.email == email,
                Subscriber.subscribed.is_(False),
                Subscriber.is_trial.is_(False),
            )
            .values(**fields)
            .execution_options(synchronize_session=False)
        )
        db.commit()
        if result.rowcount != 1:
            raise Conflict(ALREADY_GRANTED)
    else:
        db.add(Subscriber(email=email, **fields))
        try:
            db.commit()
        except IntegrityError:
            # Another request inserted this email first
            db.rollback()
            raise Conflict(ALREADY_GRANTED)

    logger.info("[START-TRIAL] Trial started for %s until %s", email, trial_end.isoformat())
    return trial_end
