"""
Onboarding progress: which setup steps a user has completed.

Steps run 0..LAST_STEP in order (plan, knowledge base, bot setup,
integrations). One row per (user_id, step_id); completing a step again
overwrites its data. Finishing the last step marks the profile onboarded.
"""
import logging
from typing import Any, Dict, List, Optional, Union

from pydantic import ValidationError
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.models.onboarding_progress import OnboardingProgress
from app.models.profile import Profile
from app.schemas.onboarding import (
    BotSetupStepData,
    IntegrationsStepData,
    KnowledgeBaseStepData,
    PlanStepData,
    RawStepData,
)
from app.utils.timestamps import utcnow

logger = logging.getLogger(__name__)

PLAN_STEP = 0
KNOWLEDGE_BASE_STEP = 1
BOT_SETUP_STEP = 2
INTEGRATIONS_STEP = 3
LAST_STEP = INTEGRATIONS_STEP

StepData = Union[PlanStepData, KnowledgeBaseStepData, BotSetupStepData, IntegrationsStepData, RawStepData]

_STEP_TYPES = {
    PLAN_STEP: PlanStepData,
    KNOWLEDGE_BASE_STEP: KnowledgeBaseStepData,
    BOT_SETUP_STEP: BotSetupStepData,
    INTEGRATIONS_STEP: IntegrationsStepData,
}


def parse_step_data(step_id: int, data: Optional[Dict[str, Any]]) -> StepData:
    """Validate step_data against the model for its step, or keep it raw."""
    data = data or {}
    step_type = _STEP_TYPES.get(step_id)
    if not isinstance(data, dict):
        return RawStepData(payload={"value": data})
    if step_type is None:
        return RawStepData(payload=data)
    try:
        return step_type.model_validate(data)
    except ValidationError as e:
        logger.info("Onboarding step %s data kept raw: %s", step_id, e.error_count())
        return RawStepData(payload=data)


def dump_step_data(step_data: StepData) -> Dict[str, Any]:
    if isinstance(step_data, RawStepData):
        return dict(step_data.payload)
    return step_data.model_dump(exclude_none=True)


def get_progress(db: Session, user_id: str) -> List[OnboardingProgress]:
    return (
        db.query(OnboardingProgress)
        .filter(OnboardingProgress.user_id == user_id)
        .order_by(OnboardingProgress.step_id)
        .all()
    )


def last_completed_step(progress: List[OnboardingProgress]) -> int:
    """Highest completed step id, or -1 when nothing is completed."""
    if not progress:
        return -1
    return max(entry.step_id for entry in progress)


def next_step(progress: List[OnboardingProgress]) -> int:
    return min(last_completed_step(progress) + 1, LAST_STEP)


def _find_entry(db: Session, user_id: str, step_id: int) -> Optional[OnboardingProgress]:
    return db.query(OnboardingProgress).filter(
        OnboardingProgress.user_id == user_id,
        OnboardingProgress.step_id == step_id,
    ).first()


def _write_step(db: Session, user_id: str, step_id: int, data: Dict[str, Any]) -> OnboardingProgress:
    now = utcnow()
    entry = _find_entry(db, user_id, step_id)
    if entry is None:
        entry = OnboardingProgress(user_id=user_id, step_id=step_id)
        db.add(entry)
    entry.step_data = data
    entry.completed_at = now
    entry.updated_at = now

    if step_id == LAST_STEP:
        profile = db.query(Profile).filter(Profile.id == user_id).first()
        if profile is None:
            profile = Profile(id=user_id)
            db.add(profile)
        profile.onboarding_completed = True
        profile.updated_at = now

    db.commit()
    return entry


def mark_step_complete(
    db: Session,
    user_id: str,
    step_id: int,
    step_data: Optional[Dict[str, Any]] = None,
) -> OnboardingProgress:
    parsed = parse_step_data(step_id, step_data)
    data = dump_step_data(parsed)

    try:
        entry = _write_step(db, user_id, step_id, data)
    except IntegrityError:
        # A concurrent request inserted this step (or the profile) first; the retry updates it
        db.rollback()
        logger.info("Onboarding step %s for user %s inserted concurrently, updating", step_id, user_id)
        entry = _write_step(db, user_id, step_id, data)

    db.refresh(entry)
    logger.info("Onboarding step %s (%s) completed for user %s", step_id, parsed.kind, user_id)
    return entry


def reset_progress(db: Session, user_id: str) -> int:
    deleted = db.query(OnboardingProgress).filter(
        OnboardingProgress.user_id == user_id
    ).delete(synchronize_session=False)
    db.commit()
    logger.info("Onboarding progress reset for user %s (%s rows)", user_id, deleted)
    return deleted
