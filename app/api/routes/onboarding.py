from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.dependencies.auth import get_current_user
from app.schemas.onboarding import OnboardingProgressResponse, StepCompleteRequest
from app.services import onboarding
from app.services.identity_client import AuthUser
from app.utils.timestamps import to_iso

router = APIRouter()


def _progress_response(progress):
    return {
        "progress": [{
            "step_id": entry.step_id,
            "completed_at": to_iso(entry.completed_at),
            "step_data": entry.step_data,
        } for entry in progress],
        "last_completed_step": onboarding.last_completed_step(progress),
        "next_step": onboarding.next_step(progress),
    }


@router.get("/progress", response_model=OnboardingProgressResponse)
def get_progress(
    db: Session = Depends(get_db),
    user: AuthUser = Depends(get_current_user),
):
    """Completed steps in order, plus the step the wizard should resume at."""
    return _progress_response(onboarding.get_progress(db, user.id))


@router.put("/progress/{step_id}", response_model=OnboardingProgressResponse)
def complete_step(
    step_id: int,
    request: StepCompleteRequest,
    db: Session = Depends(get_db),
    user: AuthUser = Depends(get_current_user),
):
    onboarding.mark_step_complete(db, user.id, step_id, request.step_data)
    return _progress_response(onboarding.get_progress(db, user.id))


@router.delete("/progress", response_model=OnboardingProgressResponse)
def reset_progress(
    db: Session = Depends(get_db),
    user: AuthUser = Depends(get_current_user),
):
    onboarding.reset_progress(db, user.id)
    return _progress_response([])
