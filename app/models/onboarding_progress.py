from sqlalchemy import Column, String, Integer, JSON, DateTime, UniqueConstraint
from app.db.base import Base
from app.models.ids import new_uuid
from app.utils.timestamps import utcnow


class OnboardingProgress(Base):
    __tablename__ = "onboarding_progress"
    __table_args__ = (
        UniqueConstraint("user_id", "step_id", name="uq_onboarding_progress_user_step"),
    )

    id = Column(String(36), primary_key=True, default=new_uuid)
    user_id = Column(String(36), nullable=False, index=True)
    step_id = Column(Integer, nullable=False)
    step_data = Column(JSON, nullable=True)
    completed_at = Column(DateTime, default=utcnow, nullable=False)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)
