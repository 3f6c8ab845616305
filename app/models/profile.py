from sqlalchemy import Column, String, Boolean, DateTime
from app.db.base import Base
from app.utils.timestamps import utcnow


class Profile(Base):
    __tablename__ = "profiles"

    id = Column(String(36), primary_key=True)  # Same as the Supabase auth user id
    first_name = Column(String, nullable=True)
    last_name = Column(String, nullable=True)
    company = Column(String, nullable=True)
    onboarding_completed = Column(Boolean, default=False, nullable=False)
    subscription_status = Column(String, nullable=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)
