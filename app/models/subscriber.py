from sqlalchemy import Column, String, Boolean, DateTime
from app.db.base import Base
from app.models.ids import new_uuid
from app.utils.timestamps import utcnow


class Subscriber(Base):
    __tablename__ = "subscribers"

    id = Column(String(36), primary_key=True, default=new_uuid)
    email = Column(String, unique=True, index=True, nullable=False)
    user_id = Column(String(36), nullable=True, index=True)
    stripe_customer_id = Column(String, nullable=True)
    subscribed = Column(Boolean, default=False, nullable=False)
    is_trial = Column(Boolean, default=False, nullable=False)  # A user gets the trial at most once
    trial_end = Column(DateTime, nullable=True)
    subscription_tier = Column(String, nullable=True)  # Starter / Professional / Enterprise
    subscription_end = Column(DateTime, nullable=True)
    webhook_received = Column(DateTime, nullable=True)  # Last Stripe webhook that touched this row
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)
