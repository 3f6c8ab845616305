"""
Ban records written by admins. Unbanning flips is_active on the active ban
rows instead of adding a new row type.
"""
from enum import Enum
from sqlalchemy import Column, String, Boolean, DateTime
from app.db.base import Base
from app.models.ids import new_uuid
from app.utils.timestamps import utcnow


class ModerationActionType(str, Enum):
    BAN = "ban"


class ModerationAction(Base):
    __tablename__ = "user_moderation"

    id = Column(String(36), primary_key=True, default=new_uuid)
    user_id = Column(String(36), nullable=False, index=True)
    admin_id = Column(String(36), nullable=False)
    action_type = Column(String, nullable=False, default=ModerationActionType.BAN.value)
    reason = Column(String, nullable=True)
    expires_at = Column(DateTime, nullable=True)  # NULL means permanent
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=utcnow, index=True)
