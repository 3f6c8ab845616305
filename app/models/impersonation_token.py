"""
Single-use login links an admin creates to sign in as another user.
Rows are never deleted so the table doubles as an audit trail.
"""
from sqlalchemy import Column, String, DateTime
from app.db.base import Base
from app.models.ids import new_uuid
from app.utils.timestamps import utcnow


class ImpersonationToken(Base):
    __tablename__ = "temp_login_tokens"

    id = Column(String(36), primary_key=True, default=new_uuid)
    token = Column(String, unique=True, index=True, nullable=False)
    target_user_id = Column(String(36), nullable=False, index=True)
    admin_id = Column(String(36), nullable=False)
    expires_at = Column(DateTime, nullable=False)
    used_at = Column(DateTime, nullable=True)  # NULL until redeemed
    created_at = Column(DateTime, default=utcnow)

    def __repr__(self):
        return f"<ImpersonationToken(id={self.id}, target_user_id={self.target_user_id}, used_at={self.used_at})>"
