from sqlalchemy import Column, String, DateTime
from app.db.base import Base
from app.models.ids import new_uuid
from app.utils.timestamps import utcnow


class AdminRole(Base):
    __tablename__ = "admin_roles"

    id = Column(String(36), primary_key=True, default=new_uuid)
    user_id = Column(String(36), unique=True, index=True, nullable=False)
    role = Column(String, nullable=False, default="admin")
    granted_by = Column(String(36), nullable=True)
    granted_at = Column(DateTime, default=utcnow)
