from sqlalchemy import Column, String, Boolean, JSON, DateTime
from app.db.base import Base
from app.models.ids import new_uuid
from app.utils.timestamps import utcnow


class Chatbot(Base):
    __tablename__ = "chatbots"

    id = Column(String(36), primary_key=True, default=new_uuid)
    user_id = Column(String(36), nullable=False, index=True)
    name = Column(String, nullable=False)
    description = Column(String, nullable=True)
    configuration = Column(JSON, nullable=True)  # Widget colours, welcome message, personality
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=utcnow, index=True)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)
