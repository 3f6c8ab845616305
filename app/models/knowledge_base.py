from sqlalchemy import Column, String, Integer, Text, DateTime, ForeignKey
from app.db.base import Base
from app.models.ids import new_uuid
from app.utils.timestamps import utcnow


class KnowledgeBase(Base):
    __tablename__ = "knowledge_base"

    id = Column(String(36), primary_key=True, default=new_uuid)
    user_id = Column(String(36), nullable=False, index=True)
    chatbot_id = Column(String(36), ForeignKey("chatbots.id", ondelete="SET NULL"), nullable=True)
    title = Column(String, nullable=False)
    content = Column(Text, nullable=True)
    file_type = Column(String, nullable=True)
    file_size = Column(Integer, nullable=True)
    gcp_file_path = Column(String, nullable=True)
    created_at = Column(DateTime, default=utcnow, index=True)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)
