from pydantic import BaseModel, Field
from typing import Optional


class ChatRequest(BaseModel):
    message: Optional[str] = None
    widget_id: Optional[str] = Field(default=None, alias="widgetId")
    knowledgebase_id: Optional[str] = None
    system_message: Optional[str] = None
