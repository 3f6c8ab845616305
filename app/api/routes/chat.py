"""
Public chat endpoint used by the embeddable widget. No auth: the widget id
identifies the bot. Replies always carry a "response" the widget can show.
"""
import logging

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from app.core.errors import ServiceError
from app.schemas.chat import ChatRequest
from app.services import chat_proxy

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/chat")
def chat(request: ChatRequest):
    if not request.message or not request.widget_id:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": "Message and widgetId are required"},
        )

    try:
        reply = chat_proxy.forward_message(
            request.message,
            request.widget_id,
            knowledgebase_id=request.knowledgebase_id,
            system_message=request.system_message,
        )
    except ServiceError as e:
        logger.error("[CHAT] Error in chat proxy: %s", e.message)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "response": chat_proxy.CONNECTION_ERROR_REPLY,
                "error": e.message,
                "success": False,
            },
        )

    return {"response": reply.text, "widgetId": request.widget_id, "success": True}
