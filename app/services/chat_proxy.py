"""
Chat proxy: forwards widget messages to the n8n workflow webhook that runs
the language model, and reshapes whatever the workflow returns.

The workflow has answered in several shapes over time, so replies are
classified into variants and checked in a fixed order:
  1. a list whose first item has "output"
  2. an object with "output"
  3. an object with "response"
  4. a bare string
  5. anything else -> default message
"""
import logging
from dataclasses import dataclass
from typing import Any, Optional, Union

import requests

from app.core import config
from app.core.errors import UpstreamFailure
from app.utils.timestamps import to_iso, utcnow

logger = logging.getLogger(__name__)

DEFAULT_SYSTEM_MESSAGE = "You are a helpful assistant."
DEFAULT_REPLY = "Sorry, I encountered an error. Please try again."
CONNECTION_ERROR_REPLY = "Sorry, I'm having trouble connecting. Please try again later."


@dataclass
class ListOutputReply:
    text: str


@dataclass
class OutputReply:
    text: str


@dataclass
class ResponseReply:
    text: str


@dataclass
class PlainTextReply:
    text: str


@dataclass
class UnrecognizedReply:
    raw: Any
    text: str = DEFAULT_REPLY


WebhookReply = Union[ListOutputReply, OutputReply, ResponseReply, PlainTextReply, UnrecognizedReply]


def parse_webhook_reply(data: Any) -> WebhookReply:
    if isinstance(data, list) and data and isinstance(data[0], dict) and data[0].get("output"):
        return ListOutputReply(text=data[0]["output"])
    if isinstance(data, dict):
        if data.get("output"):
            return OutputReply(text=data["output"])
        if data.get("response"):
            return ResponseReply(text=data["response"])
    if isinstance(data, str):
        return PlainTextReply(text=data)
    return UnrecognizedReply(raw=data)


def build_webhook_payload(
    message: str,
    widget_id: str,
    knowledgebase_id: Optional[str] = None,
    system_message: Optional[str] = None,
) -> dict:
    return {
        "message": message,
        "widgetId": widget_id,
        "knowledgebase_id": knowledgebase_id or widget_id.replace("widget_", ""),
        "system_message": system_message or DEFAULT_SYSTEM_MESSAGE,
        "timestamp": to_iso(utcnow()),
    }


def forward_message(
    message: str,
    widget_id: str,
    knowledgebase_id: Optional[str] = None,
    system_message: Optional[str] = None,
    webhook_url: Optional[str] = None,
) -> WebhookReply:
    """POST the message to the workflow webhook and classify its reply. One attempt, no retry."""
    url = webhook_url or config.CHAT_WEBHOOK_URL
    payload = build_webhook_payload(message, widget_id, knowledgebase_id, system_message)
    logger.info("[CHAT] Forwarding message for widget %s (%s chars)", widget_id, len(message))

    try:
        response = requests.post(
            url,
            json=payload,
            headers={"Accept": "application/json"},
            timeout=config.HTTP_TIMEOUT_SECONDS,
        )
    except requests.exceptions.RequestException as e:
        raise UpstreamFailure(f"Webhook request failed: {e}")

    if not response.ok:
        raise UpstreamFailure(f"Webhook request failed with status: {response.status_code}")

    try:
        data = response.json()
    except ValueError:
        data = response.text

    reply = parse_webhook_reply(data)
    logger.info("[CHAT] Webhook replied with %s", type(reply).__name__)
    return reply
