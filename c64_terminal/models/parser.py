# ============================================================================
# Chat Payload Parser
# ============================================================================

import json
from typing import Any

import structlog
from pydantic import ValidationError

from .chat import ChatMessage

log = structlog.get_logger()


def parse_chat_payload(raw: Any) -> ChatMessage:
    """Parse a raw chat event into a ChatMessage.

    Accepts a decoded mapping, a JSON string or JSON bytes. Anything that
    cannot be read yields an empty message rather than an exception.
    """
    if isinstance(raw, bytes):
        raw = raw.decode("utf-8", errors="replace")

    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except ValueError:
            log.warning("Chat payload is not valid JSON", length=len(raw))
            return ChatMessage()

    if not isinstance(raw, dict):
        log.warning("Chat payload is not an object", kind=type(raw).__name__)
        return ChatMessage()

    try:
        return ChatMessage.model_validate(raw)
    except ValidationError as e:
        log.warning("Chat payload failed validation", errors=e.error_count())
        return ChatMessage()
