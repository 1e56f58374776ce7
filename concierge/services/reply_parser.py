"""
Pull the structured reply out of the model's free text.

The model is asked for bare JSON but often wraps it in a ```json fence.
When the envelope can't be parsed we still keep the prose (first 200 chars).
"""
from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from typing import Any, List, Optional, Union

from pydantic import ValidationError

from concierge.models import AssistantReply, MapAction

logger = logging.getLogger(__name__)

FALLBACK_MAX_CHARS = 200
EMPTY_REPLY_TEXT = "I couldn't generate a response."

_FENCE_OPEN_RE = re.compile(r"^```(?:json)?\s*", re.IGNORECASE)
_FENCE_CLOSE_RE = re.compile(r"\s*```$")


@dataclass(frozen=True)
class ParsedReply:
    reply: AssistantReply


@dataclass(frozen=True)
class FallbackReply:
    raw: str

    @property
    def reply(self) -> AssistantReply:
        text = self.raw.strip()[:FALLBACK_MAX_CHARS]
        return AssistantReply(message=text or EMPTY_REPLY_TEXT, hotels=[], mapAction=None)


ReplyParseResult = Union[ParsedReply, FallbackReply]


def strip_code_fence(text: str) -> str:
    cleaned = (text or "").strip()
    cleaned = _FENCE_OPEN_RE.sub("", cleaned)
    cleaned = _FENCE_CLOSE_RE.sub("", cleaned)
    return cleaned.strip()


def _slugs(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    return [s.strip() for s in value if isinstance(s, str) and s.strip()]


def _map_action(value: Any) -> Optional[MapAction]:
    if not isinstance(value, dict):
        return None
    try:
        return MapAction.model_validate(value)
    except ValidationError:
        logger.warning("reply_map_action_invalid value=%s", value)
        return None


def parse_assistant_reply(text: str) -> ReplyParseResult:
    raw = text or ""
    try:
        data = json.loads(strip_code_fence(raw))
    except json.JSONDecodeError:
        logger.warning("reply_not_json chars=%s", len(raw))
        return FallbackReply(raw)

    message = data.get("message") if isinstance(data, dict) else None
    if not isinstance(message, str):
        logger.warning("reply_missing_message")
        return FallbackReply(raw)

    return ParsedReply(
        AssistantReply(
            message=message,
            hotels=_slugs(data.get("hotels")),
            mapAction=_map_action(data.get("mapAction")),
        )
    )
