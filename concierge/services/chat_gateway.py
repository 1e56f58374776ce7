from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from concierge.models import ChatTurn, HotelRecord, MapAction
from concierge.services.anthropic_client import AnthropicClient, response_text
from concierge.services.cms_cache import CmsCache
from concierge.services.hotel_normalize import get_all_hotels
from concierge.services.prompt_builder import build_system_prompt
from concierge.services.reply_parser import FallbackReply, parse_assistant_reply

logger = logging.getLogger(__name__)

MAX_HISTORY_TURNS = 10


@dataclass
class ChatResult:
    message: str
    hotels: List[HotelRecord] = field(default_factory=list)
    mapAction: Optional[MapAction] = None
    usage: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "message": self.message,
            "hotels": [h.model_dump() for h in self.hotels],
            "mapAction": self.mapAction.model_dump() if self.mapAction else None,
            "usage": self.usage,
        }


def build_messages(message: str, history: Sequence[ChatTurn]) -> List[Dict[str, str]]:
    turns = [{"role": t.role, "content": t.content} for t in list(history)[-MAX_HISTORY_TURNS:]]
    turns.append({"role": "user", "content": message})
    return turns


def resolve_hotels(slugs: Sequence[str], hotels: Sequence[HotelRecord]) -> List[HotelRecord]:
    """Keep reply order; unknown and repeated slugs are dropped quietly."""
    by_slug = {h.slug: h for h in hotels if h.slug}
    out: List[HotelRecord] = []
    seen = set()
    for slug in slugs:
        hotel = by_slug.get(slug)
        if hotel is None or slug in seen:
            continue
        seen.add(slug)
        out.append(hotel)
    return out


class ChatGateway:
    def __init__(self, cache: CmsCache, client: AnthropicClient):
        self.cache = cache
        self.client = client

    async def chat(self, message: str, history: Sequence[ChatTurn] = ()) -> ChatResult:
        started = time.perf_counter()

        if self.cache.is_stale():
            await self.cache.refresh()

        hotels = get_all_hotels(self.cache.snapshot)
        system = build_system_prompt(hotels)

        # AnthropicError propagates so the router can forward the upstream status
        data = await self.client.create_message(system, build_messages(message, history))

        parsed = parse_assistant_reply(response_text(data))
        reply = parsed.reply
        matched = resolve_hotels(reply.hotels, hotels)

        logger.info(
            "chat_done fallback=%s slugs=%s matched=%s total_ms=%.2f",
            isinstance(parsed, FallbackReply),
            len(reply.hotels),
            len(matched),
            (time.perf_counter() - started) * 1000,
        )
        return ChatResult(
            message=reply.message,
            hotels=matched,
            mapAction=reply.mapAction,
            usage=data.get("usage"),
        )
