"""Unit tests for ChatGateway and its helpers."""

import json

import pytest

from concierge.models import ChatTurn, HotelRecord
from concierge.services.anthropic_client import AnthropicClient, AnthropicError
from concierge.services.chat_gateway import ChatGateway, ChatResult, build_messages, resolve_hotels
from concierge.services.cms_cache import CmsCache
from concierge.services.webflow_cms import WebflowClient


def _history(n):
    return [ChatTurn(role="user" if i % 2 == 0 else "assistant", content=f"turn {i}") for i in range(n)]


class TestBuildMessages:
    """Tests for history trimming."""

    def test_keeps_last_ten_then_appends_user(self):
        messages = build_messages("hello", _history(14))

        assert len(messages) == 11
        assert messages[0] == {"role": "user", "content": "turn 4"}
        assert messages[-1] == {"role": "user", "content": "hello"}

    def test_short_history_kept(self):
        messages = build_messages("hello", _history(2))
        assert [m["content"] for m in messages] == ["turn 0", "turn 1", "hello"]

    def test_no_history(self):
        assert build_messages("hello", []) == [{"role": "user", "content": "hello"}]


class TestResolveHotels:
    """Tests for slug resolution."""

    @pytest.fixture
    def hotels(self):
        return [
            HotelRecord(name="Memmo Alfama", slug="memmo-alfama", region="Lisbon"),
            HotelRecord(name="Casa do Conto", slug="casa-do-conto", region="Porto"),
        ]

    def test_drops_unknown(self, hotels):
        result = resolve_hotels(["memmo-alfama", "nonexistent-slug"], hotels)
        assert [h.slug for h in result] == ["memmo-alfama"]

    def test_keeps_reply_order_and_dedupes(self, hotels):
        result = resolve_hotels(["casa-do-conto", "memmo-alfama", "casa-do-conto"], hotels)
        assert [h.slug for h in result] == ["casa-do-conto", "memmo-alfama"]

    def test_empty(self, hotels):
        assert resolve_hotels([], hotels) == []


class TestChatGateway:
    """Tests for the full chat flow against stubbed upstreams."""

    @pytest.fixture
    def webflow(self, make_webflow):
        return make_webflow()

    @pytest.fixture
    def cache(self, webflow):
        return CmsCache(WebflowClient("token", "site-123", page_delay=0, transport=webflow.transport))

    def _gateway(self, cache, stub):
        return ChatGateway(cache, AnthropicClient("key", model="claude-test", transport=stub.transport))

    async def test_stale_cache_refreshed_before_prompt(self, cache, webflow, make_anthropic):
        stub = make_anthropic(text=json.dumps({"message": "Hi", "hotels": [], "mapAction": None}))
        assert cache.is_stale()

        await self._gateway(cache, stub).chat("hello")

        assert not cache.is_stale()
        assert "memmo-alfama" in stub.bodies[0]["system"]

    async def test_fresh_cache_not_refetched(self, cache, webflow, make_anthropic):
        await cache.refresh()
        before = len(webflow.requests)
        stub = make_anthropic(text='{"message": "Hi"}')

        await self._gateway(cache, stub).chat("hello")

        assert len(webflow.requests) == before

    async def test_resolves_slugs_and_drops_unknown(self, cache, make_anthropic):
        reply = {"message": "Great pick!", "hotels": ["memmo-alfama", "nonexistent-slug"], "mapAction": None}
        stub = make_anthropic(text=json.dumps(reply))

        result = await self._gateway(cache, stub).chat("Somewhere in Alfama?")

        assert result.message == "Great pick!"
        assert [h.slug for h in result.hotels] == ["memmo-alfama"]
        assert result.hotels[0].name == "Memmo Alfama"
        assert result.mapAction is None
        assert result.usage == {"input_tokens": 120, "output_tokens": 40}

    async def test_archived_slug_not_resolved(self, cache, make_anthropic):
        stub = make_anthropic(text='{"message": "Hi", "hotels": ["old-archived-place", "closed-inn"]}')
        result = await self._gateway(cache, stub).chat("hello")
        assert result.hotels == []

    async def test_fallback_reply(self, cache, make_anthropic):
        stub = make_anthropic(text="Sorry, " + "x" * 300)
        result = await self._gateway(cache, stub).chat("hello")

        assert len(result.message) == 200
        assert result.hotels == []
        assert result.mapAction is None

    async def test_request_body(self, cache, make_anthropic):
        stub = make_anthropic(text='{"message": "Hi"}')
        await self._gateway(cache, stub).chat("hello", _history(12))

        body = stub.bodies[0]
        assert body["model"] == "claude-test"
        assert body["max_tokens"] == 1024
        assert len(body["messages"]) == 11
        assert body["messages"][-1] == {"role": "user", "content": "hello"}

    async def test_upstream_error_propagates(self, cache, make_anthropic):
        stub = make_anthropic(status_code=429, error_message="Rate limited")

        with pytest.raises(AnthropicError) as exc_info:
            await self._gateway(cache, stub).chat("hello")

        assert exc_info.value.status_code == 429
        assert str(exc_info.value) == "Rate limited"

    async def test_upstream_error_without_message(self, cache, make_anthropic):
        stub = make_anthropic(status_code=500, error_message=None)

        with pytest.raises(AnthropicError) as exc_info:
            await self._gateway(cache, stub).chat("hello")

        assert str(exc_info.value) == "API error"

    def test_to_dict(self):
        result = ChatResult(message="Hi", hotels=[HotelRecord(name="A", slug="a", region="Lisbon")])
        out = result.to_dict()
        assert out["hotels"][0]["slug"] == "a"
        assert out["mapAction"] is None
        assert out["usage"] is None
