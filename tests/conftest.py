"""Pytest configuration and shared fixtures."""

import json
from typing import Any, Callable, Dict, List, Optional

import httpx
import pytest

from concierge.config import Settings

HOTELS_COLLECTION_ID = "col-hotels"
REGIONS_COLLECTION_ID = "col-regions"
CURATED_COLLECTION_ID = "col-curated"


@pytest.fixture
def collections_listing() -> List[Dict[str, Any]]:
    """Collections as returned by GET /v2/sites/{id}/collections."""
    return [
        {"id": "col-hotel-types", "displayName": "Hotel Types", "slug": "hotel-types"},
        {"id": HOTELS_COLLECTION_ID, "displayName": "Hotels", "slug": "hotels"},
        {"id": REGIONS_COLLECTION_ID, "displayName": "Regions", "slug": "regions"},
        {"id": CURATED_COLLECTION_ID, "displayName": "Collections", "slug": "collections"},
    ]


@pytest.fixture
def region_items() -> List[Dict[str, Any]]:
    return [
        {"id": "region-lisbon", "fieldData": {"name": "Lisbon", "slug": "lisbon"}},
        {"id": "region-porto", "fieldData": {"name": "Porto", "slug": "porto"}},
    ]


@pytest.fixture
def hotel_items() -> List[Dict[str, Any]]:
    """A mix of field-name styles, plus archived / closed items."""
    return [
        {
            "id": "h1",
            "fieldData": {
                "name": "Memmo Alfama",
                "slug": "memmo-alfama",
                "region": "Lisbon",
                "short-description": "Rooftop pool over the Alfama rooftops.",
                "latitude": "38.7110",
                "longitude": "-9.1300",
                "cover-image": {"url": "https://cdn.example.com/memmo.jpg", "alt": None},
                "number-of-rooms": "42",
            },
        },
        {
            "id": "h2",
            "fieldData": {
                "hotel-name": "Casa do Conto",
                "slug": "casa-do-conto",
                "location": "region-porto",
                "description": "Storytelling in concrete.",
                "lat": 41.1530,
                "lng": -8.6150,
            },
        },
        {
            "id": "h3",
            "fieldData": {
                "name": "Quinta no Douro",
                "slug": "quinta-no-douro",
                "region-2": "Douro Valley",
                "latitude": "not-a-number",
                "longitude": "-7.5",
                "rooms": 9,
            },
        },
        {
            "id": "h4",
            "fieldData": {
                "name": "Old Archived Place",
                "slug": "old-archived-place",
                "region": "Lisbon",
                "archived": True,
                "latitude": 38.7,
                "longitude": -9.1,
            },
        },
        {
            "id": "h5",
            "fieldData": {
                "name": "Closed Inn",
                "slug": "closed-inn",
                "region": "Algarve",
                "is-closed": True,
                "latitude": 37.0,
                "longitude": -8.0,
            },
        },
    ]


class WebflowStub:
    """Fake Webflow v2 API served through httpx.MockTransport."""

    def __init__(
        self,
        collections: List[Dict[str, Any]],
        items: Dict[str, List[Dict[str, Any]]],
        fail_offsets: Optional[Dict[str, int]] = None,
        collections_status: int = 200,
    ):
        self.collections = collections
        self.items = items
        self.fail_offsets = fail_offsets or {}
        self.collections_status = collections_status
        self.requests: List[httpx.Request] = []
        self._transport: Optional[httpx.MockTransport] = None

    def page_requests(self, collection_id: str) -> List[httpx.Request]:
        return [r for r in self.requests if r.url.path == f"/v2/collections/{collection_id}/items"]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path

        if path.endswith("/collections") and path.startswith("/v2/sites/"):
            if self.collections_status >= 400:
                return httpx.Response(self.collections_status, json={"message": "nope"})
            return httpx.Response(200, json={"collections": self.collections})

        if path.startswith("/v2/collections/") and path.endswith("/items"):
            collection_id = path.split("/")[3]
            offset = int(request.url.params.get("offset", "0"))
            limit = int(request.url.params.get("limit", "100"))
            if self.fail_offsets.get(collection_id) == offset:
                return httpx.Response(500, json={"message": "upstream down"})
            all_items = self.items.get(collection_id, [])
            page = all_items[offset:offset + limit]
            return httpx.Response(
                200,
                json={
                    "items": page,
                    "pagination": {"limit": limit, "offset": offset, "total": len(all_items)},
                },
            )

        return httpx.Response(404, json={"message": "not found"})

    @property
    def transport(self) -> httpx.MockTransport:
        if self._transport is not None:
            return self._transport
        return httpx.MockTransport(self.handler)

    @transport.setter
    def transport(self, value: httpx.MockTransport) -> None:
        self._transport = value


class AnthropicStub:
    """Fake Messages API; records request bodies."""

    def __init__(self, text: str = "", status_code: int = 200, error_message: Optional[str] = None):
        self.text = text
        self.status_code = status_code
        self.error_message = error_message
        self.bodies: List[Dict[str, Any]] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.bodies.append(json.loads(request.content))
        if self.status_code >= 400:
            error = {"type": "error", "error": {"type": "api_error", "message": self.error_message}}
            return httpx.Response(self.status_code, json=error)
        return httpx.Response(
            200,
            json={
                "id": "msg_test",
                "type": "message",
                "role": "assistant",
                "content": [{"type": "text", "text": self.text}],
                "usage": {"input_tokens": 120, "output_tokens": 40},
            },
        )

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


@pytest.fixture
def make_webflow(collections_listing, hotel_items, region_items) -> Callable[..., WebflowStub]:
    def _make(**kwargs) -> WebflowStub:
        kwargs.setdefault("collections", collections_listing)
        kwargs.setdefault(
            "items",
            {
                HOTELS_COLLECTION_ID: hotel_items,
                REGIONS_COLLECTION_ID: region_items,
                CURATED_COLLECTION_ID: [{"id": "c1", "fieldData": {"name": "Beach Escapes"}}],
            },
        )
        return WebflowStub(**kwargs)

    return _make


@pytest.fixture
def settings(tmp_path) -> Settings:
    public_dir = tmp_path / "public"
    public_dir.mkdir()
    (public_dir / "index.html").write_text("<html><body>JO&amp;SO</body></html>", encoding="utf-8")
    return Settings(
        webflow_api_token="wf-secret-token",
        webflow_site_id="site-123",
        anthropic_api_key="sk-ant-secret-key",
        mapbox_token="pk.public-mapbox",
        public_dir=public_dir,
    )


@pytest.fixture
def make_anthropic() -> Callable[..., AnthropicStub]:
    return AnthropicStub
