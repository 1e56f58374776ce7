"""
Webflow CMS v2 client: list a site's collections and page through collection items.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import httpx

logger = logging.getLogger(__name__)

BASE_URL = "https://api.webflow.com"
PAGE_SIZE = 100
PAGE_DELAY_SECONDS = 0.2 # static rate-limit spacing between page requests


class WebflowError(RuntimeError):
    """Raised when Webflow returns a non-2xx response."""

    def __init__(self, status_code: int, message: str, payload: Any = None):
        super().__init__(message)
        self.status_code = status_code
        self.payload = payload


@dataclass(frozen=True)
class CollectionIds:
    hotels: Optional[str] = None
    regions: Optional[str] = None
    collections: Optional[str] = None


def discover_collections(collections: List[Dict[str, Any]]) -> CollectionIds:
    """
    Pick the hotels / regions / curated-collections ids by display name.
    Collection names are chosen by whoever runs the Webflow site, so match on
    substrings rather than fixed ids. First match wins for each role.
    """
    hotels_id: Optional[str] = None
    regions_id: Optional[str] = None
    collections_id: Optional[str] = None

    for collection in collections:
        if not isinstance(collection, dict):
            continue
        name = str(collection.get("displayName") or collection.get("slug") or "").lower()
        cid = collection.get("id")
        if not cid:
            continue

        if "hotel" in name and "type" not in name:
            hotels_id = hotels_id or cid
        elif "region" in name or "location" in name:
            regions_id = regions_id or cid
        elif "collection" in name:
            collections_id = collections_id or cid

    return CollectionIds(hotels=hotels_id, regions=regions_id, collections=collections_id)


def _error_payload(r: httpx.Response) -> Any:
    try:
        return r.json()
    except ValueError:
        return {"raw": r.text}


class WebflowClient:
    def __init__(
        self,
        api_token: str,
        site_id: str,
        *,
        timeout: float = 30.0,
        page_size: int = PAGE_SIZE,
        page_delay: float = PAGE_DELAY_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_token = api_token
        self.site_id = site_id
        self.timeout = timeout
        self.page_size = page_size
        self.page_delay = page_delay
        self._transport = transport # tests plug an httpx.MockTransport in here

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_token}",
            "Accept": "application/json",
        }

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=BASE_URL,
            headers=self._headers(),
            timeout=self.timeout,
            transport=self._transport,
        )

    async def list_collections(self) -> List[Dict[str, Any]]:
        """
        Calls:
          GET https://api.webflow.com/v2/sites/{site_id}/collections
        """
        async with self._client() as client:
            r = await client.get(f"/v2/sites/{self.site_id}/collections")

        if r.status_code >= 400:
            raise WebflowError(
                status_code=r.status_code,
                message=f"Webflow error {r.status_code} listing collections",
                payload=_error_payload(r),
            )

        collections = r.json().get("collections")
        return collections if isinstance(collections, list) else []

    async def fetch_all_items(self, collection_id: str) -> List[Dict[str, Any]]:
        """
        Page through GET /v2/collections/{id}/items until a short page, the
        reported total, or a failed request. A failure ends the loop and keeps
        whatever was already gathered.
        """
        items: List[Dict[str, Any]] = []
        offset = 0

        async with self._client() as client:
            while True:
                try:
                    r = await client.get(
                        f"/v2/collections/{collection_id}/items",
                        params={"offset": offset, "limit": self.page_size},
                    )
                except httpx.HTTPError as exc:
                    logger.error("webflow_page_failed collection=%s offset=%s error=%s", collection_id, offset, exc)
                    break

                if r.status_code >= 400:
                    logger.error("webflow_page_failed collection=%s offset=%s status=%s", collection_id, offset, r.status_code)
                    break

                try:
                    data = r.json()
                except ValueError:
                    logger.error("webflow_page_not_json collection=%s offset=%s", collection_id, offset)
                    break
                if not isinstance(data, dict):
                    break

                page = data.get("items") if isinstance(data.get("items"), list) else []
                items.extend(page)
                offset += self.page_size

                if len(page) < self.page_size:
                    break

                pagination = data.get("pagination") if isinstance(data.get("pagination"), dict) else {}
                total = pagination.get("total")
                if isinstance(total, int) and len(items) >= total:
                    break

                await asyncio.sleep(self.page_delay)

        logger.info("webflow_items_fetched collection=%s count=%s", collection_id, len(items))
        return items
