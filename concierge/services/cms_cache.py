"""
In-memory cache of the Webflow collections.

Readers grab `cache.snapshot` once per request. A refresh builds a new
snapshot off to the side and swaps it in with one assignment, so readers
never see a half-filled collection. Overlapping refreshes share one task.
"""
from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Tuple

from concierge.services.webflow_cms import WebflowClient, discover_collections

logger = logging.getLogger(__name__)

CmsItem = Dict[str, Any]
DEFAULT_TTL_SECONDS = 30 * 60


@dataclass(frozen=True)
class CacheSnapshot:
    hotels: Tuple[CmsItem, ...] = ()
    regions: Tuple[CmsItem, ...] = ()
    collections: Tuple[CmsItem, ...] = ()
    last_fetch: Optional[float] = None # epoch seconds, None until the first successful refresh

    @property
    def last_fetch_ms(self) -> Optional[int]:
        if self.last_fetch is None:
            return None
        return int(self.last_fetch * 1000)


class CmsCache:
    def __init__(
        self,
        cms_client: Optional[WebflowClient],
        *,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
    ):
        self.cms_client = cms_client
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._snapshot = CacheSnapshot()
        self._inflight: Optional[asyncio.Task] = None

    @property
    def snapshot(self) -> CacheSnapshot:
        return self._snapshot

    def is_stale(self, now: Optional[float] = None) -> bool:
        last_fetch = self._snapshot.last_fetch
        if last_fetch is None:
            return True
        now = self._clock() if now is None else now
        return now - last_fetch > self.ttl_seconds

    def stats(self) -> Dict[str, Any]:
        snap = self._snapshot
        cache_age = None
        if snap.last_fetch is not None:
            cache_age = int((self._clock() - snap.last_fetch) * 1000)
        return {
            "hotels": len(snap.hotels),
            "regions": len(snap.regions),
            "collections": len(snap.collections),
            "lastFetch": snap.last_fetch_ms,
            "cacheAge": cache_age,
        }

    async def refresh(self) -> bool:
        """
        Re-fetch every collection and swap in a new snapshot.
        Returns True when the snapshot was replaced. Callers arriving while a
        refresh is running wait on the same task instead of starting another.
        """
        if self.cms_client is None:
            logger.info("cms_refresh_skipped reason=no_webflow_token")
            return False

        if self._inflight is None or self._inflight.done():
            self._inflight = asyncio.create_task(self._do_refresh())
        else:
            logger.info("cms_refresh_joined_inflight")

        # shield: a cancelled request must not cancel the refresh other callers share
        return await asyncio.shield(self._inflight)

    def cancel_refresh(self) -> None:
        """Drop a refresh that is still running (used on shutdown)."""
        if self._inflight is not None and not self._inflight.done():
            self._inflight.cancel()

    async def _do_refresh(self) -> bool:
        logger.info("cms_refresh_started")
        started = time.perf_counter()
        try:
            collections = await self.cms_client.list_collections()
            ids = discover_collections(collections)
            logger.info(
                "cms_collections_found hotels=%s regions=%s collections=%s",
                ids.hotels,
                ids.regions,
                ids.collections,
            )

            hotels = await self.cms_client.fetch_all_items(ids.hotels) if ids.hotels else []
            regions = await self.cms_client.fetch_all_items(ids.regions) if ids.regions else []
            curated = await self.cms_client.fetch_all_items(ids.collections) if ids.collections else []
        except Exception as exc:
            logger.error("cms_refresh_failed error=%s", repr(exc))
            return False

        self._snapshot = CacheSnapshot(
            hotels=tuple(hotels),
            regions=tuple(regions),
            collections=tuple(curated),
            last_fetch=self._clock(),
        )
        logger.info(
            "cms_refresh_done hotels=%s regions=%s collections=%s total_ms=%.2f",
            len(hotels),
            len(regions),
            len(curated),
            (time.perf_counter() - started) * 1000,
        )
        return True
