from __future__ import annotations

import logging

from fastapi import APIRouter, Request

router = APIRouter(prefix="/api/cms", tags=["cms"])
logger = logging.getLogger(__name__)


@router.get("/stats")
def cms_stats(request: Request):
    return request.app.state.cache.stats()


@router.post("/refresh")
async def cms_refresh(request: Request):
    cache = request.app.state.cache
    success = await cache.refresh()
    logger.info("cms_manual_refresh success=%s", success)
    return {
        "success": success,
        "hotelCount": len(cache.snapshot.hotels),
    }
