"""
Health check endpoint: is the server up, and has the CMS cache been loaded.
"""
from fastapi import APIRouter, Request

router = APIRouter(prefix="/api/health", tags=["health"])


@router.get("")
def health_check(request: Request):
    snapshot = request.app.state.cache.snapshot
    return {
        "status": "ok",
        "cmsLoaded": len(snapshot.hotels) > 0,
        "hotelCount": len(snapshot.hotels),
        "lastCacheUpdate": snapshot.last_fetch_ms,
    }
