"""
Public frontend config. Secrets are reported as presence flags only;
the Mapbox token is meant to be public.
"""
from fastapi import APIRouter, Request

router = APIRouter(prefix="/api/config", tags=["config"])


@router.get("")
def get_config(request: Request):
    settings = request.app.state.settings
    return {
        "mapboxToken": settings.mapbox_token,
        "hasWebflow": settings.has_webflow,
        "hasClaude": settings.has_claude,
        "hotelCount": len(request.app.state.cache.snapshot.hotels),
    }
