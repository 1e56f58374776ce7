"""
Hotel listing endpoints for the map frontend. Only visible (not archived,
not closed) hotels are ever returned.
"""
from __future__ import annotations

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from concierge.services.hotel_normalize import find_hotel, get_all_hotels, to_markers

router = APIRouter(prefix="/api/hotels", tags=["hotels"])


@router.get("")
def list_hotels(request: Request):
    hotels = get_all_hotels(request.app.state.cache.snapshot)
    return [h.model_dump() for h in hotels]


# declared before /{slug} so "markers" isn't read as a slug
@router.get("/markers")
def hotel_markers(request: Request):
    hotels = get_all_hotels(request.app.state.cache.snapshot)
    return [m.model_dump() for m in to_markers(hotels)]


@router.get("/{slug}")
def get_hotel(slug: str, request: Request):
    hotel = find_hotel(get_all_hotels(request.app.state.cache.snapshot), slug)
    if hotel is None:
        return JSONResponse(status_code=404, content={"error": f"Hotel not found: {slug}"})
    return hotel.model_dump()
