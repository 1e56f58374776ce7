"""
Normalize Webflow hotel items into HotelRecord.

Different Webflow sites (and older versions of the same site) name the same
field differently, so every canonical attribute has an ordered list of
candidate keys. The first key holding a non-empty value wins.
"""
from __future__ import annotations

import math
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from concierge.models import HotelMarker, HotelRecord
from concierge.services.cms_cache import CacheSnapshot

# Each list also carries the canonical HotelRecord key so that a record that
# has already been normalized comes out unchanged.
NAME_KEYS: Tuple[str, ...] = ("name", "hotel-name")
SLUG_KEYS: Tuple[str, ...] = ("slug",)
REGION_KEYS: Tuple[str, ...] = ("region", "location", "region-2")
DESCRIPTION_KEYS: Tuple[str, ...] = ("short-description", "description", "meta-description")
LATITUDE_KEYS: Tuple[str, ...] = ("latitude", "lat")
LONGITUDE_KEYS: Tuple[str, ...] = ("longitude", "lng", "lon")
IMAGE_KEYS: Tuple[str, ...] = ("imageUrl", "cover-image", "cover", "main-image")
BOOKING_KEYS: Tuple[str, ...] = ("bookingUrl", "booking-url", "booking-link", "website")
ROOM_COUNT_KEYS: Tuple[str, ...] = ("roomCount", "number-of-rooms", "rooms")

DEFAULT_NAME = "Unnamed"
DEFAULT_REGION = "Portugal"


def _is_empty(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str) and not value.strip():
        return True
    if isinstance(value, (list, dict)) and not value:
        return True
    return False


def _first(fields: Mapping[str, Any], keys: Iterable[str]) -> Any:
    for key in keys:
        value = fields.get(key)
        if not _is_empty(value):
            return value
    return None


def _text(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return None


def _url(value: Any) -> Optional[str]:
    # Webflow image / link fields come back as {"url": "...", "alt": ...}
    if isinstance(value, dict):
        value = value.get("url")
    url = _text(value)
    return url or None


def _to_float(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(str(value).strip())
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def _to_int(value: Any) -> Optional[int]:
    number = _to_float(value)
    if number is None:
        return None
    return int(number)


def _field_data(item: Mapping[str, Any]) -> Mapping[str, Any]:
    fields = item.get("fieldData")
    if isinstance(fields, dict):
        return fields
    # already-flat dicts (e.g. HotelRecord.model_dump()) are accepted as is
    return item


def is_visible(item: Any) -> bool:
    """Archived, closed and draft items never leave the backend."""
    if not isinstance(item, dict):
        return False
    fields = item.get("fieldData")
    if not isinstance(fields, dict):
        return False
    if item.get("isArchived") or item.get("isDraft"):
        return False
    return not (fields.get("archived") or fields.get("is-closed"))


def build_region_names(regions: Iterable[Mapping[str, Any]]) -> Dict[str, str]:
    """Map region item id -> region name, for hotels that store a reference id."""
    out: Dict[str, str] = {}
    for region in regions:
        if not isinstance(region, dict):
            continue
        fields = region.get("fieldData") if isinstance(region.get("fieldData"), dict) else {}
        name = _text(fields.get("name"))
        if region.get("id") and name:
            out[str(region["id"])] = name
    return out


def to_hotel_record(item: Mapping[str, Any], region_names: Optional[Mapping[str, str]] = None) -> HotelRecord:
    fields = _field_data(item)

    region = _text(_first(fields, REGION_KEYS)) or DEFAULT_REGION
    if region_names and region in region_names:
        region = region_names[region]

    return HotelRecord(
        name=_text(_first(fields, NAME_KEYS)) or DEFAULT_NAME,
        slug=_text(_first(fields, SLUG_KEYS)) or "",
        region=region,
        description=_text(_first(fields, DESCRIPTION_KEYS)) or "",
        latitude=_to_float(_first(fields, LATITUDE_KEYS)),
        longitude=_to_float(_first(fields, LONGITUDE_KEYS)),
        imageUrl=_url(_first(fields, IMAGE_KEYS)),
        bookingUrl=_url(_first(fields, BOOKING_KEYS)),
        roomCount=_to_int(_first(fields, ROOM_COUNT_KEYS)),
    )


def get_all_hotels(snapshot: CacheSnapshot) -> List[HotelRecord]:
    region_names = build_region_names(snapshot.regions)
    return [to_hotel_record(item, region_names) for item in snapshot.hotels if is_visible(item)]


def find_hotel(hotels: Iterable[HotelRecord], slug: str) -> Optional[HotelRecord]:
    for hotel in hotels:
        if hotel.slug and hotel.slug == slug:
            return hotel
    return None


def to_markers(hotels: Iterable[HotelRecord]) -> List[HotelMarker]:
    """Map pins need both coordinates; anything else is left off the map."""
    return [
        HotelMarker(
            name=h.name,
            slug=h.slug,
            region=h.region,
            lat=h.latitude,
            lng=h.longitude,
            image=h.imageUrl,
        )
        for h in hotels
        if h.latitude is not None and h.longitude is not None
    ]
