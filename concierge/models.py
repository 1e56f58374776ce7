"""
Pydantic shapes shared by the services and the HTTP routers.
Field names are camelCase on purpose: they are what the map frontend reads.
"""
from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, Field


class HotelRecord(BaseModel):
    name: str
    slug: str
    region: str
    description: str = ""
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    imageUrl: Optional[str] = None
    bookingUrl: Optional[str] = None
    roomCount: Optional[int] = None


class HotelMarker(BaseModel):
    name: str
    slug: str
    region: str
    lat: float
    lng: float
    image: Optional[str] = None


class ChatTurn(BaseModel):
    role: Literal["user", "assistant"]
    content: str


class ChatRequest(BaseModel):
    # Optional so a missing message is answered with 400 {error}, not a 422
    message: Optional[str] = None
    history: List[ChatTurn] = Field(default_factory=list)


class MapAction(BaseModel):
    type: str = "flyTo"
    lat: float
    lng: float
    zoom: float = 10


class AssistantReply(BaseModel):
    message: str
    hotels: List[str] = Field(default_factory=list)
    mapAction: Optional[MapAction] = None
