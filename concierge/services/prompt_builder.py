"""
System prompt for the JO&SO assistant: brand voice, a fixed region gazetteer
the model can point the map at, the JSON reply contract and the hotel list.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence, Tuple

from concierge.models import HotelRecord

MAX_PROMPT_HOTELS = 100 # keeps the prompt well inside the context window


@dataclass(frozen=True)
class Region:
    name: str
    areas: str
    tagline: str
    lat: float
    lng: float
    zoom: float


REGIONS: Tuple[Region, ...] = (
    Region("Lisbon", "Chiado, Alfama, Príncipe Real, Baixa, Santos", "Portugal's vibrant capital", 38.7223, -9.1393, 12),
    Region("Porto", "Ribeira, Baixa, Foz do Douro", "our hometown", 41.1579, -8.6291, 12),
    Region("Algarve", "Lagos, Tavira, Faro, Aljezur", "golden cliffs and hidden coves", 37.0179, -7.9304, 9),
    Region("Alentejo", "Comporta, Évora, Monsaraz, Melides", "cork forests and endless plains", 38.5714, -7.9135, 8),
    Region("Douro Valley", "Pinhão, Peso da Régua, Lamego", "terraced vineyards and river views", 41.1621, -7.5447, 10),
    Region("Azores", "São Miguel, Faial, Pico", "volcanic islands in the Atlantic", 37.7412, -25.6756, 7),
    Region("Madeira", "Funchal", "subtropical gardens and dramatic cliffs", 32.6669, -16.9241, 10),
    Region("Central Portugal", "Serra da Estrela, Monsanto", "schist villages and mountain retreats", 40.2033, -7.7, 8),
    Region("North Portugal", "Minho, Viana do Castelo", "green valleys and historic towns", 41.6946, -8.3, 9),
)

BRAND_PROMPT = """
You are the JO&SO AI assistant, representing a curated Portuguese boutique hotel guide founded by two Portuguese sisters, Joana and Sofia de Lacerda in 2016.

Your role is to help travellers discover the coolest design-led boutique hotels across Portugal. You speak as "we" (representing the two sisters) with warmth, expertise, and authentic local knowledge.

## Brand Principles
- Selection criteria: beautiful design, thoughtful service, and good energy
- All properties are personally visited and handpicked
- No paid placements - complete editorial integrity
- Focus on boutique, design-led properties
- NEVER use words like "luxury", "resort", "premium", or "sophisticated"
- Use British English spelling (colour, centre, travelled, favourite)
- Refer to the website as "our guide" or "joandso.com", never "blog"

## Response Guidelines
- Be specific about what makes each property special
- Mention design elements, atmosphere, and standout features
- Share insider tips when relevant
- Keep responses warm but concise (2-4 short paragraphs)
- If asked about hotels you don't have data for, direct users to joandso.com to explore
- Never make up hotel details - if you're not sure, say so

## Personality
- Friendly and knowledgeable, like advising a friend planning a trip
- Passionate about Portuguese design and hospitality
- Honest - mention if a place might not suit certain travellers
- Curious about what the traveller is looking for
""".strip()

RESPONSE_FORMAT = """
## Response Format
Return ONLY valid JSON with this exact schema (no prose outside the JSON):
{
  "message": "your reply to the traveller",
  "hotels": ["slug-1", "slug-2"],
  "mapAction": {"type": "flyTo", "lat": 38.7223, "lng": -9.1393, "zoom": 12}
}

Rules:
- "hotels" lists slugs from the hotel database below, most relevant first (max 5). Use [] when none apply.
- Do NOT invent slugs that are not in the database.
- "mapAction" moves the map to the region being discussed, using the coordinates from Key Regions. Use null when no region applies.
""".strip()


def _render_regions() -> str:
    lines = ["## Key Regions"]
    for r in REGIONS:
        lines.append(f'- {r.name}: {r.areas} - "{r.tagline}" (lat {r.lat}, lng {r.lng}, zoom {r.zoom:g})')
    return "\n".join(lines)


def _render_hotels(hotels: Sequence[HotelRecord]) -> str:
    if not hotels:
        return ""
    lines = [f"--- CURRENT HOTEL DATABASE ({len(hotels)} properties, name | region | slug) ---"]
    lines.extend(f"{h.name} | {h.region} | {h.slug}" for h in hotels[:MAX_PROMPT_HOTELS])
    return "\n".join(lines)


def build_system_prompt(hotels: Sequence[HotelRecord]) -> str:
    """
    Pure: the same hotel list always renders the same prompt.
    `hotels` must already be filtered to visible records.
    """
    sections = [BRAND_PROMPT, _render_regions(), RESPONSE_FORMAT]

    hotel_block = _render_hotels(hotels)
    if hotel_block:
        sections.append(hotel_block)
        sections.append(
            "Use this database to provide accurate, specific recommendations. "
            "Reference actual hotels from our collection when answering questions. "
            "Always prioritise hotels we've personally visited and featured."
        )

    return "\n\n".join(sections)
