from __future__ import annotations

from typing import Any

from ..recommendations.models import Place
from .base import PlacesProvider

# OSM cuisine tags use underscores and their own vocabulary
CUISINE_SYNONYMS: dict[str, list[str]] = {
    "bbq": ["bbq", "barbecue"],
    "middle eastern": ["middle_eastern", "lebanese", "persian"],
    "japanese": ["japanese", "sushi", "ramen"],
    "mexican": ["mexican", "tex-mex"],
    "american": ["american", "burger"],
    "indian": ["indian", "curry"],
}


def build_query(lat: float, lng: float, radius: int, phrases: list[str], limit: int = 50) -> str:
    cuisine_filter = ""
    if phrases:
        pattern = "|".join(p.replace('"', "").replace("\\", "") for p in phrases)
        cuisine_filter = f'[cuisine~"{pattern}",i]'
    around = f"(around:{radius},{lat},{lng})"
    return (
        "[out:json][timeout:25];\n"
        "(\n"
        f"  node[amenity=restaurant]{cuisine_filter}{around};\n"
        f"  way[amenity=restaurant]{cuisine_filter}{around};\n"
        f"  relation[amenity=restaurant]{cuisine_filter}{around};\n"
        ");\n"
        f"out center tags {limit};"
    )


def to_place(raw: dict[str, Any]) -> Place | None:
    tags = raw.get("tags") or {}
    name = tags.get("name")
    if raw.get("id") is None or not raw.get("type") or not name:
        return None

    center = raw.get("center") or {"lat": raw.get("lat"), "lon": raw.get("lon")}
    inline_address = " ".join(
        str(part) for part in (tags.get("addr:housenumber"), tags.get("addr:street"), tags.get("addr:city")) if part
    )
    cuisines_csv = str(tags.get("cuisine") or "").lower()

    return Place(
        provider="osm",
        provider_id=f"{raw['type']}/{raw['id']}",
        name=str(name),
        address=tags.get("addr:full") or inline_address or None,
        lat=center.get("lat"),
        lng=center.get("lon"),
        cuisines=[c.strip() for c in cuisines_csv.split(";")] if cuisines_csv else [],
        description=cuisines_csv or None,
    )


class OSMProvider(PlacesProvider):
    """Overpass API; keyless, used as the last-resort fallback."""

    name = "osm"
    max_radius_m = 50_000
    synonyms = CUISINE_SYNONYMS
    to_place = staticmethod(to_place)

    def _search(self, lat: float, lng: float, radius: int, phrases: list[str]) -> list[dict[str, Any]]:
        response = self.session.post(
            self.config.osm_overpass_url,
            data=build_query(lat, lng, radius, phrases, self.config.result_limit),
            headers={"Content-Type": "text/plain"},
            timeout=self.config.timeout,
        )
        response.raise_for_status()
        return (response.json() or {}).get("elements") or []
