from __future__ import annotations

from typing import Any

from ..recommendations.models import Place
from .base import PlacesProvider, normalize_rating

CUISINE_SYNONYMS: dict[str, list[str]] = {
    "bbq": ["bbq", "barbecue", "korean bbq"],
    "japanese": ["japanese", "sushi", "ramen"],
    "mexican": ["mexican", "tacos"],
    "middle eastern": ["mideastern", "lebanese", "persian"],
    "american": ["american", "burgers"],
    "vegan": ["vegan"],
}


def to_place(raw: dict[str, Any]) -> Place | None:
    business_id = raw.get("id")
    name = raw.get("name")
    if not business_id or not name:
        return None

    categories = [c for c in raw.get("categories") or [] if isinstance(c, dict)]
    coordinates = raw.get("coordinates") or {}
    display_address = (raw.get("location") or {}).get("display_address") or []
    price = raw.get("price") or ""

    return Place(
        provider="yelp",
        provider_id=str(business_id),
        name=str(name),
        address=", ".join(display_address) or None,
        lat=coordinates.get("latitude"),
        lng=coordinates.get("longitude"),
        rating=normalize_rating(raw.get("rating")),
        price_level=len(price) if price and set(price) == {"$"} and len(price) <= 4 else None,
        cuisines=[str(c["alias"]).lower() for c in categories if c.get("alias")],
        description=", ".join(str(c["title"]) for c in categories[:3] if c.get("title")).lower() or None,
    )


class YelpProvider(PlacesProvider):
    name = "yelp"
    max_radius_m = 40_000
    synonyms = CUISINE_SYNONYMS
    to_place = staticmethod(to_place)

    @property
    def enabled(self) -> bool:
        return bool(self.config.yelp_api_key)

    def _search(self, lat: float, lng: float, radius: int, phrases: list[str]) -> list[dict[str, Any]]:
        params: dict[str, Any] = {
            "latitude": lat,
            "longitude": lng,
            "radius": radius,
            "categories": "restaurants",
            "limit": self.config.result_limit,
        }
        if phrases:
            params["term"] = " ".join(phrases)

        data = self._get(
            self.config.yelp_url,
            params=params,
            headers={"Authorization": f"Bearer {self.config.yelp_api_key}"},
        )
        return data.get("businesses") or []
