from __future__ import annotations

from typing import Any

from ..recommendations.models import Place
from .base import PlacesProvider, normalize_rating

FOOD_CATEGORY_ID = "13000"

# Foursquare category keywords per cuisine; also used to expand queries
CATEGORY_TO_CUISINE: dict[str, list[str]] = {
    "bbq": ["bbq", "barbecue"],
    "mediterranean": ["mediterranean", "greek", "turkish"],
    "middle eastern": ["middle eastern", "lebanese", "persian"],
    "mexican": ["mexican", "taqueria"],
    "japanese": ["japanese", "sushi", "ramen"],
    "chinese": ["chinese", "dim sum"],
    "korean": ["korean", "korean bbq"],
    "italian": ["italian", "pasta", "pizza"],
    "american": ["american", "burgers"],
    "seafood": ["seafood", "fish"],
    "indian": ["indian", "curry"],
    "thai": ["thai"],
    "vietnamese": ["vietnamese", "pho"],
    "french": ["french", "bistro"],
    "vegan": ["vegan", "plant based"],
    "vegetarian": ["vegetarian"],
}

_NON_CUISINE_WORDS = ("restaurant", "food", "venue")


def extract_cuisines(categories: list[dict[str, Any]]) -> list[str]:
    cuisines: list[str] = []
    for cat in categories:
        name = str(cat.get("name") or "").lower()
        if not name:
            continue
        for cuisine, keywords in CATEGORY_TO_CUISINE.items():
            if any(kw in name for kw in keywords) and cuisine not in cuisines:
                cuisines.append(cuisine)
        if not any(word in name for word in _NON_CUISINE_WORDS) and name not in cuisines:
            cuisines.append(name)
    return cuisines


def to_place(raw: dict[str, Any]) -> Place | None:
    place_id = raw.get("fsq_place_id") or raw.get("fsq_id")
    name = raw.get("name")
    if not place_id or not name:
        return None

    categories = [c for c in raw.get("categories") or [] if isinstance(c, dict)]
    location = raw.get("location") or {}
    geocode = (raw.get("geocodes") or {}).get("main") or {}
    lat = raw.get("latitude", geocode.get("latitude"))
    lng = raw.get("longitude", geocode.get("longitude"))
    address = location.get("formatted_address") or ", ".join(
        part for part in (location.get("address"), location.get("locality"), location.get("region")) if part
    )
    price = raw.get("price")

    return Place(
        provider="foursquare",
        provider_id=str(place_id),
        name=str(name),
        address=address or None,
        lat=lat,
        lng=lng,
        # Foursquare rates on 0-10
        rating=normalize_rating(raw.get("rating"), scale=10.0),
        price_level=price if price in (1, 2, 3, 4) else None,
        cuisines=extract_cuisines(categories),
        description=", ".join(str(c.get("name")) for c in categories[:3] if c.get("name")) or None,
    )


class FoursquareProvider(PlacesProvider):
    name = "foursquare"
    max_radius_m = 100_000
    synonyms = CATEGORY_TO_CUISINE
    to_place = staticmethod(to_place)

    @property
    def enabled(self) -> bool:
        return bool(self.config.foursquare_api_key)

    def _search(self, lat: float, lng: float, radius: int, phrases: list[str]) -> list[dict[str, Any]]:
        params: dict[str, Any] = {
            "ll": f"{lat},{lng}",
            "radius": radius,
            "categories": FOOD_CATEGORY_ID,
            "limit": self.config.result_limit,
            "fields": "fsq_id,fsq_place_id,name,location,geocodes,latitude,longitude,categories,rating,price,description",
        }
        if phrases:
            params["query"] = ",".join(phrases)

        data = self._get(
            self.config.foursquare_url,
            params=params,
            headers={
                "Authorization": f"Bearer {self.config.foursquare_api_key}",
                "Accept": "application/json",
                "X-Places-Api-Version": self.config.foursquare_api_version,
            },
        )
        return data.get("results") or []
