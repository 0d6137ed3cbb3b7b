from __future__ import annotations

from typing import Any

from ..recommendations.models import Place
from .base import PlacesProvider, ProviderUnavailableError, normalize_rating

# Synonym/expansion map, boosts recall for cuisine queries
CUISINE_SYNONYMS: dict[str, list[str]] = {
    "bbq": ["bbq", "barbecue", "korean bbq", "smokehouse"],
    "mediterranean": ["mediterranean", "greek", "turkish", "lebanese"],
    "middle eastern": ["middle eastern", "lebanese", "turkish", "persian", "iranian"],
    "mexican": ["mexican", "taqueria", "tacos"],
    "japanese": ["japanese", "sushi", "ramen", "izakaya"],
    "chinese": ["chinese", "szechuan", "sichuan", "cantonese", "dim sum"],
    "korean": ["korean", "korean bbq"],
    "italian": ["italian", "pasta", "trattoria"],
    "american": ["american", "burgers", "diner"],
    "seafood": ["seafood", "fish", "oyster"],
    "pizza": ["pizza", "pizzeria"],
    "indian": ["indian", "curry", "tandoori"],
    "thai": ["thai"],
    "vegan": ["vegan", "plant based"],
}

_GENERIC_TYPES = {"restaurant", "point_of_interest", "establishment", "food"}
_OK_STATUSES = {"OK", "ZERO_RESULTS", None}


def to_place(raw: dict[str, Any]) -> Place | None:
    place_id = raw.get("place_id")
    name = raw.get("name")
    if not place_id or not name:
        return None

    location = (raw.get("geometry") or {}).get("location") or {}
    types = raw.get("types") if isinstance(raw.get("types"), list) else []
    price = raw.get("price_level")

    return Place(
        provider="google",
        provider_id=str(place_id),
        name=str(name),
        address=raw.get("formatted_address") or raw.get("vicinity"),
        lat=location.get("lat"),
        lng=location.get("lng"),
        rating=normalize_rating(raw.get("rating")),
        price_level=price if price in (1, 2, 3, 4) else None,
        cuisines=[str(t).lower() for t in types if t not in _GENERIC_TYPES],
        description=", ".join(str(t) for t in types[:3]) or None,
    )


class GooglePlacesProvider(PlacesProvider):
    """Nearby Search without cuisines, one Text Search per phrase with them."""

    name = "google"
    max_radius_m = 50_000
    synonyms = CUISINE_SYNONYMS
    to_place = staticmethod(to_place)

    @property
    def enabled(self) -> bool:
        return bool(self.config.google_api_key)

    def _search(self, lat: float, lng: float, radius: int, phrases: list[str]) -> list[dict[str, Any]]:
        if not phrases:
            return self._nearby(lat, lng, radius)

        results: list[dict[str, Any]] = []
        for phrase in phrases:
            data = self._call("textsearch", {
                "query": f"{phrase} restaurant",
                "location": f"{lat},{lng}",
                "radius": radius,
            })
            results.extend(data.get("results") or [])
        return results

    def _fallback(self, lat: float, lng: float, radius: int, phrases: list[str]) -> list[dict[str, Any]]:
        # Keyworded Nearby when Text Search found nothing
        return self._nearby(lat, lng, radius, keyword=" ".join(phrases))

    def _nearby(self, lat: float, lng: float, radius: int, keyword: str | None = None) -> list[dict[str, Any]]:
        params: dict[str, Any] = {
            "location": f"{lat},{lng}",
            "radius": radius,
            "type": "restaurant",
        }
        if keyword:
            params["keyword"] = keyword
        return self._call("nearbysearch", params).get("results") or []

    def _call(self, endpoint: str, params: dict[str, Any]) -> dict[str, Any]:
        data = self._get(
            f"{self.config.google_base_url}/{endpoint}/json",
            params={"key": self.config.google_api_key, **params},
        )
        status = data.get("status")
        if status not in _OK_STATUSES:
            raise ProviderUnavailableError(f"Google Places {endpoint} returned {status}: {data.get('error_message', '')}")
        return data
