from __future__ import annotations

import logging
from typing import Any

import requests
from pydantic import ValidationError

from ..recommendations.models import Place
from .config import DEFAULT_PROVIDER_CONFIG, ProviderConfig

logger = logging.getLogger(__name__)

METERS_PER_MILE = 1609.34


class ProviderUnavailableError(RuntimeError):
    """A provider answered, but not with usable results (auth, quota, bad status)."""


def miles_to_meters(miles: float, max_meters: int) -> int:
    """Convert a search radius to metres, clamped to the provider's maximum."""
    return max(1, min(round(miles * METERS_PER_MILE), max_meters))


def normalize_rating(rating: Any, scale: float = 5.0) -> float | None:
    """Map a provider rating on ``[0, scale]`` onto the common 0–5 scale."""
    if rating is None or rating == "":
        return None
    try:
        value = float(rating)
    except (TypeError, ValueError):
        return None
    value = value * 5.0 / scale
    return round(max(0.0, min(5.0, value)), 2)


class PlacesProvider:
    """
    Base adapter for one external place-search source.

    Subclasses implement ``_search`` (raw provider records for a radius in
    metres and an already-expanded list of cuisine phrases) and ``to_place``
    (one raw record -> Place, or None when required fields are missing).
    ``search_nearby`` never raises: every failure is logged here and turned
    into an empty list.
    """

    name: str = "provider"
    max_radius_m: int = 50_000
    synonyms: dict[str, list[str]] = {}

    def __init__(
        self,
        config: ProviderConfig = DEFAULT_PROVIDER_CONFIG,
        session: requests.Session | None = None,
    ) -> None:
        self.config = config
        self.session = session or requests.Session()

    @property
    def enabled(self) -> bool:
        return True

    def radius_meters(self, miles: float) -> int:
        return miles_to_meters(miles, self.max_radius_m)

    def expand_cuisines(self, cuisines: list[str] | None) -> list[str]:
        phrases: list[str] = []
        for cuisine in cuisines or []:
            key = cuisine.strip().lower()
            if not key:
                continue
            for phrase in self.synonyms.get(key, [key]):
                if phrase not in phrases:
                    phrases.append(phrase)
        # cap to avoid quota spikes
        return phrases[: self.config.max_phrases]

    def search_nearby(
        self,
        lat: float,
        lng: float,
        miles: float,
        cuisines: list[str] | None = None,
    ) -> list[Place]:
        if not self.enabled:
            logger.warning("%s provider is not configured, skipping", self.name)
            return []

        radius = self.radius_meters(miles)
        phrases = self.expand_cuisines(cuisines)

        try:
            places = self._collect(self._search(lat, lng, radius, phrases))
            if phrases and not places:
                logger.info("%s found nothing for %s, retrying without cuisine filter", self.name, phrases)
                places = self._collect(self._fallback(lat, lng, radius, phrases))
        except Exception:
            logger.warning("%s search failed, returning no candidates", self.name, exc_info=True)
            return []

        return places

    def to_place(self, raw: dict[str, Any]) -> Place | None:
        raise NotImplementedError

    def _search(self, lat: float, lng: float, radius: int, phrases: list[str]) -> list[dict[str, Any]]:
        raise NotImplementedError

    def _fallback(self, lat: float, lng: float, radius: int, phrases: list[str]) -> list[dict[str, Any]]:
        return self._search(lat, lng, radius, [])

    def _collect(self, records: list[dict[str, Any]]) -> list[Place]:
        places: list[Place] = []
        seen: set[str] = set()
        for raw in records:
            if not isinstance(raw, dict):
                continue
            try:
                place = self.to_place(raw)
            except (ValidationError, TypeError, ValueError):
                logger.debug("Dropping malformed %s record: %r", self.name, raw)
                continue
            if place is None or place.provider_id in seen:
                continue
            seen.add(place.provider_id)
            places.append(place)
        return places

    def _get(
        self,
        url: str,
        params: dict[str, Any],
        headers: dict[str, str] | None = None,
    ) -> dict[str, Any]:
        response = self.session.get(url, params=params, headers=headers, timeout=self.config.timeout)
        response.raise_for_status()
        return response.json()
