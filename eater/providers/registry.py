from __future__ import annotations

from dataclasses import dataclass

from .base import PlacesProvider
from .config import DEFAULT_PROVIDER_CONFIG, ProviderConfig
from .foursquare import FoursquareProvider
from .google import GooglePlacesProvider
from .osm import OSMProvider
from .yelp import YelpProvider


@dataclass(frozen=True)
class ProviderSet:
    """Fan-out order matters: primary results win dedup ties."""

    primary: PlacesProvider
    secondary: PlacesProvider
    fallback: PlacesProvider | None = None


def build_provider_set(config: ProviderConfig = DEFAULT_PROVIDER_CONFIG) -> ProviderSet:
    primary: PlacesProvider = YelpProvider(config) if config.primary == "yelp" else GooglePlacesProvider(config)
    return ProviderSet(
        primary=primary,
        secondary=FoursquareProvider(config),
        fallback=OSMProvider(config) if config.osm_fallback else None,
    )


_default_set: ProviderSet | None = None


def get_provider_set() -> ProviderSet:
    """Return the process-wide provider set, building it on first call."""
    global _default_set
    if _default_set is None:
        _default_set = build_provider_set()
    return _default_set
