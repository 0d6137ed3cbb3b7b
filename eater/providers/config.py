from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
load_dotenv(Path(__file__).resolve().parent.parent.parent / ".env")


@dataclass(frozen=True)
class ProviderConfig:
    google_api_key: str = os.getenv("GOOGLE_PLACES_API_KEY", "")
    foursquare_api_key: str = os.getenv("FOURSQUARE_API_KEY", "")
    yelp_api_key: str = os.getenv("YELP_API_KEY", "")
    google_base_url: str = "https://maps.googleapis.com/maps/api/place"
    foursquare_url: str = "https://places-api.foursquare.com/places/search"
    foursquare_api_version: str = "2025-06-17"
    yelp_url: str = "https://api.yelp.com/v3/businesses/search"
    osm_overpass_url: str = os.getenv("OSM_OVERPASS_URL", "https://overpass-api.de/api/interpreter")
    primary: str = os.getenv("PROVIDER", "google")
    osm_fallback: bool = os.getenv("OSM_FALLBACK", "1") != "0"
    timeout: float = 8.0
    max_phrases: int = 6
    result_limit: int = 50


DEFAULT_PROVIDER_CONFIG = ProviderConfig()
