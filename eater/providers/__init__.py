"""
Place-search provider adapters.

Responsibilities:
- Query one external place-search API (Google, Foursquare, Yelp, OSM).
- Normalise each provider's response into the canonical Place record.
- Absorb transport, auth and quota failures as an empty result.
"""
