from __future__ import annotations

import itertools
import time

from pydantic import Field

from ..recommendations.models import Place

_places: dict[int, "CatalogPlace"] = {}
_by_provider: dict[tuple[str, str], int] = {}
_ids = itertools.count(1)


class CatalogPlace(Place):
    id: int
    updated_at: float = Field(default_factory=time.time)


def upsert_place(place: Place, description: str | None = None) -> CatalogPlace:
    """Insert or update a place keyed by ``(provider, provider_id)``; ids are stable."""
    key = (place.provider, place.provider_id)
    place_id = _by_provider.get(key)
    if place_id is None:
        place_id = next(_ids)
        _by_provider[key] = place_id

    data = place.model_dump(exclude={"weight", "reasons", "place_id", "place_key"})
    if description is not None:
        data["description"] = description
    record = CatalogPlace(id=place_id, **data)
    _places[place_id] = record
    return record


def get_place(place_id: int) -> CatalogPlace | None:
    return _places.get(place_id)


def get_places(place_ids: list[int]) -> list[CatalogPlace]:
    return [_places[pid] for pid in place_ids if pid in _places]


def clear_catalog() -> None:
    global _ids
    _places.clear()
    _by_provider.clear()
    _ids = itertools.count(1)
