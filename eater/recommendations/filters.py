from __future__ import annotations

from pydantic import BaseModel, Field

from .models import Place


class PreferenceConstraints(BaseModel):
    price_min: int = Field(default=1, ge=1, le=4)
    price_max: int = Field(default=4, ge=1, le=4)
    vibes: list[str] = Field(default_factory=list)
    dietary_restrictions: list[str] = Field(default_factory=list)
    open_now: bool = False


def filter_by_preferences(places: list[Place], constraints: PreferenceConstraints) -> list[Place]:
    """
    Drop places that violate the hard price band.

    A place without a declared price level is never excluded. Vibes, dietary
    restrictions and open-now are accepted but not enforced: candidates carry
    no attribute to check them against, so they pass through unchanged.
    """
    kept: list[Place] = []
    for place in places:
        if place.price_level is not None and not (
            constraints.price_min <= place.price_level <= constraints.price_max
        ):
            continue
        kept.append(place)
    return kept
