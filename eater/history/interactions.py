from __future__ import annotations

import time
from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field

InteractionKind = Literal["shown", "favorited", "disliked"]
InteractionLabel = Literal["positive", "negative"]


class _PlaceFeatures(BaseModel):
    cuisines: list[str] = Field(default_factory=list)
    price: int | None = Field(default=None, ge=1, le=4)
    rating: float | None = None
    time_of_day: str | None = None
    day_of_week: str | None = None


class FeedbackFeatures(_PlaceFeatures):
    """Captured when a user favorites or dislikes a catalogued place."""

    feature_set: Literal["feedback.v1"] = "feedback.v1"


class ShownFeatures(_PlaceFeatures):
    """Captured when a place is shown as the primary pick."""

    feature_set: Literal["shown.v1"] = "shown.v1"
    distance: float | None = None


InteractionFeatures = Annotated[
    Union[ShownFeatures, FeedbackFeatures],
    Field(discriminator="feature_set"),
]


class InteractionRecord(BaseModel):
    user_id: int
    place_id: int | None = None
    features: InteractionFeatures
    kind: InteractionKind
    label: InteractionLabel | None = None
    created_at: float = Field(default_factory=time.time)


_interactions: list[InteractionRecord] = []


def record_interaction(
    user_id: int,
    features: ShownFeatures | FeedbackFeatures,
    kind: InteractionKind,
    place_id: int | None = None,
    label: InteractionLabel | None = None,
) -> InteractionRecord:
    record = InteractionRecord(
        user_id=user_id,
        place_id=place_id,
        features=features,
        kind=kind,
        label=label,
    )
    _interactions.append(record)
    return record


def get_recent_interactions(user_id: int, limit: int = 100) -> list[InteractionRecord]:
    """Most recent first."""
    mine = [r for r in reversed(_interactions) if r.user_id == user_id]
    return mine[:limit]


def clear_interactions() -> None:
    _interactions.clear()
