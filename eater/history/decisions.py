from __future__ import annotations

import time
from typing import Literal

from pydantic import BaseModel, Field

DecisionAction = Literal["shown", "selected"]


class DecisionFilters(BaseModel):
    cuisines: list[str] | None = None
    price_min: int | None = None
    price_max: int | None = None
    vibes: list[str] | None = None


class DecisionRecord(BaseModel):
    user_id: int
    place_id: int
    provider: str
    provider_id: str
    action: DecisionAction
    session_id: str | None = None
    search_lat: float | None = None
    search_lng: float | None = None
    search_radius: float | None = None
    filters: DecisionFilters = Field(default_factory=DecisionFilters)
    time_of_day: str
    day_of_week: str
    reasons: list[str] = Field(default_factory=list)
    created_at: float = Field(default_factory=time.time)


_decisions: list[DecisionRecord] = []


def record_decision(record: DecisionRecord) -> DecisionRecord:
    _decisions.append(record)
    return record


def get_decisions(
    user_id: int,
    action: DecisionAction | None = None,
    limit: int | None = None,
) -> list[DecisionRecord]:
    """Most recent first, optionally restricted to one action."""
    mine = [
        d for d in reversed(_decisions)
        if d.user_id == user_id and (action is None or d.action == action)
    ]
    return mine if limit is None else mine[:limit]


def clear_decisions() -> None:
    _decisions.clear()
