from __future__ import annotations

import time
from collections import Counter
from datetime import datetime

from pydantic import BaseModel, Field

from ..history.decisions import get_decisions
from .config import DEFAULT_RANKING_CONFIG, RankingConfig

_DAYS = ["monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"]


def time_of_day(now: datetime | None = None) -> str:
    """Server-local meal bucket for ``now``."""
    hour = (now or datetime.now()).hour
    if hour < 11:
        return "breakfast"
    if hour < 15:
        return "lunch"
    if hour < 22:
        return "dinner"
    return "late_night"


def day_of_week(now: datetime | None = None) -> str:
    return _DAYS[(now or datetime.now()).weekday()]


def pattern_key(day: str, bucket: str) -> str:
    return f"{day}_{bucket}"


class UserPattern(BaseModel):
    user_id: int
    pattern_type: str
    time_of_day: str
    day_of_week: str
    preferred_cuisines: list[str] = Field(default_factory=list)
    preferred_price_range: list[float] = Field(default_factory=lambda: [1.0, 4.0])
    occurrences: int
    frequency: int
    confidence: float
    last_occurred: float = Field(default_factory=time.time)


_patterns: dict[tuple[int, str], UserPattern] = {}


def mine_patterns(user_id: int, config: RankingConfig = DEFAULT_RANKING_CONFIG) -> list[UserPattern]:
    """
    Group the user's recent "selected" decisions by (day, meal bucket) and
    upsert a pattern for every bucket seen at least ``pattern_min_occurrences``
    times. Returns the patterns written by this run.
    """
    decisions = get_decisions(user_id, action="selected", limit=config.pattern_window)
    if not decisions:
        return []

    buckets: dict[str, dict] = {}
    for d in decisions:
        key = pattern_key(d.day_of_week, d.time_of_day)
        bucket = buckets.setdefault(key, {
            "time_of_day": d.time_of_day,
            "day_of_week": d.day_of_week,
            "cuisines": Counter(),
            "prices": [],
            "count": 0,
        })
        bucket["count"] += 1
        for c in d.filters.cuisines or []:
            bucket["cuisines"][c] += 1
        if d.filters.price_min or d.filters.price_max:
            bucket["prices"].append((d.filters.price_min or 1, d.filters.price_max or 4))

    written: list[UserPattern] = []
    for key, data in buckets.items():
        if data["count"] < config.pattern_min_occurrences:
            continue

        prices = data["prices"]
        if prices:
            price_range = [
                sum(lo for lo, _ in prices) / len(prices),
                sum(hi for _, hi in prices) / len(prices),
            ]
        else:
            price_range = [1.0, 4.0]

        existing = _patterns.get((user_id, key))
        pattern = UserPattern(
            user_id=user_id,
            pattern_type=key,
            time_of_day=data["time_of_day"],
            day_of_week=data["day_of_week"],
            preferred_cuisines=[c for c, _ in data["cuisines"].most_common(config.pattern_top_cuisines)],
            preferred_price_range=price_range,
            occurrences=data["count"],
            frequency=existing.frequency + 1 if existing else data["count"],
            confidence=min(data["count"] / config.pattern_confidence_divisor, 1.0),
        )
        _patterns[(user_id, key)] = pattern
        written.append(pattern)

    return written


def get_pattern(user_id: int, key: str) -> UserPattern | None:
    return _patterns.get((user_id, key))


def get_patterns(user_id: int) -> list[UserPattern]:
    mine = [p for (uid, _), p in _patterns.items() if uid == user_id]
    return sorted(mine, key=lambda p: (p.confidence, p.frequency), reverse=True)


def clear_patterns() -> None:
    _patterns.clear()
