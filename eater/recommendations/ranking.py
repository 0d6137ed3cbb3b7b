"""
Personalised ranking.

Responsibilities:
- Weight candidates by affinity with the user's favorites (cuisine, price, rating).
- Adjust weights by similarity with recent positive/negative interactions.
- Add a bounded random jitter so near-ties vary between calls.
- Produce display reasons, independently of the numeric weights.
"""
from __future__ import annotations

import random
from collections import Counter
from dataclasses import dataclass
from datetime import datetime

from ..history.interactions import get_recent_interactions
from ..places.catalog import get_places
from ..places.favorites import get_favorite_ids
from ..profile.preferences import UserPreferenceProfile
from .config import DEFAULT_RANKING_CONFIG, RankingConfig
from .models import Place, RankedPlace
from .patterns import day_of_week, get_pattern, pattern_key, time_of_day


@dataclass(frozen=True)
class RankingContext:
    lat: float
    lng: float
    time_of_day: str
    day_of_week: str

    @classmethod
    def at(cls, lat: float, lng: float, now: datetime | None = None) -> "RankingContext":
        now = now or datetime.now()
        return cls(lat=lat, lng=lng, time_of_day=time_of_day(now), day_of_week=day_of_week(now))


def _as_ranked(place: Place, weight: float) -> RankedPlace:
    data = place.model_dump(exclude={"place_key"})
    data["weight"] = weight
    return RankedPlace(**data)


def weight_by_favorites(
    user_id: int,
    places: list[Place],
    config: RankingConfig = DEFAULT_RANKING_CONFIG,
) -> list[RankedPlace]:
    favorites = get_places(get_favorite_ids(user_id))
    if not favorites:
        return [_as_ranked(p, 1.0) for p in places]

    cuisine_counts: Counter[str] = Counter()
    prices: list[int] = []
    for fav in favorites:
        cuisine_counts.update(fav.cuisines)
        if fav.price_level:
            prices.append(fav.price_level)
    avg_price = sum(prices) / len(prices) if prices else config.default_favorite_price

    ranked: list[RankedPlace] = []
    for p in places:
        weight = 1.0
        for c in p.cuisines:
            weight += cuisine_counts.get(c, 0) * config.favorite_cuisine_boost
        if p.price_level:
            weight += max(0.0, 1.0 - abs(p.price_level - avg_price) * config.price_proximity_decay)
        if p.rating:
            weight += (p.rating - config.rating_pivot) * config.rating_boost
        ranked.append(_as_ranked(p, weight))
    return ranked


def feature_similarity(
    cuisines: list[str],
    price: int | None,
    tod: str | None,
    other_cuisines: list[str],
    other_price: int | None,
    other_tod: str | None,
    price_span: float = 3.0,
) -> float:
    """Mean of the available sub-scores: cuisine overlap, price closeness, same meal bucket."""
    total = 0.0
    count = 0

    overlap = sum(1 for c in cuisines if c in other_cuisines)
    total += overlap / max(len(cuisines), len(other_cuisines), 1)
    count += 1

    if price and other_price:
        total += 1.0 - abs(price - other_price) / price_span
        count += 1

    if tod and other_tod:
        total += 1.0 if tod == other_tod else 0.0
        count += 1

    return total / count


def apply_interaction_history(
    user_id: int,
    places: list[RankedPlace],
    context: RankingContext,
    config: RankingConfig = DEFAULT_RANKING_CONFIG,
) -> list[RankedPlace]:
    interactions = get_recent_interactions(user_id, limit=config.interaction_window)
    positive = [i.features for i in interactions if i.label == "positive"]
    negative = [i.features for i in interactions if i.label == "negative"]
    if not positive and not negative:
        return places

    adjusted: list[RankedPlace] = []
    for p in places:
        price = p.price_level or config.default_candidate_price
        score = p.weight
        for f in positive:
            score += config.positive_similarity_boost * feature_similarity(
                p.cuisines, price, context.time_of_day, f.cuisines, f.price, f.time_of_day, config.price_span,
            )
        for f in negative:
            score -= config.negative_similarity_penalty * feature_similarity(
                p.cuisines, price, context.time_of_day, f.cuisines, f.price, f.time_of_day, config.price_span,
            )
        adjusted.append(p.model_copy(update={"weight": score}))
    return adjusted


def rank_for_user(
    user_id: int | None,
    places: list[Place],
    context: RankingContext,
    config: RankingConfig = DEFAULT_RANKING_CONFIG,
    rng: random.Random | None = None,
) -> list[RankedPlace]:
    """Weight, jitter by up to ``variety_jitter`` and sort best first."""
    rng = rng or random.Random()
    if user_id is None:
        ranked = [_as_ranked(p, 1.0) for p in places]
    else:
        ranked = weight_by_favorites(user_id, places, config)
        ranked = apply_interaction_history(user_id, ranked, context, config)

    jitter = config.variety_jitter
    keyed = [(p.weight + rng.uniform(-jitter, jitter), p) for p in ranked]
    keyed.sort(key=lambda item: item[0], reverse=True)
    return [p for _, p in keyed]


def recommendation_reasons(
    user_id: int,
    place: Place,
    profile: UserPreferenceProfile | None,
    now: datetime | None = None,
    config: RankingConfig = DEFAULT_RANKING_CONFIG,
) -> list[str]:
    reasons: list[str] = []

    if profile and profile.preferred_cuisines:
        matches = [c for c in place.cuisines if c in profile.preferred_cuisines]
        if matches:
            reasons.append(f"Matches your {', '.join(matches)} preference")

    if place.rating and place.rating >= config.highly_rated:
        reasons.append("Highly rated")

    favorites = get_places(get_favorite_ids(user_id)[: config.favorites_for_reasons])
    if any(set(place.cuisines) & set(fav.cuisines) for fav in favorites):
        reasons.append("Similar to your favorites")

    now = now or datetime.now()
    bucket = time_of_day(now)
    pattern = get_pattern(user_id, pattern_key(day_of_week(now), bucket))
    if pattern and any(c in pattern.preferred_cuisines for c in place.cuisines):
        reasons.append(f"Matches your usual {bucket} choice")

    return reasons
