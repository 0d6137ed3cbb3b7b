from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class AggregatorConfig:
    cache_ttl: int = 3600  # 1 hour
    provider_timeout: float = 12.0
    room_candidate_limit: int = 20


@dataclass(frozen=True)
class RankingConfig:
    """Empirical tuning constants for weighting, variety and pattern mining."""

    favorite_cuisine_boost: float = 0.5
    price_proximity_decay: float = 0.3
    default_favorite_price: float = 2.0
    rating_boost: float = 0.2
    rating_pivot: float = 3.5

    interaction_window: int = 100
    positive_similarity_boost: float = 0.3
    negative_similarity_penalty: float = 0.2
    default_candidate_price: int = 2
    price_span: float = 3.0

    variety_jitter: float = 0.15

    highly_rated: float = 4.3
    favorites_for_reasons: int = 10

    pattern_window: int = 100
    pattern_min_occurrences: int = 3
    pattern_top_cuisines: int = 5
    pattern_confidence_divisor: float = 10.0


DEFAULT_AGGREGATOR_CONFIG = AggregatorConfig()
DEFAULT_RANKING_CONFIG = RankingConfig()
