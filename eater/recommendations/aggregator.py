"""
Candidate aggregation.

Responsibilities:
- Serve a geographic query from the result cache while the entry is live.
- On a miss, fan out to the primary and secondary providers concurrently.
- Merge in fan-out order and drop duplicates by normalised name + ~111 m grid.
- Fall back to the tertiary provider only when nothing survived the merge.
- Upsert the sanitised list into the cache; a failed write never fails the call.
"""
from __future__ import annotations

import logging
import math
import re
from concurrent.futures import ThreadPoolExecutor, wait
from dataclasses import dataclass, field

from ..providers.base import PlacesProvider
from ..providers.registry import ProviderSet, get_provider_set
from .cache import cache_get, cache_upsert, make_fingerprint
from .config import DEFAULT_AGGREGATOR_CONFIG, AggregatorConfig
from .models import CandidateQuery, Place

logger = logging.getLogger(__name__)

NO_CANDIDATES_REASON = "No restaurants found near this location"

_NON_ALNUM = re.compile(r"[^a-z0-9]")


@dataclass
class CandidateResult:
    places: list[Place]
    reason: str | None = None
    cache_hit: bool = False
    fingerprint: str = ""
    provider_counts: dict[str, int] = field(default_factory=dict)


def _grid(coordinate: float | None) -> int:
    # half-up rounding to 3 decimals, missing coordinates collapse onto 0
    return math.floor((coordinate or 0.0) * 1000 + 0.5)


def dedupe_key(place: Place) -> str:
    return f"{_NON_ALNUM.sub('', place.name.lower())}_{_grid(place.lat)}_{_grid(place.lng)}"


def merge_and_dedupe(*result_lists: list[Place]) -> list[Place]:
    """Concatenate in order; the first occurrence of each dedup key wins."""
    deduped: dict[str, Place] = {}
    for places in result_lists:
        for place in places:
            deduped.setdefault(dedupe_key(place), place)
    return list(deduped.values())


def _fan_out(
    providers: list[PlacesProvider],
    query: CandidateQuery,
    timeout: float,
) -> list[list[Place]]:
    """Run every provider concurrently and join them all; late or failed ones yield []."""
    executor = ThreadPoolExecutor(max_workers=len(providers), thread_name_prefix="provider")
    futures = [
        executor.submit(p.search_nearby, query.lat, query.lng, query.miles, query.cuisines)
        for p in providers
    ]
    done, _ = wait(futures, timeout=timeout)
    executor.shutdown(wait=False, cancel_futures=True)

    results: list[list[Place]] = []
    for provider, future in zip(providers, futures):
        if future not in done:
            logger.warning("%s provider did not answer within %.1fs", provider.name, timeout)
            results.append([])
            continue
        try:
            results.append(future.result())
        except Exception:
            logger.warning("%s provider raised past its adapter", provider.name, exc_info=True)
            results.append([])
    return results


def find_candidates(
    query: CandidateQuery,
    providers: ProviderSet | None = None,
    config: AggregatorConfig = DEFAULT_AGGREGATOR_CONFIG,
) -> CandidateResult:
    query_params = query.cache_params()
    fingerprint = make_fingerprint(query_params)

    cached = cache_get(fingerprint)
    if cached is not None:
        return CandidateResult(
            places=list(cached.places),
            reason=None if cached.places else NO_CANDIDATES_REASON,
            cache_hit=True,
            fingerprint=fingerprint,
        )

    providers = providers or get_provider_set()
    primary_places, secondary_places = _fan_out(
        [providers.primary, providers.secondary], query, config.provider_timeout,
    )
    counts = {
        providers.primary.name: len(primary_places),
        providers.secondary.name: len(secondary_places),
    }
    places = merge_and_dedupe(primary_places, secondary_places)

    if not places and providers.fallback is not None:
        logger.info("No results from %s/%s, using %s fallback",
                    providers.primary.name, providers.secondary.name, providers.fallback.name)
        places = merge_and_dedupe(
            providers.fallback.search_nearby(query.lat, query.lng, query.miles, query.cuisines),
        )
        counts[providers.fallback.name] = len(places)

    sanitized = [p.model_copy(update={"weight": 0.0}) for p in places]
    try:
        cache_upsert(fingerprint, query_params, sanitized, ttl=config.cache_ttl)
    except Exception:
        logger.warning("Could not cache candidates for %s", fingerprint, exc_info=True)

    return CandidateResult(
        places=sanitized,
        reason=None if sanitized else NO_CANDIDATES_REASON,
        cache_hit=False,
        fingerprint=fingerprint,
        provider_counts=counts,
    )
