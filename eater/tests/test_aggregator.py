from __future__ import annotations

import time
from unittest.mock import patch

from eater.providers.registry import ProviderSet
from eater.recommendations.aggregator import (
    NO_CANDIDATES_REASON,
    dedupe_key,
    find_candidates,
    merge_and_dedupe,
)
from eater.recommendations.cache import cache_upsert, get_cache_stats, make_fingerprint
from eater.recommendations.config import AggregatorConfig
from eater.recommendations.models import CandidateQuery
from eater.tests.fakes import SAMPLE_PLACES, StaticProvider, make_place, provider_set

QUERY = CandidateQuery(lat=40.7128, lng=-74.0060, miles=2.0, cuisines=["Thai"])


# ── Dedup ────────────────────────────────────────────────────────────────


def test_dedupe_key_normalises_name_and_grid():
    a = make_place("google", "g1", "Thai Basil", lat=40.7128, lng=-74.0060)
    b = make_place("foursquare", "f1", "thai-basil!", lat=40.71281, lng=-74.00601)
    assert dedupe_key(a) == dedupe_key(b) == "thaibasil_40713_-74006"


def test_dedupe_key_treats_missing_coordinates_as_zero():
    place = make_place("osm", "node/1", "Cafe", lat=None, lng=None)
    assert dedupe_key(place) == "cafe_0_0"


def test_merge_keeps_first_occurrence():
    primary = make_place("google", "g1", "Thai Basil", rating=4.5)
    duplicate = make_place("foursquare", "f1", "THAI BASIL", rating=3.0)
    other = make_place("foursquare", "f2", "Sushi Den", lat=40.8)

    merged = merge_and_dedupe([primary], [duplicate, other])

    assert [p.place_key for p in merged] == ["google:g1", "foursquare:f2"]


# ── Fan-out ──────────────────────────────────────────────────────────────


def test_primary_wins_duplicate_across_providers():
    providers = provider_set(
        primary=[make_place("google", "g1", "Thai Basil")],
        secondary=[make_place("foursquare", "f1", "Thai Basil"), make_place("foursquare", "f2", "Taco Loco", lat=40.8)],
    )

    result = find_candidates(QUERY, providers=providers)

    assert [p.provider for p in result.places] == ["google", "foursquare"]
    assert result.provider_counts == {"google": 1, "foursquare": 2}
    assert result.cache_hit is False
    assert result.reason is None


def test_fallback_only_when_merge_is_empty():
    providers = provider_set(primary=[], secondary=[], fallback=[make_place("osm", "node/1", "Corner Deli")])

    result = find_candidates(QUERY, providers=providers)

    assert [p.provider for p in result.places] == ["osm"]
    assert result.provider_counts["osm"] == 1


def test_fallback_results_are_deduplicated():
    providers = provider_set(fallback=[
        make_place("osm", "node/1", "Joe's Diner", lat=40.71281, lng=-74.00601),
        make_place("osm", "way/9", "Joe's Diner", lat=40.71284, lng=-74.00604),
    ])

    result = find_candidates(QUERY, providers=providers)

    assert [p.provider_id for p in result.places] == ["node/1"]
    assert len({dedupe_key(p) for p in result.places}) == len(result.places)


def test_fallback_not_called_when_primary_has_results():
    providers = provider_set(primary=SAMPLE_PLACES[:1], secondary=[], fallback=[make_place("osm", "node/1", "Deli")])

    find_candidates(QUERY, providers=providers)

    assert providers.fallback.calls == 0


def test_no_candidates_is_a_valid_empty_result():
    result = find_candidates(QUERY, providers=provider_set())
    assert result.places == []
    assert result.reason == NO_CANDIDATES_REASON


def test_provider_raising_counts_as_empty():
    providers = ProviderSet(
        primary=StaticProvider("google", error=RuntimeError("quota")),
        secondary=StaticProvider("foursquare", SAMPLE_PLACES[2:3]),
    )

    result = find_candidates(QUERY, providers=providers)

    assert [p.provider_id for p in result.places] == ["f1"]


def test_slow_provider_is_abandoned_after_timeout():
    providers = ProviderSet(
        primary=StaticProvider("google", SAMPLE_PLACES[:1]),
        secondary=StaticProvider("foursquare", SAMPLE_PLACES[2:3], delay=1.0),
    )
    config = AggregatorConfig(provider_timeout=0.2)

    start = time.time()
    result = find_candidates(QUERY, providers=providers, config=config)

    assert time.time() - start < 0.9
    assert [p.provider_id for p in result.places] == ["g1"]
    assert result.provider_counts["foursquare"] == 0


def test_results_are_sanitised():
    weighted = SAMPLE_PLACES[0].model_copy(update={"weight": 3.5})
    result = find_candidates(QUERY, providers=provider_set(primary=[weighted]))
    assert result.places[0].weight == 0.0


# ── Cache interplay ──────────────────────────────────────────────────────


def test_second_identical_query_is_served_from_cache():
    providers = provider_set(primary=SAMPLE_PLACES[:2])

    first = find_candidates(QUERY, providers=providers)
    second = find_candidates(QUERY, providers=providers)

    assert providers.primary.calls == 1
    assert second.cache_hit is True
    assert [p.place_key for p in second.places] == [p.place_key for p in first.places]
    assert get_cache_stats()["hits"] == 1


def test_empty_results_are_cached_too():
    providers = provider_set()
    find_candidates(QUERY, providers=providers)
    second = find_candidates(QUERY, providers=providers)
    assert second.cache_hit is True
    assert second.reason == NO_CANDIDATES_REASON


def test_expired_entry_is_never_served():
    params = QUERY.cache_params()
    stale = [make_place("google", "old", "Closed Long Ago")]
    cache_upsert(make_fingerprint(params), params, stale, ttl=3600, now=time.time() - 3601)
    providers = provider_set(primary=SAMPLE_PLACES[:1])

    result = find_candidates(QUERY, providers=providers)

    assert result.cache_hit is False
    assert [p.provider_id for p in result.places] == ["g1"]
    assert providers.primary.calls == 1


def test_cache_write_failure_does_not_fail_the_call():
    with patch("eater.recommendations.aggregator.cache_upsert", side_effect=RuntimeError("disk full")):
        result = find_candidates(QUERY, providers=provider_set(primary=SAMPLE_PLACES[:1]))
    assert [p.provider_id for p in result.places] == ["g1"]
