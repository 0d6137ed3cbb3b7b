from __future__ import annotations

import random
from datetime import datetime

import pytest

from eater.history.decisions import DecisionFilters, DecisionRecord, record_decision
from eater.history.interactions import FeedbackFeatures, record_interaction
from eater.places.catalog import upsert_place
from eater.places.favorites import add_favorite
from eater.profile.preferences import UserPreferenceProfile
from eater.recommendations.config import RankingConfig
from eater.recommendations.filters import PreferenceConstraints, filter_by_preferences
from eater.recommendations.patterns import mine_patterns
from eater.recommendations.ranking import (
    RankingContext,
    feature_similarity,
    rank_for_user,
    recommendation_reasons,
    weight_by_favorites,
)
from eater.tests.fakes import make_place

USER_ID = 1
NO_JITTER = RankingConfig(variety_jitter=0.0)
MONDAY_DINNER = datetime(2024, 1, 1, 19, 30)
CONTEXT = RankingContext.at(40.7128, -74.0060, MONDAY_DINNER)

THAI = make_place("google", "g-thai", "Thai Basil", price_level=2, cuisines=["thai"], rating=4.5)
ITALIAN = make_place("google", "g-ita", "Trattoria Roma", lat=40.72, price_level=4, cuisines=["italian"])


def _favorite(place):
    stored = upsert_place(place)
    add_favorite(USER_ID, stored.id)
    return stored


# ── Preference filter ────────────────────────────────────────────────────


def test_price_band_excludes_above_max_and_keeps_undeclared():
    places = [
        make_place("google", "cheap", "Cheap", price_level=1),
        make_place("google", "edge", "Edge", lat=40.8, price_level=2),
        make_place("google", "pricey", "Pricey", lat=40.9, price_level=3),
        make_place("google", "unknown", "Unknown", lat=41.0),
    ]

    kept = filter_by_preferences(places, PreferenceConstraints(price_min=1, price_max=2))

    assert [p.provider_id for p in kept] == ["cheap", "edge", "unknown"]


def test_soft_constraints_do_not_filter():
    places = [THAI, ITALIAN]
    constraints = PreferenceConstraints(vibes=["romantic"], dietary_restrictions=["vegan"], open_now=True)
    assert filter_by_preferences(places, constraints) == places


# ── Favorites weighting ──────────────────────────────────────────────────


def test_no_favorites_means_neutral_weights():
    ranked = weight_by_favorites(USER_ID, [THAI, ITALIAN])
    assert [p.weight for p in ranked] == [1.0, 1.0]


def test_thai_favorite_ranks_thai_above_italian():
    _favorite(make_place("yelp", "y-fav", "Old Favorite", lat=41.0, price_level=2, cuisines=["thai"]))

    ranked = rank_for_user(USER_ID, [ITALIAN, THAI], CONTEXT, config=NO_JITTER)

    assert [p.provider_id for p in ranked] == ["g-thai", "g-ita"]
    # thai: 1 + 0.5 (cuisine) + 1.0 (price) + 0.2 * (4.5 - 3.5)
    assert ranked[0].weight == pytest.approx(2.7)
    # italian: 1 + max(0, 1 - 0.3 * 2)
    assert ranked[1].weight == pytest.approx(1.4)


def test_anonymous_ranking_is_neutral():
    ranked = rank_for_user(None, [THAI, ITALIAN], CONTEXT, config=NO_JITTER)
    assert all(p.weight == 1.0 for p in ranked)


def test_jitter_never_reorders_a_clear_winner():
    _favorite(make_place("yelp", "y-fav", "Old Favorite", lat=41.0, price_level=2, cuisines=["thai"]))
    for seed in range(50):
        ranked = rank_for_user(USER_ID, [ITALIAN, THAI], CONTEXT, rng=random.Random(seed))
        assert ranked[0].provider_id == "g-thai"


def test_jitter_varies_order_of_ties():
    places = [make_place("google", f"p{i}", f"Place {i}", lat=40.0 + i / 10) for i in range(6)]
    orders = {
        tuple(p.provider_id for p in rank_for_user(None, places, CONTEXT, rng=random.Random(seed)))
        for seed in range(20)
    }
    assert len(orders) > 1


# ── Interaction history ──────────────────────────────────────────────────


def test_feature_similarity_averages_available_parts():
    sim = feature_similarity(["thai"], 2, "dinner", ["thai", "noodle"], 3, "lunch")
    assert sim == pytest.approx((0.5 + (1 - 1 / 3) + 0.0) / 3)


def test_feature_similarity_skips_missing_price_and_time():
    assert feature_similarity(["thai"], 2, None, ["thai"], None, "dinner") == 1.0


def test_positive_and_negative_interactions_shift_weights():
    record_interaction(
        USER_ID,
        FeedbackFeatures(cuisines=["thai"], price=2, time_of_day="dinner"),
        kind="favorited",
        label="positive",
    )
    record_interaction(
        USER_ID,
        FeedbackFeatures(cuisines=["italian"], price=4, time_of_day="dinner"),
        kind="disliked",
        label="negative",
    )

    ranked = rank_for_user(USER_ID, [THAI, ITALIAN], CONTEXT, config=NO_JITTER)
    weights = {p.provider_id: p.weight for p in ranked}

    # each candidate is fully similar to one interaction and partly to the other
    thai_vs_italian = (0.0 + (1 - 2 / 3) + 1.0) / 3
    assert weights["g-thai"] == pytest.approx(1.0 + 0.3 - 0.2 * thai_vs_italian)
    assert weights["g-ita"] == pytest.approx(1.0 + 0.3 * thai_vs_italian - 0.2)


def test_unlabelled_interactions_are_ignored():
    record_interaction(USER_ID, FeedbackFeatures(cuisines=["thai"], price=2), kind="shown")
    ranked = rank_for_user(USER_ID, [THAI], CONTEXT, config=NO_JITTER)
    assert ranked[0].weight == 1.0


# ── Reasons ──────────────────────────────────────────────────────────────


def test_recommendation_reasons():
    _favorite(make_place("yelp", "y-fav", "Old Favorite", lat=41.0, cuisines=["thai"]))
    profile = UserPreferenceProfile(preferred_cuisines=["thai"])

    reasons = recommendation_reasons(USER_ID, THAI, profile, MONDAY_DINNER)

    assert reasons == ["Matches your thai preference", "Highly rated", "Similar to your favorites"]


def test_pattern_reason_for_usual_choice():
    for _ in range(3):
        record_decision(DecisionRecord(
            user_id=USER_ID,
            place_id=1,
            provider="google",
            provider_id="g-thai",
            action="selected",
            filters=DecisionFilters(cuisines=["thai"]),
            time_of_day="dinner",
            day_of_week="monday",
        ))
    mine_patterns(USER_ID)

    reasons = recommendation_reasons(USER_ID, THAI, None, MONDAY_DINNER)

    assert "Matches your usual dinner choice" in reasons
    assert recommendation_reasons(USER_ID, ITALIAN, None, MONDAY_DINNER) == []
