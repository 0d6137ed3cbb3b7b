from __future__ import annotations

import logging
import math
import time
from datetime import datetime

from ..analytics.store import record_event
from ..history.decisions import DecisionFilters, DecisionRecord, record_decision
from ..history.exclusions import get_excluded_provider_ids
from ..history.interactions import ShownFeatures, record_interaction
from ..llm.groq_client import summarize_place
from ..places.catalog import upsert_place
from ..places.favorites import get_disliked_provider_ids
from ..profile.preferences import UserPreferenceProfile, get_preferences
from .aggregator import find_candidates
from .filters import PreferenceConstraints, filter_by_preferences
from .models import CandidateQuery, PickRequest, PickResponse, RankedPlace
from .ranking import RankingContext, rank_for_user, recommendation_reasons

logger = logging.getLogger(__name__)

NO_MATCH_REASON = "No restaurants found matching your criteria"
_EARTH_RADIUS_MILES = 3959.0


def distance_miles(lat1: float, lng1: float, lat2: float | None, lng2: float | None) -> float | None:
    """Great-circle distance; None when the place has no coordinates."""
    if lat2 is None or lng2 is None:
        return None
    d_lat = math.radians(lat2 - lat1)
    d_lng = math.radians(lng2 - lng1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lng / 2) ** 2
    )
    return _EARTH_RADIUS_MILES * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def _constraints(request: PickRequest, profile: UserPreferenceProfile | None) -> PreferenceConstraints:
    return PreferenceConstraints(
        price_min=request.price_min or (profile.price_min if profile else None) or 1,
        price_max=request.price_max or (profile.price_max if profile else None) or 4,
        vibes=request.vibes or (profile.preferred_vibes if profile else []),
        dietary_restrictions=request.dietary_restrictions or (profile.dietary_restrictions if profile else []),
        open_now=bool(request.open_now or (profile.filter_open_now if profile else False)),
    )


def _persist_and_explain(
    place: RankedPlace,
    user_id: int | None,
    profile: UserPreferenceProfile | None,
    now: datetime,
) -> RankedPlace:
    description = summarize_place(place.name, place.description)
    try:
        stored = upsert_place(place, description=description)
        place_id: int | None = stored.id
    except Exception:
        logger.warning("Could not store %s in the catalog", place.place_key, exc_info=True)
        place_id = None

    reasons = recommendation_reasons(user_id, place, profile, now) if user_id is not None else []
    return place.model_copy(update={"description": description, "place_id": place_id, "reasons": reasons})


def _log_shown(user_id: int, request: PickRequest, place: RankedPlace, context: RankingContext) -> None:
    """Best-effort history writes; each one may fail without affecting the other or the response."""
    try:
        record_decision(DecisionRecord(
            user_id=user_id,
            session_id=request.session_id,
            place_id=place.place_id,
            provider=place.provider,
            provider_id=place.provider_id,
            action="shown",
            search_lat=request.lat,
            search_lng=request.lng,
            search_radius=request.miles,
            filters=DecisionFilters(
                cuisines=request.cuisines,
                price_min=request.price_min,
                price_max=request.price_max,
                vibes=request.vibes,
            ),
            time_of_day=context.time_of_day,
            day_of_week=context.day_of_week,
            reasons=place.reasons,
        ))
    except Exception:
        logger.warning("Failed to log decision history for user %s", user_id, exc_info=True)

    try:
        record_interaction(
            user_id,
            ShownFeatures(
                cuisines=place.cuisines,
                price=place.price_level or 2,
                rating=place.rating or 0.0,
                distance=distance_miles(request.lat, request.lng, place.lat, place.lng),
                time_of_day=context.time_of_day,
                day_of_week=context.day_of_week,
            ),
            kind="shown",
            place_id=place.place_id,
        )
    except Exception:
        logger.warning("Failed to log shown interaction for user %s", user_id, exc_info=True)


def get_pick(
    request: PickRequest,
    user_id: int | None = None,
    now: datetime | None = None,
) -> PickResponse:
    start_time = time.time()
    now = now or datetime.now()

    profile = get_preferences(user_id) if user_id is not None else None

    query = CandidateQuery(
        lat=request.lat,
        lng=request.lng,
        miles=request.miles,
        cuisines=[c.lower() for c in request.cuisines or []],
        price_min=request.price_min,
        price_max=request.price_max,
    )
    result = find_candidates(query)

    # --- Hard filters and exclusions ---
    places = filter_by_preferences(result.places, _constraints(request, profile))

    excluded = set(request.exclude_provider_ids or [])
    if request.session_id:
        excluded |= get_excluded_provider_ids(request.session_id)
    if user_id is not None:
        excluded |= get_disliked_provider_ids(user_id)
    if excluded:
        places = [p for p in places if p.provider_id not in excluded]

    event = {
        "cuisines": query.cuisines,
        "price_min": request.price_min,
        "price_max": request.price_max,
        "miles": request.miles,
        "logged_in": user_id is not None,
        "total_candidates": len(result.places),
        "cache_hit": result.cache_hit,
        "provider_counts": result.provider_counts,
    }

    if not places:
        record_event("pick", {
            **event,
            "results_returned": 0,
            "response_time_ms": round((time.time() - start_time) * 1000, 1),
        })
        return PickResponse(primary=None, backups=[], reason=result.reason or NO_MATCH_REASON)

    # --- Ranking ---
    context = RankingContext.at(request.lat, request.lng, now)
    ranked = rank_for_user(user_id, places, context)
    chosen = [_persist_and_explain(p, user_id, profile, now) for p in ranked[:3]]
    primary, backups = chosen[0], chosen[1:]

    if user_id is not None and primary.place_id is not None:
        _log_shown(user_id, request, primary, context)

    record_event("pick", {
        **event,
        "results_returned": len(chosen),
        "response_time_ms": round((time.time() - start_time) * 1000, 1),
    })

    return PickResponse(
        primary=primary,
        backups=backups,
        total_candidates=len(places),
    )
