from __future__ import annotations

import logging
import os
from datetime import datetime

from fastapi import Depends, FastAPI, HTTPException, Query, Request
from pydantic import ValidationError
from starlette.middleware.sessions import SessionMiddleware

from .analytics.aggregator import compute_analytics
from .analytics.store import get_events
from .auth.dependencies import optional_user_id, require_admin, require_user, require_user_id
from .auth.models import LoginRequest, RegisterRequest
from .auth.users import authenticate, register_user
from .history.decisions import DecisionFilters, DecisionRecord, get_decisions, record_decision
from .history.exclusions import add_exclusion, get_exclusions
from .history.interactions import FeedbackFeatures, record_interaction
from .places.catalog import CatalogPlace, get_place, get_places
from .places.favorites import add_dislike, add_favorite, get_favorite_ids, remove_favorite
from .profile.preferences import PreferencesUpdate, UserPreferenceProfile, get_preferences, update_preferences
from .providers.config import DEFAULT_PROVIDER_CONFIG
from .recommendations.aggregator import find_candidates
from .recommendations.cache import get_cache_stats
from .recommendations.models import (
    CandidateQuery,
    DislikeRequest,
    PickRequest,
    PickResponse,
    RankedPlace,
    SelectChoiceRequest,
    SessionExcludeRequest,
)
from .recommendations.patterns import UserPattern, day_of_week, get_patterns, mine_patterns, time_of_day
from .recommendations.ranking import RankingContext, rank_for_user
from .recommendations.retrieval import get_pick
from .rooms.models import (
    CreateRoomRequest,
    CreateRoomResponse,
    JoinRequest,
    JoinResponse,
    RoomStateResponse,
    SwipeRequest,
    SwipeResponse,
)
from .rooms.state import (
    InvalidSessionError,
    RoomNotFoundError,
    UnknownCandidateError,
    create_room,
    get_room_state,
    join_room,
    record_swipe,
)

logger = logging.getLogger(__name__)

app = FastAPI(title="Indecisive Eater API", version="1.0.0")
app.add_middleware(
    SessionMiddleware,
    secret_key=os.environ.get("SESSION_SECRET", "indecisive-eater-secret-change-in-production"),
)


def _feedback_features(place: CatalogPlace) -> FeedbackFeatures:
    now = datetime.now()
    return FeedbackFeatures(
        cuisines=place.cuisines,
        price=place.price_level,
        rating=place.rating,
        time_of_day=time_of_day(now),
        day_of_week=day_of_week(now),
    )


def _require_place(place_id: int) -> CatalogPlace:
    place = get_place(place_id)
    if place is None:
        raise HTTPException(status_code=404, detail="Place not found")
    return place


# ── Public endpoints ─────────────────────────────────────────────────────


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok", "provider": DEFAULT_PROVIDER_CONFIG.primary}


# ── Auth endpoints ───────────────────────────────────────────────────────


@app.post("/auth/register")
def register(body: RegisterRequest, request: Request) -> dict:
    user = register_user(body.username, body.password)
    if not user:
        raise HTTPException(status_code=409, detail="Username already registered")
    request.session["user"] = user
    return {"status": "ok", "user": user}


@app.post("/auth/login")
def login(body: LoginRequest, request: Request) -> dict:
    user = authenticate(body.username, body.password)
    if not user:
        raise HTTPException(status_code=401, detail="Invalid credentials")
    request.session["user"] = user
    return {"status": "ok", "user": user}


@app.post("/auth/logout")
def logout(request: Request) -> dict:
    request.session.clear()
    return {"status": "logged_out"}


@app.get("/auth/me")
def auth_me(user: dict = Depends(require_user)) -> dict:
    return user


# ── Preferences ──────────────────────────────────────────────────────────


@app.get("/preferences", response_model=UserPreferenceProfile)
def read_preferences(user_id: int = Depends(require_user_id)) -> UserPreferenceProfile:
    return get_preferences(user_id)


@app.put("/preferences", response_model=UserPreferenceProfile)
def write_preferences(
    body: PreferencesUpdate,
    user_id: int = Depends(require_user_id),
) -> UserPreferenceProfile:
    try:
        return update_preferences(user_id, body)
    except ValidationError as exc:
        raise HTTPException(status_code=422, detail=exc.errors(include_url=False, include_context=False))


# ── Pick ─────────────────────────────────────────────────────────────────


@app.post("/pick", response_model=PickResponse)
def pick(body: PickRequest, user_id: int | None = Depends(optional_user_id)) -> PickResponse:
    return get_pick(body, user_id)


@app.post("/session/exclude")
def session_exclude(
    body: SessionExcludeRequest,
    user_id: int | None = Depends(optional_user_id),
) -> dict:
    add_exclusion(body.session_id, body.provider, body.provider_id, user_id=user_id, place_id=body.place_id)
    return {"ok": True}


@app.get("/session/{session_id}/exclusions")
def session_exclusions(session_id: str) -> list[dict]:
    return get_exclusions(session_id)


# ── Favorites & dislikes ─────────────────────────────────────────────────


@app.post("/favorites/{place_id}")
def favorite(place_id: int, user_id: int = Depends(require_user_id)) -> dict:
    place = _require_place(place_id)
    if add_favorite(user_id, place_id):
        try:
            record_interaction(
                user_id, _feedback_features(place), kind="favorited", place_id=place_id, label="positive",
            )
        except Exception:
            logger.warning("Failed to log favorite interaction for user %s", user_id, exc_info=True)
    return {"ok": True}


@app.delete("/favorites/{place_id}")
def unfavorite(place_id: int, user_id: int = Depends(require_user_id)) -> dict:
    remove_favorite(user_id, place_id)
    return {"ok": True}


@app.get("/favorites", response_model=list[CatalogPlace])
def list_favorites(user_id: int = Depends(require_user_id)) -> list[CatalogPlace]:
    return get_places(get_favorite_ids(user_id))


@app.post("/dislikes")
def dislike(body: DislikeRequest, user_id: int = Depends(require_user_id)) -> dict:
    add_dislike(user_id, body.provider, body.provider_id, body.reason)
    place = get_place(body.place_id) if body.place_id is not None else None
    if place is not None:
        try:
            record_interaction(
                user_id, _feedback_features(place), kind="disliked", place_id=place.id, label="negative",
            )
        except Exception:
            logger.warning("Failed to log dislike interaction for user %s", user_id, exc_info=True)
    return {"ok": True}


# ── History & patterns ───────────────────────────────────────────────────


@app.post("/choices/select")
def select_choice(body: SelectChoiceRequest, user_id: int = Depends(require_user_id)) -> dict:
    place = _require_place(body.place_id)
    now = datetime.now()
    record_decision(DecisionRecord(
        user_id=user_id,
        place_id=place.id,
        provider=place.provider,
        provider_id=place.provider_id,
        action="selected",
        session_id=body.session_id,
        search_lat=body.lat,
        search_lng=body.lng,
        search_radius=body.miles,
        filters=DecisionFilters(
            cuisines=[c.lower() for c in body.cuisines] if body.cuisines else None,
            price_min=body.price_min,
            price_max=body.price_max,
            vibes=body.vibes,
        ),
        time_of_day=time_of_day(now),
        day_of_week=day_of_week(now),
    ))
    return {"ok": True}


@app.get("/choices")
def choices(user_id: int = Depends(require_user_id)) -> list[dict]:
    rows: list[dict] = []
    for d in get_decisions(user_id, limit=50):
        place = get_place(d.place_id)
        rows.append({
            **d.model_dump(),
            "name": place.name if place else None,
            "address": place.address if place else None,
            "rating": place.rating if place else None,
        })
    return rows


@app.get("/ml/patterns", response_model=list[UserPattern])
def ml_patterns(user_id: int = Depends(require_user_id)) -> list[UserPattern]:
    try:
        mine_patterns(user_id)
    except Exception:
        logger.warning("Pattern mining failed for user %s", user_id, exc_info=True)
    return get_patterns(user_id)


@app.get("/ml/recommendations", response_model=list[RankedPlace])
def ml_recommendations(
    lat: float = Query(..., ge=-90.0, le=90.0),
    lng: float = Query(..., ge=-180.0, le=180.0),
    limit: int = Query(default=10, ge=1, le=50),
    user_id: int = Depends(require_user_id),
) -> list[RankedPlace]:
    result = find_candidates(CandidateQuery(lat=lat, lng=lng, miles=5.0))
    ranked = rank_for_user(user_id, result.places, RankingContext.at(lat, lng))
    return ranked[:limit]


# ── Decision rooms ───────────────────────────────────────────────────────


@app.post("/rooms", response_model=CreateRoomResponse)
def rooms_create(
    body: CreateRoomRequest,
    user_id: int | None = Depends(optional_user_id),
) -> CreateRoomResponse:
    room = create_room(body, creator_id=user_id)
    return CreateRoomResponse(slug=room.slug, room_id=room.id, candidate_count=len(room.candidates))


@app.get("/rooms/{slug}", response_model=RoomStateResponse)
def rooms_get(slug: str) -> RoomStateResponse:
    try:
        return get_room_state(slug)
    except RoomNotFoundError:
        raise HTTPException(status_code=404, detail="Room not found")


@app.post("/rooms/{slug}/join", response_model=JoinResponse)
def rooms_join(
    slug: str,
    body: JoinRequest,
    user_id: int | None = Depends(optional_user_id),
) -> JoinResponse:
    try:
        participant = join_room(slug, body.nickname, user_id=user_id, session_token=body.session_token)
    except RoomNotFoundError:
        raise HTTPException(status_code=404, detail="Room not found")
    except InvalidSessionError:
        raise HTTPException(status_code=403, detail="Invalid session")
    return JoinResponse(participant_id=participant.id, session_token=participant.session_token)


@app.post("/rooms/{slug}/swipe", response_model=SwipeResponse)
def rooms_swipe(slug: str, body: SwipeRequest) -> SwipeResponse:
    try:
        return record_swipe(slug, body.session_token, body.place_key, body.swipe)
    except RoomNotFoundError:
        raise HTTPException(status_code=404, detail="Room not found")
    except InvalidSessionError:
        raise HTTPException(status_code=403, detail="Invalid session")
    except UnknownCandidateError:
        raise HTTPException(status_code=404, detail="Place is not a candidate in this room")


# ── Admin endpoints ──────────────────────────────────────────────────────


@app.get("/analytics")
def analytics(user: dict = Depends(require_admin)) -> dict:
    return compute_analytics(get_events())


@app.get("/cache/stats")
def cache_stats(user: dict = Depends(require_admin)) -> dict:
    return get_cache_stats()
