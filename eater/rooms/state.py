"""
Decision rooms.

A room freezes up to twenty aggregated candidates at creation time. Anonymous
participants join with a session token and swipe on candidates; after every
swipe the swiped place alone is re-evaluated:

- any veto                          -> ``vetoed`` (informational)
- like + super_like == participants -> ``unanimous``; the room moves open -> decided once
- like + super_like >= ceil(0.67 n) -> ``majority`` (advisory)
"""
from __future__ import annotations

import itertools
import logging
import math
import secrets
import time
from collections import Counter

from ..analytics.store import record_event
from ..providers.registry import ProviderSet
from ..recommendations.aggregator import find_candidates
from ..recommendations.config import DEFAULT_AGGREGATOR_CONFIG, AggregatorConfig
from ..recommendations.filters import PreferenceConstraints, filter_by_preferences
from ..recommendations.models import CandidateQuery
from .models import (
    Consensus,
    CreateRoomRequest,
    DecisionRoom,
    Participant,
    ParticipantOut,
    RoomFilters,
    RoomStateResponse,
    RoomStatus,
    Swipe,
    SwipeResponse,
    SwipeTally,
    Verdict,
)

logger = logging.getLogger(__name__)

MAJORITY_SHARE = 0.67
DEFAULT_RADIUS_MILES = 5.0
_POSITIVE = (Verdict.like, Verdict.super_like)

_rooms: dict[str, DecisionRoom] = {}
_participants: dict[str, Participant] = {}
_swipes: dict[tuple[int, int, str], Swipe] = {}
_room_ids = itertools.count(1)
_participant_ids = itertools.count(1)


class InvalidRoomStateError(Exception):
    """A client addressed a room, session or candidate that does not exist."""


class RoomNotFoundError(InvalidRoomStateError):
    pass


class InvalidSessionError(InvalidRoomStateError):
    pass


class UnknownCandidateError(InvalidRoomStateError):
    pass


def _new_slug() -> str:
    while True:
        slug = secrets.token_hex(6)
        if slug not in _rooms:
            return slug


def create_room(
    request: CreateRoomRequest,
    creator_id: int | None = None,
    providers: ProviderSet | None = None,
    config: AggregatorConfig = DEFAULT_AGGREGATOR_CONFIG,
) -> DecisionRoom:
    filters = request.filters or RoomFilters()
    radius = request.radius or DEFAULT_RADIUS_MILES
    prices = [p for p in filters.price or [] if 1 <= p <= 4]

    query = CandidateQuery(
        lat=request.lat,
        lng=request.lng,
        miles=radius,
        cuisines=[c.lower() for c in filters.cuisines or []],
        price_min=min(prices) if prices else None,
        price_max=max(prices) if prices else None,
    )
    places = find_candidates(query, providers=providers, config=config).places
    if prices:
        places = filter_by_preferences(places, PreferenceConstraints(price_min=min(prices), price_max=max(prices)))

    room = DecisionRoom(
        id=next(_room_ids),
        slug=_new_slug(),
        creator_id=creator_id,
        name=request.name or "Group Decision",
        lat=request.lat,
        lng=request.lng,
        radius=radius,
        filters=filters,
        candidates=[p.model_copy(deep=True) for p in places[: config.room_candidate_limit]],
    )
    _rooms[room.slug] = room
    record_event("room_created", {"slug": room.slug, "candidates": len(room.candidates)})
    return room


def get_room(slug: str) -> DecisionRoom:
    room = _rooms.get(slug)
    if room is None:
        raise RoomNotFoundError(f"Room {slug!r} not found")
    return room


def _participant_for(room: DecisionRoom, session_token: str) -> Participant:
    participant = _participants.get(session_token)
    if participant is None or participant.room_id != room.id:
        raise InvalidSessionError("Invalid session")
    return participant


def _room_participants(room: DecisionRoom) -> list[Participant]:
    return [p for p in _participants.values() if p.room_id == room.id]


def join_room(
    slug: str,
    nickname: str,
    user_id: int | None = None,
    session_token: str | None = None,
) -> Participant:
    """Join with a fresh token, or refresh nickname/activity for a token already in this room."""
    room = get_room(slug)

    if session_token:
        participant = _participant_for(room, session_token)
        participant.nickname = nickname
        participant.last_active = time.time()
        return participant

    token = secrets.token_hex(16)
    while token in _participants:
        token = secrets.token_hex(16)
    participant = Participant(
        id=next(_participant_ids),
        room_id=room.id,
        user_id=user_id,
        nickname=nickname,
        session_token=token,
    )
    _participants[token] = participant
    return participant


def evaluate_consensus(room: DecisionRoom, place_key: str) -> Consensus | None:
    verdicts = [s.verdict for s in _swipes.values() if s.room_id == room.id and s.place_key == place_key]
    total = len(_room_participants(room))
    likes = sum(1 for v in verdicts if v in _POSITIVE)

    if Verdict.veto in verdicts:
        return Consensus.vetoed
    if total and likes == total:
        return Consensus.unanimous
    if likes and likes >= math.ceil(total * MAJORITY_SHARE):
        return Consensus.majority
    return None


def _decide(room: DecisionRoom, place_key: str) -> None:
    # one-way; a second unanimity on a decided room changes nothing
    if room.status is not RoomStatus.open:
        return
    room.status = RoomStatus.decided
    room.winner_place_key = place_key
    room.decided_at = time.time()
    logger.info("Room %s decided on %s", room.slug, place_key)
    record_event("room_decided", {"slug": room.slug, "place_key": place_key})


def record_swipe(slug: str, session_token: str, place_key: str, verdict: Verdict) -> SwipeResponse:
    room = get_room(slug)
    participant = _participant_for(room, session_token)
    if not any(c.place_key == place_key for c in room.candidates):
        raise UnknownCandidateError(f"{place_key!r} is not a candidate in room {slug!r}")

    _swipes[(room.id, participant.id, place_key)] = Swipe(
        room_id=room.id,
        participant_id=participant.id,
        place_key=place_key,
        verdict=verdict,
    )
    participant.last_active = time.time()
    record_event("room_swipe", {"slug": room.slug, "verdict": verdict.value})

    consensus = evaluate_consensus(room, place_key)
    if consensus is Consensus.unanimous:
        _decide(room, place_key)

    return SwipeResponse(
        consensus=consensus,
        status=room.status,
        winner_place_key=room.winner_place_key,
    )


def get_room_state(slug: str) -> RoomStateResponse:
    room = get_room(slug)
    tallies: Counter[tuple[str, Verdict]] = Counter(
        (s.place_key, s.verdict) for s in _swipes.values() if s.room_id == room.id
    )
    return RoomStateResponse(
        room=room,
        participants=[
            ParticipantOut(id=p.id, nickname=p.nickname, last_active=p.last_active)
            for p in _room_participants(room)
        ],
        swipes=[
            SwipeTally(place_key=key, swipe=verdict, count=count)
            for (key, verdict), count in sorted(tallies.items(), key=lambda item: (item[0][0], item[0][1].value))
        ],
    )


def clear_rooms() -> None:
    global _room_ids, _participant_ids
    _rooms.clear()
    _participants.clear()
    _swipes.clear()
    _room_ids = itertools.count(1)
    _participant_ids = itertools.count(1)
