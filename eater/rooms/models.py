from __future__ import annotations

import time
from enum import Enum

from pydantic import BaseModel, Field

from ..recommendations.models import Place


class RoomStatus(str, Enum):
    open = "open"
    decided = "decided"


class Verdict(str, Enum):
    like = "like"
    dislike = "dislike"
    super_like = "super_like"
    veto = "veto"


class Consensus(str, Enum):
    vetoed = "vetoed"
    majority = "majority"
    unanimous = "unanimous"


class RoomFilters(BaseModel):
    cuisines: list[str] | None = None
    price: list[int] | None = None
    vibes: list[str] | None = None


class CreateRoomRequest(BaseModel):
    name: str | None = Field(default=None, max_length=100)
    lat: float = Field(..., ge=-90.0, le=90.0)
    lng: float = Field(..., ge=-180.0, le=180.0)
    radius: float | None = Field(default=None, ge=0.5, le=50.0)
    filters: RoomFilters | None = None


class DecisionRoom(BaseModel):
    id: int
    slug: str
    creator_id: int | None = None
    name: str
    lat: float
    lng: float
    radius: float
    filters: RoomFilters = Field(default_factory=RoomFilters)
    candidates: list[Place] = Field(default_factory=list)
    status: RoomStatus = RoomStatus.open
    winner_place_key: str | None = None
    decided_at: float | None = None
    created_at: float = Field(default_factory=time.time)


class Participant(BaseModel):
    id: int
    room_id: int
    user_id: int | None = None
    nickname: str
    session_token: str
    last_active: float = Field(default_factory=time.time)


class Swipe(BaseModel):
    room_id: int
    participant_id: int
    place_key: str
    verdict: Verdict
    decided_at: float = Field(default_factory=time.time)


class CreateRoomResponse(BaseModel):
    slug: str
    room_id: int
    candidate_count: int


class JoinRequest(BaseModel):
    nickname: str = Field(..., min_length=1, max_length=100)
    session_token: str | None = None


class JoinResponse(BaseModel):
    participant_id: int
    session_token: str


class SwipeRequest(BaseModel):
    session_token: str = Field(..., min_length=1)
    place_key: str = Field(..., min_length=1)
    swipe: Verdict


class SwipeResponse(BaseModel):
    ok: bool = True
    consensus: Consensus | None = None
    status: RoomStatus
    winner_place_key: str | None = None


class ParticipantOut(BaseModel):
    id: int
    nickname: str
    last_active: float


class SwipeTally(BaseModel):
    place_key: str
    swipe: Verdict
    count: int


class RoomStateResponse(BaseModel):
    room: DecisionRoom
    participants: list[ParticipantOut]
    swipes: list[SwipeTally]
