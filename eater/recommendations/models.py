from __future__ import annotations

from pydantic import BaseModel, Field, computed_field, field_validator


class Place(BaseModel):
    provider: str
    provider_id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    address: str | None = None
    lat: float | None = None
    lng: float | None = None
    rating: float | None = Field(default=None, ge=0.0, le=5.0)
    price_level: int | None = Field(default=None, ge=1, le=4)
    cuisines: list[str] = Field(default_factory=list)
    description: str | None = None
    weight: float = 0.0

    @field_validator("cuisines")
    @classmethod
    def _unique_cuisines(cls, value: list[str]) -> list[str]:
        seen: list[str] = []
        for c in value:
            c = c.strip().lower()
            if c and c not in seen:
                seen.append(c)
        return seen

    @computed_field  # type: ignore[prop-decorator]
    @property
    def place_key(self) -> str:
        """Stable identity of a place inside one provider's namespace."""
        return f"{self.provider}:{self.provider_id}"


class RankedPlace(Place):
    place_id: int | None = None
    reasons: list[str] = Field(default_factory=list)


class CandidateQuery(BaseModel):
    lat: float = Field(..., ge=-90.0, le=90.0)
    lng: float = Field(..., ge=-180.0, le=180.0)
    miles: float = Field(default=5.0, gt=0.0, le=50.0)
    cuisines: list[str] = Field(default_factory=list)
    price_min: int | None = Field(default=None, ge=1, le=4)
    price_max: int | None = Field(default=None, ge=1, le=4)

    def cache_params(self) -> dict:
        return {
            "lat": self.lat,
            "lng": self.lng,
            "radius": self.miles,
            "cuisines": sorted({c.strip().lower() for c in self.cuisines if c.strip()}),
            "price_min": self.price_min,
            "price_max": self.price_max,
        }


class CachedResult(BaseModel):
    fingerprint: str
    query_params: dict
    places: list[Place]
    created_at: float
    expires_at: float


class PickRequest(BaseModel):
    lat: float = Field(..., ge=-90.0, le=90.0)
    lng: float = Field(..., ge=-180.0, le=180.0)
    miles: float = Field(..., ge=0.5, le=50.0)
    cuisines: list[str] | None = None
    price_min: int | None = Field(default=None, ge=1, le=4)
    price_max: int | None = Field(default=None, ge=1, le=4)
    vibes: list[str] | None = None
    dietary_restrictions: list[str] | None = None
    open_now: bool | None = None
    exclude_provider_ids: list[str] | None = None
    session_id: str | None = None


class PickResponse(BaseModel):
    primary: RankedPlace | None
    backups: list[RankedPlace] = Field(default_factory=list)
    reason: str | None = None
    total_candidates: int = 0


class SessionExcludeRequest(BaseModel):
    session_id: str = Field(..., min_length=1)
    provider: str = Field(..., min_length=1)
    provider_id: str = Field(..., min_length=1)
    place_id: int | None = None


class DislikeRequest(BaseModel):
    provider: str = Field(..., min_length=1)
    provider_id: str = Field(..., min_length=1)
    place_id: int | None = None
    reason: str | None = None


class SelectChoiceRequest(BaseModel):
    place_id: int
    session_id: str | None = None
    lat: float | None = None
    lng: float | None = None
    miles: float | None = None
    cuisines: list[str] | None = None
    price_min: int | None = Field(default=None, ge=1, le=4)
    price_max: int | None = Field(default=None, ge=1, le=4)
    vibes: list[str] | None = None
