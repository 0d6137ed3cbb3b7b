from __future__ import annotations

from pydantic import BaseModel, Field, model_validator


class UserPreferenceProfile(BaseModel):
    max_miles: float = 5.0
    default_lat: float | None = None
    default_lng: float | None = None
    preferred_cuisines: list[str] = Field(default_factory=list)
    dietary_restrictions: list[str] = Field(default_factory=list)
    price_min: int = Field(default=1, ge=1, le=4)
    price_max: int = Field(default=4, ge=1, le=4)
    preferred_vibes: list[str] = Field(default_factory=list)
    filter_open_now: bool = False
    filter_reservations: bool = False

    @model_validator(mode="after")
    def _price_band(self) -> "UserPreferenceProfile":
        if self.price_min > self.price_max:
            raise ValueError("price_min must not exceed price_max")
        return self


class PreferencesUpdate(BaseModel):
    max_miles: float | None = Field(default=None, ge=0.1, le=50.0)
    default_lat: float | None = Field(default=None, ge=-90.0, le=90.0)
    default_lng: float | None = Field(default=None, ge=-180.0, le=180.0)
    preferred_cuisines: list[str] | None = None
    dietary_restrictions: list[str] | None = None
    price_min: int | None = Field(default=None, ge=1, le=4)
    price_max: int | None = Field(default=None, ge=1, le=4)
    preferred_vibes: list[str] | None = None
    filter_open_now: bool | None = None
    filter_reservations: bool | None = None


_profiles: dict[int, UserPreferenceProfile] = {}


def ensure_preferences(user_id: int) -> UserPreferenceProfile:
    return _profiles.setdefault(user_id, UserPreferenceProfile())


def get_preferences(user_id: int) -> UserPreferenceProfile:
    """Return a copy; the stored profile only changes through ``update_preferences``."""
    return ensure_preferences(user_id).model_copy(deep=True)


def update_preferences(user_id: int, update: PreferencesUpdate) -> UserPreferenceProfile:
    """Apply a partial update. Raises ``ValidationError`` if the merged price band is inverted; the stored profile is unchanged."""
    changes = update.model_dump(exclude_unset=True, exclude_none=True)
    if "preferred_cuisines" in changes:
        changes["preferred_cuisines"] = [c.strip().lower() for c in changes["preferred_cuisines"] if c.strip()]
    profile = UserPreferenceProfile.model_validate({**ensure_preferences(user_id).model_dump(), **changes})
    _profiles[user_id] = profile
    return profile.model_copy(deep=True)


def clear_preferences() -> None:
    _profiles.clear()
