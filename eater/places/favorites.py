from __future__ import annotations

import time

_favorites: dict[int, dict[int, float]] = {}
_dislikes: dict[int, dict[tuple[str, str], str | None]] = {}


def add_favorite(user_id: int, place_id: int) -> bool:
    """Insert-ignore; returns False when the place was already a favorite."""
    favorites = _favorites.setdefault(user_id, {})
    if place_id in favorites:
        return False
    favorites[place_id] = time.time()
    return True


def remove_favorite(user_id: int, place_id: int) -> None:
    _favorites.get(user_id, {}).pop(place_id, None)


def get_favorite_ids(user_id: int) -> list[int]:
    """Favorite place ids, most recently added first."""
    # dicts keep insertion order and re-adding is a no-op
    return list(reversed(_favorites.get(user_id, {})))


def add_dislike(user_id: int, provider: str, provider_id: str, reason: str | None = None) -> None:
    _dislikes.setdefault(user_id, {}).setdefault((provider, provider_id), reason)


def get_disliked_provider_ids(user_id: int) -> set[str]:
    return {provider_id for _, provider_id in _dislikes.get(user_id, {})}


def clear_favorites() -> None:
    _favorites.clear()
    _dislikes.clear()
