from __future__ import annotations

import time
from typing import Any

_EXCLUSION_TTL = 24 * 3600

_exclusions: dict[tuple[str, str, str], dict[str, Any]] = {}


def _prune(now: float) -> None:
    for key in [k for k, e in _exclusions.items() if e["expires_at"] <= now]:
        del _exclusions[key]


def add_exclusion(
    session_id: str,
    provider: str,
    provider_id: str,
    user_id: int | None = None,
    place_id: int | None = None,
) -> None:
    """Hide a place for the rest of a browsing session ("not right now").

    Excluding the same place again in a session restarts its 24 h window.
    """
    now = time.time()
    _prune(now)
    _exclusions[(session_id, provider, provider_id)] = {
        "session_id": session_id,
        "user_id": user_id,
        "place_id": place_id,
        "provider": provider,
        "provider_id": provider_id,
        "created_at": now,
        "expires_at": now + _EXCLUSION_TTL,
    }


def get_exclusions(session_id: str) -> list[dict[str, Any]]:
    now = time.time()
    return [
        {"provider": e["provider"], "provider_id": e["provider_id"]}
        for e in _exclusions.values()
        if e["session_id"] == session_id and now < e["expires_at"]
    ]


def get_excluded_provider_ids(session_id: str) -> set[str]:
    return {e["provider_id"] for e in get_exclusions(session_id)}


def exclusion_count() -> int:
    return len(_exclusions)


def clear_exclusions() -> None:
    _exclusions.clear()
