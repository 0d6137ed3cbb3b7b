from __future__ import annotations

import hashlib
import json
import time

from .models import CachedResult, Place

_cache: dict[str, CachedResult] = {}
_hits: int = 0
_misses: int = 0
_DEFAULT_TTL = 3600  # 1 hour


def make_fingerprint(query_params: dict) -> str:
    normalized = json.dumps(query_params, sort_keys=True, default=str)
    return hashlib.sha256(normalized.encode()).hexdigest()[:32]


def cache_get(fingerprint: str, now: float | None = None) -> CachedResult | None:
    """Return the live entry for ``fingerprint``; expired entries are ignored, not evicted."""
    global _hits, _misses
    now = time.time() if now is None else now
    entry = _cache.get(fingerprint)
    if entry and now < entry.expires_at:
        _hits += 1
        return entry
    _misses += 1
    return None


def cache_upsert(
    fingerprint: str,
    query_params: dict,
    places: list[Place],
    ttl: int = _DEFAULT_TTL,
    now: float | None = None,
) -> CachedResult:
    """Insert or replace the entry for ``fingerprint``; the last writer wins."""
    now = time.time() if now is None else now
    entry = CachedResult(
        fingerprint=fingerprint,
        query_params=query_params,
        places=places,
        created_at=now,
        expires_at=now + ttl,
    )
    _cache[fingerprint] = entry
    return entry


def get_cache_stats() -> dict:
    total = _hits + _misses
    now = time.time()
    return {
        "size": len(_cache),
        "live": sum(1 for e in _cache.values() if now < e.expires_at),
        "hits": _hits,
        "misses": _misses,
        "hit_rate": round(_hits / total * 100, 1) if total > 0 else 0.0,
    }


def clear_cache() -> None:
    global _hits, _misses
    _cache.clear()
    _hits = 0
    _misses = 0
