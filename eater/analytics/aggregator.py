from __future__ import annotations

from collections import Counter
from typing import Any


def compute_analytics(events: list[dict[str, Any]]) -> dict[str, Any]:
    picks = [e for e in events if e["type"] == "pick"]
    total = len(picks)

    # Average response time
    times = [p["response_time_ms"] for p in picks if "response_time_ms" in p]
    avg_time = round(sum(times) / len(times), 1) if times else 0.0

    # Top cuisines
    cuisine_counter: Counter[str] = Counter()
    for p in picks:
        for c in p.get("cuisines", []) or []:
            cuisine_counter[c] += 1
    top_cuisines = [{"name": n, "count": c} for n, c in cuisine_counter.most_common(10)]

    # Candidates contributed per provider (cache misses only)
    provider_counter: Counter[str] = Counter()
    for p in picks:
        for name, count in (p.get("provider_counts") or {}).items():
            provider_counter[name] += count

    # Filter usage rates
    filter_counts = {"cuisine": 0, "price": 0}
    for p in picks:
        if p.get("cuisines"):
            filter_counts["cuisine"] += 1
        if p.get("price_min") or p.get("price_max"):
            filter_counts["price"] += 1
    filter_usage = {
        k: round(v / total * 100, 1) if total else 0.0
        for k, v in filter_counts.items()
    }

    cache_hits = sum(1 for p in picks if p.get("cache_hit"))
    empty = sum(1 for p in picks if not p.get("results_returned"))

    # Decision rooms
    rooms_created = sum(1 for e in events if e["type"] == "room_created")
    rooms_decided = sum(1 for e in events if e["type"] == "room_decided")
    swipe_counter: Counter[str] = Counter(e.get("verdict", "unknown") for e in events if e["type"] == "room_swipe")

    return {
        "total_picks": total,
        "avg_response_time_ms": avg_time,
        "top_cuisines": top_cuisines,
        "provider_candidates": dict(provider_counter),
        "filter_usage": filter_usage,
        "empty_result_rate": round(empty / total * 100, 1) if total else 0.0,
        "cache_stats": {
            "hits": cache_hits,
            "misses": total - cache_hits,
            "hit_rate": round(cache_hits / total * 100, 1) if total else 0.0,
        },
        "rooms": {
            "created": rooms_created,
            "decided": rooms_decided,
            "swipes": dict(swipe_counter),
        },
    }
