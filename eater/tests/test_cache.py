from __future__ import annotations

from fastapi.testclient import TestClient

from eater.app import app
from eater.recommendations.cache import cache_get, cache_upsert, get_cache_stats, make_fingerprint
from eater.recommendations.models import CandidateQuery
from eater.tests.fakes import make_place

client = TestClient(app)


def _login_user(c):
    c.post("/auth/login", json={"username": "user", "password": "user123"})


def _login_admin(c):
    c.post("/auth/login", json={"username": "admin", "password": "admin123"})


def test_fingerprint_ignores_cuisine_order_and_case():
    a = CandidateQuery(lat=40.7, lng=-74.0, miles=3, cuisines=["Thai", "sushi"])
    b = CandidateQuery(lat=40.7, lng=-74.0, miles=3, cuisines=["SUSHI", "thai"])
    assert make_fingerprint(a.cache_params()) == make_fingerprint(b.cache_params())


def test_fingerprint_changes_with_radius_or_price():
    base = CandidateQuery(lat=40.7, lng=-74.0, miles=3)
    wider = CandidateQuery(lat=40.7, lng=-74.0, miles=4)
    cheaper = CandidateQuery(lat=40.7, lng=-74.0, miles=3, price_max=2)
    fingerprints = {make_fingerprint(q.cache_params()) for q in (base, wider, cheaper)}
    assert len(fingerprints) == 3


def test_cache_miss_then_hit():
    cache_upsert("fp", {}, [make_place("google", "g1", "Thai Basil")], ttl=3600, now=1000.0)

    assert cache_get("other", now=1001.0) is None
    entry = cache_get("fp", now=1001.0)

    assert entry is not None
    assert entry.places[0].provider_id == "g1"
    stats = get_cache_stats()
    assert stats["hits"] == 1
    assert stats["misses"] == 1
    assert stats["hit_rate"] == 50.0


def test_expired_entry_is_ignored_not_deleted():
    cache_upsert("fp", {}, [], ttl=3600, now=1000.0)

    assert cache_get("fp", now=4599.0) is not None
    assert cache_get("fp", now=4600.0) is None
    assert get_cache_stats()["size"] == 1


def test_last_writer_wins():
    cache_upsert("fp", {}, [make_place("google", "g1", "First")], ttl=3600, now=1000.0)
    cache_upsert("fp", {}, [make_place("google", "g2", "Second")], ttl=3600, now=1000.5)

    entry = cache_get("fp", now=1001.0)

    assert [p.name for p in entry.places] == ["Second"]
    assert entry.expires_at == 4600.5


def test_cache_stats_endpoint_requires_admin():
    _login_user(client)
    assert client.get("/cache/stats").status_code == 403

    _login_admin(client)
    resp = client.get("/cache/stats")
    assert resp.status_code == 200
    assert {"size", "live", "hits", "misses", "hit_rate"} <= set(resp.json())
