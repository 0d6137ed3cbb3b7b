from __future__ import annotations

import itertools
from typing import Any

import bcrypt

from ..profile.preferences import ensure_preferences

_users: dict[str, dict[str, Any]] = {}
_ids = itertools.count(1)


def _hash_password(plain: str) -> str:
    return bcrypt.hashpw(plain.encode(), bcrypt.gensalt()).decode()


def _verify_password(plain: str, hashed: str) -> bool:
    return bcrypt.checkpw(plain.encode(), hashed.encode())


def _public(username: str, record: dict[str, Any]) -> dict[str, Any]:
    return {"id": record["id"], "username": username, "role": record["role"]}


def register_user(username: str, password: str, role: str = "user") -> dict[str, Any] | None:
    """Create a user with default preferences. Returns ``None`` if the name is taken."""
    if username in _users:
        return None
    record = {"id": next(_ids), "password_hash": _hash_password(password), "role": role}
    _users[username] = record
    ensure_preferences(record["id"])
    return _public(username, record)


def authenticate(username: str, password: str) -> dict[str, Any] | None:
    """Verify credentials. Returns ``{id, username, role}`` or ``None``."""
    record = _users.get(username)
    if record and _verify_password(password, record["password_hash"]):
        return _public(username, record)
    return None


def _seed_users() -> None:
    """Pre-seed demo users on import."""
    register_user("user", "user123")
    register_user("admin", "admin123", role="admin")


_seed_users()
