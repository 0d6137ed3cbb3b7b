from __future__ import annotations

from fastapi import HTTPException, Request


def _session_user(request: Request, required: bool) -> dict | None:
    user = request.session.get("user")
    if user is None and required:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return user


def optional_user_id(request: Request) -> int | None:
    """Resolved user id, or ``None`` for anonymous callers. Never raises."""
    user = _session_user(request, required=False)
    return user["id"] if user else None


def require_user(request: Request) -> dict:
    """Raise 401 if no user is logged in."""
    return _session_user(request, required=True)


def require_user_id(request: Request) -> int:
    return _session_user(request, required=True)["id"]


def require_admin(request: Request) -> dict:
    """Raise 401 if not logged in, 403 if not admin."""
    user = _session_user(request, required=True)
    if user.get("role") != "admin":
        raise HTTPException(status_code=403, detail="Admin access required")
    return user
