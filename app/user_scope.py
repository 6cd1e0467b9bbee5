"""Request-scoped user identity and data root helpers."""

from __future__ import annotations

import re
from pathlib import Path

from fastapi import Request

from app.errors import TodoError

USER_ID_HEADER = "X-Todo-User-Id"
SERVICE_TOKEN_HEADER = "X-Todo-Service-Token"
AUTH_EXEMPT_PATHS = {"/health"}
DEMO_DIRNAME = "demo"

_VALID_USER_ID = re.compile(r"^[A-Za-z0-9_]{3,128}$")


def normalize_user_id(raw_user_id: str) -> str:
    """Normalize and validate a user id from request context."""
    if not isinstance(raw_user_id, str):
        raise TodoError(
            "INVALID_USER_ID",
            "User id must be a string.",
            {"type": type(raw_user_id).__name__},
        )

    normalized = raw_user_id.strip().replace("-", "")
    if not normalized:
        raise TodoError(
            "AUTH_REQUIRED",
            "Missing required user identity header.",
            {"header": USER_ID_HEADER},
        )

    if not _VALID_USER_ID.fullmatch(normalized):
        raise TodoError(
            "INVALID_USER_ID",
            "User id contains invalid characters.",
            {"user_id": raw_user_id},
        )
    return normalized


def resolve_user_data_root(base_root: Path, user_id: str) -> Path:
    return base_root / "users" / normalize_user_id(user_id)


def _request_config(request: Request):
    return getattr(request.app.state, "config", None)


def _base_data_root(request: Request) -> Path:
    config = _request_config(request)
    if config is not None and hasattr(config, "data_path"):
        return Path(config.data_path)
    return Path(request.app.state.data_path)


def get_request_user_id(request: Request) -> str | None:
    """Read and cache the normalized user id; ``None`` for anonymous requests."""
    cached = getattr(request.state, "user_id", None)
    if isinstance(cached, str) and cached.strip():
        normalized = normalize_user_id(cached)
        request.state.user_id = normalized
        return normalized

    headers = getattr(request, "headers", None) or {}
    raw_user_id = headers.get(USER_ID_HEADER)
    if raw_user_id is None:
        return None

    normalized = normalize_user_id(raw_user_id)
    request.state.user_id = normalized
    return normalized


def is_demo_request(request: Request) -> bool:
    return get_request_user_id(request) is None


def get_request_data_root(request: Request, *, write: bool = False) -> Path:
    """Resolve and create the data root for a request.

    Anonymous requests use the shared demo root. Anonymous writes are refused
    while the user header is required.
    """
    base_root = _base_data_root(request)
    user_id = get_request_user_id(request)
    if user_id is None:
        config = _request_config(request)
        if write and bool(getattr(config, "require_user_header", True)):
            raise TodoError(
                "AUTH_REQUIRED",
                "Missing required user identity header.",
                {"header": USER_ID_HEADER},
            )
        scoped_root = base_root / DEMO_DIRNAME
    else:
        scoped_root = resolve_user_data_root(base_root, user_id)
    scoped_root.mkdir(parents=True, exist_ok=True)
    return scoped_root
