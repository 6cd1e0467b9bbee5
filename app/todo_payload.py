"""Payload validation helpers for TODO endpoints."""

from __future__ import annotations

from datetime import date
from typing import Any

from app.errors import TodoError
from app.todo_constants import MAX_YEAR, MIN_YEAR


def _ensure_payload_dict(payload: Any) -> dict[str, Any]:
    if not isinstance(payload, dict):
        raise TodoError(
            "INVALID_TYPE",
            "Payload must be an object.",
            {"type": type(payload).__name__},
        )
    return payload


def _reject_unknown_fields(payload: dict[str, Any], allowed_fields: set[str]) -> None:
    unknown_fields = sorted(set(payload) - allowed_fields)
    if unknown_fields:
        raise TodoError(
            "UNKNOWN_FIELD",
            "Unknown fields are not allowed.",
            {"fields": unknown_fields},
        )


def _require_fields(payload: dict[str, Any], required_fields: list[str]) -> None:
    missing = [name for name in required_fields if name not in payload]
    if missing:
        raise TodoError(
            "MISSING_FIELDS",
            "Required fields are missing.",
            {"fields": missing},
        )


def _require_int(payload: dict[str, Any], name: str) -> int:
    value = payload[name]
    if isinstance(value, bool) or not isinstance(value, int):
        raise TodoError(
            "INVALID_TYPE",
            f"{name} must be an integer.",
            {name: str(value), "type": type(value).__name__},
        )
    return value


def _require_text(payload: dict[str, Any], name: str) -> str:
    value = payload[name]
    if not isinstance(value, str) or not value.strip():
        raise TodoError(
            "INVALID_TYPE",
            f"{name} must be a non-empty string.",
            {name: str(value), "type": type(value).__name__},
        )
    return value


def _validate_year(value: Any, name: str = "year") -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise TodoError(
            "INVALID_YEAR",
            f"{name} must be an integer year.",
            {name: str(value)},
        )
    if not MIN_YEAR <= value <= MAX_YEAR:
        raise TodoError(
            "INVALID_YEAR",
            f"{name} must be between {MIN_YEAR} and {MAX_YEAR}.",
            {name: value},
        )
    return value


def _resolve_year(value: Any, today: date) -> int:
    """Requested year, defaulting to the year of ``today``."""
    if value is None:
        return today.year
    return _validate_year(value)


def _parse_query_year(raw_value: str | None, today: date) -> int:
    if raw_value is None or not raw_value.strip():
        return today.year
    try:
        value = int(raw_value.strip())
    except ValueError as exc:
        raise TodoError(
            "INVALID_YEAR",
            "year must be an integer year.",
            {"year": raw_value},
        ) from exc
    return _validate_year(value)
