"""Activity log helpers and endpoint."""

from __future__ import annotations

import json
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from fastapi import Request

from app.errors import TodoError, success_response
from app.todo_constants import ACTIVITY_LOG_FILENAME
from app.todo_payload import _ensure_payload_dict, _reject_unknown_fields
from app.todo_router import todo_router
from app.user_scope import get_request_data_root


def _activity_log_path(data_root: Path) -> Path:
    return data_root / ACTIVITY_LOG_FILENAME


def _append_activity_log(data_root: Path, entry: dict[str, str]) -> None:
    log_path = _activity_log_path(data_root)
    payload = json.dumps(entry, sort_keys=True, separators=(",", ":"), ensure_ascii=False)
    with log_path.open("a", encoding="utf-8") as log_file:
        log_file.write(payload + "\n")
        log_file.flush()
        os.fsync(log_file.fileno())


def _build_activity_entry(
    operation: str,
    relative_path: Path,
    summary: str,
    commit_sha: str,
) -> dict[str, str]:
    return {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "operation": operation,
        "path": relative_path.as_posix(),
        "summary": summary,
        "commitSha": commit_sha,
    }


def _parse_timestamp(value: Any) -> datetime | None:
    try:
        parsed = datetime.fromisoformat(str(value))
    except (TypeError, ValueError):
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _read_activity_entries(
    data_root: Path, since: datetime | None, limit: int
) -> list[dict[str, Any]]:
    log_path = _activity_log_path(data_root)
    if not log_path.exists():
        return []
    entries: list[dict[str, Any]] = []
    for line in log_path.read_text(encoding="utf-8").splitlines():
        try:
            entry = json.loads(line)
        except json.JSONDecodeError:
            continue
        if since:
            entry_time = _parse_timestamp(entry.get("timestamp"))
            if entry_time and entry_time < since:
                continue
        entries.append(entry)
    return entries[-limit:]


@todo_router.post("/api/activity")
def read_activity_log(payload: dict[str, Any], request: Request) -> dict[str, Any]:
    """Read recent entries from the activity log."""
    payload = _ensure_payload_dict(payload)
    _reject_unknown_fields(payload, {"limit", "since"})

    limit = payload.get("limit", 50)
    if isinstance(limit, bool) or not isinstance(limit, int) or limit <= 0:
        raise TodoError(
            "INVALID_TYPE",
            "limit must be a positive integer.",
            {"limit": str(limit)},
        )

    since = None
    since_value = payload.get("since")
    if since_value is not None:
        since = _parse_timestamp(since_value)
        if since is None:
            raise TodoError(
                "INVALID_TYPE",
                "since must be an ISO date-time.",
                {"since": str(since_value)},
            )

    data_root = get_request_data_root(request)
    entries = _read_activity_entries(data_root, since, limit)
    return success_response({"entries": entries})
