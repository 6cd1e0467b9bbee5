"""Sticky note endpoints backed by a per-user ``notes.json``."""

from __future__ import annotations

import json
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from fastapi import Request

from app.errors import NOT_FOUND, TodoError, success_response
from app.todo_constants import DEFAULT_NOTE_COLOR, NOTE_COLORS, NOTES_FILENAME
from app.todo_payload import _ensure_payload_dict, _reject_unknown_fields
from app.todo_router import todo_router
from app.todo_store import read_text_file, save_file
from app.user_scope import get_request_data_root, is_demo_request

DEFAULT_NOTE_TITLE = "无标题"
NOTE_FIELDS = {"title", "content", "color"}


def _notes_path(data_root: Path) -> Path:
    return data_root / NOTES_FILENAME


def _load_notes(data_root: Path) -> tuple[list[dict[str, Any]], str | None]:
    """Return the stored notes and the raw file content (``None`` if absent)."""
    path = _notes_path(data_root)
    if not path.is_file():
        return [], None
    raw = read_text_file(path)
    try:
        notes = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise TodoError(
            "INVALID_ENCODING",
            "Notes file is not valid JSON.",
            {"path": NOTES_FILENAME},
        ) from exc
    if not isinstance(notes, list):
        raise TodoError(
            "INVALID_ENCODING",
            "Notes file must hold a list.",
            {"path": NOTES_FILENAME},
        )
    return notes, raw


def _save_notes(
    data_root: Path,
    notes: list[dict[str, Any]],
    previous: str | None,
    *,
    operation: str,
    summary: str,
) -> str:
    content = json.dumps(notes, ensure_ascii=False, indent=2) + "\n"
    return save_file(
        data_root,
        _notes_path(data_root),
        content,
        previous_content=previous,
        operation=operation,
        summary=summary,
    )


def _validate_note_fields(payload: dict[str, Any]) -> dict[str, str]:
    fields: dict[str, str] = {}
    for name in ("title", "content", "color"):
        if name not in payload or payload[name] is None:
            continue
        value = payload[name]
        if not isinstance(value, str):
            raise TodoError(
                "INVALID_TYPE",
                f"{name} must be a string.",
                {name: str(value), "type": type(value).__name__},
            )
        fields[name] = value
    color = fields.get("color")
    if color is not None and color not in NOTE_COLORS:
        raise TodoError(
            "INVALID_TYPE",
            f"color must be one of {', '.join(sorted(NOTE_COLORS))}.",
            {"color": color},
        )
    return fields


def _find_note(notes: list[dict[str, Any]], note_id: str) -> dict[str, Any]:
    for note in notes:
        if note.get("id") == note_id:
            return note
    raise TodoError(NOT_FOUND, "Note not found.", {"id": note_id})


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


@todo_router.get("/api/notes")
def list_notes(request: Request) -> dict[str, Any]:
    data_root = get_request_data_root(request)
    notes, _raw = _load_notes(data_root)
    return success_response({"notes": notes, "isDemo": is_demo_request(request)})


@todo_router.post("/api/notes")
def create_note(payload: dict[str, Any], request: Request) -> dict[str, Any]:
    payload = _ensure_payload_dict(payload)
    _reject_unknown_fields(payload, NOTE_FIELDS)
    fields = _validate_note_fields(payload)

    data_root = get_request_data_root(request, write=True)
    notes, raw = _load_notes(data_root)
    now = _now()
    note = {
        "id": uuid.uuid4().hex,
        "title": fields.get("title") or DEFAULT_NOTE_TITLE,
        "content": fields.get("content", ""),
        "color": fields.get("color", DEFAULT_NOTE_COLOR),
        "createdAt": now,
        "updatedAt": now,
    }
    notes.append(note)
    commit_sha = _save_notes(
        data_root, notes, raw, operation="create_note", summary=f"create note {note['id']}"
    )
    return success_response({"note": note, "commitSha": commit_sha})


@todo_router.put("/api/notes/{note_id}")
def update_note(note_id: str, payload: dict[str, Any], request: Request) -> dict[str, Any]:
    """Update any of a note's title, content and color."""
    payload = _ensure_payload_dict(payload)
    _reject_unknown_fields(payload, NOTE_FIELDS)
    fields = _validate_note_fields(payload)

    data_root = get_request_data_root(request, write=True)
    notes, raw = _load_notes(data_root)
    note = _find_note(notes, note_id)
    note.update(fields)
    note["updatedAt"] = _now()
    commit_sha = _save_notes(
        data_root, notes, raw, operation="update_note", summary=f"update note {note_id}"
    )
    return success_response({"note": note, "commitSha": commit_sha})


@todo_router.delete("/api/notes/{note_id}")
def delete_note(note_id: str, request: Request) -> dict[str, Any]:
    data_root = get_request_data_root(request, write=True)
    notes, raw = _load_notes(data_root)
    _find_note(notes, note_id)
    remaining = [note for note in notes if note.get("id") != note_id]
    commit_sha = _save_notes(
        data_root, remaining, raw, operation="delete_note", summary=f"delete note {note_id}"
    )
    return success_response({"success": True, "commitSha": commit_sha})
