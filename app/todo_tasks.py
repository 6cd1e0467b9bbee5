"""Task-level endpoints addressed by line index."""

from __future__ import annotations

from typing import Any

from fastapi import Request

from app.editor import (
    delete_subtree,
    edit_task,
    insert_subtask,
    insert_task,
    move_subtree,
    toggle_task,
)
from app.errors import TodoError, success_response
from app.todo_constants import MOVE_POSITIONS
from app.todo_documents import _apply_change
from app.todo_payload import (
    _ensure_payload_dict,
    _reject_unknown_fields,
    _require_fields,
    _require_int,
    _require_text,
)
from app.todo_router import todo_router


@todo_router.patch("/api/todo/toggle")
def toggle_todo(payload: dict[str, Any], request: Request) -> dict[str, Any]:
    """Flip a task between pending and completed."""
    payload = _ensure_payload_dict(payload)
    _reject_unknown_fields(payload, {"lineIndex", "year"})
    _require_fields(payload, ["lineIndex"])
    line_index = _require_int(payload, "lineIndex")

    return success_response(
        _apply_change(
            request,
            payload,
            lambda lines: toggle_task(lines, line_index),
            operation="toggle_task",
            summary=f"toggle line {line_index}",
        )
    )


@todo_router.post("/api/todo/add")
def add_todo(payload: dict[str, Any], request: Request) -> dict[str, Any]:
    """Append a task to a pool project, or to a week block when
    ``weekLineIndex`` is given."""
    payload = _ensure_payload_dict(payload)
    _reject_unknown_fields(payload, {"task", "project", "weekLineIndex", "year"})
    _require_fields(payload, ["task"])
    task = _require_text(payload, "task")

    week_line_index = None
    project = None
    if payload.get("weekLineIndex") is not None:
        week_line_index = _require_int(payload, "weekLineIndex")
        target = f"week line {week_line_index}"
    else:
        _require_fields(payload, ["project"])
        project = _require_text(payload, "project")
        target = project

    return success_response(
        _apply_change(
            request,
            payload,
            lambda lines: insert_task(
                lines, task, project=project, week_line_index=week_line_index
            ),
            operation="add_task",
            summary=f"add task ({target})",
        )
    )


@todo_router.post("/api/todo/add-subtask")
def add_subtask(payload: dict[str, Any], request: Request) -> dict[str, Any]:
    payload = _ensure_payload_dict(payload)
    _reject_unknown_fields(payload, {"task", "parentLineIndex", "year"})
    _require_fields(payload, ["task", "parentLineIndex"])
    task = _require_text(payload, "task")
    parent_line_index = _require_int(payload, "parentLineIndex")

    return success_response(
        _apply_change(
            request,
            payload,
            lambda lines: insert_subtask(lines, parent_line_index, task),
            operation="add_subtask",
            summary=f"add subtask under line {parent_line_index}",
        )
    )


@todo_router.delete("/api/todo/delete")
def delete_todo(payload: dict[str, Any], request: Request) -> dict[str, Any]:
    """Delete a task together with its subtasks."""
    payload = _ensure_payload_dict(payload)
    _reject_unknown_fields(payload, {"lineIndex", "year"})
    _require_fields(payload, ["lineIndex"])
    line_index = _require_int(payload, "lineIndex")

    return success_response(
        _apply_change(
            request,
            payload,
            lambda lines: delete_subtree(lines, line_index),
            operation="delete_task",
            summary=f"delete line {line_index}",
        )
    )


@todo_router.patch("/api/todo/edit")
def edit_todo(payload: dict[str, Any], request: Request) -> dict[str, Any]:
    payload = _ensure_payload_dict(payload)
    _reject_unknown_fields(payload, {"lineIndex", "newContent", "year"})
    _require_fields(payload, ["lineIndex", "newContent"])
    line_index = _require_int(payload, "lineIndex")
    new_content = _require_text(payload, "newContent")

    return success_response(
        _apply_change(
            request,
            payload,
            lambda lines: edit_task(lines, line_index, new_content),
            operation="edit_task",
            summary=f"edit line {line_index}",
        )
    )


@todo_router.post("/api/todo/reorder")
def reorder_todo(payload: dict[str, Any], request: Request) -> dict[str, Any]:
    """Move a task and its subtasks before, after, or inside another task."""
    payload = _ensure_payload_dict(payload)
    _reject_unknown_fields(
        payload, {"fromLineIndex", "toLineIndex", "position", "year"}
    )
    _require_fields(payload, ["fromLineIndex", "toLineIndex"])
    from_line_index = _require_int(payload, "fromLineIndex")
    to_line_index = _require_int(payload, "toLineIndex")

    position = payload.get("position", "before")
    if not isinstance(position, str) or position not in MOVE_POSITIONS:
        raise TodoError(
            "INVALID_POSITION",
            "position must be one of before, inside, after.",
            {"position": str(position)},
        )

    return success_response(
        _apply_change(
            request,
            payload,
            lambda lines: move_subtree(lines, from_line_index, to_line_index, position),
            operation="move_task",
            summary=f"move line {from_line_index} {position} line {to_line_index}",
        )
    )
