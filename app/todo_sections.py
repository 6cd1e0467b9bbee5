"""Section-level endpoints: projects, weeks, settlement and year migration."""

from __future__ import annotations

import difflib
from typing import Annotated, Any

from fastapi import Body, Request

from app import todo_utils
from app.editor import add_project, add_week
from app.errors import ALREADY_EXISTS, NOT_FOUND, TodoError, success_response
from app.migration import build_migrated_document
from app.settlement import settle_week
from app.todo_documents import _apply_change, _open_document
from app.todo_payload import (
    _ensure_payload_dict,
    _reject_unknown_fields,
    _require_fields,
    _require_text,
    _validate_year,
)
from app.todo_router import todo_router
from app.todo_store import read_text_file, save_document, save_file, todo_path
from app.todo_utils import join_lines
from app.user_scope import get_request_data_root
from app.weeks import is_valid_week_title


def _build_unified_diff(
    before: str, after: str, relative_path: str
) -> tuple[str, int, int]:
    diff_lines = list(
        difflib.unified_diff(
            before.splitlines(),
            after.splitlines(),
            fromfile=relative_path,
            tofile=relative_path,
            lineterm="",
        )
    )
    added, removed = _count_diff_changes(diff_lines)
    return "\n".join(diff_lines), added, removed


def _count_diff_changes(diff_lines: list[str]) -> tuple[int, int]:
    # The first two lines are the ---/+++ file headers; a removed "---"
    # separator later in the diff is a real change.
    added = 0
    removed = 0
    for line in diff_lines[2:]:
        if line.startswith("+"):
            added += 1
        elif line.startswith("-"):
            removed += 1
    return added, removed


def _settlement_payload(payload: dict[str, Any] | None) -> dict[str, Any]:
    payload = _ensure_payload_dict({} if payload is None else payload)
    _reject_unknown_fields(payload, {"year"})
    return payload


@todo_router.post("/api/project/add")
def add_pool_project(payload: dict[str, Any], request: Request) -> dict[str, Any]:
    """Add an empty project section at the end of the pool."""
    payload = _ensure_payload_dict(payload)
    _reject_unknown_fields(payload, {"name", "year"})
    _require_fields(payload, ["name"])
    name = _require_text(payload, "name").strip()

    return success_response(
        _apply_change(
            request,
            payload,
            lambda lines: add_project(lines, name),
            operation="add_project",
            summary=f"add project ({name})",
        )
    )


@todo_router.post("/api/week/add")
def add_week_block(payload: dict[str, Any], request: Request) -> dict[str, Any]:
    payload = _ensure_payload_dict(payload)
    _reject_unknown_fields(payload, {"weekTitle", "year"})
    _require_fields(payload, ["weekTitle"])
    title = _require_text(payload, "weekTitle").strip()
    if not is_valid_week_title(title):
        raise TodoError(
            "INVALID_WEEK_TITLE",
            "weekTitle must look like 'M月D日 - M月D日'.",
            {"weekTitle": title},
        )

    return success_response(
        _apply_change(
            request,
            payload,
            lambda lines: add_week(lines, title),
            operation="add_week",
            summary=f"add week ({title})",
        )
    )


@todo_router.post("/api/todo/week-settle")
def settle_current_week(
    request: Request, payload: Annotated[dict[str, Any] | None, Body()] = None
) -> dict[str, Any]:
    """Archive completed pool tasks into the week block containing today."""
    payload = _settlement_payload(payload)
    data_root, document = _open_document(request, payload.get("year"), write=True)
    result = settle_week(document.lines, todo_utils.current_date())
    new_content, commit_sha = save_document(
        data_root,
        document,
        result.lines,
        operation="settle_week",
        summary=f"settle {result.settled_count} tasks into {result.week_title}",
    )
    return success_response(
        {
            "newContent": new_content,
            "commitSha": commit_sha,
            "year": document.year,
            "settledCount": result.settled_count,
            "weekTitle": result.week_title,
            "createdWeeks": result.created_weeks,
        }
    )


@todo_router.post("/api/todo/week-settle/preview")
def preview_settle_current_week(
    request: Request, payload: Annotated[dict[str, Any] | None, Body()] = None
) -> dict[str, Any]:
    """Show the settlement diff without writing."""
    payload = _settlement_payload(payload)
    data_root, document = _open_document(request, payload.get("year"))
    result = settle_week(document.lines, todo_utils.current_date())
    relative_path = document.path.relative_to(data_root).as_posix()
    diff, added, removed = _build_unified_diff(
        document.content, join_lines(result.lines), relative_path
    )
    return success_response(
        {
            "diff": diff,
            "added": added,
            "removed": removed,
            "year": document.year,
            "settledCount": result.settled_count,
            "weekTitle": result.week_title,
            "createdWeeks": result.created_weeks,
        }
    )


@todo_router.post("/api/year/migrate")
def migrate_year(payload: dict[str, Any], request: Request) -> dict[str, Any]:
    """Start a new year's document from selected pool tasks of another year."""
    payload = _ensure_payload_dict(payload)
    _reject_unknown_fields(payload, {"sourceYear", "targetYear", "lineIndices"})
    _require_fields(payload, ["sourceYear", "targetYear", "lineIndices"])
    source_year = _validate_year(payload["sourceYear"], "sourceYear")
    target_year = _validate_year(payload["targetYear"], "targetYear")

    line_indices = payload["lineIndices"]
    if not isinstance(line_indices, list) or any(
        isinstance(value, bool) or not isinstance(value, int) for value in line_indices
    ):
        raise TodoError(
            "INVALID_TYPE",
            "lineIndices must be a list of integers.",
            {"type": type(line_indices).__name__},
        )

    data_root = get_request_data_root(request, write=True)
    source_path = todo_path(data_root, source_year)
    if not source_path.is_file():
        raise TodoError(NOT_FOUND, details={"year": source_year})
    target_path = todo_path(data_root, target_year)
    if target_path.exists():
        raise TodoError(ALREADY_EXISTS, details={"year": target_year})

    source_lines = todo_utils.split_lines(read_text_file(source_path))
    new_content = join_lines(
        build_migrated_document(source_lines, line_indices, target_year)
    )
    commit_sha = save_file(
        data_root,
        target_path,
        new_content,
        previous_content=None,
        operation="migrate_year",
        summary=f"migrate {len(line_indices)} tasks from {source_year}",
    )
    return success_response(
        {"newContent": new_content, "commitSha": commit_sha, "year": target_year}
    )
