"""Whole-document endpoints: read, replace, list years and weeks."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Callable

from fastapi import Request

from app import todo_utils
from app.errors import TodoError, success_response
from app.lines import is_week_header, week_title
from app.task_tree import parse_document
from app.todo_payload import (
    _ensure_payload_dict,
    _parse_query_year,
    _reject_unknown_fields,
    _require_fields,
    _resolve_year,
)
from app.todo_router import todo_router
from app.todo_store import StoredDocument, list_years, load_document, save_document
from app.user_scope import get_request_data_root, is_demo_request


def _open_document(
    request: Request, year_value: Any, *, write: bool = False
) -> tuple[Path, StoredDocument]:
    today = todo_utils.current_date()
    year = _resolve_year(year_value, today)
    data_root = get_request_data_root(request, write=write)
    return data_root, load_document(data_root, year, today)


def _apply_change(
    request: Request,
    payload: dict[str, Any],
    transform: Callable[[list[str]], list[str]],
    *,
    operation: str,
    summary: str,
) -> dict[str, Any]:
    """Run a line transform on the requested year's document and persist it."""
    data_root, document = _open_document(request, payload.get("year"), write=True)
    new_lines = transform(document.lines)
    new_content, commit_sha = save_document(
        data_root, document, new_lines, operation=operation, summary=summary
    )
    return {"newContent": new_content, "commitSha": commit_sha, "year": document.year}


@todo_router.get("/api/todo")
def read_todo(request: Request, year: str | None = None) -> dict[str, Any]:
    """Return a year's raw content with its parsed pool and week blocks."""
    today = todo_utils.current_date()
    target_year = _parse_query_year(year, today)
    data_root = get_request_data_root(request)
    document = load_document(data_root, target_year, today)
    view = parse_document(document.lines)
    return success_response(
        {
            "content": document.content,
            "year": document.year,
            "exists": document.exists,
            "isDemo": is_demo_request(request),
            "pool": view["pool"],
            "weeks": view["weeks"],
        }
    )


@todo_router.put("/api/todo")
def replace_todo(payload: dict[str, Any], request: Request) -> dict[str, Any]:
    """Overwrite a year's document with client-supplied content."""
    payload = _ensure_payload_dict(payload)
    _reject_unknown_fields(payload, {"content", "year"})
    _require_fields(payload, ["content"])

    content = payload["content"]
    if not isinstance(content, str):
        raise TodoError(
            "INVALID_TYPE",
            "content must be a string.",
            {"type": type(content).__name__},
        )

    return success_response(
        _apply_change(
            request,
            payload,
            lambda _lines: todo_utils.split_lines(content),
            operation="replace_document",
            summary="replace document",
        )
    )


@todo_router.get("/api/years")
def list_todo_years(request: Request) -> dict[str, Any]:
    data_root = get_request_data_root(request)
    return success_response({"years": list_years(data_root)})


@todo_router.get("/api/weeks")
def list_weeks(request: Request, year: str | None = None) -> dict[str, Any]:
    """Week headers in file order, as targets for adding a task to a week."""
    today = todo_utils.current_date()
    target_year = _parse_query_year(year, today)
    data_root = get_request_data_root(request)
    document = load_document(data_root, target_year, today)
    weeks = [
        {"title": week_title(line), "lineIndex": index}
        for index, line in enumerate(document.lines)
        if is_week_header(line)
    ]
    return success_response({"weeks": weeks, "year": document.year})
