"""TODO handler registration."""

# ruff: noqa: F401

from __future__ import annotations

from fastapi import FastAPI

from app.todo_router import todo_router

# Import modules to register routes with the shared router.
from app import todo_activity, todo_documents, todo_notes, todo_sections, todo_tasks

# Re-export endpoints for tests and direct imports.
from app.todo_activity import read_activity_log
from app.todo_documents import list_todo_years, list_weeks, read_todo, replace_todo
from app.todo_git import _read_head_state, _resolve_git_head
from app.todo_notes import create_note, delete_note, list_notes, update_note
from app.todo_sections import (
    add_pool_project,
    add_week_block,
    migrate_year,
    preview_settle_current_week,
    settle_current_week,
)
from app.todo_tasks import (
    add_subtask,
    add_todo,
    delete_todo,
    edit_todo,
    reorder_todo,
    toggle_todo,
)


def register_todo_handlers(app: FastAPI) -> None:
    """Attach TODO routes to the FastAPI application."""
    app.include_router(todo_router)
