"""Load and persist year documents with git history and activity logging."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from pathlib import Path

from app.editor import new_document
from app.errors import NOT_FOUND, TodoError
from app.todo_activity import _append_activity_log, _build_activity_entry
from app.todo_constants import TODO_FILENAME_PATTERN, todo_filename
from app.todo_git import (
    _commit_change,
    _ensure_git_repo,
    _read_head_state,
    _restore_git_head,
    _rollback_change,
)
from app.todo_utils import _atomic_write, join_lines, split_lines

log = logging.getLogger(__name__)


@dataclass
class StoredDocument:
    year: int
    path: Path
    content: str
    exists: bool

    @property
    def lines(self) -> list[str]:
        return split_lines(self.content)


def todo_path(data_root: Path, year: int) -> Path:
    return data_root / todo_filename(year)


def default_content(year: int) -> str:
    return join_lines(new_document(year))


def read_text_file(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except UnicodeDecodeError as exc:
        raise TodoError(
            "INVALID_ENCODING",
            "Document must be UTF-8 encoded.",
            {"path": path.name},
        ) from exc


def load_document(data_root: Path, year: int, today: date) -> StoredDocument:
    """Read a year's document.

    A missing document for the current year reads as the empty template; any
    other missing year is ``NOT_FOUND``.
    """
    path = todo_path(data_root, year)
    if path.is_file():
        return StoredDocument(year, path, read_text_file(path), True)
    if year != today.year:
        raise TodoError(NOT_FOUND, details={"year": year})
    return StoredDocument(year, path, default_content(year), False)


def list_years(data_root: Path) -> list[int]:
    years = []
    for entry in data_root.iterdir():
        match = TODO_FILENAME_PATTERN.match(entry.name)
        if match and entry.is_file():
            years.append(int(match.group("year")))
    return sorted(years, reverse=True)


def save_file(
    data_root: Path,
    target_path: Path,
    content: str,
    *,
    previous_content: str | None,
    operation: str,
    summary: str,
) -> str:
    """Write ``content``, commit it and append an activity entry.

    If the commit or the log write fails the file is restored to
    ``previous_content`` (``None`` removes a newly created file) and git HEAD
    is moved back.
    """
    repo = _ensure_git_repo(data_root)
    head_ref_path, previous_head = _read_head_state(data_root)
    relative_path = target_path.relative_to(data_root)
    _atomic_write(target_path, content)

    try:
        commit_sha = _commit_change(repo, relative_path, operation)
    except Exception as exc:
        log.exception("Commit failed for %s; rolling back", relative_path)
        _rollback_change(repo, target_path, relative_path, previous_content)
        raise TodoError(
            "GIT_ERROR",
            "Git commit failed; mutation rolled back.",
            {"path": relative_path.as_posix(), "operation": operation},
        ) from exc

    try:
        entry = _build_activity_entry(operation, relative_path, summary, commit_sha)
        _append_activity_log(data_root, entry)
    except Exception as exc:
        log.exception("Activity log write failed for %s; rolling back", relative_path)
        _rollback_change(repo, target_path, relative_path, previous_content)
        _restore_git_head(data_root, head_ref_path, previous_head)
        raise TodoError(
            "LOG_ERROR",
            "Activity log write failed; mutation rolled back.",
            {"path": relative_path.as_posix(), "operation": operation},
        ) from exc

    return commit_sha


def save_document(
    data_root: Path,
    document: StoredDocument,
    lines: list[str],
    *,
    operation: str,
    summary: str,
) -> tuple[str, str]:
    """Persist new lines for ``document``; returns (new content, commit sha)."""
    content = join_lines(lines)
    commit_sha = save_file(
        data_root,
        document.path,
        content,
        previous_content=document.content if document.exists else None,
        operation=operation,
        summary=summary,
    )
    return content, commit_sha
