"""Shared constants for the TODO document format and endpoints."""

from __future__ import annotations

import re

SEPARATOR = "---"
POOL_HEADER = "## 待办池"
PROJECT_HEADER_PREFIX = "### "
WEEK_HEADER_PREFIX = "## "
PLACEHOLDER_TEXT = "（暂无未完成任务）"

INDENT_WIDTH = 4
INDENT_UNIT = " " * INDENT_WIDTH
PENDING_MARKER = "- [ ]"
COMPLETED_MARKER = "- [x]"

MOVE_POSITIONS = {"before", "inside", "after"}

TODO_FILENAME_PATTERN = re.compile(r"^(?P<year>\d{4})-todo\.md$")
ACTIVITY_LOG_FILENAME = "activity.log"
NOTES_FILENAME = "notes.json"
NOTE_COLORS = {"yellow", "pink", "green", "blue", "purple"}
DEFAULT_NOTE_COLOR = "yellow"

MIN_YEAR = 1970
MAX_YEAR = 9999


def todo_filename(year: int) -> str:
    return f"{year}-todo.md"
