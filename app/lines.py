"""Structural line predicates for the TODO markdown document.

Every function here is total over any string: no I/O, no errors. Lines are
tagged when read, never stored with their kind.
"""

from __future__ import annotations

import re
from enum import Enum

from app.todo_constants import (
    INDENT_WIDTH,
    PLACEHOLDER_TEXT,
    POOL_HEADER,
    PROJECT_HEADER_PREFIX,
    SEPARATOR,
    WEEK_HEADER_PREFIX,
)

WEEK_TITLE_PATTERN = re.compile(r"(\d+)月(\d+)日\s*-\s*(\d+)月(\d+)日")
TASK_LINE_PATTERN = re.compile(r"^(\s*)- \[[ x]\]")
COMPLETED_TASK_PATTERN = re.compile(r"^(\s*)- \[x\]")
PENDING_TASK_PATTERN = re.compile(r"^(\s*)- \[ \]")
# Indentation and checkbox, including the single space before the content.
TASK_PREFIX_PATTERN = re.compile(r"^(\s*- \[[ x]\] )")
TASK_PARTS_PATTERN = re.compile(r"^(?P<indent>\s*)- \[(?P<status>[ x])\]\s*(?P<content>.*)$")


class LineKind(str, Enum):
    SEPARATOR = "separator"
    POOL_HEADER = "pool_header"
    PROJECT_HEADER = "project_header"
    WEEK_HEADER = "week_header"
    TASK = "task"
    PLACEHOLDER = "placeholder"
    BLANK = "blank"
    OTHER = "other"


def is_separator(line: str) -> bool:
    return line.strip() == SEPARATOR


def is_pool_header(line: str) -> bool:
    return line.strip() == POOL_HEADER


def is_project_header(line: str) -> bool:
    return line.startswith(PROJECT_HEADER_PREFIX)


def is_week_header(line: str) -> bool:
    """A ``## `` heading whose title is a month/day range.

    The pool header shares the ``## `` prefix but never matches the date
    pattern, so it is not a week header.
    """
    if not line.startswith(WEEK_HEADER_PREFIX):
        return False
    return WEEK_TITLE_PATTERN.search(line) is not None


def is_task_line(line: str) -> bool:
    return TASK_LINE_PATTERN.match(line) is not None


def is_completed_task(line: str) -> bool:
    return COMPLETED_TASK_PATTERN.match(line) is not None


def is_pending_task(line: str) -> bool:
    return PENDING_TASK_PATTERN.match(line) is not None


def is_placeholder(line: str) -> bool:
    return line.strip() == PLACEHOLDER_TEXT


def is_blank(line: str) -> bool:
    return not line.strip()


def is_block_boundary(line: str) -> bool:
    """Separator or project header; week headers live in another zone."""
    return is_separator(line) or is_project_header(line)


def classify_line(line: str) -> LineKind:
    if is_separator(line):
        return LineKind.SEPARATOR
    if is_pool_header(line):
        return LineKind.POOL_HEADER
    if is_project_header(line):
        return LineKind.PROJECT_HEADER
    if is_week_header(line):
        return LineKind.WEEK_HEADER
    if is_task_line(line):
        return LineKind.TASK
    if is_placeholder(line):
        return LineKind.PLACEHOLDER
    if is_blank(line):
        return LineKind.BLANK
    return LineKind.OTHER


def leading_spaces(line: str) -> int:
    return len(line) - len(line.lstrip())


def indent_level(line: str) -> int:
    return leading_spaces(line) // INDENT_WIDTH


def project_name(line: str) -> str:
    return line[len(PROJECT_HEADER_PREFIX) :].strip()


def week_title(line: str) -> str:
    return line[len(WEEK_HEADER_PREFIX) :].strip()


def task_content(line: str) -> str:
    match = TASK_PARTS_PATTERN.match(line)
    if not match:
        return line.strip()
    return match.group("content").strip()


def reindent(line: str, spaces: int) -> str:
    return " " * max(spaces, 0) + line.lstrip()
