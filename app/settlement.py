"""Weekly settlement: archive completed pool work into the current week.

Settlement runs in four steps over a scratch copy of the document:

1. build the pool forest and classify every node bottom-up;
2. render the archived form (completed subtrees, forced to ``[x]``) and the
   retained form (unfinished subtrees, forced to ``[ ]``);
3. rewrite the pool from the retained form;
4. resolve (or create) the week block containing today and merge the
   archived groups into it.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from datetime import date
from typing import Sequence

from app.editor import render_pool, replace_pool
from app.errors import EMPTY_OPERATION, NOT_FOUND, TodoError
from app.task_tree import TaskNode, build_pool_tree, find_pool_bounds
from app.todo_constants import COMPLETED_MARKER, INDENT_UNIT, PENDING_MARKER, POOL_HEADER
from app.week_merge import merge_archived_groups
from app.weeks import resolve_current_week

log = logging.getLogger(__name__)

_ROOT_CHECKBOX = re.compile(r"^- \[.\]")
_INDENTED_CHECKBOX = re.compile(r"^(\s*)- \[.\]")


@dataclass
class SettlementResult:
    lines: list[str]
    settled_count: int
    week_title: str
    archived: dict[str, list[str]] = field(default_factory=dict)
    created_weeks: list[str] = field(default_factory=list)


def mark_task_status(node: TaskNode) -> None:
    """Classify ``node`` and its subtree, children first."""
    for child in node.children:
        mark_task_status(child)

    has_completed_child = any(
        child.completed or child.has_completed_descendants for child in node.children
    )
    has_incomplete_child = any(
        not child.completed or child.has_incomplete_descendants
        for child in node.children
    )

    node.has_completed_descendants = node.completed or has_completed_child
    node.has_incomplete_descendants = has_incomplete_child
    node.should_archive = node.has_completed_descendants
    node.should_delete = node.completed and not node.has_incomplete_descendants


def render_archive(node: TaskNode, base_indent: int = 0) -> list[str]:
    """Completed part of a classified subtree, every line checked."""
    if not node.should_archive:
        return []
    content = _ROOT_CHECKBOX.sub(COMPLETED_MARKER, node.original_line.strip(), count=1)
    lines = [INDENT_UNIT * base_indent + content]
    for child in node.children:
        if child.completed or child.has_completed_descendants:
            lines.extend(render_archive(child, base_indent + 1))
    return lines


def render_retain(node: TaskNode) -> list[str]:
    """Unfinished part of a classified subtree, every line unchecked.

    Original indentation is kept so the lines can go straight back into the
    pool.
    """
    if node.should_delete:
        return []
    lines = [
        _INDENTED_CHECKBOX.sub(
            lambda match: f"{match.group(1)}{PENDING_MARKER}",
            node.original_line,
            count=1,
        )
    ]
    for child in node.children:
        if not child.should_delete:
            lines.extend(render_retain(child))
    return lines


def collect_archive(forest: dict[str, list[TaskNode]]) -> dict[str, list[str]]:
    archive: dict[str, list[str]] = {}
    for name, roots in forest.items():
        group: list[str] = []
        for root in roots:
            group.extend(render_archive(root))
        if group:
            archive[name] = group
    return archive


def collect_retained(forest: dict[str, list[TaskNode]]) -> list[tuple[str, list[str]]]:
    sections: list[tuple[str, list[str]]] = []
    for name, roots in forest.items():
        retained: list[str] = []
        for root in roots:
            retained.extend(render_retain(root))
        sections.append((name, retained))
    return sections


def settle_week(lines: Sequence[str], today: date) -> SettlementResult:
    """Archive completed pool work into the week block containing ``today``."""
    if find_pool_bounds(lines) is None:
        raise TodoError(NOT_FOUND, details={"section": POOL_HEADER})

    forest = build_pool_tree(lines)
    roots = [root for bucket in forest.values() for root in bucket]
    if not roots:
        raise TodoError(EMPTY_OPERATION, details={"reason": "pool is empty"})

    for root in roots:
        mark_task_status(root)
    settled_count = sum(1 for root in roots if root.should_archive)
    if settled_count == 0:
        raise TodoError(EMPTY_OPERATION, details={"reason": "no completed tasks"})

    archive = collect_archive(forest)
    updated = replace_pool(lines, render_pool(collect_retained(forest)))

    resolution = resolve_current_week(updated, today)
    updated = merge_archived_groups(resolution.lines, resolution.header_index, archive)

    log.info(
        "Settled %d tasks from %d projects into %s",
        settled_count,
        len(archive),
        resolution.title,
    )
    return SettlementResult(
        lines=updated,
        settled_count=settled_count,
        week_title=resolution.title,
        archived=archive,
        created_weeks=resolution.created,
    )
