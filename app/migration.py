"""Carry pool tasks from one year's document into a new one."""

from __future__ import annotations

import logging
from typing import Iterable, Sequence

from app.editor import new_document, render_pool, replace_pool
from app.errors import NOT_FOUND, TodoError
from app.task_tree import TaskNode, build_pool_tree, find_pool_bounds
from app.todo_constants import POOL_HEADER

log = logging.getLogger(__name__)


def _select_lines(node: TaskNode, selected: set[int]) -> list[str]:
    """Original lines of selected nodes, keeping ancestors of any selection."""
    child_lines: list[str] = []
    for child in node.children:
        child_lines.extend(_select_lines(child, selected))
    if node.line_index in selected or child_lines:
        return [node.original_line] + child_lines
    return []


def build_migrated_document(
    source_lines: Sequence[str],
    selected_line_indices: Iterable[int],
    target_year: int,
) -> list[str]:
    """New document for ``target_year`` holding the selected source tasks.

    Every project header of the source pool is copied; a project with nothing
    selected gets the placeholder. Task lines keep their checkbox state and
    indentation.
    """
    if find_pool_bounds(source_lines) is None:
        raise TodoError(NOT_FOUND, details={"section": POOL_HEADER})

    selected = set(selected_line_indices)
    sections: list[tuple[str, list[str]]] = []
    carried = 0
    for name, roots in build_pool_tree(source_lines).items():
        task_lines: list[str] = []
        for root in roots:
            task_lines.extend(_select_lines(root, selected))
        carried += len(task_lines)
        sections.append((name, task_lines))

    log.info("Migrated %d task lines into %d", carried, target_year)
    return replace_pool(new_document(target_year), render_pool(sections))
