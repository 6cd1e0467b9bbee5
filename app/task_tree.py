"""Build nested task trees from flat, indented checklist lines."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Iterator, Sequence

from app.lines import (
    indent_level,
    is_completed_task,
    is_placeholder,
    is_pool_header,
    is_project_header,
    is_separator,
    is_task_line,
    is_week_header,
    project_name,
    task_content,
    week_title,
)

log = logging.getLogger(__name__)

UNNAMED_BUCKET = ""


@dataclass
class TaskNode:
    """One task line and its subtasks.

    ``line_index`` is the node's only identity and is valid for a single
    request: any insertion or deletion above it invalidates the tree.
    """

    line_index: int
    content: str
    completed: bool
    indent_level: int
    original_line: str
    children: list[TaskNode] = field(default_factory=list)
    has_completed_descendants: bool = False
    has_incomplete_descendants: bool = False
    should_archive: bool = False
    should_delete: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "lineIndex": self.line_index,
            "content": self.content,
            "completed": self.completed,
            "indent": self.indent_level,
            "children": [child.to_dict() for child in self.children],
        }


@dataclass
class ProjectGroup:
    name: str
    line_index: int | None
    items: list[TaskNode] = field(default_factory=list)
    has_placeholder: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "lineIndex": self.line_index,
            "items": [item.to_dict() for item in self.items],
            "empty": not self.items,
            "placeholder": self.has_placeholder,
        }


@dataclass
class WeekBlock:
    title: str
    line_index: int
    is_current: bool = False
    items: list[TaskNode] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "lineIndex": self.line_index,
            "isCurrent": self.is_current,
            "items": [item.to_dict() for item in self.items],
        }


def parse_task_line(line: str, line_index: int) -> TaskNode:
    return TaskNode(
        line_index=line_index,
        content=task_content(line),
        completed=is_completed_task(line),
        indent_level=indent_level(line),
        original_line=line,
    )


def build_forest(
    lines: Sequence[str],
    start: int,
    end: int,
    *,
    track_projects: bool,
    bucket: str = UNNAMED_BUCKET,
) -> dict[str, list[TaskNode]]:
    """Scan ``lines[start:end]`` into root task lists keyed by bucket name.

    With ``track_projects`` set, ``### name`` headers open a new bucket (and
    close every open parent) and the scan stops at the first separator.
    Placeholder, blank and prose lines are skipped without touching the
    parent stack.
    """
    buckets: dict[str, list[TaskNode]] = {}
    current = bucket
    stack: list[TaskNode] = []

    for index in range(start, min(end, len(lines))):
        line = lines[index]
        if track_projects and is_separator(line):
            break
        if track_projects and is_project_header(line):
            current = project_name(line)
            stack.clear()
            if current in buckets:
                log.warning(
                    "Duplicate project header %r at line %d merged", current, index
                )
            buckets.setdefault(current, [])
            continue
        if not is_task_line(line):
            continue

        node = parse_task_line(line, index)
        while stack and stack[-1].indent_level >= node.indent_level:
            stack.pop()
        if stack:
            stack[-1].children.append(node)
        else:
            buckets.setdefault(current, []).append(node)
        stack.append(node)

    return buckets


def find_pool_bounds(lines: Sequence[str]) -> tuple[int, int] | None:
    """Return (pool header index, closing separator index).

    The separator index is ``len(lines)`` when the pool is never closed.
    """
    for index, line in enumerate(lines):
        if not is_pool_header(line):
            continue
        for end in range(index + 1, len(lines)):
            if is_separator(lines[end]):
                return index, end
        return index, len(lines)
    return None


def build_pool_tree(lines: Sequence[str]) -> dict[str, list[TaskNode]]:
    bounds = find_pool_bounds(lines)
    if bounds is None:
        return {}
    start, end = bounds
    return build_forest(lines, start + 1, end, track_projects=True)


def find_week_block_end(lines: Sequence[str], header_index: int) -> int:
    for index in range(header_index + 1, len(lines)):
        if is_separator(lines[index]) or is_week_header(lines[index]):
            return index
    return len(lines)


def build_week_blocks(lines: Sequence[str]) -> list[WeekBlock]:
    blocks: list[WeekBlock] = []
    for index, line in enumerate(lines):
        if not is_week_header(line):
            continue
        title = week_title(line)
        end = find_week_block_end(lines, index)
        forest = build_forest(
            lines, index + 1, end, track_projects=False, bucket=title
        )
        blocks.append(WeekBlock(title=title, line_index=index, items=forest.get(title, [])))
    if blocks:
        blocks[0].is_current = True
    return blocks


def build_project_groups(lines: Sequence[str]) -> list[ProjectGroup]:
    bounds = find_pool_bounds(lines)
    if bounds is None:
        return []
    start, end = bounds
    forest = build_forest(lines, start + 1, end, track_projects=True)

    groups: dict[str, ProjectGroup] = {}
    if forest.get(UNNAMED_BUCKET):
        groups[UNNAMED_BUCKET] = ProjectGroup(
            name=UNNAMED_BUCKET, line_index=None, items=forest[UNNAMED_BUCKET]
        )
    current: ProjectGroup | None = None
    for index in range(start + 1, end):
        line = lines[index]
        if is_project_header(line):
            name = project_name(line)
            current = groups.get(name)
            if current is None:
                current = ProjectGroup(
                    name=name, line_index=index, items=forest.get(name, [])
                )
                groups[name] = current
        elif current is not None and is_placeholder(line):
            current.has_placeholder = True
    return list(groups.values())


def parse_document(lines: Sequence[str]) -> dict[str, Any]:
    """Read-only view of a document: pool groups and week blocks."""
    return {
        "pool": [group.to_dict() for group in build_project_groups(lines)],
        "weeks": [block.to_dict() for block in build_week_blocks(lines)],
    }


def iter_nodes(roots: Sequence[TaskNode]) -> Iterator[TaskNode]:
    for root in roots:
        yield root
        yield from iter_nodes(root.children)


def render_tree(roots: Sequence[TaskNode]) -> list[str]:
    """Serialize an untouched tree back to its original lines, in order."""
    return [node.original_line for node in iter_nodes(roots)]
