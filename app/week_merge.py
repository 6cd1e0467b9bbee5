"""Merge archived task groups into a week block."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Mapping, Sequence

from app.lines import is_blank, leading_spaces
from app.task_tree import find_week_block_end
from app.todo_constants import COMPLETED_MARKER, INDENT_WIDTH

PROJECT_ENTRY_PATTERN = re.compile(r"^- \[x\] (?P<name>.+)$")
CHILD_LINE_PATTERN = re.compile(r"^\s+\S")


@dataclass
class ProjectEntry:
    """A top-level ``- [x] name`` entry inside a week block."""

    name: str
    line_index: int
    end_index: int


def reindent_group(group: Sequence[str], base: int) -> list[str]:
    """Shift lines so the shallowest sits at ``base`` spaces.

    Relative indentation between the lines is preserved.
    """
    lines = [line for line in group if not is_blank(line)]
    if not lines:
        return []
    minimum = min(leading_spaces(line) for line in lines)
    return [
        " " * (base + leading_spaces(line) - minimum) + line.strip()
        for line in lines
    ]


def scan_project_entries(
    lines: Sequence[str], header_index: int, block_end: int
) -> list[ProjectEntry]:
    entries: list[ProjectEntry] = []
    for index in range(header_index + 1, block_end):
        match = PROJECT_ENTRY_PATTERN.match(lines[index])
        if not match:
            continue
        end = index + 1
        for next_index in range(index + 1, block_end):
            line = lines[next_index]
            if PROJECT_ENTRY_PATTERN.match(line):
                break
            if CHILD_LINE_PATTERN.match(line):
                end = next_index + 1
                continue
            if is_blank(line):
                continue
            break
        entries.append(ProjectEntry(match.group("name").strip(), index, end))
    return entries


def merge_archived_groups(
    lines: Sequence[str],
    header_index: int,
    groups: Mapping[str, Sequence[str]],
) -> list[str]:
    """Write archived lines into the week block headed at ``header_index``.

    A group whose project already has an entry in the block is appended to
    that entry's children; every other group becomes a new entry at the end
    of the block, in ``groups`` order. Tasks without a project are appended
    at the top level.
    """
    updated = list(lines)
    block_end = find_week_block_end(updated, header_index)
    entries = scan_project_entries(updated, header_index, block_end)

    deferred: list[str] = []
    for name, group in groups.items():
        if not group:
            continue
        existing = None
        if name:
            existing = next((entry for entry in entries if entry.name == name), None)
        if existing is None:
            deferred.append(name)
            continue

        insert_lines = reindent_group(group, INDENT_WIDTH)
        position = existing.end_index
        updated[position:position] = insert_lines
        for entry in entries:
            if entry is not existing and entry.end_index >= position:
                entry.end_index += len(insert_lines)
                if entry.line_index >= position:
                    entry.line_index += len(insert_lines)
        existing.end_index += len(insert_lines)

    if not deferred:
        return updated

    appended: list[str] = []
    for name in deferred:
        if name:
            appended.append(f"{COMPLETED_MARKER} {name}")
            appended.extend(reindent_group(groups[name], INDENT_WIDTH))
        else:
            appended.extend(reindent_group(groups[name], 0))
    # Append after the block's last non-blank line, one blank line on each side.
    position = find_week_block_end(updated, header_index)
    while position - 1 > header_index and is_blank(updated[position - 1]):
        position -= 1
    insert_lines = [""] + appended
    if position >= len(updated) or not is_blank(updated[position]):
        insert_lines.append("")
    updated[position:position] = insert_lines
    return updated
