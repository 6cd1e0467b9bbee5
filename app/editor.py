"""Line-index mutation primitives for the TODO document.

Each function takes the current lines and returns a new list; the input is
never modified, so a failed operation leaves the caller's lines untouched.
"""

from __future__ import annotations

from typing import Sequence

from app.errors import (
    ALREADY_EXISTS,
    INDEX_OUT_OF_RANGE,
    INVALID_LINE_KIND,
    INVALID_MOVE_TARGET,
    INVALID_POSITION,
    INVALID_TASK_FORMAT,
    NOT_FOUND,
    TodoError,
)
from app.lines import (
    TASK_PREFIX_PATTERN,
    classify_line,
    is_blank,
    is_block_boundary,
    is_completed_task,
    is_pending_task,
    is_placeholder,
    is_task_line,
    is_week_header,
    leading_spaces,
    reindent,
)
from app.task_tree import find_pool_bounds, find_week_block_end
from app.todo_constants import (
    COMPLETED_MARKER,
    INDENT_WIDTH,
    MOVE_POSITIONS,
    PENDING_MARKER,
    PLACEHOLDER_TEXT,
    POOL_HEADER,
    PROJECT_HEADER_PREFIX,
    SEPARATOR,
    WEEK_HEADER_PREFIX,
)
from app.weeks import insert_week_blocks


def new_document(year: int) -> list[str]:
    """Lines of an empty year document: title, empty pool, separator."""
    return [f"# {year} TODO", "", POOL_HEADER, "", SEPARATOR, ""]


def _require_index(lines: Sequence[str], line_index: int, field: str) -> None:
    if (
        isinstance(line_index, bool)
        or not isinstance(line_index, int)
        or line_index < 0
        or line_index >= len(lines)
    ):
        raise TodoError(
            INDEX_OUT_OF_RANGE,
            details={field: line_index, "lineCount": len(lines)},
        )


def _require_task_line(lines: Sequence[str], line_index: int, field: str) -> None:
    _require_index(lines, line_index, field)
    if not is_task_line(lines[line_index]):
        raise TodoError(
            INVALID_LINE_KIND,
            details={
                field: line_index,
                "expected": "task",
                "actual": classify_line(lines[line_index]).value,
            },
        )


def subtree_end(lines: Sequence[str], line_index: int) -> int:
    """Index just past a task and every deeper line directly under it.

    Collection stops at a blank line, a block boundary, or a line indented
    no deeper than the anchor.
    """
    base = leading_spaces(lines[line_index])
    end = line_index + 1
    while end < len(lines):
        line = lines[end]
        if is_blank(line) or is_block_boundary(line):
            break
        if leading_spaces(line) <= base:
            break
        end += 1
    return end


def toggle_task(lines: Sequence[str], line_index: int) -> list[str]:
    _require_index(lines, line_index, "lineIndex")
    updated = list(lines)
    line = updated[line_index]
    if is_pending_task(line):
        updated[line_index] = line.replace(PENDING_MARKER, COMPLETED_MARKER, 1)
    elif is_completed_task(line):
        updated[line_index] = line.replace(COMPLETED_MARKER, PENDING_MARKER, 1)
    else:
        raise TodoError(
            INVALID_LINE_KIND,
            details={
                "lineIndex": line_index,
                "expected": "task",
                "actual": classify_line(line).value,
            },
        )
    return updated


def find_project_header(lines: Sequence[str], name: str) -> int | None:
    header = f"{PROJECT_HEADER_PREFIX}{name.strip()}"
    for index, line in enumerate(lines):
        if line.strip() == header:
            return index
    return None


def _section_end(lines: Sequence[str], header_index: int) -> int:
    for index in range(header_index + 1, len(lines)):
        if is_block_boundary(lines[index]) or is_week_header(lines[index]):
            return index
    return len(lines)


def _append_position(lines: Sequence[str], header_index: int, end: int) -> int:
    """Position after the last non-blank line between a heading and ``end``.

    An empty section keeps the blank line that follows its heading.
    """
    last = header_index
    for index in range(header_index + 1, end):
        if not is_blank(lines[index]):
            last = index
    if last == header_index and header_index + 1 < end:
        return header_index + 2
    return last + 1


def _insert_in_section(
    lines: Sequence[str], header_index: int, end: int, new_lines: list[str]
) -> list[str]:
    updated = list(lines)
    position = _append_position(lines, header_index, end)
    if position == end and end < len(lines):
        # Keep a blank line between the section body and the next heading.
        new_lines = new_lines + [""]
    updated[position:position] = new_lines
    return updated


def insert_task(
    lines: Sequence[str],
    text: str,
    *,
    project: str | None = None,
    week_line_index: int | None = None,
) -> list[str]:
    """Append a pending root task to a pool project or to a week block.

    A lone placeholder under the project header is replaced by the task.
    """
    new_line = f"{PENDING_MARKER} {text.strip()}"

    if week_line_index is not None:
        _require_index(lines, week_line_index, "weekLineIndex")
        if not is_week_header(lines[week_line_index]):
            raise TodoError(
                INVALID_LINE_KIND,
                details={
                    "weekLineIndex": week_line_index,
                    "expected": "week_header",
                    "actual": classify_line(lines[week_line_index]).value,
                },
            )
        end = find_week_block_end(lines, week_line_index)
        return _insert_in_section(lines, week_line_index, end, [new_line])

    header_index = find_project_header(lines, project or "")
    if header_index is None:
        raise TodoError(NOT_FOUND, details={"project": project})
    end = _section_end(lines, header_index)
    for index in range(header_index + 1, end):
        if is_task_line(lines[index]):
            break
        if is_placeholder(lines[index]):
            updated = list(lines)
            updated[index] = new_line
            return updated
    return _insert_in_section(lines, header_index, end, [new_line])


def insert_subtask(lines: Sequence[str], parent_line_index: int, text: str) -> list[str]:
    """Append a pending child after the parent's last existing child."""
    _require_task_line(lines, parent_line_index, "parentLineIndex")
    parent_indent = leading_spaces(lines[parent_line_index])

    position = parent_line_index + 1
    for index in range(parent_line_index + 1, len(lines)):
        line = lines[index]
        if is_blank(line):
            continue
        if is_block_boundary(line) or is_week_header(line):
            break
        if leading_spaces(line) <= parent_indent:
            break
        position = index + 1

    new_line = " " * (parent_indent + INDENT_WIDTH) + f"{PENDING_MARKER} {text.strip()}"
    updated = list(lines)
    updated.insert(position, new_line)
    return updated


def delete_subtree(lines: Sequence[str], line_index: int) -> list[str]:
    _require_task_line(lines, line_index, "lineIndex")
    end = subtree_end(lines, line_index)
    return list(lines[:line_index]) + list(lines[end:])


def edit_task(lines: Sequence[str], line_index: int, new_text: str) -> list[str]:
    """Replace a task's text, keeping its indentation and checkbox verbatim."""
    _require_task_line(lines, line_index, "lineIndex")
    match = TASK_PREFIX_PATTERN.match(lines[line_index])
    if not match:
        raise TodoError(INVALID_TASK_FORMAT, details={"lineIndex": line_index})
    updated = list(lines)
    updated[line_index] = match.group(1) + new_text.strip()
    return updated


def move_subtree(
    lines: Sequence[str],
    from_line_index: int,
    to_line_index: int,
    position: str = "before",
) -> list[str]:
    """Move a task with its subtree relative to another task.

    ``before`` lands on the destination line at the destination's depth,
    ``after`` lands past the destination's subtree at the same depth, and
    ``inside`` becomes the destination's last child. The moved block keeps
    its internal indentation relative to its root.
    """
    if position not in MOVE_POSITIONS:
        raise TodoError(INVALID_POSITION, details={"position": str(position)})
    _require_task_line(lines, from_line_index, "fromLineIndex")
    _require_task_line(lines, to_line_index, "toLineIndex")

    source_end = subtree_end(lines, from_line_index)
    if from_line_index <= to_line_index < source_end:
        raise TodoError(
            INVALID_MOVE_TARGET,
            details={
                "fromLineIndex": from_line_index,
                "toLineIndex": to_line_index,
                "position": position,
            },
        )

    block = list(lines[from_line_index:source_end])
    target_indent = leading_spaces(lines[to_line_index])
    if position == "before":
        anchor = to_line_index
    else:
        anchor = subtree_end(lines, to_line_index)
    if position == "inside":
        target_indent += INDENT_WIDTH

    shift = target_indent - leading_spaces(block[0])
    moved = [reindent(line, leading_spaces(line) + shift) for line in block]

    updated = list(lines[:from_line_index]) + list(lines[source_end:])
    if anchor > from_line_index:
        anchor -= len(block)
    updated[anchor:anchor] = moved
    return updated


def render_pool(sections: Sequence[tuple[str, Sequence[str]]]) -> list[str]:
    """Render the pool region from (project name, task lines) pairs.

    Unnamed tasks sit directly under the pool header; an empty project shows
    the placeholder.
    """
    pool = [POOL_HEADER, ""]
    for name, task_lines in sections:
        if not name:
            if task_lines:
                pool.extend(task_lines)
                pool.append("")
            continue
        pool.append(f"{PROJECT_HEADER_PREFIX}{name}")
        pool.append("")
        pool.extend(task_lines or [PLACEHOLDER_TEXT])
        pool.append("")
    return pool


def replace_pool(lines: Sequence[str], pool_lines: Sequence[str]) -> list[str]:
    """Swap the region from the pool header up to its separator."""
    bounds = find_pool_bounds(lines)
    if bounds is None:
        raise TodoError(NOT_FOUND, details={"section": POOL_HEADER})
    start, end = bounds
    return list(lines[:start]) + list(pool_lines) + list(lines[end:])


def add_project(lines: Sequence[str], name: str) -> list[str]:
    """Add an empty project (header and placeholder) at the end of the pool."""
    name = name.strip()
    if find_project_header(lines, name) is not None:
        raise TodoError(ALREADY_EXISTS, details={"project": name})
    bounds = find_pool_bounds(lines)
    if bounds is None:
        raise TodoError(NOT_FOUND, details={"section": POOL_HEADER})
    _start, separator_index = bounds
    if separator_index >= len(lines):
        raise TodoError(NOT_FOUND, details={"section": SEPARATOR})

    updated = list(lines)
    updated[separator_index:separator_index] = [
        f"{PROJECT_HEADER_PREFIX}{name}",
        "",
        PLACEHOLDER_TEXT,
        "",
    ]
    return updated


def add_week(lines: Sequence[str], title: str) -> list[str]:
    """Insert an empty week block directly after the first separator."""
    title = title.strip()
    header = f"{WEEK_HEADER_PREFIX}{title}"
    if any(line.strip() == header for line in lines):
        raise TodoError(ALREADY_EXISTS, details={"weekTitle": title})

    return insert_week_blocks(lines, [title])
