"""Week block titles, date parsing and current-week resolution."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Sequence

from app.lines import WEEK_TITLE_PATTERN, is_separator, is_week_header, week_title
from app.todo_constants import SEPARATOR, WEEK_HEADER_PREFIX

log = logging.getLogger(__name__)

WEEK_LENGTH = timedelta(days=7)
HALF_YEAR = timedelta(days=183)


@dataclass(frozen=True)
class WeekHeader:
    title: str
    line_index: int
    start: date
    end: date

    def contains(self, day: date) -> bool:
        return self.start <= day <= self.end


@dataclass
class WeekResolution:
    lines: list[str]
    header_index: int
    title: str
    created: list[str] = field(default_factory=list)


def format_month_day(day: date) -> str:
    return f"{day.month}月{day.day}日"


def format_week_title(start: date, end: date | None = None) -> str:
    if end is None:
        end = start + timedelta(days=6)
    return f"{format_month_day(start)} - {format_month_day(end)}"


def is_valid_week_title(title: str) -> bool:
    return WEEK_TITLE_PATTERN.fullmatch(title.strip()) is not None


def parse_week_title(
    title: str, year: int, today: date | None = None
) -> tuple[date, date] | None:
    """Parse ``M月D日 - M月D日`` into dates within ``year``.

    A range whose end month/day precedes its start crosses New Year. It is
    read as starting in ``year``, or as ending in ``year`` when ``today`` lies
    more than half a year before that start. Impossible dates yield ``None``.
    """
    match = WEEK_TITLE_PATTERN.search(title)
    if not match:
        return None
    start_month, start_day, end_month, end_day = (int(part) for part in match.groups())
    try:
        start = date(year, start_month, start_day)
        end = date(year, end_month, end_day)
        if end < start:
            if today is not None and start - today > HALF_YEAR:
                start = date(year - 1, start_month, start_day)
            else:
                end = date(year + 1, end_month, end_day)
    except ValueError:
        return None
    return start, end


def scan_week_headers(
    lines: Sequence[str], year: int, today: date | None = None
) -> list[WeekHeader]:
    headers: list[WeekHeader] = []
    for index, line in enumerate(lines):
        if not is_week_header(line):
            continue
        title = week_title(line)
        parsed = parse_week_title(title, year, today)
        if parsed is None:
            log.warning("Week header %r at line %d has invalid dates; ignored", title, index)
            continue
        headers.append(WeekHeader(title, index, parsed[0], parsed[1]))
    return headers


def separator_insert_position(lines: Sequence[str]) -> int:
    """Index right after the first separator (the pool's), else the end."""
    for index, line in enumerate(lines):
        if is_separator(line):
            return index + 1
    return len(lines)


def week_block_lines(titles: Sequence[str], *, followed_by_week: bool) -> list[str]:
    """Empty week blocks, newest first, separated by ``---`` lines."""
    block: list[str] = []
    for position, title in enumerate(titles):
        if position:
            block.append(SEPARATOR)
        block.extend(["", f"{WEEK_HEADER_PREFIX}{title}", ""])
    if block and followed_by_week:
        block.append(SEPARATOR)
    return block


def insert_week_blocks(lines: Sequence[str], titles: Sequence[str]) -> list[str]:
    """Insert empty week blocks, newest first, right after the pool separator.

    A document without a separator gets one in front of the blocks so the
    pool stays closed off from the weeks.
    """
    updated = list(lines)
    has_separator = any(is_separator(line) for line in updated)
    followed_by_week = has_separator and any(is_week_header(line) for line in updated)
    block = week_block_lines(titles, followed_by_week=followed_by_week)
    if not has_separator:
        block = [SEPARATOR] + block
    position = separator_insert_position(updated)
    updated[position:position] = block
    return updated


def find_week_header(lines: Sequence[str], title: str) -> int | None:
    header = f"{WEEK_HEADER_PREFIX}{title}"
    for index, line in enumerate(lines):
        if line == header:
            return index
    return None


def missing_week_titles(headers: Sequence[WeekHeader], today: date) -> list[str]:
    """Titles to create, oldest first; the last one contains ``today``."""
    if not headers:
        return [format_week_title(today)]
    latest = max(headers, key=lambda header: header.end)
    if latest.end >= today:
        # Today falls in a gap between or before existing blocks.
        return [format_week_title(today)]

    titles: list[str] = []
    start = latest.end + timedelta(days=1)
    while start <= today:
        titles.append(format_week_title(start))
        start += WEEK_LENGTH
    return titles


def resolve_current_week(lines: Sequence[str], today: date) -> WeekResolution:
    """Find the block containing ``today``, creating missing blocks if needed.

    New blocks go right after the first separator, newest first, so the
    file keeps its newest-first order.
    """
    headers = scan_week_headers(lines, today.year, today)
    for header in headers:
        if header.contains(today):
            return WeekResolution(list(lines), header.line_index, header.title)

    created = missing_week_titles(headers, today)
    updated = insert_week_blocks(lines, list(reversed(created)))

    title = created[-1]
    header_index = find_week_header(updated, title)
    if header_index is None:
        raise RuntimeError(f"Week header {title!r} missing after insertion")
    log.info("Created week blocks: %s", ", ".join(created))
    return WeekResolution(updated, header_index, title, created)
