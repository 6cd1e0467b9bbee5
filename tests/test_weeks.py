from datetime import date

from app.editor import new_document
from app.weeks import (
    find_week_header,
    format_week_title,
    insert_week_blocks,
    is_valid_week_title,
    missing_week_titles,
    parse_week_title,
    resolve_current_week,
    scan_week_headers,
    week_block_lines,
)


def _document_with_week(title: str) -> list[str]:
    return [
        "# 2026 TODO",
        "",
        "## 待办池",
        "",
        "---",
        "",
        f"## {title}",
        "",
        "- [x] Work",
        "",
    ]


def test_format_week_title_spans_seven_days():
    assert format_week_title(date(2026, 10, 19)) == "10月19日 - 10月25日"
    assert format_week_title(date(2026, 12, 28)) == "12月28日 - 1月3日"


def test_is_valid_week_title():
    assert is_valid_week_title("10月19日 - 10月25日")
    assert is_valid_week_title("1月5日-1月11日")
    assert not is_valid_week_title("Week 42")
    assert not is_valid_week_title("10月19日 - 10月25日 extra")


def test_parse_week_title_rolls_end_into_next_year():
    assert parse_week_title("12月29日 - 1月4日", 2025) == (
        date(2025, 12, 29),
        date(2026, 1, 4),
    )


def test_parse_week_title_rejects_impossible_dates():
    assert parse_week_title("2月30日 - 3月6日", 2026) is None
    assert parse_week_title("not a week", 2026) is None


def test_scan_week_headers_skips_invalid_dates(caplog):
    lines = ["## 13月1日 - 13月7日", "## 10月12日 - 10月18日"]
    headers = scan_week_headers(lines, 2026)
    assert [header.line_index for header in headers] == [1]
    assert "invalid dates" in caplog.text


def test_week_block_lines_separates_blocks():
    assert week_block_lines(["B", "A"], followed_by_week=True) == [
        "",
        "## B",
        "",
        "---",
        "",
        "## A",
        "",
        "---",
    ]
    assert week_block_lines(["A"], followed_by_week=False) == ["", "## A", ""]


def test_resolve_finds_block_containing_today():
    lines = _document_with_week("10月12日 - 10月18日")
    resolution = resolve_current_week(lines, date(2026, 10, 18))
    assert resolution.lines == lines
    assert resolution.header_index == 6
    assert resolution.created == []


def test_resolve_creates_first_block_when_none_exist():
    resolution = resolve_current_week(new_document(2026), date(2026, 3, 4))
    assert resolution.title == "3月4日 - 3月10日"
    assert resolution.created == ["3月4日 - 3月10日"]
    assert resolution.lines[resolution.header_index] == "## 3月4日 - 3月10日"
    assert resolution.lines[4:8] == ["---", "", "## 3月4日 - 3月10日", ""]


def test_gap_filling_creates_consecutive_blocks_newest_first():
    lines = _document_with_week("10月1日 - 10月7日")
    resolution = resolve_current_week(lines, date(2026, 10, 22))

    assert resolution.created == [
        "10月8日 - 10月14日",
        "10月15日 - 10月21日",
        "10月22日 - 10月28日",
    ]
    assert resolution.title == "10月22日 - 10月28日"
    assert resolution.lines[4:19] == [
        "---",
        "",
        "## 10月22日 - 10月28日",
        "",
        "---",
        "",
        "## 10月15日 - 10月21日",
        "",
        "---",
        "",
        "## 10月8日 - 10月14日",
        "",
        "---",
        "",
        "## 10月1日 - 10月7日",
    ]
    assert resolution.header_index == 6


def test_today_in_gap_between_blocks_creates_single_block():
    lines = [
        "## 待办池",
        "---",
        "",
        "## 10月26日 - 11月1日",
        "",
        "---",
        "",
        "## 10月12日 - 10月18日",
        "",
    ]
    headers = scan_week_headers(lines, 2026)
    assert missing_week_titles(headers, date(2026, 10, 20)) == ["10月20日 - 10月26日"]

    resolution = resolve_current_week(lines, date(2026, 10, 20))
    assert resolution.title == "10月20日 - 10月26日"
    assert find_week_header(resolution.lines, "10月26日 - 11月1日") == 7


def test_parse_week_title_reads_january_inside_december_block():
    assert parse_week_title("12月29日 - 1月4日", 2027, date(2027, 1, 2)) == (
        date(2026, 12, 29),
        date(2027, 1, 4),
    )
    assert parse_week_title("12月29日 - 1月4日", 2026, date(2026, 12, 1)) == (
        date(2026, 12, 29),
        date(2027, 1, 4),
    )


def test_resolve_finds_block_spanning_new_year():
    lines = _document_with_week("12月29日 - 1月4日")
    resolution = resolve_current_week(lines, date(2027, 1, 2))
    assert resolution.created == []
    assert resolution.title == "12月29日 - 1月4日"
    assert resolution.header_index == 6
    assert resolution.lines == lines


def test_resolve_continues_after_block_spanning_new_year():
    lines = _document_with_week("12月29日 - 1月4日")
    resolution = resolve_current_week(lines, date(2027, 1, 10))
    assert resolution.created == ["1月5日 - 1月11日"]


def test_insert_week_blocks_adds_missing_separator():
    lines = ["## 待办池", "", "- [ ] A", ""]
    assert insert_week_blocks(lines, ["10月19日 - 10月25日"]) == [
        "## 待办池",
        "",
        "- [ ] A",
        "",
        "---",
        "",
        "## 10月19日 - 10月25日",
        "",
    ]
