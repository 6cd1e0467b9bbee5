import pytest

from app.editor import (
    add_project,
    add_week,
    delete_subtree,
    edit_task,
    insert_subtask,
    insert_task,
    move_subtree,
    new_document,
    render_pool,
    replace_pool,
    subtree_end,
    toggle_task,
)
from app.errors import TodoError


def _document() -> list[str]:
    return [
        "# 2026 TODO",  # 0
        "",  # 1
        "## 待办池",  # 2
        "",  # 3
        "### Work",  # 4
        "",  # 5
        "- [ ] A",  # 6
        "    - [ ] A1",  # 7
        "        - [x] A1a",  # 8
        "    - [ ] A2",  # 9
        "- [x] B",  # 10
        "",  # 11
        "### Home",  # 12
        "",  # 13
        "（暂无未完成任务）",  # 14
        "",  # 15
        "---",  # 16
        "",  # 17
        "## 10月12日 - 10月18日",  # 18
        "",  # 19
        "- [x] Work",  # 20
        "",  # 21
    ]


def test_new_document_matches_template():
    assert "\n".join(new_document(2027)) == "# 2027 TODO\n\n## 待办池\n\n---\n"


def test_toggle_is_an_involution():
    lines = _document()
    for index in (6, 8, 10, 20):
        once = toggle_task(lines, index)
        assert once != lines
        assert toggle_task(once, index) == lines


def test_toggle_flips_only_the_marker():
    lines = toggle_task(_document(), 7)
    assert lines[7] == "    - [x] A1"


def test_toggle_does_not_mutate_input():
    lines = _document()
    toggle_task(lines, 6)
    assert lines == _document()


@pytest.mark.parametrize("index", [-1, 22, 100])
def test_toggle_rejects_out_of_range(index):
    with pytest.raises(TodoError) as excinfo:
        toggle_task(_document(), index)
    assert excinfo.value.code == "INDEX_OUT_OF_RANGE"


def test_toggle_rejects_non_task_line():
    with pytest.raises(TodoError) as excinfo:
        toggle_task(_document(), 4)
    assert excinfo.value.code == "INVALID_LINE_KIND"
    assert excinfo.value.error.details["actual"] == "project_header"


def test_insert_task_replaces_placeholder():
    lines = insert_task(_document(), "  mop floor ", project="Home")
    assert lines[14] == "- [ ] mop floor"
    assert len(lines) == len(_document())


def test_insert_task_appends_after_last_task():
    lines = insert_task(_document(), "C", project="Work")
    assert lines[10:13] == ["- [x] B", "- [ ] C", ""]
    assert lines[13] == "### Home"


def test_insert_task_into_empty_section_keeps_blank_after_header():
    lines = ["## 待办池", "", "### Empty", "", "---"]
    assert insert_task(lines, "first", project="Empty") == [
        "## 待办池",
        "",
        "### Empty",
        "",
        "- [ ] first",
        "",
        "---",
    ]


def test_insert_task_unknown_project():
    with pytest.raises(TodoError) as excinfo:
        insert_task(_document(), "x", project="Garden")
    assert excinfo.value.code == "NOT_FOUND"


def test_insert_task_into_week_block():
    lines = insert_task(_document(), "ad hoc", week_line_index=18)
    assert lines[20:22] == ["- [x] Work", "- [ ] ad hoc"]


def test_insert_task_into_week_requires_week_header():
    with pytest.raises(TodoError) as excinfo:
        insert_task(_document(), "x", week_line_index=6)
    assert excinfo.value.code == "INVALID_LINE_KIND"


def test_insert_subtask_without_children_goes_right_after_parent():
    lines = insert_subtask(_document(), 10, "B1")
    assert lines[10:12] == ["- [x] B", "    - [ ] B1"]


def test_insert_subtask_appends_after_existing_children():
    lines = ["- [ ] P", "    - [ ] existing", "- [ ] Q"]
    assert insert_subtask(lines, 0, "new") == [
        "- [ ] P",
        "    - [ ] existing",
        "    - [ ] new",
        "- [ ] Q",
    ]


def test_insert_subtask_skips_grandchildren():
    lines = insert_subtask(_document(), 6, "A3")
    assert lines[9:11] == ["    - [ ] A2", "    - [ ] A3"]


def test_insert_subtask_lands_before_trailing_blank():
    lines = ["- [ ] P", "    - [ ] child", "", "### Next"]
    assert insert_subtask(lines, 0, "new")[:4] == [
        "- [ ] P",
        "    - [ ] child",
        "    - [ ] new",
        "",
    ]


def test_insert_subtask_requires_task_parent():
    with pytest.raises(TodoError) as excinfo:
        insert_subtask(_document(), 5, "x")
    assert excinfo.value.code == "INVALID_LINE_KIND"


def test_subtree_end_stops_at_shallower_line():
    lines = _document()
    assert subtree_end(lines, 6) == 10
    assert subtree_end(lines, 7) == 9
    assert subtree_end(lines, 10) == 11


def test_delete_subtree_removes_descendants():
    lines = delete_subtree(_document(), 6)
    assert lines[6:8] == ["- [x] B", ""]
    assert len(lines) == len(_document()) - 4


def test_edit_task_keeps_prefix():
    lines = edit_task(_document(), 8, "  renamed  ")
    assert lines[8] == "        - [x] renamed"


def test_edit_task_rejects_bare_checkbox():
    with pytest.raises(TodoError) as excinfo:
        edit_task(["- [ ]"], 0, "x")
    assert excinfo.value.code == "INVALID_TASK_FORMAT"


def test_move_before_takes_destination_depth():
    lines = move_subtree(_document(), 10, 7, "before")
    assert lines[6:12] == [
        "- [ ] A",
        "    - [x] B",
        "    - [ ] A1",
        "        - [x] A1a",
        "    - [ ] A2",
        "",
    ]


def test_move_after_skips_destination_subtree():
    lines = move_subtree(_document(), 9, 6, "after")
    assert lines[6:11] == [
        "- [ ] A",
        "    - [ ] A1",
        "        - [x] A1a",
        "- [ ] A2",
        "- [x] B",
    ]


def test_move_inside_becomes_last_child():
    lines = move_subtree(_document(), 6, 10, "inside")
    assert lines[6:11] == [
        "- [x] B",
        "    - [ ] A",
        "        - [ ] A1",
        "            - [x] A1a",
        "        - [ ] A2",
    ]
    assert lines[11] == ""


def test_move_into_own_subtree_is_rejected():
    with pytest.raises(TodoError) as excinfo:
        move_subtree(_document(), 6, 8, "inside")
    assert excinfo.value.code == "INVALID_MOVE_TARGET"
    with pytest.raises(TodoError):
        move_subtree(_document(), 6, 6, "after")


def test_move_requires_task_destination():
    with pytest.raises(TodoError) as excinfo:
        move_subtree(_document(), 6, 12, "before")
    assert excinfo.value.code == "INVALID_LINE_KIND"


def test_move_rejects_unknown_position():
    with pytest.raises(TodoError) as excinfo:
        move_subtree(_document(), 10, 6, "under")
    assert excinfo.value.code == "INVALID_POSITION"
    assert excinfo.value.error.details == {"position": "under"}


def test_render_and_replace_pool():
    pool = render_pool([("", ["- [ ] loose"]), ("Work", ["- [ ] A"]), ("Home", [])])
    assert pool == [
        "## 待办池",
        "",
        "- [ ] loose",
        "",
        "### Work",
        "",
        "- [ ] A",
        "",
        "### Home",
        "",
        "（暂无未完成任务）",
        "",
    ]
    lines = replace_pool(_document(), pool)
    assert lines[:2] == ["# 2026 TODO", ""]
    assert lines[14] == "---"
    assert lines[16] == "## 10月12日 - 10月18日"


def test_replace_pool_requires_pool():
    with pytest.raises(TodoError) as excinfo:
        replace_pool(["# nothing"], [])
    assert excinfo.value.code == "NOT_FOUND"


def test_add_project_inserts_before_separator():
    lines = add_project(_document(), " Garden ")
    assert lines[16:21] == ["### Garden", "", "（暂无未完成任务）", "", "---"]


def test_add_project_rejects_duplicate():
    with pytest.raises(TodoError) as excinfo:
        add_project(_document(), "Work")
    assert excinfo.value.code == "ALREADY_EXISTS"


def test_add_project_requires_separator():
    with pytest.raises(TodoError) as excinfo:
        add_project(["## 待办池", ""], "New")
    assert excinfo.value.code == "NOT_FOUND"


def test_add_week_goes_first_after_separator():
    lines = add_week(_document(), "10月19日 - 10月25日")
    assert lines[16:23] == [
        "---",
        "",
        "## 10月19日 - 10月25日",
        "",
        "---",
        "",
        "## 10月12日 - 10月18日",
    ]


def test_add_week_to_document_without_weeks():
    lines = add_week(new_document(2026), "1月5日 - 1月11日")
    assert "\n".join(lines) == "# 2026 TODO\n\n## 待办池\n\n---\n\n## 1月5日 - 1月11日\n\n"


def test_add_week_rejects_duplicate():
    with pytest.raises(TodoError) as excinfo:
        add_week(_document(), "10月12日 - 10月18日")
    assert excinfo.value.code == "ALREADY_EXISTS"


def test_add_week_closes_pool_without_separator():
    lines = add_week(["# 2026 TODO", "", "## 待办池", "", "- [ ] A", ""], "1月5日 - 1月11日")
    assert lines == [
        "# 2026 TODO",
        "",
        "## 待办池",
        "",
        "- [ ] A",
        "",
        "---",
        "",
        "## 1月5日 - 1月11日",
        "",
    ]
