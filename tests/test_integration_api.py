from datetime import date

import pytest
from fastapi.testclient import TestClient

from app import todo_utils
from app.main import create_app
from app.user_scope import USER_ID_HEADER

HEADERS = {USER_ID_HEADER: "integration-user-01"}


@pytest.fixture()
def client(monkeypatch, tmp_path):
    monkeypatch.setenv("TODO_DATA_PATH", str(tmp_path))
    monkeypatch.setenv("TODO_REQUIRE_USER_HEADER", "true")
    monkeypatch.delenv("TODO_SERVICE_TOKEN", raising=False)
    monkeypatch.setattr(todo_utils, "current_date", lambda: date(2026, 10, 19))
    with TestClient(create_app()) as test_client:
        yield test_client


def _content(client) -> list[str]:
    response = client.get("/api/todo", headers=HEADERS)
    assert response.status_code == 200
    return response.json()["data"]["content"].split("\n")


def test_weekly_cycle_over_http(client):
    response = client.post("/api/project/add", headers=HEADERS, json={"name": "Work"})
    assert response.status_code == 200
    assert response.json()["ok"] is True

    response = client.post(
        "/api/todo/add", headers=HEADERS, json={"task": "write report", "project": "Work"}
    )
    assert response.status_code == 200
    lines = _content(client)
    task_index = lines.index("- [ ] write report")

    response = client.post(
        "/api/todo/add-subtask",
        headers=HEADERS,
        json={"task": "outline", "parentLineIndex": task_index},
    )
    assert response.status_code == 200

    response = client.patch(
        "/api/todo/toggle", headers=HEADERS, json={"lineIndex": task_index + 1}
    )
    assert response.status_code == 200
    assert _content(client)[task_index + 1] == "    - [x] outline"

    preview = client.post("/api/todo/week-settle/preview", headers=HEADERS)
    assert preview.status_code == 200
    assert preview.json()["data"]["settledCount"] == 1

    settled = client.post("/api/todo/week-settle", headers=HEADERS)
    assert settled.status_code == 200
    data = settled.json()["data"]
    assert data["weekTitle"] == "10月19日 - 10月25日"
    assert "- [x] Work\n    - [x] write report\n        - [x] outline" in data["newContent"]

    weeks = client.get("/api/weeks", headers=HEADERS).json()["data"]["weeks"]
    assert [week["title"] for week in weeks] == ["10月19日 - 10月25日"]

    activity = client.post("/api/activity", headers=HEADERS, json={"limit": 10})
    operations = [entry["operation"] for entry in activity.json()["data"]["entries"]]
    assert operations == [
        "add_project",
        "add_task",
        "add_subtask",
        "toggle_task",
        "settle_week",
    ]


def test_delete_and_reorder_over_http(client):
    client.post("/api/project/add", headers=HEADERS, json={"name": "Work"})
    for task in ("first", "second"):
        client.post("/api/todo/add", headers=HEADERS, json={"task": task, "project": "Work"})
    lines = _content(client)
    first = lines.index("- [ ] first")

    response = client.post(
        "/api/todo/reorder",
        headers=HEADERS,
        json={"fromLineIndex": first + 1, "toLineIndex": first, "position": "before"},
    )
    assert response.status_code == 200
    lines = _content(client)
    assert lines[first : first + 2] == ["- [ ] second", "- [ ] first"]

    response = client.request(
        "DELETE", "/api/todo/delete", headers=HEADERS, json={"lineIndex": first}
    )
    assert response.status_code == 200
    assert "- [ ] second" not in _content(client)


def test_error_envelope_over_http(client):
    response = client.patch("/api/todo/toggle", headers=HEADERS, json={"lineIndex": 0})
    assert response.status_code == 400
    assert response.json()["ok"] is False
    assert response.json()["error"]["code"] == "INVALID_LINE_KIND"

    response = client.get("/api/todo", headers=HEADERS, params={"year": "2020"})
    assert response.status_code == 404
    assert response.json()["error"]["code"] == "NOT_FOUND"

    client.post("/api/project/add", headers=HEADERS, json={"name": "Work"})
    response = client.post("/api/project/add", headers=HEADERS, json={"name": "Work"})
    assert response.status_code == 409


def test_notes_over_http(client):
    created = client.post(
        "/api/notes", headers=HEADERS, json={"title": "Call", "color": "pink"}
    )
    assert created.status_code == 200
    note_id = created.json()["data"]["note"]["id"]

    updated = client.put(
        f"/api/notes/{note_id}", headers=HEADERS, json={"content": "dentist"}
    )
    assert updated.json()["data"]["note"]["content"] == "dentist"

    deleted = client.delete(f"/api/notes/{note_id}", headers=HEADERS)
    assert deleted.status_code == 200
    assert client.get("/api/notes", headers=HEADERS).json()["data"]["notes"] == []


def test_year_migration_over_http(client):
    client.post("/api/project/add", headers=HEADERS, json={"name": "Work"})
    client.post("/api/todo/add", headers=HEADERS, json={"task": "carry", "project": "Work"})
    lines = _content(client)

    response = client.post(
        "/api/year/migrate",
        headers=HEADERS,
        json={
            "sourceYear": 2026,
            "targetYear": 2027,
            "lineIndices": [lines.index("- [ ] carry")],
        },
    )
    assert response.status_code == 200
    assert client.get("/api/years", headers=HEADERS).json()["data"]["years"] == [
        2027,
        2026,
    ]
    migrated = client.get("/api/todo", headers=HEADERS, params={"year": "2027"})
    assert "- [ ] carry" in migrated.json()["data"]["content"]
