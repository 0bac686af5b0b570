"""
Tests for the web API
"""

import pytest
from fastapi.testclient import TestClient
from skillsprint.main import SkillSprint
from skillsprint.services.category_manager import CategoryManager
from skillsprint.services.project_manager import ProjectManager
from skillsprint.services.review_manager import ReviewManager
from skillsprint.services.skill_manager import SkillManager
from skillsprint.services.task_manager import TaskManager
from skillsprint.utils.error_handler import PersistenceError
from skillsprint.web.main import app, get_workspace


@pytest.fixture
def workspace(mock_supabase_client, mock_gateway, session, backing_rows):
    """Started workspace whose services share the fake backing store"""
    ws = SkillSprint(client=mock_supabase_client)
    ws.session = session
    ws.gateway = mock_gateway
    ws.categories = CategoryManager(mock_gateway)
    ws.tasks = TaskManager(mock_gateway, ws.categories)
    ws.projects = ProjectManager(mock_gateway, ws.tasks)
    ws.skills = SkillManager(mock_gateway)
    ws.reviews = ReviewManager(mock_gateway)
    backing_rows["projects"]["p1"] = {"id": "p1", "name": "Growth", "status": "active"}
    return ws


@pytest.fixture
def client(workspace):
    app.dependency_overrides[get_workspace] = lambda: workspace
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_health_check():
    response = TestClient(app).get("/api/health")

    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_not_started_workspace_is_unavailable():
    response = TestClient(app).get("/api/projects")

    assert response.status_code == 503


def test_create_task(client, backing_rows):
    response = client.post("/api/projects/p1/tasks", json={"title": "Write report", "due_date": "2024-11-20"})

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert "Growth" in body["message"]
    assert backing_rows["tasks"][body["data"]["id"]]["project_id"] == "p1"


def test_create_task_validation_error(client, mock_gateway):
    response = client.post("/api/projects/p1/tasks", json={"title": "", "due_date": "2024-11-20"})

    assert response.status_code == 422
    body = response.json()
    assert body["success"] is False
    assert body["error_code"] == "validation_error"
    mock_gateway.create.assert_not_called()


def test_update_missing_task(client):
    response = client.patch("/api/projects/p1/tasks/missing", json={"title": "x"})

    assert response.status_code == 404
    assert response.json()["error_code"] == "not_found"


def test_backing_store_failure(client, mock_gateway):
    mock_gateway.select.side_effect = PersistenceError("unavailable", operation="load projects", status_code=503)

    response = client.get("/api/projects")

    assert response.status_code == 502
    assert response.json()["message"] == "Failed to load projects: unavailable"


def test_board_view_and_move(client, make_task, seed_tasks):
    seed_tasks(make_task("a", order_index=0), make_task("b", order_index=1))

    moved = client.post("/api/projects/p1/tasks/a/move", json={"status": "done"})
    board = client.get("/api/projects/p1/tasks", params={"view": "board"})

    assert moved.status_code == 200
    columns = board.json()["columns"]
    assert [column["status"] for column in columns] == ["todo", "in_progress", "done"]
    assert [task["id"] for task in columns[2]["tasks"]] == ["a"]


def test_reorder(client, make_task, seed_tasks, backing_rows):
    seed_tasks(*[make_task(task_id, order_index=i) for i, task_id in enumerate("ABCD")])

    response = client.post("/api/projects/p1/reorder", json={"from_index": 0, "to_index": 2})

    assert response.status_code == 200
    assert response.json()["data"]["order"] == ["B", "C", "A", "D"]
    assert backing_rows["tasks"]["A"]["order_index"] == 2


def test_reorder_rejected_when_sorted(client, make_task, seed_tasks):
    seed_tasks(make_task("A", order_index=0), make_task("B", order_index=1))

    response = client.post("/api/projects/p1/reorder", json={"from_index": 0, "to_index": 1, "sort": "priority"})

    assert response.status_code == 422


def test_unknown_status_filter(client):
    response = client.get("/api/projects/p1/tasks", params={"status": "blocked"})

    assert response.status_code == 422


def test_update_task_rejects_project_change(client, make_task, seed_tasks, backing_rows):
    seed_tasks(make_task("a", order_index=0))

    response = client.patch("/api/projects/p1/tasks/a", json={"project_id": "p2"})

    assert response.status_code == 422
    assert backing_rows["tasks"]["a"]["project_id"] == "p1"
