"""
Tests for ProjectManager
"""

import pytest
from skillsprint.models.project import ProjectStatus
from skillsprint.services.project_manager import ProjectManager
from skillsprint.services.task_manager import TaskManager
from skillsprint.services.task_store import Scope
from skillsprint.utils.error_handler import NotFoundError, PersistenceError, ValidationError


@pytest.fixture
def task_manager(mock_gateway, category_manager):
    return TaskManager(mock_gateway, category_manager)


@pytest.fixture
def project_manager(mock_gateway, task_manager):
    """ProjectManager instance over the fake backing store"""
    return ProjectManager(mock_gateway, task_manager)


@pytest.fixture
def seed_projects(backing_rows):
    def seed(*projects):
        for project_id, name, status in projects:
            backing_rows["projects"][project_id] = {
                "id": project_id,
                "name": name,
                "status": status,
                "user_id": "user-1",
            }
    return seed


@pytest.mark.asyncio
async def test_create_project_success(project_manager, mock_gateway):
    """Test successful project creation"""
    result = await project_manager.create_project({"name": "  Platform migration  "})

    assert result.success
    assert result.message == "✓ Project 'Platform migration' created"
    assert result.data["status"] == "active"
    sent = mock_gateway.create.call_args[0][1]
    assert sent["name"] == "Platform migration"


@pytest.mark.asyncio
async def test_create_project_empty_name(project_manager, mock_gateway):
    with pytest.raises(ValidationError) as exc_info:
        await project_manager.create_project({"name": "   "})

    assert "name must not be empty" in exc_info.value.message
    mock_gateway.create.assert_not_called()


@pytest.mark.asyncio
async def test_create_project_error_is_raised(project_manager, mock_gateway):
    mock_gateway.create.side_effect = PersistenceError("timeout", operation="create project")

    with pytest.raises(PersistenceError):
        await project_manager.create_project({"name": "Platform"})


@pytest.mark.asyncio
async def test_project_stats(project_manager, seed_projects):
    seed_projects(
        ("p1", "Growth", "active"),
        ("p2", "Platform", "active"),
        ("p3", "Hiring", "on_hold"),
        ("p4", "Launch", "completed"),
    )

    stats = await project_manager.get_stats()

    assert (stats.total, stats.active, stats.on_hold, stats.completed) == (4, 2, 1, 1)


@pytest.mark.asyncio
async def test_get_project_reloads_once(project_manager, seed_projects, mock_gateway):
    """Test that a project created elsewhere is found after one reload"""
    await project_manager.list_projects()
    seed_projects(("p9", "New", "active"))

    project = await project_manager.get_project("p9")

    assert project.name == "New"
    assert mock_gateway.select.call_count == 2


@pytest.mark.asyncio
async def test_get_project_not_found(project_manager):
    with pytest.raises(NotFoundError):
        await project_manager.get_project("missing")


@pytest.mark.asyncio
async def test_update_project(project_manager, seed_projects):
    seed_projects(("p1", "Growth", "active"))

    result = await project_manager.update_project("p1", {"status": "on_hold"})

    assert result.data["status"] == "on_hold"
    assert (await project_manager.get_project("p1")).status == ProjectStatus.ON_HOLD


@pytest.mark.asyncio
async def test_delete_project_drops_task_stores(project_manager, task_manager, seed_projects, make_task, seed_tasks, backing_rows):
    seed_projects(("p1", "Growth", "active"), ("p2", "Platform", "active"))
    seed_tasks(make_task("a", project_id="p1"), make_task("b", project_id="p2"))
    await task_manager.get_store(Scope.for_project("p1"))
    merged = await task_manager.get_store(Scope.all_projects())

    result = await project_manager.delete_project("p1")

    assert result.message == "✓ Project 'Growth' deleted"
    assert "p1" not in backing_rows["projects"]
    assert Scope.for_project("p1").key not in task_manager.stores
    assert [task.id for task in merged.list()] == ["b"]
    assert [project.id for project in await project_manager.list_projects()] == ["p2"]
