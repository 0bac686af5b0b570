"""
Tests for task manager
"""

import pytest
from datetime import date
from skillsprint.models.project import Project
from skillsprint.models.task import TaskFilter, TaskStatus
from skillsprint.models.view import Board, SortMode, ViewKind
from skillsprint.services.mutation_gateway import UNSET
from skillsprint.services.task_manager import TaskManager
from skillsprint.services.task_store import Scope
from skillsprint.utils.error_handler import NotFoundError, ValidationError


@pytest.fixture
def task_manager(mock_gateway, category_manager):
    return TaskManager(mock_gateway, category_manager)


@pytest.mark.asyncio
async def test_create_task(task_manager, make_task, seed_tasks, mock_gateway):
    """Test creating a task in a project"""
    seed_tasks(make_task("a", order_index=0))

    response = await task_manager.create_task(
        Scope.for_project("p1"),
        {"title": "Write report", "due_date": "2024-11-20"},
        project_name="Growth",
    )

    assert response.success
    assert "Write report" in response.message
    assert "Growth" in response.message
    assert response.data["order_index"] == 1
    assert response.data["status"] == "todo"
    mock_gateway.create.assert_called_once()


@pytest.mark.asyncio
async def test_update_task_lists_changes(task_manager, make_task, seed_tasks):
    seed_tasks(make_task("a", order_index=0, title="Write report"))

    response = await task_manager.update_task(Scope.for_project("p1"), "a", {"due_date": "2024-12-01"})

    assert "updated" in response.message
    assert "Due: Dec 01, 2024" in response.message
    assert response.data["due_date"] == "2024-12-01"


@pytest.mark.asyncio
async def test_update_ignores_unset_fields_in_message(task_manager, make_task, seed_tasks):
    seed_tasks(make_task("a", order_index=0, title="Write report"))

    response = await task_manager.update_task(
        Scope.for_project("p1"),
        "a",
        {"title": UNSET, "priority": "high", "due_date": UNSET},
    )

    assert response.message == "✓ Task 'Write report' updated\n  • Priority: high"


@pytest.mark.asyncio
async def test_order_indices_stay_unique_per_project(task_manager, make_task, seed_tasks):
    """Test that no scope can give two tasks of one project the same index"""
    seed_tasks(
        make_task("a", project_id="p1", order_index=0),
        make_task("b", project_id="p2", order_index=0),
        make_task("c", project_id="p2", order_index=4),
    )

    with pytest.raises(ValidationError):
        await task_manager.update_task(Scope.for_project("p1"), "a", {"project_id": "p2"})
    with pytest.raises(ValidationError):
        await task_manager.create_task(
            Scope.all_projects(["p1"]),
            {"project_id": "p2", "title": "Stray", "due_date": "2024-11-20"},
        )
    await task_manager.create_task(
        Scope.all_projects(),
        {"project_id": "p2", "title": "Next", "due_date": "2024-11-20"},
    )

    for project_id in ("p1", "p2"):
        tasks = await task_manager.get_tasks(Scope.for_project(project_id))
        indices = [task.order_index for task in tasks]
        assert len(indices) == len(set(indices))
    p2 = await task_manager.get_tasks(Scope.for_project("p2"))
    assert [task.order_index for task in p2] == [0, 4, 5]


@pytest.mark.asyncio
async def test_update_missing_task_refreshes_scope(task_manager, make_task, seed_tasks, mock_gateway):
    """Test that a not-found update refreshes the scope before raising"""
    seed_tasks(make_task("a", order_index=0))
    scope = Scope.for_project("p1")
    await task_manager.get_store(scope)
    select_calls = mock_gateway.select.call_count

    with pytest.raises(NotFoundError):
        await task_manager.update_task(scope, "missing", {"title": "x"})

    assert mock_gateway.select.call_count == select_calls + 1


@pytest.mark.asyncio
async def test_move_to_column_changes_only_status(task_manager, make_task, seed_tasks, mock_gateway):
    seed_tasks(make_task("a", order_index=0, priority="high"))

    response = await task_manager.move_to_column(Scope.for_project("p1"), "a", TaskStatus.DONE)

    assert "Done" in response.message
    sent = mock_gateway.update.call_args[0][2]
    assert sent.model_dump(exclude_unset=True) == {"status": TaskStatus.DONE}


@pytest.mark.asyncio
async def test_delete_task(task_manager, make_task, seed_tasks, backing_rows):
    seed_tasks(make_task("a", order_index=0, title="Old"))

    response = await task_manager.delete_task(Scope.for_project("p1"), "a")

    assert "Old" in response.message
    assert "a" not in backing_rows["tasks"]


@pytest.mark.asyncio
async def test_views_are_cached_until_change(task_manager, make_task, seed_tasks):
    seed_tasks(make_task("a", order_index=0), make_task("b", order_index=1))
    scope = Scope.for_project("p1")

    first = await task_manager.get_view(scope, ViewKind.BOARD)
    again = await task_manager.get_view(scope, ViewKind.BOARD)
    assert isinstance(first, Board)
    assert again is first

    await task_manager.move_to_column(scope, "a", TaskStatus.IN_PROGRESS)
    after = await task_manager.get_view(scope, ViewKind.BOARD)

    assert after is not first
    assert [task.id for task in after.columns[1].tasks] == ["a"]


@pytest.mark.asyncio
async def test_filtered_list_view(task_manager, make_task, seed_tasks):
    seed_tasks(make_task("a", status="done"), make_task("b"))

    tasks = await task_manager.get_tasks(Scope.for_project("p1"), TaskFilter(status=TaskStatus.TODO))

    assert [task.id for task in tasks] == ["b"]


@pytest.mark.asyncio
async def test_reorder_returns_report(task_manager, make_task, seed_tasks):
    seed_tasks(*[make_task(task_id, order_index=i) for i, task_id in enumerate("ABCD")])

    response = await task_manager.reorder(Scope.for_project("p1"), 0, 2)

    assert response.success
    assert response.data["order"] == ["B", "C", "A", "D"]
    assert "Order saved" in response.message


@pytest.mark.asyncio
async def test_reorder_rejected_with_sort(task_manager, make_task, seed_tasks):
    seed_tasks(make_task("a", order_index=0), make_task("b", order_index=1))

    with pytest.raises(ValidationError):
        await task_manager.reorder(Scope.for_project("p1"), 0, 1, SortMode.DUE_DATE)


@pytest.mark.asyncio
async def test_list_all_tasks_by_due_date(task_manager, make_task, seed_tasks):
    """Test cross-project listing resolves projects and orders by due date"""
    seed_tasks(
        make_task("late", project_id="p1", due_date=date(2024, 12, 1)),
        make_task("soon", project_id="p2", due_date=date(2024, 11, 2)),
        make_task("other", project_id="p3", due_date=date(2024, 11, 1)),
    )
    projects = {
        "p1": Project(id="p1", name="Growth"),
        "p2": Project(id="p2", name="Platform"),
    }

    details = await task_manager.list_all_tasks(projects, ["p1", "p2"])

    assert [item.task.id for item in details] == ["soon", "late"]
    assert details[0].project.name == "Platform"


@pytest.mark.asyncio
async def test_change_marks_other_scopes_stale(task_manager, make_task, seed_tasks):
    seed_tasks(make_task("a", order_index=0))
    merged = await task_manager.get_store(Scope.all_projects())
    assert merged.loaded

    await task_manager.update_task(Scope.for_project("p1"), "a", {"title": "Renamed"})

    assert not merged.loaded
    tasks = await task_manager.get_tasks(Scope.all_projects())
    assert tasks[0].title == "Renamed"


@pytest.mark.asyncio
async def test_drop_project(task_manager, make_task, seed_tasks):
    seed_tasks(make_task("a", project_id="p1"), make_task("b", project_id="p2"))
    await task_manager.get_store(Scope.for_project("p1"))
    merged = await task_manager.get_store(Scope.all_projects())

    task_manager.drop_project("p1")

    assert Scope.for_project("p1").key not in task_manager.stores
    assert [task.id for task in merged.list()] == ["b"]
