"""
Tests for CategoryManager
"""

import pytest
from skillsprint.config.constants import CATEGORY_COLORS
from skillsprint.services.task_store import Scope, TaskStore
from skillsprint.utils.error_handler import ValidationError


@pytest.mark.asyncio
async def test_create_category_default_color(category_manager, mock_gateway):
    result = await category_manager.create_category("Learning")

    assert result.message == "✓ Category 'Learning' created"
    assert result.data["color"] == CATEGORY_COLORS[0]
    sent = mock_gateway.create.call_args[0][1]
    assert sent == {"name": "Learning", "color": CATEGORY_COLORS[0]}


@pytest.mark.asyncio
async def test_create_category_requires_name(category_manager, mock_gateway):
    with pytest.raises(ValidationError) as exc_info:
        await category_manager.create_category("  ")

    assert exc_info.value.message == "Please enter a category name"
    mock_gateway.create.assert_not_called()


@pytest.mark.asyncio
async def test_categories_listed_by_name(category_manager, backing_rows, mock_gateway):
    backing_rows["categories"]["c1"] = {"id": "c1", "name": "Writing"}

    categories = await category_manager.list_categories()
    again = await category_manager.list_categories()

    assert [category.name for category in categories] == ["Writing"]
    assert again == categories
    assert mock_gateway.select.call_args.kwargs["order"] == [("name", True)]
    assert mock_gateway.select.call_count == 1


@pytest.mark.asyncio
async def test_delete_category_clears_task_references(
    category_manager, mock_gateway, backing_rows, make_task, seed_tasks
):
    """Test that tasks keep existing with no category after the category is deleted"""
    backing_rows["categories"]["c1"] = {"id": "c1", "name": "Writing"}
    seed_tasks(make_task("a", category_id="c1"), make_task("b", category_id="c2"))
    store = TaskStore(Scope.for_project("p1"), mock_gateway)
    await store.refresh()
    store.projections.get_or_compute(("list",), lambda: store.list())

    result = await category_manager.delete_category("c1", stores=[store])

    assert result.message == "✓ Category 'Writing' deleted"
    assert "c1" not in backing_rows["categories"]
    assert backing_rows["tasks"]["a"]["category_id"] is None
    assert backing_rows["tasks"]["b"]["category_id"] == "c2"
    assert store.get("a").category_id is None
    assert len(store.projections) == 0
    mock_gateway.update_where.assert_called_once_with("tasks", {"category_id": "c1"}, {"category_id": None})
