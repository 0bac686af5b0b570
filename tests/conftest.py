"""
Pytest configuration and fixtures
"""

import pytest
from datetime import date, datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock
from skillsprint.api.supabase_client import SupabaseClient
from skillsprint.models.session import Session
from skillsprint.models.task import Task
from skillsprint.services.mutation_gateway import MutationGateway, normalize_changes
from skillsprint.services.category_manager import CategoryManager
from skillsprint.utils.error_handler import NotFoundError

BASE_TIME = datetime(2024, 11, 1, 9, 0, tzinfo=timezone.utc)


@pytest.fixture
def session():
    """Authenticated session"""
    return Session(user_id="user-1", access_token="test_token", email="dev@example.com")


@pytest.fixture
def make_task():
    """Factory for tasks; creation time follows the order of calls"""
    counter = {"n": 0}

    def factory(task_id, project_id="p1", order_index=None, **fields):
        counter["n"] += 1
        data = {
            "id": task_id,
            "project_id": project_id,
            "title": fields.pop("title", f"Task {task_id}"),
            "due_date": fields.pop("due_date", date(2024, 11, 10)),
            "order_index": order_index,
            "created_at": fields.pop("created_at", BASE_TIME + timedelta(minutes=counter["n"])),
            "user_id": "user-1",
        }
        data.update(fields)
        return Task(**data)

    return factory


@pytest.fixture
def mock_supabase_client():
    """Mock backing store client"""
    client = MagicMock(spec=SupabaseClient)
    client.select = AsyncMock(return_value=[])
    client.insert = AsyncMock(return_value=[{"id": "new-id"}])
    client.upsert = AsyncMock(return_value=[{"user_id": "user-1"}])
    client.update = AsyncMock(return_value=[{"id": "task-1"}])
    client.delete = AsyncMock(return_value=[{"id": "task-1"}])
    client.get_session = AsyncMock(return_value=Session(user_id="user-1", access_token="test_token"))
    client.close = AsyncMock()
    return client


@pytest.fixture
def backing_rows():
    """Rows held by the fake backing store, keyed by table then ID"""
    return {"tasks": {}, "categories": {}, "projects": {}}


@pytest.fixture
def mock_gateway(session, backing_rows):
    """
    Mock mutation gateway over an in-memory table dict

    Tests can override any method's side_effect to simulate failures.
    """
    gateway = MagicMock(spec=MutationGateway)
    gateway.session = session

    async def select(table, filters=None, order=None, columns="*", limit=None):
        rows = list(backing_rows.setdefault(table, {}).values())
        for column, value in (filters or {}).items():
            if isinstance(value, list):
                rows = [row for row in rows if row.get(column) in value]
            else:
                rows = [row for row in rows if row.get(column) == value]
        if limit is not None:
            rows = rows[:limit]
        return [dict(row) for row in rows]

    async def create(table, record, entity=None, stamp_owner=True):
        row = normalize_changes(record)
        row.setdefault("id", f"{table}-{len(backing_rows.setdefault(table, {})) + 1}")
        row.setdefault("created_at", datetime.now(timezone.utc).isoformat())
        if stamp_owner:
            row["user_id"] = session.user_id
        backing_rows[table][row["id"]] = row
        return dict(row)

    async def update(table, record_id, changes, entity=None):
        rows = backing_rows.setdefault(table, {})
        if record_id not in rows:
            raise NotFoundError(f"{table} {record_id} not found", operation=f"update {table}", entity=entity)
        rows[record_id].update(normalize_changes(changes))
        rows[record_id]["updated_at"] = datetime.now(timezone.utc).isoformat()
        return dict(rows[record_id])

    async def update_where(table, filters, changes):
        updated = []
        for row in await select(table, filters):
            backing_rows[table][row["id"]].update(normalize_changes(changes))
            updated.append(dict(backing_rows[table][row["id"]]))
        return updated

    async def delete(table, record_id, entity=None):
        rows = backing_rows.setdefault(table, {})
        if record_id not in rows:
            raise NotFoundError(f"{table} {record_id} not found", operation=f"delete {table}", entity=entity)
        return rows.pop(record_id)

    async def delete_where(table, filters):
        removed = await select(table, filters)
        for row in removed:
            backing_rows[table].pop(row["id"], None)
        return removed

    gateway.select = AsyncMock(side_effect=select)
    gateway.create = AsyncMock(side_effect=create)
    gateway.update = AsyncMock(side_effect=update)
    gateway.update_where = AsyncMock(side_effect=update_where)
    gateway.delete = AsyncMock(side_effect=delete)
    gateway.delete_where = AsyncMock(side_effect=delete_where)
    gateway.insert_many = AsyncMock(return_value=[])
    gateway.upsert = AsyncMock(return_value={})
    return gateway


@pytest.fixture
def seed_tasks(backing_rows):
    """Put tasks into the fake backing store"""

    def seed(*tasks):
        for task in tasks:
            backing_rows["tasks"][task.id] = task.model_dump(mode="json")

    return seed


@pytest.fixture
def category_manager(mock_gateway):
    """Category manager over the fake backing store"""
    return CategoryManager(mock_gateway)
