"""
Tests for the backing store REST client
"""

import json
import httpx
import pytest
from datetime import date
from skillsprint.api.supabase_client import Filter, SupabaseClient, build_query_params

BASE_URL = "https://example.supabase.co"


def _client(handler):
    return SupabaseClient(
        base_url=BASE_URL,
        api_key="anon-key",
        access_token="user-jwt",
        transport=httpx.MockTransport(handler),
    )


def test_build_query_params():
    params = build_query_params(
        filters={
            "project_id": ["p1", "p2"],
            "status": "done",
            "category_id": None,
            "scheduled_date": Filter("gte", date(2024, 11, 1)),
        },
        order=[("due_date", True), ("created_at", False)],
        columns="*",
    )

    assert params == {
        "select": "*",
        "project_id": 'in.("p1","p2")',
        "status": "eq.done",
        "category_id": "is.null",
        "scheduled_date": "gte.2024-11-01",
        "order": "due_date.asc,created_at.desc",
    }


def test_build_query_params_limit():
    params = build_query_params(order=[("scheduled_date", True)], limit=5)

    assert params == {"order": "scheduled_date.asc", "limit": "5"}


@pytest.mark.asyncio
async def test_select_sends_limit():
    seen = {}

    def handler(request: httpx.Request):
        seen["params"] = dict(request.url.params)
        return httpx.Response(200, json=[])

    client = _client(handler)
    await client.select("review_sessions", order=[("scheduled_date", True)], limit=5)
    await client.close()

    assert seen["params"]["limit"] == "5"


@pytest.mark.asyncio
async def test_select_sends_auth_headers_and_filters():
    seen = {}

    def handler(request: httpx.Request):
        seen["path"] = request.url.path
        seen["params"] = dict(request.url.params)
        seen["headers"] = request.headers
        return httpx.Response(200, json=[{"id": "t1"}])

    client = _client(handler)
    rows = await client.select("tasks", filters={"project_id": "p1"}, order=[("created_at", True)])
    await client.close()

    assert rows == [{"id": "t1"}]
    assert seen["path"] == "/rest/v1/tasks"
    assert seen["params"]["project_id"] == "eq.p1"
    assert seen["params"]["order"] == "created_at.asc"
    assert seen["headers"]["apikey"] == "anon-key"
    assert seen["headers"]["authorization"] == "Bearer user-jwt"


@pytest.mark.asyncio
async def test_update_returns_representation():
    seen = {}

    def handler(request: httpx.Request):
        seen["method"] = request.method
        seen["prefer"] = request.headers.get("prefer")
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json=[{"id": "t1", "order_index": 2}])

    client = _client(handler)
    rows = await client.update("tasks", {"id": "t1"}, {"order_index": 2})
    await client.close()

    assert seen["method"] == "PATCH"
    assert seen["prefer"] == "return=representation"
    assert seen["body"] == {"order_index": 2}
    assert rows[0]["order_index"] == 2


@pytest.mark.asyncio
async def test_update_without_filters_refused():
    client = _client(lambda request: httpx.Response(200, json=[]))
    with pytest.raises(ValueError):
        await client.update("tasks", {}, {"title": "x"})
    await client.close()


@pytest.mark.asyncio
async def test_reads_retry_server_errors(monkeypatch):
    monkeypatch.setattr("skillsprint.api.base_client.RETRY_DELAY", 0)
    calls = {"n": 0}

    def handler(request: httpx.Request):
        calls["n"] += 1
        if calls["n"] == 1:
            return httpx.Response(503, json={"message": "unavailable"})
        return httpx.Response(200, json=[])

    client = _client(handler)
    rows = await client.select("projects")
    await client.close()

    assert rows == []
    assert calls["n"] == 2


@pytest.mark.asyncio
async def test_writes_are_sent_once():
    calls = {"n": 0}

    def handler(request: httpx.Request):
        calls["n"] += 1
        return httpx.Response(503, json={"message": "unavailable"})

    client = _client(handler)
    with pytest.raises(httpx.HTTPStatusError):
        await client.insert("tasks", {"title": "x"})
    await client.close()

    assert calls["n"] == 1


@pytest.mark.asyncio
async def test_get_session():
    def handler(request: httpx.Request):
        assert request.url.path == "/auth/v1/user"
        return httpx.Response(200, json={"id": "user-1", "email": "dev@example.com"})

    client = _client(handler)
    session = await client.get_session()
    await client.close()

    assert session.user_id == "user-1"
    assert session.email == "dev@example.com"
    assert session.access_token == "user-jwt"
