from __future__ import annotations

import asyncio
import json

import httpx
import pytest
from conftest import SERVICE_KEY, SUPABASE_URL, FakePostgrest

from garden_gateway.errors import PersistenceError
from garden_gateway.services.data_store import SupabaseDataStore
from garden_gateway.services.user_plants import UserPlantStore
from garden_gateway.services.user_tasks import UserTaskStore


def _store(db: FakePostgrest) -> SupabaseDataStore:
    return SupabaseDataStore(SUPABASE_URL, SERVICE_KEY, transport=db.transport)


def test_select_sends_columns_filters_and_order():
    db = FakePostgrest()
    asyncio.run(_store(db).select("user_tasks", ["id", "due_date"], {"user_id": "u1"}, order="due_date.asc"))

    request = db.requests[0]
    assert request.method == "GET"
    assert request.url.path == "/rest/v1/user_tasks"
    assert request.url.params["select"] == "id,due_date"
    assert request.url.params["user_id"] == "eq.u1"
    assert request.url.params["order"] == "due_date.asc"
    assert request.headers["apikey"] == SERVICE_KEY
    assert request.headers["Authorization"] == f"Bearer {SERVICE_KEY}"


def test_insert_posts_rows_with_minimal_return():
    db = FakePostgrest()
    asyncio.run(_store(db).insert("user_plants", [{"user_id": "u1", "plant_id": "p1", "plant_data": {"a": 1}}]))

    request = db.requests[0]
    assert request.method == "POST"
    assert request.headers["Prefer"] == "return=minimal"
    assert json.loads(request.content) == [{"user_id": "u1", "plant_id": "p1", "plant_data": {"a": 1}}]


def test_delete_without_filters_is_refused():
    db = FakePostgrest()
    with pytest.raises(ValueError):
        asyncio.run(_store(db).delete("user_plants", {}))
    assert db.requests == []


def test_error_status_becomes_persistence_error():
    db = FakePostgrest()
    db.fail_with = 500
    with pytest.raises(PersistenceError):
        asyncio.run(_store(db).select("user_plants", ["plant_data"], {"user_id": "u1"}))


def test_transport_failure_becomes_persistence_error():
    def boom(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectTimeout("connect timed out")

    store = SupabaseDataStore(SUPABASE_URL, SERVICE_KEY, transport=httpx.MockTransport(boom))
    with pytest.raises(PersistenceError):
        asyncio.run(store.insert("user_tasks", [{"user_id": "u1"}]))


def test_hanging_store_hits_hard_deadline():
    async def hang(request: httpx.Request) -> httpx.Response:
        await asyncio.Event().wait()
        return httpx.Response(200, json=[])

    store = SupabaseDataStore(SUPABASE_URL, SERVICE_KEY, timeout_seconds=0.05, transport=httpx.MockTransport(hang))
    with pytest.raises(PersistenceError):
        asyncio.run(store.select("user_plants", ["plant_data"], {"user_id": "u1"}))


def test_non_list_select_body_is_persistence_error():
    transport = httpx.MockTransport(lambda request: httpx.Response(200, json={"rows": []}))
    store = SupabaseDataStore(SUPABASE_URL, SERVICE_KEY, transport=transport)
    with pytest.raises(PersistenceError):
        asyncio.run(store.select("user_plants", ["plant_data"], {"user_id": "u1"}))


def test_every_plant_and_task_call_is_scoped_by_user():
    db = FakePostgrest()
    plants = UserPlantStore(_store(db))
    tasks = UserTaskStore(_store(db))

    async def exercise() -> None:
        await plants.add("u1", "p1", {"name": "Fern"})
        await plants.list_for_user("u1")
        await plants.remove("u1", "p1")
        await tasks.create("u1", task_type="water", due_date="2025-03-01")
        await tasks.list_for_user("u1")
        await tasks.delete("u1", "1")

    asyncio.run(exercise())

    for request in db.requests:
        if request.method == "POST":
            assert all(row["user_id"] == "u1" for row in json.loads(request.content))
        else:
            assert request.url.params["user_id"] == "eq.u1"


def test_task_create_stores_missing_plant_reference_as_null():
    db = FakePostgrest()
    asyncio.run(UserTaskStore(_store(db)).create("u1", task_type="prune", due_date="2025-05-05", plant_name=""))
    row = db.tables["user_tasks"][0]
    assert row["plant_id"] is None
    assert row["plant_name"] is None
