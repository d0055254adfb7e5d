from __future__ import annotations

import pytest
from mongomock_motor import AsyncMongoMockClient

from app.services.exceptions import DuplicateKeyError, RecordNotFoundError
from app.services.store import MongoStore


@pytest.fixture
def mongo():
    return AsyncMongoMockClient()["hr_workflow_test"]


@pytest.fixture
def mongo_store(mongo):
    return MongoStore(mongo)


async def test_create_and_get(mongo_store):
    key = await mongo_store.create("hr_requests", {"status": "pending", "id": "ignored"})

    record = await mongo_store.get("hr_requests", key)
    assert record == {"id": key, "status": "pending"}
    assert await mongo_store.get("hr_requests", "missing") is None


async def test_create_with_taken_key(mongo_store):
    await mongo_store.create("employees", {"nombre": "Ana"}, key="1")

    with pytest.raises(DuplicateKeyError):
        await mongo_store.create("employees", {"nombre": "Luis"}, key="1")


async def test_list_filters_and_orders_newest_first(mongo_store):
    await mongo_store.create("hr_requests", {"status": "pending", "submitted_at": "2026-02-01T09:01:00"}, key="a")
    await mongo_store.create("hr_requests", {"status": "rejected", "submitted_at": "2026-02-01T09:02:00"}, key="b")
    await mongo_store.create("hr_requests", {"status": "pending", "submitted_at": "2026-02-01T09:03:00"}, key="c")

    assert [r["id"] for r in await mongo_store.list("hr_requests")] == ["c", "b", "a"]
    assert [r["id"] for r in await mongo_store.list("hr_requests", {"status": "pending"})] == ["c", "a"]


async def test_update_sets_and_unsets(mongo_store):
    await mongo_store.create("hr_requests", {"status": "approved", "processed_at": "x"}, key="r")

    await mongo_store.update("hr_requests", "r", {"status": "approved_by_gm"}, unset=["processed_at"])

    assert await mongo_store.get("hr_requests", "r") == {"id": "r", "status": "approved_by_gm"}
    with pytest.raises(RecordNotFoundError):
        await mongo_store.update("hr_requests", "missing", {"status": "pending"})


async def test_update_if_treats_none_as_unset(mongo_store):
    await mongo_store.create("hr_requests", {"status": "pending"}, key="r")
    approval = {"approved_by": "GM"}

    assert await mongo_store.update_if(
        "hr_requests", "r",
        {"status": "pending", "general_manager_approval": None},
        {"status": "approved_by_gm", "general_manager_approval": approval},
    )
    # the track is now set, a second approval on it must not match
    assert not await mongo_store.update_if(
        "hr_requests", "r",
        {"status": "approved_by_gm", "general_manager_approval": None},
        {"general_manager_approval": {"approved_by": "Other GM"}},
    )
    assert not await mongo_store.update_if("hr_requests", "missing", {"status": "pending"}, {"status": "rejected"})

    record = await mongo_store.get("hr_requests", "r")
    assert record["general_manager_approval"] == approval


async def test_increment_once_per_marker(mongo_store):
    await mongo_store.create("overtime_accruals", {"wednesday": 0.0}, key="123")

    assert await mongo_store.increment("overtime_accruals", "123", "wednesday", 2.0, marker="ot-1")
    assert not await mongo_store.increment("overtime_accruals", "123", "wednesday", 2.0, marker="ot-1")
    assert await mongo_store.increment("overtime_accruals", "123", "wednesday", 1.5)

    record = await mongo_store.get("overtime_accruals", "123")
    assert record["wednesday"] == 3.5
    assert record["applied_requests"] == ["ot-1"]


async def test_increment_missing_record(mongo_store):
    with pytest.raises(RecordNotFoundError):
        await mongo_store.increment("overtime_accruals", "nobody", "monday", 1.0, marker="ot-1")


async def test_delete(mongo_store):
    await mongo_store.create("accounts", {"login_id": "a@example.com"}, key="a@example.com")

    await mongo_store.delete("accounts", "a@example.com")
    await mongo_store.delete("accounts", "a@example.com")

    assert await mongo_store.get("accounts", "a@example.com") is None
