"""
Save Pipeline Unit Tests
"""

from unittest.mock import AsyncMock

import pytest
from bson import ObjectId

from conftest import ADMIN_TOKEN, ALICE_ID, ALICE_TOKEN, BOB_ID, BOB_TOKEN, EXPIRED_TOKEN
from crudgate.domain.result import ResultKind


async def _insert(store, collection, **fields):
    [record_id] = await store.collection(collection).insert_many([fields])
    return record_id


@pytest.mark.asyncio
async def test_create_success(crud_service, store):
    result = await crud_service.save_record({
        "coll": "projects",
        "actionParams": [{"name": "Apollo"}],
        "existParams": [{"name": "Apollo"}],
        "token": ALICE_TOKEN,
    })

    assert result.ok, result.message
    assert result.value["docCount"] == 1
    assert result.value["createdCount"] == 1
    assert result.message == "1 record(s) created successfully"

    [stored] = await store.collection("projects").find({"name": "Apollo"})
    assert str(stored["_id"]) == result.value["docIds"][0]
    assert stored["createdBy"] == ALICE_ID
    assert stored["createdAt"] is not None


@pytest.mark.asyncio
async def test_repeated_create_is_record_exists(crud_service, store):
    params = {
        "coll": "projects",
        "actionParams": [{"name": "Apollo"}],
        "existParams": [{"name": "Apollo"}],
        "token": ALICE_TOKEN,
    }
    assert (await crud_service.save_record(params)).ok

    result = await crud_service.save_record(params)

    assert result.kind == ResultKind.RECORD_EXISTS
    assert len(await store.collection("projects").find({})) == 1


@pytest.mark.asyncio
async def test_record_exists_writes_nothing(crud_service, store):
    await _insert(store, "projects", name="Apollo")

    result = await crud_service.save_record({
        "coll": "projects",
        "actionParams": [{"name": "Gemini"}, {"name": "Apollo"}],
        "existParams": [{"name": "Gemini"}, {"name": "Apollo"}],
        "token": ADMIN_TOKEN,
    })

    assert result.kind == ResultKind.RECORD_EXISTS
    assert await store.collection("projects").find({"name": "Gemini"}) == []


@pytest.mark.asyncio
async def test_missing_probes_rejected(crud_service, store):
    result = await crud_service.save_record({
        "coll": "projects",
        "actionParams": [{"name": "A"}, {"name": "B"}],
        "existParams": [{"name": "A"}],
        "token": ADMIN_TOKEN,
    })

    assert result.kind == ResultKind.VALIDATION_ERROR
    assert result.code == "missing_probes"
    assert await store.collection("projects").find({}) == []


@pytest.mark.asyncio
async def test_create_without_grant_unauthorized(crud_service, store):
    result = await crud_service.save_record({
        "coll": "projects",
        "actionParams": [{"name": "A"}],
        "existParams": [{"name": "A"}],
        "token": BOB_TOKEN,
    })

    assert result.kind == ResultKind.UNAUTHORIZED
    assert await store.collection("projects").find({}) == []


@pytest.mark.asyncio
async def test_expired_token_stops_before_storage(crud_service, store):
    result = await crud_service.save_record({
        "coll": "projects",
        "actionParams": [{"name": "A"}],
        "existParams": [{"name": "A"}],
        "token": EXPIRED_TOKEN,
    })

    assert result.kind == ResultKind.UNAUTHORIZED
    assert result.code == "token_expired"
    assert await store.collection("projects").find({}) == []


@pytest.mark.asyncio
async def test_owner_update(crud_service, store):
    record_id = await _insert(store, "notes", text="draft", createdBy=BOB_ID)

    result = await crud_service.save_record({
        "coll": "notes",
        "actionParams": [{"_id": str(record_id), "text": "final", "createdBy": ALICE_ID}],
        "existParams": [{"_id": {"$ne": str(record_id)}, "text": "final"}],
        "token": BOB_TOKEN,
    })

    assert result.ok, result.message
    assert result.value["updatedCount"] == 1
    updated = await store.collection("notes").find_one({"_id": record_id})
    assert updated["text"] == "final"
    assert updated["updatedBy"] == BOB_ID
    # Ownership fields cannot be overwritten by an update
    assert updated["createdBy"] == BOB_ID


@pytest.mark.asyncio
async def test_update_of_other_users_record_unauthorized(crud_service, store):
    record_id = await _insert(store, "notes", text="draft", createdBy=ALICE_ID)

    result = await crud_service.save_record({
        "coll": "notes",
        "actionParams": [{"_id": str(record_id), "text": "hacked"}],
        "existParams": [{"text": "hacked"}],
        "token": BOB_TOKEN,
    })

    assert result.kind == ResultKind.UNAUTHORIZED
    assert (await store.collection("notes").find_one({"_id": record_id}))["text"] == "draft"


@pytest.mark.asyncio
async def test_update_missing_record_not_found(crud_service):
    result = await crud_service.save_record({
        "coll": "notes",
        "actionParams": [{"_id": str(ObjectId()), "text": "x"}],
        "existParams": [{"text": "x"}],
        "token": ADMIN_TOKEN,
    })

    assert result.kind == ResultKind.NOT_FOUND


@pytest.mark.asyncio
async def test_self_service_cannot_grant_admin(crud_service, store):
    result = await crud_service.save_record({
        "coll": "users",
        "actionParams": [{"_id": str(BOB_ID), "profile": {"isAdmin": True, "name": "Bob"}}],
        "existParams": [{"_id": {"$ne": str(BOB_ID)}, "username": "bob"}],
        "token": BOB_TOKEN,
    })

    assert result.ok, result.message
    user = await store.collection("users").find_one({"_id": BOB_ID})
    assert user["profile"] == {"isAdmin": False, "name": "Bob"}


@pytest.mark.asyncio
async def test_mixed_batch_rejected(crud_service, store):
    record_id = await _insert(store, "notes", text="old", createdBy=BOB_ID)

    result = await crud_service.save_record({
        "coll": "notes",
        "actionParams": [{"text": "new"}, {"_id": str(record_id), "text": "changed"}],
        "existParams": [{"text": "new"}, {"text": "changed"}],
        "token": ADMIN_TOKEN,
    })

    assert result.kind == ResultKind.VALIDATION_ERROR
    assert result.code == "mixed_batch"
    assert [record["text"] for record in await store.collection("notes").find({})] == ["old"]


@pytest.mark.asyncio
async def test_failed_update_leaves_collection_unchanged(crud_service, store, monkeypatch):
    first = await _insert(store, "notes", text="a")
    second = await _insert(store, "notes", text="b")
    notes = store.collection("notes")
    monkeypatch.setattr(notes, "update_one", AsyncMock(side_effect=RuntimeError("connection reset")))

    result = await crud_service.save_record({
        "coll": "notes",
        "actionParams": [{"_id": str(first), "text": "a2"}, {"_id": str(second), "text": "b2"}],
        "existParams": [{"text": "a2"}, {"text": "b2"}],
        "token": ADMIN_TOKEN,
    })

    assert result.kind == ResultKind.WRITE_FAILURE
    assert sorted(record["text"] for record in await store.collection("notes").find({})) == ["a", "b"]


@pytest.mark.asyncio
async def test_empty_id_is_create(crud_service, store):
    result = await crud_service.save_record({
        "coll": "notes",
        "actionParams": [{"_id": "", "text": "blank id"}],
        "existParams": [{"text": "blank id"}],
        "token": ADMIN_TOKEN,
    })

    assert result.ok
    [stored] = await store.collection("notes").find({"text": "blank id"})
    assert isinstance(stored["_id"], ObjectId)


@pytest.mark.asyncio
async def test_update_by_filter_admin(crud_service, store):
    await store.collection("notes").insert_many([
        {"text": "a", "status": "open"},
        {"text": "b", "status": "open"},
        {"text": "c", "status": "closed"},
    ])

    result = await crud_service.save_record({
        "coll": "notes",
        "queryParams": {"status": "open"},
        "actionParams": [{"status": "archived"}],
        "existParams": [{"status": "nonexistent"}],
        "token": ADMIN_TOKEN,
    })

    assert result.ok, result.message
    assert result.value["docCount"] == 2
    assert len(await store.collection("notes").find({"status": "archived"})) == 2


@pytest.mark.asyncio
async def test_filter_from_non_admin_is_a_create(crud_service, store):
    await _insert(store, "projects", name="Apollo", status="open", createdBy=ALICE_ID)

    result = await crud_service.save_record({
        "coll": "projects",
        "queryParams": {"status": "open"},
        "actionParams": [{"name": "Zeus", "status": "open"}],
        "existParams": [{"name": "Zeus"}],
        "token": ALICE_TOKEN,
    })

    assert result.ok, result.message
    assert result.value["createdCount"] == 1
    assert result.value["updatedCount"] == 0
    names = sorted(record["name"] for record in await store.collection("projects").find({"status": "open"}))
    assert names == ["Apollo", "Zeus"]


@pytest.mark.asyncio
async def test_update_by_filter_no_match(crud_service):
    result = await crud_service.save_record({
        "coll": "notes",
        "queryParams": {"status": "missing"},
        "actionParams": [{"status": "archived"}],
        "existParams": [{"status": "nonexistent"}],
        "token": ADMIN_TOKEN,
    })

    assert result.kind == ResultKind.NOT_FOUND


@pytest.mark.asyncio
async def test_save_invalidates_cache(crud_service, store):
    await _insert(store, "notes", text="one", createdBy=BOB_ID)
    query = {"coll": "notes", "token": BOB_TOKEN}

    first = await crud_service.get_all_record(query)
    assert not first.from_cache
    assert (await crud_service.get_all_record(query)).from_cache

    saved = await crud_service.save_record({
        "coll": "notes",
        "actionParams": [{"text": "two"}],
        "existParams": [{"text": "two"}],
        "token": ADMIN_TOKEN,
    })
    assert saved.ok

    after = await crud_service.get_all_record(query)
    assert not after.from_cache
    assert [record["text"] for record in after.value] == ["one"]

    admin_view = await crud_service.get_all_record({"coll": "notes", "token": ADMIN_TOKEN})
    assert {record["text"] for record in admin_view.value} == {"one", "two"}


@pytest.mark.asyncio
async def test_create_is_audited(crud_service, audit_repo):
    await crud_service.save_record({
        "coll": "projects",
        "actionParams": [{"name": "Apollo"}],
        "existParams": [{"name": "Apollo"}],
        "token": ALICE_TOKEN,
    })

    [entry] = await audit_repo.list_by_collection("projects")
    assert entry.action.value == "create"
    assert entry.actor_id == str(ALICE_ID)


@pytest.mark.asyncio
async def test_write_failure(crud_service, store, monkeypatch):
    notes = store.collection("notes")
    monkeypatch.setattr(notes, "insert_many", AsyncMock(side_effect=RuntimeError("disk full")))

    result = await crud_service.save_record({
        "coll": "notes",
        "actionParams": [{"text": "x"}],
        "existParams": [{"text": "x"}],
        "token": ADMIN_TOKEN,
    })

    assert result.kind == ResultKind.WRITE_FAILURE
    assert "disk full" in result.message
