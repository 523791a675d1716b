"""
Query Pipeline Unit Tests
"""

from unittest.mock import AsyncMock

import pytest
from bson import ObjectId

from conftest import ADMIN_TOKEN, ALICE_ID, ALICE_TOKEN, BOB_ID, BOB_TOKEN, EXPIRED_TOKEN
from crudgate.common.errors import ReadFailureError
from crudgate.config import CrudOptions
from crudgate.domain.result import ResultKind
from crudgate.services import CrudService


async def _seed_notes(store):
    return await store.collection("notes").insert_many([
        {"text": "alice-1", "rank": 2, "createdBy": ALICE_ID},
        {"text": "bob-1", "rank": 1, "createdBy": BOB_ID},
        {"text": "bob-2", "rank": 3, "createdBy": BOB_ID},
    ])


@pytest.mark.asyncio
async def test_get_single_id_returns_list(crud_service, store):
    ids = await _seed_notes(store)

    result = await crud_service.get_record({"coll": "notes", "docId": str(ids[1]), "token": BOB_TOKEN})

    assert result.ok
    assert [record["text"] for record in result.value] == ["bob-1"]


@pytest.mark.asyncio
async def test_non_owner_get_is_not_found(crud_service, store):
    ids = await _seed_notes(store)

    result = await crud_service.get_record({"coll": "notes", "docId": str(ids[0]), "token": BOB_TOKEN})

    assert result.kind == ResultKind.NOT_FOUND
    assert result.value == []


@pytest.mark.asyncio
async def test_admin_sees_everything(crud_service, store):
    await _seed_notes(store)

    result = await crud_service.get_all_record({"coll": "notes", "token": ADMIN_TOKEN, "sortParams": {"rank": 1}})

    assert [record["text"] for record in result.value] == ["bob-1", "alice-1", "bob-2"]


@pytest.mark.asyncio
async def test_owner_scope_with_filter_and_pagination(crud_service, store):
    await _seed_notes(store)

    result = await crud_service.get_all_record({
        "coll": "notes",
        "queryParams": {"rank": {"$gte": 1}},
        "sortParams": [("rank", -1)],
        "skip": 1,
        "limit": 5,
        "projectParams": {"text": 1},
        "token": BOB_TOKEN,
    })

    assert result.ok
    assert [record["text"] for record in result.value] == ["bob-1"]
    assert "rank" not in result.value[0]


@pytest.mark.asyncio
async def test_collection_read_grant_sees_all(crud_service, store):
    await store.collection("projects").insert_many([
        {"name": "P1", "createdBy": BOB_ID},
        {"name": "P2", "createdBy": ALICE_ID},
    ])

    result = await crud_service.get_all_record({"coll": "projects", "token": ALICE_TOKEN})

    assert len(result.value) == 2


@pytest.mark.asyncio
async def test_get_record_requires_credential(crud_service, store):
    await _seed_notes(store)

    result = await crud_service.get_record({"coll": "notes"})

    assert result.kind == ResultKind.UNAUTHORIZED
    assert result.code == "missing_credential"


@pytest.mark.asyncio
async def test_anonymous_get_all(crud_service, store):
    await _seed_notes(store)

    result = await crud_service.get_all_record({"coll": "notes"})

    assert result.ok
    assert len(result.value) == 3


@pytest.mark.asyncio
async def test_anonymous_get_all_disabled(store, cache_repo):
    service = CrudService(store=store, cache_repo=cache_repo, options=CrudOptions(anonymous_get_all=False))

    result = await service.get_all_record({"coll": "notes"})

    assert result.kind == ResultKind.UNAUTHORIZED


@pytest.mark.asyncio
async def test_supplied_credential_is_validated(crud_service, store):
    await _seed_notes(store)

    result = await crud_service.get_all_record({"coll": "notes", "token": EXPIRED_TOKEN})

    assert result.kind == ResultKind.UNAUTHORIZED
    assert result.code == "token_expired"


@pytest.mark.asyncio
async def test_cache_hit_and_scope_separation(crud_service, store):
    await _seed_notes(store)

    first = await crud_service.get_all_record({"coll": "notes", "token": BOB_TOKEN})
    second = await crud_service.get_all_record({"coll": "notes", "token": BOB_TOKEN})
    other = await crud_service.get_all_record({"coll": "notes", "token": ALICE_TOKEN})

    assert not first.from_cache
    assert second.from_cache
    assert second.value == first.value
    assert not other.from_cache
    assert [record["text"] for record in other.value] == ["alice-1"]


@pytest.mark.asyncio
async def test_empty_result_not_found(crud_service):
    result = await crud_service.get_all_record({"coll": "notes", "queryParams": {"text": "nothing"}, "token": BOB_TOKEN})
    assert result.kind == ResultKind.NOT_FOUND


@pytest.mark.asyncio
async def test_read_failure(crud_service, store, monkeypatch):
    notes = store.collection("notes")
    monkeypatch.setattr(notes, "find", AsyncMock(side_effect=RuntimeError("socket closed")))

    result = await crud_service.get_all_record({"coll": "notes", "token": BOB_TOKEN})

    assert result.kind == ResultKind.READ_FAILURE


@pytest.mark.asyncio
async def test_filtered_read_is_audited(crud_service, store, audit_repo):
    await _seed_notes(store)

    await crud_service.get_all_record({"coll": "notes", "token": BOB_TOKEN})
    await crud_service.get_all_record({"coll": "notes", "queryParams": {"rank": 1}, "token": BOB_TOKEN})

    [entry] = await audit_repo.list_by_collection("notes")
    assert entry.action.value == "read"
    assert entry.payload == {"rank": 1}


@pytest.mark.asyncio
async def test_stream(crud_service, store):
    await _seed_notes(store)

    result = await crud_service.get_all_record_stream({"coll": "notes", "token": BOB_TOKEN, "sortParams": {"rank": 1}})

    assert result.ok
    assert not result.from_cache
    texts = [record["text"] async for record in result.value]
    assert texts == ["bob-1", "bob-2"]


@pytest.mark.asyncio
async def test_get_record_stream_scoped(crud_service, store):
    ids = await _seed_notes(store)

    result = await crud_service.get_record_stream({"coll": "notes", "docId": [str(i) for i in ids], "token": BOB_TOKEN})

    assert [record["text"] async for record in result.value] == ["bob-1", "bob-2"]


@pytest.mark.asyncio
async def test_stream_bypasses_cache(crud_service, store, cache_repo):
    await _seed_notes(store)

    result = await crud_service.get_all_record_stream({"coll": "notes", "token": BOB_TOKEN})
    [record async for record in result.value]

    assert cache_repo._entries == {}


@pytest.mark.asyncio
async def test_record_grant_scope(store, cache_repo):
    [granted, hidden] = await store.collection("reports").insert_many([
        {"title": "granted", "createdBy": BOB_ID},
        {"title": "hidden", "createdBy": BOB_ID},
    ])
    await store.collection("roles").insert_many([
        {"group": "staff", "service": granted, "canRead": True, "isActive": True},
    ])
    service = CrudService(store=store, cache_repo=cache_repo)

    result = await service.get_all_record({"coll": "reports", "token": ALICE_TOKEN})
    assert [record["title"] for record in result.value] == ["granted"]

    result = await service.get_record({"coll": "reports", "docId": str(hidden), "token": ALICE_TOKEN})
    assert result.kind == ResultKind.NOT_FOUND

    result = await service.get_record({"coll": "reports", "docId": str(ObjectId()), "token": ALICE_TOKEN})
    assert result.kind == ResultKind.NOT_FOUND


@pytest.mark.asyncio
async def test_grant_on_other_collection_keeps_own_records(crud_service, store):
    await _seed_notes(store)

    result = await crud_service.get_all_record({"coll": "notes", "token": ALICE_TOKEN})

    assert result.ok
    assert [record["text"] for record in result.value] == ["alice-1"]


@pytest.mark.asyncio
async def test_record_grant_adds_to_own_records(store, cache_repo):
    [granted, _, own] = await store.collection("reports").insert_many([
        {"title": "granted", "createdBy": BOB_ID},
        {"title": "hidden", "createdBy": BOB_ID},
        {"title": "own", "createdBy": ALICE_ID},
    ])
    await store.collection("roles").insert_many([
        {"group": "staff", "service": granted, "canRead": True, "isActive": True},
    ])
    service = CrudService(store=store, cache_repo=cache_repo)

    result = await service.get_all_record({"coll": "reports", "token": ALICE_TOKEN})
    assert sorted(record["title"] for record in result.value) == ["granted", "own"]

    result = await service.get_record({"coll": "reports", "docId": str(own), "token": ALICE_TOKEN})
    assert [record["title"] for record in result.value] == ["own"]


@pytest.mark.asyncio
async def test_stream_failure_raises_while_iterating(crud_service, store, monkeypatch):
    await _seed_notes(store)

    async def broken_stream(*args, **kwargs):
        yield {"text": "first"}
        raise RuntimeError("cursor killed")

    monkeypatch.setattr(store.collection("notes"), "stream", broken_stream)
    result = await crud_service.get_all_record_stream({"coll": "notes", "token": BOB_TOKEN})
    assert result.ok

    received = []
    with pytest.raises(ReadFailureError):
        async for record in result.value:
            received.append(record["text"])
    assert received == ["first"]
