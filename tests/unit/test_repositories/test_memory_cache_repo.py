"""
In-Memory Cache Repository Tests
"""

from datetime import timedelta

import pytest

from crudgate.common.time import utc_now
from crudgate.repositories.memory import MemoryCacheRepository


@pytest.mark.asyncio
async def test_set_and_get():
    repo = MemoryCacheRepository()

    entry = await repo.set("notes", "k1", [{"text": "a"}], ttl_seconds=60)

    assert entry.expires_at is not None
    retrieved = await repo.get("notes", "k1")
    assert retrieved.value == [{"text": "a"}]
    assert await repo.get("notes", "k2") is None


@pytest.mark.asyncio
async def test_expired_entry_dropped():
    repo = MemoryCacheRepository()
    entry = await repo.set("notes", "k1", [{"text": "a"}], ttl_seconds=60)
    repo._entries["notes"]["k1"] = entry.model_copy(update={"expires_at": utc_now() - timedelta(seconds=1)})

    assert await repo.get("notes", "k1") is None
    assert "k1" not in repo._entries["notes"]


@pytest.mark.asyncio
async def test_values_are_copied():
    repo = MemoryCacheRepository()
    value = [{"text": "a"}]
    await repo.set("notes", "k1", value)
    value[0]["text"] = "changed"

    retrieved = await repo.get("notes", "k1")
    retrieved.value[0]["text"] = "mutated"

    assert (await repo.get("notes", "k1")).value == [{"text": "a"}]


@pytest.mark.asyncio
async def test_delete_collection():
    repo = MemoryCacheRepository()
    await repo.set("notes", "k1", [{"a": 1}])
    await repo.set("notes", "k2", [{"a": 2}])
    await repo.set("tasks", "k1", [{"b": 1}])

    assert await repo.delete_collection("notes") == 2
    assert await repo.delete_collection("notes") == 0
    assert await repo.get("tasks", "k1") is not None
