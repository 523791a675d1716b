"""
Query Cache Repository In-Memory Implementation

Keeps cached query results in process memory, grouped by collection.
"""

import copy
from datetime import timedelta
from typing import Optional

from crudgate.common.time import utc_now
from crudgate.domain.cache import CacheEntry
from crudgate.domain.record import Record
from crudgate.repositories.cache_repo import CacheRepository


class MemoryCacheRepository(CacheRepository):
    """
    Query Cache Repository In-Memory Implementation

    Expired entries are dropped lazily when read.
    """

    def __init__(self):
        self._entries: dict[str, dict[str, CacheEntry]] = {}

    async def get(self, collection: str, key: str) -> Optional[CacheEntry]:
        """Get cached records, returns None if not found or expired"""
        entry = self._entries.get(collection, {}).get(key)
        if entry is None:
            return None

        # Check if expired
        if entry.expires_at is not None and entry.expires_at <= utc_now():
            del self._entries[collection][key]
            return None

        return entry.model_copy(update={"value": copy.deepcopy(entry.value)})

    async def set(
        self, collection: str, key: str, value: list[Record], ttl_seconds: Optional[int] = None
    ) -> CacheEntry:
        """Cache records with optional TTL"""
        expires_at = None
        if ttl_seconds is not None and ttl_seconds > 0:
            expires_at = utc_now() + timedelta(seconds=ttl_seconds)

        entry = CacheEntry(
            collection=collection,
            key=key,
            value=copy.deepcopy(value),
            expires_at=expires_at,
        )
        self._entries.setdefault(collection, {})[key] = entry
        return entry

    async def delete_collection(self, collection: str) -> int:
        """Drop every cached entry of a collection"""
        return len(self._entries.pop(collection, {}))
