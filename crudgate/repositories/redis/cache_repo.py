"""
Query Cache Repository Redis Implementation

Provides concrete Redis operation implementation for the query cache.
Uses Redis native TTL for entry expiration and a per-collection key set for invalidation.
"""

from typing import Optional

from bson import json_util
from redis.asyncio import Redis

from crudgate.common.time import utc_now
from crudgate.domain.cache import CacheEntry
from crudgate.domain.record import Record
from crudgate.repositories.cache_repo import CacheRepository


class RedisCacheRepository(CacheRepository):
    """
    Query Cache Repository Redis Implementation

    Each cached result is stored under its own key; every key of a collection is
    also tracked in a set so that the collection can be invalidated at once.
    Records are serialized as MongoDB extended JSON to keep ObjectIds and datetimes.
    """

    def __init__(self, client: Redis, prefix: str = "crudgate:cache"):
        """
        Initialize Repository

        Args:
            client: Async Redis client instance
            prefix: Key namespace
        """
        self.client = client
        self.prefix = prefix

    def _entry_key(self, collection: str, key: str) -> str:
        return f"{self.prefix}:{collection}:{key}"

    def _index_key(self, collection: str) -> str:
        return f"{self.prefix}:{collection}:keys"

    async def get(self, collection: str, key: str) -> Optional[CacheEntry]:
        """Get cached records, returns None if not found or expired"""
        raw = await self.client.get(self._entry_key(collection, key))
        if raw is None:
            return None
        data = json_util.loads(raw)
        return CacheEntry(
            collection=collection,
            key=key,
            value=data["value"],
            expires_at=None,  # Redis manages TTL natively, not tracked in data
        )

    async def set(
        self, collection: str, key: str, value: list[Record], ttl_seconds: Optional[int] = None
    ) -> CacheEntry:
        """Cache records with optional TTL"""
        entry_key = self._entry_key(collection, key)
        data = json_util.dumps({"value": value, "cached_at": utc_now().isoformat()})

        index_key = self._index_key(collection)
        if ttl_seconds is not None and ttl_seconds > 0:
            await self.client.set(entry_key, data, ex=ttl_seconds)
            await self.client.sadd(index_key, entry_key)
            # Expires together with the newest entry of the collection
            await self.client.expire(index_key, ttl_seconds)
        else:
            await self.client.set(entry_key, data)
            await self.client.sadd(index_key, entry_key)
            await self.client.persist(index_key)

        return CacheEntry(collection=collection, key=key, value=value, expires_at=None)

    async def delete_collection(self, collection: str) -> int:
        """Drop every cached entry of a collection"""
        index_key = self._index_key(collection)
        members = await self.client.smembers(index_key)
        deleted = 0
        if members:
            deleted = await self.client.delete(*members)
        await self.client.delete(index_key)
        return deleted
