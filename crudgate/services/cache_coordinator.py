"""
Cache Coordinator Module

Read-through caching of query results, keyed by the normalized request and the
caller's scope, with per-collection invalidation.
"""

import hashlib
import logging
from typing import Optional

from bson import json_util

from crudgate.domain.record import Record
from crudgate.domain.request import CrudRequest
from crudgate.repositories.cache_repo import CacheRepository

logger = logging.getLogger(__name__)


class CacheCoordinator:
    """
    Cache Coordinator

    Backend failures never fail a request: they are logged and treated as a miss.
    """

    def __init__(self, repo: CacheRepository, ttl_seconds: int = 300):
        """
        Initialize Coordinator

        Args:
            repo: Cache repository
            ttl_seconds: Default entry TTL
        """
        self.repo = repo
        self.ttl_seconds = ttl_seconds

    @staticmethod
    def make_key(request: CrudRequest, scope_key: str) -> str:
        """Stable key: equal requests by the same caller map to the same entry"""
        material = {"request": request.cache_material(), "scope": scope_key}
        canonical = json_util.dumps(material, sort_keys=True)
        return hashlib.sha256(canonical.encode("utf-8")).hexdigest()

    async def lookup(self, collection: str, request: CrudRequest, scope_key: str) -> Optional[list[Record]]:
        """
        Look up cached records

        Returns:
            Cached records, or None on miss (an empty cached value is a miss)
        """
        key = self.make_key(request, scope_key)
        try:
            entry = await self.repo.get(collection, key)
        except Exception:
            logger.warning("Cache lookup failed for collection %s", collection, exc_info=True)
            return None
        if entry is None or not entry.value:
            return None
        logger.debug("Cache hit: collection=%s key=%s", collection, key)
        return entry.value

    async def store(
        self,
        collection: str,
        request: CrudRequest,
        scope_key: str,
        records: list[Record],
        ttl_seconds: Optional[int] = None,
    ) -> None:
        """Cache non-empty query results"""
        if not records:
            return
        key = self.make_key(request, scope_key)
        try:
            await self.repo.set(collection, key, records, ttl_seconds or self.ttl_seconds)
        except Exception:
            logger.warning("Cache store failed for collection %s", collection, exc_info=True)

    async def invalidate(self, collection: str) -> None:
        """Drop every cached result of a collection"""
        try:
            removed = await self.repo.delete_collection(collection)
        except Exception:
            logger.warning("Cache invalidation failed for collection %s", collection, exc_info=True)
            return
        if removed:
            logger.debug("Cache invalidated: collection=%s entries=%d", collection, removed)
