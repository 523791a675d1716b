"""
Query Cache Repository Interface

Defines the data access interface for cached query results.
"""

from abc import ABC, abstractmethod
from typing import Optional

from crudgate.domain.cache import CacheEntry
from crudgate.domain.record import Record


class CacheRepository(ABC):
    """Query Cache Repository Interface"""

    @abstractmethod
    async def get(self, collection: str, key: str) -> Optional[CacheEntry]:
        """
        Get cached records

        Returns None if the key doesn't exist or is expired.

        Args:
            collection: Collection the records belong to
            key: Normalized request key

        Returns:
            CacheEntry if found and not expired, None otherwise
        """
        pass

    @abstractmethod
    async def set(
        self, collection: str, key: str, value: list[Record], ttl_seconds: Optional[int] = None
    ) -> CacheEntry:
        """
        Cache records under a key

        Args:
            collection: Collection the records belong to
            key: Normalized request key
            value: Records to cache
            ttl_seconds: Time to live in seconds (None means never expires)

        Returns:
            CacheEntry: The stored entry
        """
        pass

    @abstractmethod
    async def delete_collection(self, collection: str) -> int:
        """
        Drop every cached entry of a collection

        Returns:
            Number of deleted entries
        """
        pass
