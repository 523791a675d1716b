"""
Document Store Repository Interface

Defines the data access interface for document collections.
"""

from abc import ABC, abstractmethod
from typing import Any, AsyncIterator, Optional, Sequence

from crudgate.domain.record import Record

SortSpec = Sequence[tuple[str, int]]


class CollectionStore(ABC):
    """
    Collection Repository Interface

    Filters, projections and update documents follow MongoDB query syntax.
    """

    name: str

    @abstractmethod
    async def find(
        self,
        filter: dict[str, Any],
        *,
        projection: Optional[dict[str, Any]] = None,
        sort: Optional[SortSpec] = None,
        skip: int = 0,
        limit: int = 0,
    ) -> list[Record]:
        """
        Find matching records

        Args:
            filter: Query filter
            projection: Field projection
            sort: Ordered (field, direction) pairs
            skip: Records to skip
            limit: Maximum records (0 means no limit)

        Returns:
            list[Record]: Materialized records
        """
        pass

    @abstractmethod
    def stream(
        self,
        filter: dict[str, Any],
        *,
        projection: Optional[dict[str, Any]] = None,
        sort: Optional[SortSpec] = None,
        skip: int = 0,
        limit: int = 0,
    ) -> AsyncIterator[Record]:
        """
        Iterate matching records lazily

        Same arguments as find(); the iterator is single-pass and not restartable.
        """
        pass

    @abstractmethod
    async def find_one(
        self, filter: dict[str, Any], projection: Optional[dict[str, Any]] = None
    ) -> Optional[Record]:
        """Find the first matching record, None if nothing matches"""
        pass

    @abstractmethod
    async def insert_many(self, records: Sequence[Record]) -> list[Any]:
        """
        Insert records

        Records without `_id` get a generated ObjectId.

        Returns:
            list: Ids of the inserted records
        """
        pass

    @abstractmethod
    async def update_one(self, filter: dict[str, Any], update: dict[str, Any]) -> int:
        """Apply an update document to the first match, returns modified count"""
        pass

    @abstractmethod
    async def update_many(self, filter: dict[str, Any], update: dict[str, Any]) -> int:
        """Apply an update document to every match, returns modified count"""
        pass

    @abstractmethod
    async def delete_many(self, filter: dict[str, Any]) -> int:
        """Delete every match, returns deleted count"""
        pass


class DocumentStore(ABC):
    """Document Store Interface"""

    @abstractmethod
    def collection(self, name: str) -> CollectionStore:
        """Get a collection handle by name"""
        pass
