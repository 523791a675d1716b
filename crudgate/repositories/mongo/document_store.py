"""
Document Store MongoDB Implementation

Provides concrete MongoDB operation implementation through the motor async driver.
"""

import copy
from typing import Any, AsyncIterator, Optional, Sequence

from motor.motor_asyncio import AsyncIOMotorCollection, AsyncIOMotorCursor, AsyncIOMotorDatabase

from crudgate.domain.record import Record
from crudgate.repositories.document_store import CollectionStore, DocumentStore, SortSpec


class MongoCollectionStore(CollectionStore):
    """
    Collection Repository MongoDB Implementation

    Thin adapter over an AsyncIOMotorCollection.
    """

    def __init__(self, collection: AsyncIOMotorCollection):
        """
        Initialize Repository

        Args:
            collection: Motor collection handle
        """
        self.collection = collection
        self.name = collection.name

    def _cursor(
        self,
        filter: dict[str, Any],
        projection: Optional[dict[str, Any]],
        sort: Optional[SortSpec],
        skip: int,
        limit: int,
    ) -> AsyncIOMotorCursor:
        # An empty projection would return only _id
        cursor = self.collection.find(filter, projection or None)
        if sort:
            cursor = cursor.sort(list(sort))
        if skip > 0:
            cursor = cursor.skip(skip)
        if limit > 0:
            cursor = cursor.limit(limit)
        return cursor

    async def find(
        self,
        filter: dict[str, Any],
        *,
        projection: Optional[dict[str, Any]] = None,
        sort: Optional[SortSpec] = None,
        skip: int = 0,
        limit: int = 0,
    ) -> list[Record]:
        cursor = self._cursor(filter, projection, sort, skip, limit)
        return await cursor.to_list(length=None)

    async def stream(
        self,
        filter: dict[str, Any],
        *,
        projection: Optional[dict[str, Any]] = None,
        sort: Optional[SortSpec] = None,
        skip: int = 0,
        limit: int = 0,
    ) -> AsyncIterator[Record]:
        cursor = self._cursor(filter, projection, sort, skip, limit)
        async for document in cursor:
            yield document

    async def find_one(
        self, filter: dict[str, Any], projection: Optional[dict[str, Any]] = None
    ) -> Optional[Record]:
        return await self.collection.find_one(filter, projection or None)

    async def insert_many(self, records: Sequence[Record]) -> list[Any]:
        # insert_many adds _id to the documents it is given
        documents = [copy.copy(record) for record in records]
        result = await self.collection.insert_many(documents)
        return list(result.inserted_ids)

    async def update_one(self, filter: dict[str, Any], update: dict[str, Any]) -> int:
        result = await self.collection.update_one(filter, update)
        return result.modified_count

    async def update_many(self, filter: dict[str, Any], update: dict[str, Any]) -> int:
        result = await self.collection.update_many(filter, update)
        return result.modified_count

    async def delete_many(self, filter: dict[str, Any]) -> int:
        result = await self.collection.delete_many(filter)
        return result.deleted_count


class MongoDocumentStore(DocumentStore):
    """Document Store MongoDB Implementation"""

    def __init__(self, database: AsyncIOMotorDatabase):
        """
        Initialize Repository

        Args:
            database: Motor database handle
        """
        self.database = database

    def collection(self, name: str) -> MongoCollectionStore:
        return MongoCollectionStore(self.database[name])
