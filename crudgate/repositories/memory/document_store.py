"""
Document Store In-Memory Implementation

Keeps collections in process memory. Used for development, tests and
single-process tools; records are deep-copied on every read and write.
"""

import copy
from typing import Any, AsyncIterator, Optional, Sequence

from bson import ObjectId

from crudgate.domain.record import ID_FIELD, Record
from crudgate.repositories.document_store import CollectionStore, DocumentStore, SortSpec
from crudgate.repositories.memory.query import apply_update, matches, select


class MemoryCollectionStore(CollectionStore):
    """In-memory collection, records kept in insertion order"""

    def __init__(self, name: str):
        self.name = name
        self._records: list[Record] = []

    async def find(
        self,
        filter: dict[str, Any],
        *,
        projection: Optional[dict[str, Any]] = None,
        sort: Optional[SortSpec] = None,
        skip: int = 0,
        limit: int = 0,
    ) -> list[Record]:
        return select(
            self._records, filter, projection=projection, sort=sort, skip=skip, limit=limit
        )

    async def stream(
        self,
        filter: dict[str, Any],
        *,
        projection: Optional[dict[str, Any]] = None,
        sort: Optional[SortSpec] = None,
        skip: int = 0,
        limit: int = 0,
    ) -> AsyncIterator[Record]:
        for record in select(
            self._records, filter, projection=projection, sort=sort, skip=skip, limit=limit
        ):
            yield record

    async def find_one(
        self, filter: dict[str, Any], projection: Optional[dict[str, Any]] = None
    ) -> Optional[Record]:
        found = select(self._records, filter, projection=projection, limit=1)
        return found[0] if found else None

    async def insert_many(self, records: Sequence[Record]) -> list[Any]:
        prepared = []
        for record in records:
            doc = copy.deepcopy(record)
            if doc.get(ID_FIELD) is None:
                doc[ID_FIELD] = ObjectId()
            if any(r[ID_FIELD] == doc[ID_FIELD] for r in self._records + prepared):
                raise ValueError(f"Duplicate key: {doc[ID_FIELD]}")
            prepared.append(doc)
        self._records.extend(prepared)
        return [doc[ID_FIELD] for doc in prepared]

    async def update_one(self, filter: dict[str, Any], update: dict[str, Any]) -> int:
        for record in self._records:
            if matches(record, filter):
                return 1 if apply_update(record, update) else 0
        return 0

    async def update_many(self, filter: dict[str, Any], update: dict[str, Any]) -> int:
        modified = 0
        for record in self._records:
            if matches(record, filter) and apply_update(record, update):
                modified += 1
        return modified

    async def delete_many(self, filter: dict[str, Any]) -> int:
        kept = [r for r in self._records if not matches(r, filter)]
        deleted = len(self._records) - len(kept)
        self._records = kept
        return deleted


class MemoryDocumentStore(DocumentStore):
    """In-memory document store; collections are created on first access"""

    def __init__(self):
        self._collections: dict[str, MemoryCollectionStore] = {}

    def collection(self, name: str) -> MemoryCollectionStore:
        if name not in self._collections:
            self._collections[name] = MemoryCollectionStore(name)
        return self._collections[name]
