"""
In-Memory Repository Implementation Module Initialization
"""

from crudgate.repositories.memory.cache_repo import MemoryCacheRepository
from crudgate.repositories.memory.document_store import MemoryCollectionStore, MemoryDocumentStore

__all__ = [
    "MemoryCacheRepository",
    "MemoryCollectionStore",
    "MemoryDocumentStore",
]
