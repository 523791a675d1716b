"""
MongoDB Repository Implementation Module Initialization
"""

from crudgate.repositories.mongo.document_store import MongoCollectionStore, MongoDocumentStore

__all__ = [
    "MongoCollectionStore",
    "MongoDocumentStore",
]
