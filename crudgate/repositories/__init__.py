"""
Data Access Layer Module Initialization
"""

from crudgate.repositories.audit_repo import AuditLogRepository
from crudgate.repositories.cache_repo import CacheRepository
from crudgate.repositories.document_store import CollectionStore, DocumentStore

__all__ = [
    "AuditLogRepository",
    "CacheRepository",
    "CollectionStore",
    "DocumentStore",
]
