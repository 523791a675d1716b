"""
Dependency Wiring Module

Builds the storage, cache and audit backends selected by Settings and the
CrudService on top of them.
"""

import logging
from typing import Optional

from crudgate.config import CrudOptions, Settings, get_settings
from crudgate.db.mongo import close_mongo, get_mongo_db, init_mongo
from crudgate.db.redis import close_redis, get_redis, init_redis
from crudgate.db.session import close_audit_db, get_audit_session_factory, init_audit_db
from crudgate.logging_config import setup_logging
from crudgate.repositories.audit_repo import AuditLogRepository
from crudgate.repositories.cache_repo import CacheRepository
from crudgate.repositories.document_store import DocumentStore
from crudgate.repositories.memory import MemoryCacheRepository, MemoryDocumentStore
from crudgate.repositories.mongo import MongoDocumentStore
from crudgate.repositories.redis import RedisCacheRepository
from crudgate.repositories.sqlalchemy import SQLAlchemyAuditLogRepository
from crudgate.repositories.storage import DocumentAuditLogRepository
from crudgate.services import CrudService

logger = logging.getLogger(__name__)


# ============ Global Singletons ============

# In-process backends must outlive a single service instance
_memory_store: Optional[MemoryDocumentStore] = None
_memory_cache: Optional[MemoryCacheRepository] = None
_crud_service: Optional[CrudService] = None


async def init_backends(settings: Optional[Settings] = None) -> None:
    """
    Initialize the configured backends

    Should be called once during application startup.
    """
    settings = settings or get_settings()
    setup_logging(settings)
    if settings.STORAGE_TYPE == "mongodb":
        await init_mongo()
    if settings.CACHE_TYPE == "redis":
        await init_redis(settings.REDIS_URL)
    if settings.AUDIT_STORE_TYPE == "database":
        await init_audit_db(settings.AUDIT_DATABASE_URL)
    logger.info(
        "Backends initialized: storage=%s cache=%s audit=%s",
        settings.STORAGE_TYPE,
        settings.CACHE_TYPE,
        settings.AUDIT_STORE_TYPE,
    )


async def close_backends(settings: Optional[Settings] = None) -> None:
    """Close the configured backends and drop the cached service"""
    global _crud_service, _memory_store, _memory_cache

    settings = settings or get_settings()
    if settings.STORAGE_TYPE == "mongodb":
        await close_mongo()
    if settings.CACHE_TYPE == "redis":
        await close_redis()
    if settings.AUDIT_STORE_TYPE == "database":
        await close_audit_db()
    _crud_service = None
    _memory_store = None
    _memory_cache = None


# ============ Repository Dependencies ============

def get_document_store(settings: Optional[Settings] = None) -> DocumentStore:
    """Get the document store selected by STORAGE_TYPE"""
    global _memory_store

    settings = settings or get_settings()
    if settings.STORAGE_TYPE == "mongodb":
        return MongoDocumentStore(get_mongo_db())
    if _memory_store is None:
        _memory_store = MemoryDocumentStore()
    return _memory_store


def get_cache_repo(settings: Optional[Settings] = None) -> CacheRepository:
    """Get the cache repository selected by CACHE_TYPE"""
    global _memory_cache

    settings = settings or get_settings()
    if settings.CACHE_TYPE == "redis":
        return RedisCacheRepository(get_redis(), prefix=settings.CACHE_KEY_PREFIX)
    if _memory_cache is None:
        _memory_cache = MemoryCacheRepository()
    return _memory_cache


def get_audit_repo(
    store: DocumentStore,
    settings: Optional[Settings] = None,
) -> Optional[AuditLogRepository]:
    """
    Get the audit repository selected by AUDIT_STORE_TYPE

    Returns None when every audit toggle is off.
    """
    settings = settings or get_settings()
    if not (settings.LOG_CREATE or settings.LOG_UPDATE or settings.LOG_READ or settings.LOG_DELETE):
        return None
    if settings.AUDIT_STORE_TYPE == "database":
        return SQLAlchemyAuditLogRepository(get_audit_session_factory())
    return DocumentAuditLogRepository(store, collection=settings.AUDIT_COLL)


# ============ Service Dependencies ============

def build_crud_service(settings: Optional[Settings] = None) -> CrudService:
    """Build a CrudService wired to the configured backends"""
    settings = settings or get_settings()
    store = get_document_store(settings)
    return CrudService(
        store=store,
        cache_repo=get_cache_repo(settings),
        audit_repo=get_audit_repo(store, settings),
        options=CrudOptions.from_settings(settings),
    )


def get_crud_service() -> CrudService:
    """Get the shared CrudService (built on first use)"""
    global _crud_service

    if _crud_service is None:
        _crud_service = build_crud_service()
    return _crud_service
