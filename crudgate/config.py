"""
Configuration Management Module

Configures storage, cache, audit and access-control parameters via environment variables or .env file.
Supports MongoDB (default) and an in-process document store.
"""

from dataclasses import dataclass
from functools import lru_cache
from typing import Literal, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application Configuration Class

    All configuration items can be overridden by environment variables, with names matching fields (uppercase).
    """

    # Application Config
    APP_NAME: str = "crudgate"
    DEBUG: bool = False

    # Storage Config
    # Document store backend: "mongodb" uses motor, "memory" keeps collections in-process
    STORAGE_TYPE: Literal["mongodb", "memory"] = "mongodb"
    MONGO_URL: str = "mongodb://localhost:27017"
    MONGO_DB_NAME: str = "crudgate"

    # Cache Config
    # Cache backend: "memory" keeps entries in-process, "redis" uses Redis
    CACHE_TYPE: Literal["memory", "redis"] = "memory"
    # Redis connection URL (only used when CACHE_TYPE is "redis")
    REDIS_URL: str = "redis://localhost:6379/0"
    # Cached query result TTL (seconds)
    CACHE_TTL_SECONDS: int = 300
    # Namespace of the query cache keys in Redis
    CACHE_KEY_PREFIX: str = "crudgate:cache"

    # Audit Log Config
    # "storage" writes audit entries into the document store, "database" uses SQLAlchemy
    AUDIT_STORE_TYPE: Literal["storage", "database"] = "storage"
    AUDIT_DATABASE_URL: str = "sqlite+aiosqlite:///./crudgate_audit.db"
    # Per-operation audit toggles
    LOG_CREATE: bool = False
    LOG_UPDATE: bool = False
    LOG_READ: bool = False
    LOG_DELETE: bool = False

    # Query / Bulk Limits
    # Maximum records returned by a single query
    MAX_QUERY_LIMIT: int = 10000
    # Maximum items accepted by a single save request
    MAX_BULK_SIZE: int = 10000
    # Maximum records accepted by a bulk load (collection refresh)
    MAX_LOAD_RECORDS: int = 10000

    # Allow GetAll lookups without a credential (unscoped, e.g. lookup tables)
    ANONYMOUS_GET_ALL: bool = True

    # Collection Names
    AUDIT_COLL: str = "audits"
    SERVICE_COLL: str = "services"
    ACCESS_COLL: str = "accessKeys"
    USER_COLL: str = "users"
    ROLE_COLL: str = "roles"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
    )


@lru_cache()
def get_settings() -> Settings:
    """
    Get application configuration (Singleton)

    Uses lru_cache to ensure configuration is loaded only once.

    Returns:
        Settings: Application configuration instance
    """
    return Settings()


@dataclass(frozen=True)
class CrudOptions:
    """
    CRUD Pipeline Options

    Explicit, typed options shared by every pipeline of a CrudService.
    Defaults match the environment defaults of Settings.
    """

    # Records returned by a query are capped at this limit
    max_query_limit: int = 10000
    # Items accepted by a single save request
    max_bulk_size: int = 10000
    # Records accepted by a bulk load
    max_load_records: int = 10000
    # Cached query result TTL (seconds)
    cache_ttl_seconds: int = 300
    # Audit toggles
    log_create: bool = False
    log_update: bool = False
    log_read: bool = False
    log_delete: bool = False
    # GetAll without a credential returns unscoped results
    anonymous_get_all: bool = True
    # Collection names of the access-control store
    service_coll: str = "services"
    access_coll: str = "accessKeys"
    user_coll: str = "users"
    role_coll: str = "roles"
    audit_coll: str = "audits"

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "CrudOptions":
        """Build options from application settings"""
        settings = settings or get_settings()
        return cls(
            max_query_limit=settings.MAX_QUERY_LIMIT,
            max_bulk_size=settings.MAX_BULK_SIZE,
            max_load_records=settings.MAX_LOAD_RECORDS,
            cache_ttl_seconds=settings.CACHE_TTL_SECONDS,
            log_create=settings.LOG_CREATE,
            log_update=settings.LOG_UPDATE,
            log_read=settings.LOG_READ,
            log_delete=settings.LOG_DELETE,
            anonymous_get_all=settings.ANONYMOUS_GET_ALL,
            service_coll=settings.SERVICE_COLL,
            access_coll=settings.ACCESS_COLL,
            user_coll=settings.USER_COLL,
            role_coll=settings.ROLE_COLL,
            audit_coll=settings.AUDIT_COLL,
        )
