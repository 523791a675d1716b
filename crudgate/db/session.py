"""
Audit Database Session Management Module

Provides the asynchronous SQLAlchemy engine used by the SQL audit log backend.
Only used when AUDIT_STORE_TYPE is set to "database".
"""

import logging
from typing import Optional

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from crudgate.config import get_settings
from crudgate.db.models import Base

logger = logging.getLogger(__name__)

_engine: Optional[AsyncEngine] = None
_session_factory: Optional[async_sessionmaker[AsyncSession]] = None


async def init_audit_db(database_url: Optional[str] = None) -> None:
    """
    Initialize Audit Database

    Creates the engine and all audit tables.

    Args:
        database_url: Overrides AUDIT_DATABASE_URL
    """
    global _engine, _session_factory

    if _engine is not None:
        logger.warning("Audit database already initialized")
        return

    settings = get_settings()
    url = database_url or settings.AUDIT_DATABASE_URL
    _engine = create_async_engine(
        url,
        echo=settings.DEBUG,
        connect_args={"check_same_thread": False} if url.startswith("sqlite") else {},
    )
    _session_factory = async_sessionmaker(
        _engine,
        class_=AsyncSession,
        expire_on_commit=False,  # Do not expire objects after commit, avoids extra queries
        autoflush=False,
    )

    async with _engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Audit database initialized")


async def close_audit_db() -> None:
    """Dispose the audit engine"""
    global _engine, _session_factory

    if _engine is None:
        return

    await _engine.dispose()
    _engine = None
    _session_factory = None


def get_audit_session_factory() -> async_sessionmaker[AsyncSession]:
    """
    Get the audit session factory

    Raises:
        RuntimeError: If the audit database has not been initialized
    """
    if _session_factory is None:
        raise RuntimeError(
            "Audit database not initialized. "
            "Ensure AUDIT_STORE_TYPE is set to 'database' and init_audit_db() has been called."
        )
    return _session_factory
