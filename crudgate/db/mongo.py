"""
MongoDB Connection Management Module

Provides motor client lifecycle management for the document store.
Only used when STORAGE_TYPE is set to "mongodb".
"""

import logging
from typing import Optional

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase

from crudgate.config import get_settings

logger = logging.getLogger(__name__)

# Global motor client instance
_mongo_client: Optional[AsyncIOMotorClient] = None


async def init_mongo() -> None:
    """
    Initialize MongoDB Connection

    Creates a motor client from MONGO_URL and verifies connectivity.
    """
    global _mongo_client

    if _mongo_client is not None:
        logger.warning("MongoDB client already initialized")
        return

    settings = get_settings()
    _mongo_client = AsyncIOMotorClient(settings.MONGO_URL, tz_aware=True)

    # Verify connectivity
    await _mongo_client.admin.command("ping")
    logger.info("MongoDB connection established: database=%s", settings.MONGO_DB_NAME)


async def close_mongo() -> None:
    """Close MongoDB Connection"""
    global _mongo_client

    if _mongo_client is None:
        return

    _mongo_client.close()
    _mongo_client = None
    logger.info("MongoDB connection closed")


def get_mongo_db() -> AsyncIOMotorDatabase:
    """
    Get the configured MongoDB database

    Raises:
        RuntimeError: If MongoDB has not been initialized
    """
    if _mongo_client is None:
        raise RuntimeError(
            "MongoDB client not initialized. "
            "Ensure STORAGE_TYPE is set to 'mongodb' and init_mongo() has been called."
        )
    return _mongo_client[get_settings().MONGO_DB_NAME]
