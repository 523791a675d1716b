"""
Redis Cache Client Module

Holds the shared async Redis client of the query cache (CACHE_TYPE "redis").
"""

import logging
from typing import Optional
from urllib.parse import urlparse

from redis.asyncio import Redis

from crudgate.config import get_settings

logger = logging.getLogger(__name__)

_redis_client: Optional[Redis] = None


def _describe(redis_url: str) -> str:
    """host:port/db of a Redis URL, without credentials"""
    parsed = urlparse(redis_url)
    if parsed.password is None and parsed.hostname not in ("localhost", "127.0.0.1", "::1"):
        logger.warning("Query cache connects to %s without a password", parsed.hostname)
    return f"{parsed.hostname}:{parsed.port or 6379}{parsed.path or '/0'}"


async def init_redis(redis_url: Optional[str] = None) -> Redis:
    """
    Connect the query cache client

    Args:
        redis_url: Overrides REDIS_URL

    Returns:
        Redis: The connected client (the existing one if already connected)
    """
    global _redis_client

    if _redis_client is not None:
        return _redis_client

    url = redis_url or get_settings().REDIS_URL
    client = Redis.from_url(url, decode_responses=True)
    await client.ping()
    _redis_client = client
    logger.info("Query cache connected: %s", _describe(url))
    return client


async def close_redis() -> None:
    """Close the query cache client"""
    global _redis_client

    if _redis_client is None:
        return

    await _redis_client.aclose()
    _redis_client = None
    logger.info("Query cache disconnected")


def get_redis() -> Redis:
    """
    Get the query cache client

    Raises:
        RuntimeError: init_redis() has not been called
    """
    if _redis_client is None:
        raise RuntimeError("Query cache client not connected, call init_redis() first")
    return _redis_client
