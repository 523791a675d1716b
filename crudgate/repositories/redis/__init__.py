"""
Redis Repository Implementation Module Initialization
"""

from crudgate.repositories.redis.cache_repo import RedisCacheRepository

__all__ = [
    "RedisCacheRepository",
]
