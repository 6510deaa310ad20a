"""Cache backend adapters.

Every adapter implements the CacheBackend protocol; create_backend()
builds the one selected by CacheSettings.
"""

from __future__ import annotations

from cinecache.config.models.cache_settings import CacheSettings
from cinecache.shared.constants import Backends

from .base import MISS, CacheBackend, normalize_key
from .memory import InMemoryCacheBackend
from .redis_backend import RedisCacheBackend
from .sqlite_backend import SQLiteCacheBackend


def create_backend(settings: CacheSettings) -> CacheBackend:
    """Build the backend named by ``settings.backend``."""
    if settings.backend == Backends.SQLITE:
        return SQLiteCacheBackend(settings.sqlite_path, timeout=settings.backend_timeout_seconds)
    if settings.backend == Backends.REDIS:
        return RedisCacheBackend(
            url=settings.redis_url,
            key_prefix=settings.key_prefix,
            timeout=settings.backend_timeout_seconds,
        )
    return InMemoryCacheBackend()


__all__ = [
    "MISS",
    "CacheBackend",
    "InMemoryCacheBackend",
    "RedisCacheBackend",
    "SQLiteCacheBackend",
    "create_backend",
    "normalize_key",
]
