"""Redis cache backend.

Group flushes are logical: each group has a generation counter that is
part of every data key, and flushing a group increments it. Entries of
older generations are never read again and expire through their TTL.
"""

from __future__ import annotations

import logging
from typing import Any

import orjson
import redis

from cinecache.services.backends.base import MISS, normalize_key
from cinecache.shared.constants import Backends
from cinecache.shared.errors import (
    CacheBackendError,
    ErrorCode,
    ErrorContext,
    create_backend_error,
)

logger = logging.getLogger(__name__)


class RedisCacheBackend:
    """Redis-based cache store shared by every request handler.

    Args:
        redis_client: Redis client instance (built from ``url`` if omitted)
        url: Redis connection URL
        key_prefix: Prefix for every key written by this backend
        timeout: Socket and connect timeout in seconds
    """

    name = "redis"

    def __init__(
        self,
        redis_client: Any | None = None,
        url: str = Backends.DEFAULT_REDIS_URL,
        key_prefix: str = Backends.DEFAULT_KEY_PREFIX,
        timeout: float = Backends.DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        self.key_prefix = key_prefix
        if redis_client is None:
            redis_client = redis.Redis.from_url(
                url,
                socket_timeout=timeout,
                socket_connect_timeout=timeout,
            )
        self.redis_client = redis_client
        logger.debug("Redis cache backend configured with prefix %s", key_prefix)

    def _generation_key(self, group: str) -> str:
        return f"{self.key_prefix}:gen:{group}"

    def _generation(self, group: str) -> int:
        return int(self.redis_client.get(self._generation_key(group)) or 0)

    def _data_key(self, key: str, group: str, generation: int) -> str:
        return f"{self.key_prefix}:data:{group}:{generation}:{key}"

    def _wrap(self, operation: str, e: Exception, key: str | None, group: str | None) -> CacheBackendError:
        if isinstance(e, (redis.ConnectionError, redis.TimeoutError)):
            return create_backend_error(
                f"Redis unavailable: {e!s}",
                operation=operation,
                key=key,
                group=group,
                original_error=e,
            )
        return CacheBackendError(
            ErrorCode.CACHE_READ_FAILED if operation == "get" else ErrorCode.CACHE_WRITE_FAILED,
            f"Redis {operation} failed: {e!s}",
            ErrorContext(operation=operation, key=key, group=group),
            e,
        )

    def get(self, key: str, group: str) -> Any:
        key = normalize_key(key)
        try:
            payload = self.redis_client.get(self._data_key(key, group, self._generation(group)))
        except redis.RedisError as e:
            raise self._wrap("get", e, key, group) from e

        if payload is None:
            return MISS
        try:
            return orjson.loads(payload)
        except orjson.JSONDecodeError as e:
            logger.warning("Discarding undecodable cache entry %s/%s: %s", group, key, e)
            return MISS

    def set(self, key: str, value: Any, group: str, ttl: int) -> None:
        key = normalize_key(key)
        try:
            payload = orjson.dumps(value)
        except orjson.JSONEncodeError as e:
            raise create_backend_error(
                f"Value for {key} is not serializable: {e!s}",
                operation="set",
                key=key,
                group=group,
                original_error=e,
                unavailable=False,
            ) from e

        try:
            data_key = self._data_key(key, group, self._generation(group))
            self.redis_client.set(data_key, payload, ex=int(ttl))
        except redis.RedisError as e:
            raise self._wrap("set", e, key, group) from e

    def delete(self, key: str, group: str) -> None:
        key = normalize_key(key)
        try:
            self.redis_client.delete(self._data_key(key, group, self._generation(group)))
        except redis.RedisError as e:
            raise self._wrap("delete", e, key, group) from e

    def flush_group(self, group: str) -> None:
        try:
            generation = self.redis_client.incr(self._generation_key(group))
        except redis.RedisError as e:
            raise self._wrap("flush_group", e, None, group) from e
        logger.debug("Group %s advanced to generation %s", group, generation)

    def clear(self) -> None:
        try:
            keys = list(self.redis_client.scan_iter(match=f"{self.key_prefix}:*"))
            if keys:
                self.redis_client.delete(*keys)
        except redis.RedisError as e:
            raise self._wrap("clear", e, None, None) from e
        logger.info("Cleared %d redis keys with prefix %s", len(keys), self.key_prefix)

    def count(self, group: str) -> int:
        try:
            pattern = self._data_key("*", group, self._generation(group))
            return sum(1 for _ in self.redis_client.scan_iter(match=pattern))
        except redis.RedisError as e:
            raise self._wrap("count", e, None, group) from e

    def purge_expired(self) -> int:
        """Redis expires keys natively."""
        return 0

    def close(self) -> None:
        try:
            self.redis_client.close()
        except redis.RedisError as e:
            logger.warning("Failed to close redis client: %s", e)
