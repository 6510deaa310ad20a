"""Insert operations for SQLite cache."""

from __future__ import annotations

import logging
from typing import Any

import orjson

from cinecache.services.sqlite_cache.operations.base import BaseOperation
from cinecache.shared.constants import CacheValidationConstants

logger = logging.getLogger(__name__)


class InsertOperations(BaseOperation):
    """Insert operations for cache storage."""

    def insert(self, key: str, value: Any, group: str, ttl_seconds: int) -> None:
        """Insert or replace an entry.

        Args:
            key: Cache key
            value: orjson-serializable value
            group: Cache group
            ttl_seconds: Time-to-live in seconds

        Raises:
            orjson.JSONEncodeError: If the value cannot be serialized
        """
        self._validate_connection()

        key_hash = self._key_hash(key)
        payload = orjson.dumps(value)
        now = self.clock()

        insert_sql = """
        INSERT OR REPLACE INTO cache_entries (
            cache_key, key_hash, cache_group, value,
            created_at, expires_at, hit_count, value_size
        ) VALUES (?, ?, ?, ?, ?, ?, 0, ?)
        """
        self.conn.execute(
            insert_sql,
            (key, key_hash, group, payload, now, now + ttl_seconds, len(payload)),
        )

        logger.debug(
            "Cache inserted: key=%s (hash=%s...), group=%s, size=%d bytes, ttl=%ds",
            key[: CacheValidationConstants.KEY_LOG_LENGTH],
            key_hash[: CacheValidationConstants.HASH_PREFIX_LOG_LENGTH],
            group,
            len(payload),
            ttl_seconds,
        )
