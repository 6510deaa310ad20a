"""Query operations for SQLite cache."""

from __future__ import annotations

import logging
from typing import Any

import orjson

from cinecache.services.backends.base import MISS
from cinecache.services.sqlite_cache.operations.base import BaseOperation
from cinecache.shared.constants import CacheValidationConstants

logger = logging.getLogger(__name__)


class QueryOperations(BaseOperation):
    """Query operations for cache retrieval."""

    def get(self, key: str, group: str) -> Any:
        """Retrieve a live entry.

        Args:
            key: Cache key
            group: Cache group

        Returns:
            The deserialized value, or MISS if absent, expired or corrupt
        """
        self._validate_connection()

        key_hash = self._key_hash(key)
        cursor = self.conn.execute(
            """
            SELECT value, expires_at FROM cache_entries
            WHERE key_hash = ? AND cache_group = ?
            """,
            (key_hash, group),
        )
        row = cursor.fetchone()
        if row is None:
            return MISS

        payload, expires_at = row
        now = self.clock()
        if now >= expires_at:
            logger.debug(
                "Cache entry expired for key: %s",
                key[: CacheValidationConstants.KEY_LOG_LENGTH],
            )
            return MISS

        try:
            value = orjson.loads(payload)
        except orjson.JSONDecodeError as e:
            logger.warning(
                "Failed to deserialize cache data for key hash %s...: %s",
                key_hash[: CacheValidationConstants.HASH_PREFIX_LOG_LENGTH],
                str(e),
            )
            return MISS

        self._update_access_stats(key_hash, group, now)
        return value

    def count(self, group: str) -> int:
        """Count live entries in a group."""
        self._validate_connection()
        cursor = self.conn.execute(
            "SELECT COUNT(*) FROM cache_entries WHERE cache_group = ? AND expires_at > ?",
            (group, self.clock()),
        )
        return int(cursor.fetchone()[0])

    def info(self) -> dict[str, int]:
        """Return totals for the whole table."""
        self._validate_connection()
        now = self.clock()
        total, size = self.conn.execute(
            "SELECT COUNT(*), COALESCE(SUM(value_size), 0) FROM cache_entries"
        ).fetchone()
        valid = self.conn.execute(
            "SELECT COUNT(*) FROM cache_entries WHERE expires_at > ?", (now,)
        ).fetchone()[0]
        return {
            "total_entries": int(total),
            "valid_entries": int(valid),
            "expired_entries": int(total) - int(valid),
            "total_size_bytes": int(size),
        }

    def _update_access_stats(self, key_hash: str, group: str, now: float) -> None:
        self.conn.execute(
            """
            UPDATE cache_entries
            SET hit_count = hit_count + 1, last_accessed_at = ?
            WHERE key_hash = ? AND cache_group = ?
            """,
            (now, key_hash, group),
        )
