"""Update/delete operations for SQLite cache."""

from __future__ import annotations

import logging

from cinecache.services.sqlite_cache.operations.base import BaseOperation

logger = logging.getLogger(__name__)


class UpdateOperations(BaseOperation):
    """Delete, flush and purge operations."""

    def delete(self, key: str, group: str) -> bool:
        """Delete an entry.

        Returns:
            True if a row was deleted
        """
        self._validate_connection()
        cursor = self.conn.execute(
            "DELETE FROM cache_entries WHERE key_hash = ? AND cache_group = ?",
            (self._key_hash(key), group),
        )
        return cursor.rowcount > 0

    def flush_group(self, group: str) -> int:
        """Delete every entry tagged with ``group``.

        Returns:
            Number of deleted rows
        """
        self._validate_connection()
        cursor = self.conn.execute("DELETE FROM cache_entries WHERE cache_group = ?", (group,))
        logger.debug("Flushed %d entries from group %s", cursor.rowcount, group)
        return cursor.rowcount

    def purge_expired(self) -> int:
        """Purge expired cache entries.

        Returns:
            Number of purged entries
        """
        self._validate_connection()
        cursor = self.conn.execute(
            "DELETE FROM cache_entries WHERE expires_at <= ?",
            (self.clock(),),
        )
        purged_count = cursor.rowcount
        if purged_count > 0:
            logger.info("Purged %d expired cache entries", purged_count)
        return purged_count

    def clear(self) -> int:
        """Delete every entry.

        Returns:
            Number of cleared entries
        """
        self._validate_connection()
        cursor = self.conn.execute("DELETE FROM cache_entries")
        logger.info("Cleared all cache entries")
        return cursor.rowcount
