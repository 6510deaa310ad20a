"""Migration manager for SQLite cache.

This module provides database schema creation and version tracking.
"""

from __future__ import annotations

import logging
import sqlite3

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 1

REQUIRED_TABLES = ("cache_entries", "schema_version")


class MigrationManager:
    """Database schema migration manager."""

    def __init__(self, conn: sqlite3.Connection) -> None:
        """Initialize migration manager.

        Args:
            conn: SQLite database connection
        """
        self.conn = conn
        self._current_version = self._get_current_version()

    def get_current_version(self) -> int:
        """Get current schema version."""
        return self._current_version

    def _get_current_version(self) -> int:
        """Read the schema version from the database (0 if not set)."""
        cursor = self.conn.execute(
            "SELECT name FROM sqlite_master WHERE type='table' AND name='schema_version'"
        )
        if cursor.fetchone() is None:
            return 0

        cursor = self.conn.execute("SELECT MAX(version) FROM schema_version")
        row = cursor.fetchone()
        return row[0] if row and row[0] is not None else 0

    def create_tables(self) -> None:
        """Create database schema (v1).

        Entries are unique per (key_hash, cache_group); timestamps are
        epoch seconds so expiry comparisons are plain numeric ones.
        """
        schema_sql = """
        CREATE TABLE IF NOT EXISTS cache_entries (
            id INTEGER PRIMARY KEY AUTOINCREMENT,

            -- Cache key information
            cache_key TEXT NOT NULL,
            key_hash TEXT NOT NULL,
            cache_group TEXT NOT NULL,

            -- Serialized value (orjson)
            value BLOB NOT NULL,

            -- TTL and metadata
            created_at REAL NOT NULL,
            expires_at REAL NOT NULL,

            -- Statistics (advisory)
            hit_count INTEGER DEFAULT 0,
            last_accessed_at REAL,
            value_size INTEGER,

            -- Constraints
            CHECK (length(cache_key) > 0),
            CHECK (length(key_hash) = 64),
            UNIQUE (key_hash, cache_group)
        );

        CREATE INDEX IF NOT EXISTS idx_cache_group ON cache_entries(cache_group);
        CREATE INDEX IF NOT EXISTS idx_expires_at ON cache_entries(expires_at);

        CREATE TABLE IF NOT EXISTS schema_version (
            version INTEGER PRIMARY KEY,
            applied_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP NOT NULL
        );
        """

        self.conn.executescript(schema_sql)

        if self._current_version < SCHEMA_VERSION:
            self.conn.execute(
                "INSERT OR REPLACE INTO schema_version (version) VALUES (?)",
                (SCHEMA_VERSION,),
            )
            self._current_version = SCHEMA_VERSION
            logger.info("Created cache database schema (v%d)", SCHEMA_VERSION)

    def validate_schema(self) -> bool:
        """Validate current schema integrity.

        Returns:
            True if every required table exists and the version is current
        """
        try:
            for table in REQUIRED_TABLES:
                cursor = self.conn.execute(
                    "SELECT name FROM sqlite_master WHERE type='table' AND name=?",
                    (table,),
                )
                if cursor.fetchone() is None:
                    logger.error("Required table '%s' not found", table)
                    return False

            version = self._get_current_version()
            if version != SCHEMA_VERSION:
                logger.error("Unexpected schema version: %d", version)
                return False

            return True

        except sqlite3.Error:
            logger.exception("Schema validation failed")
            return False
