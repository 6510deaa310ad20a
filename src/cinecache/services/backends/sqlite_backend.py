"""SQLite cache backend.

Stores orjson-serialized entries in a single WAL-mode database shared by
every process on the host.
"""

from __future__ import annotations

import logging
import sqlite3
import threading
import time
from collections.abc import Callable
from pathlib import Path
from typing import Any

import orjson

from cinecache.services.backends.base import normalize_key
from cinecache.services.sqlite_cache import (
    InsertOperations,
    MigrationManager,
    QueryOperations,
    UpdateOperations,
)
from cinecache.shared.constants import Backends
from cinecache.shared.errors import (
    CacheBackendError,
    ErrorCode,
    ErrorContext,
    InfrastructureError,
    create_backend_error,
)
from cinecache.shared.logging import log_operation_error, log_operation_success

logger = logging.getLogger(__name__)

IN_MEMORY = ":memory:"


class SQLiteCacheBackend:
    """SQLite-based cache store.

    Uses WAL mode for concurrent readers and a busy timeout taken from
    the backend timeout setting; a locked database surfaces as
    BackendUnavailableError.

    Example:
        >>> backend = SQLiteCacheBackend(Path("data/cache.db"))
        >>> backend.set("movie_data_42", {"id": 42}, "movies", 3600)
        >>> backend.get("movie_data_42", "movies")
        {'id': 42}
        >>> backend.close()
    """

    name = "sqlite"

    def __init__(
        self,
        db_path: Path | str,
        timeout: float = Backends.DEFAULT_TIMEOUT_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize SQLite cache database.

        Args:
            db_path: Database file path, or ":memory:"
            timeout: Seconds to wait on a locked database
            clock: Time source returning epoch seconds

        Raises:
            InfrastructureError: If the database cannot be opened
        """
        self.db_path = db_path if str(db_path) == IN_MEMORY else Path(db_path)
        self.timeout = timeout
        self.clock = clock
        self.conn: sqlite3.Connection | None = None
        self._lock = threading.RLock()
        self._initialize_db()

    def _initialize_db(self) -> None:
        context = ErrorContext(
            operation="initialize_db",
            additional_data={"db_path": str(self.db_path)},
        )
        start = time.perf_counter()

        try:
            if isinstance(self.db_path, Path):
                self.db_path.parent.mkdir(parents=True, exist_ok=True)

            self.conn = sqlite3.connect(
                str(self.db_path),
                timeout=self.timeout,
                check_same_thread=False,
                isolation_level=None,  # autocommit
            )
            self.conn.execute("PRAGMA journal_mode=WAL")
            self.conn.execute("PRAGMA synchronous=NORMAL")

            self.migrations = MigrationManager(self.conn)
            self.migrations.create_tables()

            self._query_ops = QueryOperations(self.conn, self.clock)
            self._insert_ops = InsertOperations(self.conn, self.clock)
            self._update_ops = UpdateOperations(self.conn, self.clock)

            purged = self._update_ops.purge_expired()
            if purged:
                logger.info("Purged %d expired cache entries on startup", purged)

            log_operation_success(
                logger=logger,
                operation="initialize_db",
                duration_ms=(time.perf_counter() - start) * 1000,
                context=context,
            )

        except sqlite3.Error as e:
            error = InfrastructureError(
                code=ErrorCode.CACHE_BACKEND_UNAVAILABLE,
                message=f"Failed to initialize SQLite cache: {e!s}",
                context=context,
                original_error=e,
            )
            log_operation_error(logger=logger, error=error, operation="initialize_db")
            raise error from e

    def _run(
        self,
        operation: str,
        func: Callable[[], Any],
        key: str | None = None,
        group: str | None = None,
    ) -> Any:
        """Run ``func`` under the connection lock, mapping driver errors."""
        if self.conn is None:
            raise create_backend_error(
                "SQLite cache connection is closed",
                operation=operation,
                key=key,
                group=group,
            )
        try:
            with self._lock:
                return func()
        except sqlite3.OperationalError as e:
            # "database is locked" after the busy timeout, disk I/O errors
            raise create_backend_error(
                f"SQLite cache unavailable: {e!s}",
                operation=operation,
                key=key,
                group=group,
                original_error=e,
            ) from e
        except sqlite3.Error as e:
            raise CacheBackendError(
                ErrorCode.CACHE_READ_FAILED if operation == "get" else ErrorCode.CACHE_WRITE_FAILED,
                f"SQLite cache {operation} failed: {e!s}",
                ErrorContext(operation=operation, key=key, group=group),
                e,
            ) from e
        except orjson.JSONEncodeError as e:
            raise create_backend_error(
                f"Value for {key} is not serializable: {e!s}",
                operation=operation,
                key=key,
                group=group,
                original_error=e,
                unavailable=False,
            ) from e

    def get(self, key: str, group: str) -> Any:
        key = normalize_key(key)
        return self._run("get", lambda: self._query_ops.get(key, group), key, group)

    def set(self, key: str, value: Any, group: str, ttl: int) -> None:
        key = normalize_key(key)
        self._run("set", lambda: self._insert_ops.insert(key, value, group, ttl), key, group)

    def delete(self, key: str, group: str) -> None:
        key = normalize_key(key)
        self._run("delete", lambda: self._update_ops.delete(key, group), key, group)

    def flush_group(self, group: str) -> None:
        self._run("flush_group", lambda: self._update_ops.flush_group(group), group=group)

    def clear(self) -> None:
        self._run("clear", self._update_ops.clear)

    def count(self, group: str) -> int:
        return int(self._run("count", lambda: self._query_ops.count(group), group=group))

    def purge_expired(self) -> int:
        return int(self._run("purge_expired", self._update_ops.purge_expired))

    def get_cache_info(self) -> dict[str, Any]:
        """Return table totals, the schema version and the database location."""
        info = self._run("get_cache_info", self._query_ops.info)
        return {"db_path": str(self.db_path), "schema_version": self.migrations.get_current_version(), **info}

    def close(self) -> None:
        """Close database connection."""
        with self._lock:
            if self.conn:
                self.conn.close()
                self.conn = None
                logger.debug("Closed SQLite cache connection: %s", self.db_path)
