"""Base operation class for SQLite cache operations."""

from __future__ import annotations

import hashlib
import logging
from collections.abc import Callable
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import sqlite3

logger = logging.getLogger(__name__)


class BaseOperation:
    """Base class for cache operations with shared functionality."""

    def __init__(
        self,
        conn: sqlite3.Connection,
        clock: Callable[[], float],
    ) -> None:
        """Initialize base operation.

        Args:
            conn: SQLite database connection
            clock: Time source returning epoch seconds
        """
        self.conn = conn
        self.clock = clock

    @staticmethod
    def _key_hash(key: str) -> str:
        """Return the SHA-256 hex digest used to index ``key``."""
        return hashlib.sha256(key.encode("utf-8")).hexdigest()

    def _validate_connection(self) -> None:
        """Raise RuntimeError if the connection has been closed."""
        if self.conn is None:
            msg = "Database connection not initialized"
            raise RuntimeError(msg)
