"""Database manager for the catalog content store.

Owns the SQLAlchemy engine and session factory and provides transactional
session scopes.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Generator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from cinecache.content.models import Base
from cinecache.shared.constants import FileSystem
from cinecache.shared.errors import DatabaseError, ErrorCode, ErrorContext
from cinecache.shared.logging import log_operation_error

logger = logging.getLogger(__name__)


def _enable_sqlite_foreign_keys(dbapi_connection: Any, connection_record: Any) -> None:
    # SQLite ignores ON DELETE CASCADE unless foreign keys are switched on per connection
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def _is_memory_url(url: str) -> bool:
    return url in ("sqlite://", "sqlite:///:memory:") or "mode=memory" in url


class DatabaseManager:
    """Database manager for handling SQLAlchemy sessions.

    Args:
        database_url: SQLAlchemy database URL
        echo: Log emitted SQL
    """

    def __init__(self, database_url: str = FileSystem.CONTENT_DB_URL, echo: bool = False) -> None:
        self.database_url = database_url
        self.echo = echo
        self.engine: Engine | None = None
        self.SessionLocal: sessionmaker[Session] | None = None
        self._lock = threading.RLock()
        self._initialized = False

    def initialize(self) -> None:
        """Create the engine and all tables.

        Raises:
            DatabaseError: If the database cannot be initialized
        """
        with self._lock:
            if self._initialized:
                return

            try:
                if self.database_url.startswith("sqlite"):
                    options: dict[str, Any] = {"connect_args": {"check_same_thread": False}}
                    if _is_memory_url(self.database_url):
                        # one shared connection, otherwise every session sees an empty database
                        options["poolclass"] = StaticPool
                    else:
                        Path(self.database_url.split(":///", 1)[1]).parent.mkdir(parents=True, exist_ok=True)
                    self.engine = create_engine(self.database_url, echo=self.echo, **options)
                    event.listen(self.engine, "connect", _enable_sqlite_foreign_keys)
                else:
                    self.engine = create_engine(self.database_url, echo=self.echo)

                self.SessionLocal = sessionmaker(
                    autocommit=False,
                    autoflush=False,
                    expire_on_commit=False,
                    bind=self.engine,
                )

                Base.metadata.create_all(bind=self.engine)

                self._initialized = True
                logger.info("Content database initialized: %s", self.database_url)

            except SQLAlchemyError as e:
                error = DatabaseError(
                    ErrorCode.DATABASE_ERROR,
                    f"Failed to initialize content database: {e!s}",
                    ErrorContext(operation="initialize_database"),
                    original_error=e,
                )
                log_operation_error(logger, error)
                raise error from e

    def get_session(self) -> Session:
        """Get a new database session."""
        if not self._initialized:
            self.initialize()

        if self.SessionLocal is None:
            msg = "Database not properly initialized"
            raise RuntimeError(msg)
        return self.SessionLocal()

    @contextmanager
    def transaction(self) -> Generator[Session, None, None]:
        """Session scope committed on success and rolled back on error.

        Example:
            >>> with db.transaction() as session:
            ...     session.add(entity)
        """
        session = self.get_session()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def close(self) -> None:
        """Dispose of the engine."""
        with self._lock:
            if self.engine is not None:
                self.engine.dispose()
                self.engine = None
                self._initialized = False
                logger.info("Content database connection closed")
