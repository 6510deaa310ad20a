"""SQLite storage for the persistent cache backend.

Schema migration and the query/insert/update operations used by
SQLiteCacheBackend.
"""

from .migration import MigrationManager
from .operations import InsertOperations, QueryOperations, UpdateOperations

__all__ = [
    "InsertOperations",
    "MigrationManager",
    "QueryOperations",
    "UpdateOperations",
]
