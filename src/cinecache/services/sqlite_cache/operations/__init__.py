"""SQLite cache operations."""

from .insert import InsertOperations
from .query import QueryOperations
from .update import UpdateOperations

__all__ = ["InsertOperations", "QueryOperations", "UpdateOperations"]
