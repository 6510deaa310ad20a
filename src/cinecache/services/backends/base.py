"""Cache backend protocol.

This module defines the key/value interface every cache store implements
and the sentinel returned for a miss. Entries are addressed by
``(key, group)``; a group is a coarse invalidation namespace.
"""

from __future__ import annotations

import hashlib
from typing import Any, Final, Protocol

from cinecache.shared.constants import CacheValidationConstants


class _Miss:
    """Singleton marker for "no live entry"."""

    _instance: _Miss | None = None

    def __new__(cls) -> _Miss:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "MISS"

    def __reduce__(self) -> str:
        return "MISS"


MISS: Final = _Miss()


def normalize_key(key: str) -> str:
    """Return a storage-safe key.

    Keys longer than MAX_KEY_LENGTH are replaced by their SHA-256 digest
    so that arbitrarily long keys (e.g. search filters) stay bounded.

    Raises:
        ValueError: If the key is empty
    """
    if not key:
        msg = "Cache key must not be empty"
        raise ValueError(msg)
    if len(key) > CacheValidationConstants.MAX_KEY_LENGTH:
        return "sha256:" + hashlib.sha256(key.encode("utf-8")).hexdigest()
    return key


class CacheBackend(Protocol):
    """Protocol for cache store adapters.

    Implementations raise CacheBackendError (BackendUnavailableError for
    connectivity failures and timeouts) instead of driver exceptions; the
    object cache turns those into misses.

    Example:
        >>> backend: CacheBackend = InMemoryCacheBackend()
        >>> backend.set("movie_data_42", {"id": 42}, "movies", 3600)
        >>> backend.get("movie_data_42", "movies")
        {'id': 42}
    """

    name: str

    def get(self, key: str, group: str) -> Any:
        """Return the live value for ``(key, group)`` or MISS."""

    def set(self, key: str, value: Any, group: str, ttl: int) -> None:
        """Store ``value`` under ``(key, group)``, replacing any prior entry."""

    def delete(self, key: str, group: str) -> None:
        """Remove ``(key, group)``; deleting an absent key is not an error."""

    def flush_group(self, group: str) -> None:
        """Logically discard every entry tagged with ``group``."""

    def clear(self) -> None:
        """Discard every entry in every group."""

    def count(self, group: str) -> int:
        """Approximate number of live entries in ``group``."""

    def purge_expired(self) -> int:
        """Physically remove expired entries; returns the number removed."""

    def close(self) -> None:
        """Release connections held by the backend."""
