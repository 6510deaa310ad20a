"""In-process cache backend.

Used by tests and single-process deployments. Expiry is evaluated
lazily on read against an injectable clock.
"""

from __future__ import annotations

import copy
import logging
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from cinecache.services.backends.base import MISS, normalize_key

logger = logging.getLogger(__name__)


@dataclass
class _Entry:
    value: Any
    created_at: float
    expires_at: float

    def is_expired(self, now: float) -> bool:
        return now >= self.expires_at


class InMemoryCacheBackend:
    """Dictionary-backed cache store.

    Values are deep-copied on write and on read so callers can never
    mutate a stored entry in place.

    Args:
        clock: Time source returning seconds (default: time.time)
    """

    name = "memory"

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._clock = clock
        self._groups: dict[str, dict[str, _Entry]] = {}
        self._lock = threading.RLock()

    def get(self, key: str, group: str) -> Any:
        key = normalize_key(key)
        now = self._clock()
        with self._lock:
            entry = self._groups.get(group, {}).get(key)
            if entry is None:
                return MISS
            if entry.is_expired(now):
                del self._groups[group][key]
                return MISS
            return copy.deepcopy(entry.value)

    def set(self, key: str, value: Any, group: str, ttl: int) -> None:
        key = normalize_key(key)
        now = self._clock()
        entry = _Entry(copy.deepcopy(value), created_at=now, expires_at=now + ttl)
        with self._lock:
            self._groups.setdefault(group, {})[key] = entry

    def delete(self, key: str, group: str) -> None:
        key = normalize_key(key)
        with self._lock:
            self._groups.get(group, {}).pop(key, None)

    def flush_group(self, group: str) -> None:
        with self._lock:
            removed = len(self._groups.pop(group, {}))
        logger.debug("Flushed %d entries from group %s", removed, group)

    def clear(self) -> None:
        with self._lock:
            self._groups.clear()

    def count(self, group: str) -> int:
        now = self._clock()
        with self._lock:
            return sum(
                1 for entry in self._groups.get(group, {}).values() if not entry.is_expired(now)
            )

    def purge_expired(self) -> int:
        now = self._clock()
        purged = 0
        with self._lock:
            for entries in self._groups.values():
                expired = [k for k, entry in entries.items() if entry.is_expired(now)]
                for k in expired:
                    del entries[k]
                purged += len(expired)
        return purged

    def close(self) -> None:
        """Nothing to release."""
