"""Get-or-compute object cache over a CacheBackend.

Backend failures never reach the caller: a failed read is a miss and a
failed write is logged and dropped. Producer exceptions propagate
unchanged and leave nothing written.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, TypeVar, Union

from cinecache.core.statistics import StatisticsCollector
from cinecache.services.backends.base import MISS, CacheBackend
from cinecache.shared.constants import (
    GROUP_DEFAULT_TIERS,
    CacheGroup,
    CacheValidationConstants,
    TTLTier,
)
from cinecache.shared.errors import CacheBackendError
from cinecache.shared.logging import log_operation_error

logger = logging.getLogger(__name__)

T = TypeVar("T")

TTL = Union[int, TTLTier, None]
Producer = Callable[[], T]


@dataclass
class _Flight:
    lock: threading.Lock = field(default_factory=threading.Lock)
    waiters: int = 0


class ObjectCache:
    """Object cache with named groups and TTL tiers.

    Args:
        backend: Cache store adapter
        statistics: Hit/miss counters (a private collector if omitted)
        default_tier: Tier for groups without a configured default
        group_tiers: Default tier per group
        single_flight: Serialize concurrent misses on the same (key, group)
            so only one producer call runs at a time within this process

    Example:
        >>> cache = ObjectCache(InMemoryCacheBackend())
        >>> cache.get("movie_data_42", "movies", producer=lambda: load(42))
    """

    def __init__(
        self,
        backend: CacheBackend,
        statistics: StatisticsCollector | None = None,
        default_tier: TTLTier = TTLTier.MEDIUM,
        group_tiers: dict[str, TTLTier] | None = None,
        *,
        single_flight: bool = False,
    ) -> None:
        self.backend = backend
        self.statistics = statistics or StatisticsCollector()
        self.default_tier = default_tier
        self.group_tiers = dict(GROUP_DEFAULT_TIERS if group_tiers is None else group_tiers)
        self.single_flight = single_flight
        self._flights: dict[tuple[str, str], _Flight] = {}
        self._flights_lock = threading.Lock()

    def resolve_ttl(self, group: str, ttl: TTL = None) -> int:
        """Return the TTL in seconds for a write.

        Args:
            group: Cache group
            ttl: Seconds, a TTLTier, or None for the group default

        Raises:
            ValueError: If an explicit TTL is outside the allowed range
        """
        if ttl is None:
            return self.group_tiers.get(group, self.default_tier).seconds
        if isinstance(ttl, TTLTier):
            return ttl.seconds
        seconds = int(ttl)
        if not CacheValidationConstants.MIN_TTL <= seconds <= CacheValidationConstants.MAX_TTL:
            msg = f"TTL must be between {CacheValidationConstants.MIN_TTL} and {CacheValidationConstants.MAX_TTL} seconds, got {seconds}"
            raise ValueError(msg)
        return seconds

    def _fail_open(self, error: CacheBackendError, group: str) -> None:
        self.statistics.record_backend_error(group)
        log_operation_error(logger, error, level=logging.WARNING)

    def _read(self, key: str, group: str) -> Any:
        try:
            return self.backend.get(key, group)
        except CacheBackendError as e:
            self._fail_open(e, group)
            return MISS

    def get(
        self,
        key: str,
        group: str = CacheGroup.DEFAULT,
        producer: Producer[Any] | None = None,
        ttl: TTL = None,
    ) -> Any:
        """Return the cached value, computing and storing it on a miss.

        Args:
            key: Cache key
            group: Cache group
            producer: Zero-argument callable invoked on a miss
            ttl: Seconds, a TTLTier, or None for the group default

        Returns:
            The cached or produced value, or MISS when there is no live
            entry and no producer
        """
        value = self._read(key, group)
        if value is not MISS:
            self.statistics.record_cache_hit(group)
            return value

        self.statistics.record_cache_miss(group)
        if producer is None:
            return MISS

        if not self.single_flight:
            return self._produce(key, group, producer, ttl)[0]

        with self._flight(key, group):
            # Another caller may have populated the entry while we waited
            value = self._read(key, group)
            if value is not MISS:
                return value
            return self._produce(key, group, producer, ttl)[0]

    def refresh(
        self,
        key: str,
        group: str,
        producer: Producer[Any],
        ttl: TTL = None,
    ) -> Any:
        """Compute and store a value whether or not a live entry exists."""
        return self._produce(key, group, producer, ttl)[0]

    def refresh_stored(
        self,
        key: str,
        group: str,
        producer: Producer[Any],
        ttl: TTL = None,
    ) -> bool:
        """Like refresh, but report whether the backend accepted the write."""
        return self._produce(key, group, producer, ttl)[1]

    def _produce(self, key: str, group: str, producer: Producer[Any], ttl: TTL) -> tuple[Any, bool]:
        seconds = self.resolve_ttl(group, ttl)
        self.statistics.record_producer_call(group)
        value = producer()
        return value, self.set(key, value, group, seconds)

    def set(self, key: str, value: Any, group: str = CacheGroup.DEFAULT, ttl: TTL = None) -> bool:
        """Store a value, replacing any prior entry.

        Returns:
            True if the backend accepted the write
        """
        seconds = self.resolve_ttl(group, ttl)
        try:
            self.backend.set(key, value, group, seconds)
        except CacheBackendError as e:
            self._fail_open(e, group)
            return False
        self.statistics.record_cache_set(group)
        return True

    def delete(self, key: str, group: str = CacheGroup.DEFAULT, *, fail_open: bool = True) -> bool:
        """Delete an entry.

        Args:
            key: Cache key
            group: Cache group
            fail_open: Log and return False on backend failure instead of raising

        Raises:
            CacheBackendError: On backend failure when fail_open is False
        """
        try:
            self.backend.delete(key, group)
        except CacheBackendError as e:
            if not fail_open:
                self.statistics.record_backend_error(group)
                raise
            self._fail_open(e, group)
            return False
        self.statistics.record_cache_delete(group)
        return True

    def flush_group(self, group: str, *, fail_open: bool = True) -> bool:
        """Discard every entry of a group.

        Raises:
            CacheBackendError: On backend failure when fail_open is False
        """
        try:
            self.backend.flush_group(group)
        except CacheBackendError as e:
            if not fail_open:
                self.statistics.record_backend_error(group)
                raise
            self._fail_open(e, group)
            return False
        self.statistics.record_group_flush(group)
        logger.debug("Flushed cache group %s", group)
        return True

    @contextmanager
    def _flight(self, key: str, group: str) -> Iterator[None]:
        ident = (key, group)
        with self._flights_lock:
            flight = self._flights.setdefault(ident, _Flight())
            flight.waiters += 1
        try:
            with flight.lock:
                yield
        finally:
            with self._flights_lock:
                flight.waiters -= 1
                if flight.waiters == 0:
                    self._flights.pop(ident, None)
