"""
Statistics Collection Module

Advisory hit/miss and operation counters for the cache layer. The numbers
are per process and are not part of any correctness contract.
"""

from __future__ import annotations

import logging
import threading
from collections import defaultdict
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from typing import Any

logger = logging.getLogger(__name__)


@dataclass
class GroupMetrics:
    """Counters for one cache group."""

    hits: int = 0
    misses: int = 0
    sets: int = 0
    deletes: int = 0
    flushes: int = 0
    backend_errors: int = 0
    producer_calls: int = 0

    @property
    def hit_ratio(self) -> float:
        """Hits over lookups, 0.0 when there were no lookups."""
        lookups = self.hits + self.misses
        return self.hits / lookups if lookups > 0 else 0.0


class StatisticsCollector:
    """Central aggregator for cache operation metrics.

    All record_* methods are thread-safe.
    """

    def __init__(self) -> None:
        """Initialize the statistics collector."""
        self._lock = threading.Lock()
        self._groups: dict[str, GroupMetrics] = defaultdict(GroupMetrics)
        self.session_start = datetime.now(timezone.utc)
        logger.debug("StatisticsCollector initialized")

    def record_cache_hit(self, group: str) -> None:
        with self._lock:
            self._groups[group].hits += 1

    def record_cache_miss(self, group: str) -> None:
        with self._lock:
            self._groups[group].misses += 1

    def record_cache_set(self, group: str) -> None:
        with self._lock:
            self._groups[group].sets += 1

    def record_cache_delete(self, group: str) -> None:
        with self._lock:
            self._groups[group].deletes += 1

    def record_group_flush(self, group: str) -> None:
        with self._lock:
            self._groups[group].flushes += 1

    def record_backend_error(self, group: str) -> None:
        with self._lock:
            self._groups[group].backend_errors += 1

    def record_producer_call(self, group: str) -> None:
        with self._lock:
            self._groups[group].producer_calls += 1

    def group_metrics(self, group: str) -> GroupMetrics:
        """Return a copy of the counters for one group."""
        with self._lock:
            return GroupMetrics(**asdict(self._groups[group]))

    @property
    def total_hits(self) -> int:
        with self._lock:
            return sum(m.hits for m in self._groups.values())

    @property
    def total_misses(self) -> int:
        with self._lock:
            return sum(m.misses for m in self._groups.values())

    def get_summary(self) -> dict[str, Any]:
        """Return a serializable snapshot of all counters.

        Returns:
            Dictionary with totals, overall hit ratio and per-group counters
        """
        with self._lock:
            groups = {
                name: {**asdict(metrics), "hit_ratio": round(metrics.hit_ratio, 4)}
                for name, metrics in sorted(self._groups.items())
            }
            hits = sum(m.hits for m in self._groups.values())
            misses = sum(m.misses for m in self._groups.values())

        lookups = hits + misses
        return {
            "session_start": self.session_start.isoformat(),
            "hits": hits,
            "misses": misses,
            "hit_ratio": round(hits / lookups, 4) if lookups else 0.0,
            "groups": groups,
        }

    def reset(self) -> None:
        """Reset all counters."""
        with self._lock:
            self._groups.clear()
            self.session_start = datetime.now(timezone.utc)
        logger.debug("Statistics reset")
