"""Tests for StatisticsCollector."""

from __future__ import annotations

import threading

from cinecache.core.statistics import GroupMetrics, StatisticsCollector


def test_counters_are_kept_per_group() -> None:
    # Given
    stats = StatisticsCollector()

    # When
    stats.record_cache_hit("movies")
    stats.record_cache_hit("movies")
    stats.record_cache_miss("movies")
    stats.record_cache_miss("search")
    stats.record_group_flush("search")

    # Then
    movies = stats.group_metrics("movies")
    assert (movies.hits, movies.misses) == (2, 1)
    assert stats.group_metrics("search").flushes == 1
    assert stats.total_hits == 2
    assert stats.total_misses == 2


def test_hit_ratio_without_lookups() -> None:
    assert GroupMetrics().hit_ratio == 0.0


def test_summary_is_serializable_snapshot() -> None:
    stats = StatisticsCollector()
    stats.record_cache_hit("people")
    stats.record_cache_miss("people")
    stats.record_producer_call("people")

    summary = stats.get_summary()

    assert summary["hits"] == 1
    assert summary["hit_ratio"] == 0.5
    assert summary["groups"]["people"]["producer_calls"] == 1
    assert summary["groups"]["people"]["hit_ratio"] == 0.5


def test_group_metrics_returns_copy() -> None:
    stats = StatisticsCollector()
    snapshot = stats.group_metrics("movies")

    snapshot.hits = 100

    assert stats.group_metrics("movies").hits == 0


def test_concurrent_updates_are_not_lost() -> None:
    stats = StatisticsCollector()

    def hammer() -> None:
        for _ in range(1000):
            stats.record_cache_hit("movies")

    threads = [threading.Thread(target=hammer) for _ in range(4)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert stats.group_metrics("movies").hits == 4000


def test_reset_clears_counters() -> None:
    stats = StatisticsCollector()
    stats.record_cache_set("fragments")

    stats.reset()

    assert stats.get_summary()["groups"] == {}
