"""Tests for the periodic cache warmer."""

from __future__ import annotations

from typing import Any

from cinecache.config.models.warmer_settings import WarmerSettings
from cinecache.content.store import ContentStore
from cinecache.core.scheduler import PeriodicScheduler
from cinecache.services.backends.base import MISS
from cinecache.services.backends.memory import InMemoryCacheBackend
from cinecache.services.keys import search_key
from cinecache.services.object_cache import ObjectCache
from cinecache.services.warmer import WARMER_JOB_ID, CacheWarmer, WarmItem
from cinecache.shared.constants import CacheGroup, ListingDefaults
from cinecache.shared.errors import create_backend_error


class TestWarmerItemFailures:
    def test_failing_item_does_not_abort_batch(self, object_cache: ObjectCache, content_store: ContentStore) -> None:
        # Given
        warmer = CacheWarmer(object_cache, content_store, settings=WarmerSettings(max_workers=2))

        def broken() -> Any:
            raise ConnectionError("TMDB unreachable")

        items = [
            WarmItem("a", CacheGroup.MOVIES, lambda: 1),
            WarmItem("b", CacheGroup.MOVIES, broken),
            WarmItem("c", CacheGroup.MOVIES, lambda: 3),
        ]

        # When
        report = warmer.warm(items)

        # Then
        assert sorted(report.warmed) == [("a", CacheGroup.MOVIES), ("c", CacheGroup.MOVIES)]
        assert report.failed == [("b", CacheGroup.MOVIES)]
        assert object_cache.get("a", CacheGroup.MOVIES) == 1
        assert object_cache.get("b", CacheGroup.MOVIES) is MISS
        assert object_cache.get("c", CacheGroup.MOVIES) == 3

    def test_rejected_write_is_reported_as_failed(self, content_store: ContentStore) -> None:
        # Given
        class RejectingBackend(InMemoryCacheBackend):
            def set(self, key: str, value: Any, group: str, ttl: int) -> None:
                if key == "b":
                    raise create_backend_error("disk full", operation="set")
                super().set(key, value, group, ttl)

        object_cache = ObjectCache(RejectingBackend())
        warmer = CacheWarmer(object_cache, content_store, settings=WarmerSettings(max_workers=1))
        items = [WarmItem("a", CacheGroup.MOVIES, lambda: 1), WarmItem("b", CacheGroup.MOVIES, lambda: 2)]

        # When
        report = warmer.warm(items)

        # Then
        assert report.warmed == [("a", CacheGroup.MOVIES)]
        assert report.failed == [("b", CacheGroup.MOVIES)]

    def test_empty_plan_produces_empty_report(self, object_cache: ObjectCache, content_store: ContentStore) -> None:
        report = CacheWarmer(object_cache, content_store).warm([])

        assert report.warmed_count == 0
        assert report.failed_count == 0


class TestWarmerRun:
    def test_warms_exactly_the_top_n_movies(
        self,
        object_cache: ObjectCache,
        content_store: ContentStore,
        seeded_catalog: dict[str, list[int]],
    ) -> None:
        # Given - seed popularity is 90, 80, 70, 60, 50
        warmer = CacheWarmer(object_cache, content_store, settings=WarmerSettings(top_n=3))
        movie_ids = seeded_catalog["movie"]

        # When
        report = warmer.run()

        # Then
        assert report.failed_count == 0
        for movie_id in movie_ids[:3]:
            assert object_cache.get(f"movie_data_{movie_id}", CacheGroup.MOVIES) is not MISS
        for movie_id in movie_ids[3:]:
            assert object_cache.get(f"movie_data_{movie_id}", CacheGroup.MOVIES) is MISS

    def test_refresh_replaces_live_entries(
        self,
        object_cache: ObjectCache,
        content_store: ContentStore,
        seeded_catalog: dict[str, list[int]],
    ) -> None:
        # Given
        top_id = seeded_catalog["movie"][0]
        object_cache.set(f"movie_data_{top_id}", {"stale": True}, CacheGroup.MOVIES)
        warmer = CacheWarmer(object_cache, content_store, settings=WarmerSettings(top_n=1))

        # When
        warmer.run()

        # Then
        assert object_cache.get(f"movie_data_{top_id}", CacheGroup.MOVIES)["title"] == "Skyline Heist"

    def test_warms_queries_navigation_and_recommendations(
        self,
        object_cache: ObjectCache,
        content_store: ContentStore,
        seeded_catalog: dict[str, list[int]],
    ) -> None:
        # Given
        settings = WarmerSettings(top_n=2, recommendation_top_n=1, common_queries=["night"])
        warmer = CacheWarmer(object_cache, content_store, settings=settings)
        top_id = seeded_catalog["movie"][0]

        # When
        warmer.run()

        # Then
        results = object_cache.get(search_key("night", None, ListingDefaults.SEARCH_PAGE_SIZE), CacheGroup.SEARCH)
        assert [r["title"] for r in results] == ["Night Shift"]
        assert "<nav" in object_cache.get("navigation_menu", CacheGroup.FRAGMENTS)
        similar = object_cache.get(f"similar_content_{top_id}_10", CacheGroup.RECOMMENDATIONS)
        assert top_id not in [r["id"] for r in similar]
        assert {r["title"] for r in similar} == {"River of Glass", "Night Shift", "The Long Thaw"}

    def test_warms_other_entity_types(
        self,
        object_cache: ObjectCache,
        content_store: ContentStore,
        seeded_catalog: dict[str, list[int]],
    ) -> None:
        warmer = CacheWarmer(object_cache, content_store, settings=WarmerSettings(top_n=1))

        warmer.run()

        tv_id = seeded_catalog["tv"][0]
        person_id = seeded_catalog["people"][0]
        assert object_cache.get(f"tv_data_{tv_id}", CacheGroup.TV_SERIES)["title"] == "Harbor Lights"
        assert object_cache.get(f"person_data_{person_id}", CacheGroup.PEOPLE)["title"] == "Ada Moreno"

    def test_last_report_is_kept(self, object_cache: ObjectCache, content_store: ContentStore) -> None:
        warmer = CacheWarmer(object_cache, content_store, settings=WarmerSettings(common_queries=[]))

        report = warmer.run()

        assert warmer.last_report is report


class TestWarmerScheduling:
    def test_register_uses_configured_interval(self, object_cache: ObjectCache, content_store: ContentStore) -> None:
        # Given
        clock_time = [0.0]
        scheduler = PeriodicScheduler(clock=lambda: clock_time[0])
        warmer = CacheWarmer(object_cache, content_store, settings=WarmerSettings(interval_seconds=3600))

        # When
        job = warmer.register(scheduler)

        # Then
        assert job.job_id == WARMER_JOB_ID
        assert job.interval_seconds == 3600
        assert scheduler.run_pending() == 0
        clock_time[0] = 3600.0
        assert scheduler.run_pending() == 1
        assert job.last_result is warmer.last_report
