"""Tests for invalidation plans and the router."""

from __future__ import annotations

import logging

import pytest

from cinecache.content.store import ContentStore
from cinecache.core.events import ChangeKind, EventBus, InvalidationEvent
from cinecache.services.backends.base import MISS
from cinecache.services.backends.memory import InMemoryCacheBackend
from cinecache.services.invalidation import InvalidationRouter, plan_for
from cinecache.services.object_cache import ObjectCache
from cinecache.shared.constants import CacheGroup
from cinecache.shared.errors import create_backend_error


class FlakyBackend(InMemoryCacheBackend):
    """In-memory backend whose deletes always fail."""

    def delete(self, key: str, group: str) -> None:
        raise create_backend_error("delete timed out", operation="delete", key=key, group=group)


class TestPlanFor:
    def test_movie_event_deletes_data_and_fragments(self) -> None:
        # Given
        event = InvalidationEvent.for_entity("movie", 42)

        # When
        plan = plan_for(event)

        # Then
        assert plan.deletes == (
            ("movie_data_42", CacheGroup.MOVIES),
            ("movie_card_42", CacheGroup.FRAGMENTS),
            ("tv_card_42", CacheGroup.FRAGMENTS),
            ("person_card_42", CacheGroup.FRAGMENTS),
            ("single_content_42", CacheGroup.FRAGMENTS),
        )
        assert plan.flushes == (CacheGroup.MOVIES, CacheGroup.SEARCH, CacheGroup.RECOMMENDATIONS)

    def test_drama_event_also_flushes_dramas(self) -> None:
        plan = plan_for(InvalidationEvent.for_entity("drama", 7))

        assert ("tv_data_7", CacheGroup.TV_SERIES) in plan.deletes
        assert CacheGroup.DRAMAS in plan.flushes
        assert CacheGroup.TV_SERIES in plan.flushes

    def test_people_event_targets_person_data(self) -> None:
        plan = plan_for(InvalidationEvent.for_entity("people", 3, ChangeKind.DELETED))

        assert plan.deletes[0] == ("person_data_3", CacheGroup.PEOPLE)
        assert CacheGroup.PEOPLE in plan.flushes

    def test_navigation_event_flushes_fragments(self) -> None:
        plan = plan_for(InvalidationEvent.navigation_changed())

        assert plan.deletes == (("navigation_menu", CacheGroup.FRAGMENTS),)
        assert plan.flushes == (CacheGroup.FRAGMENTS,)

    def test_theme_options_event_flushes_fragments(self) -> None:
        plan = plan_for(InvalidationEvent.theme_options_changed())

        assert plan.deletes == (("theme_options", CacheGroup.FRAGMENTS),)
        assert plan.flushes == (CacheGroup.FRAGMENTS,)

    def test_content_sync_flushes_content_groups(self) -> None:
        plan = plan_for(InvalidationEvent.content_synced())

        assert plan.deletes == ()
        assert set(plan.flushes) == set(CacheGroup.CONTENT)
        assert CacheGroup.API_RESPONSES not in plan.flushes

    def test_unknown_source_over_invalidates(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.WARNING):
            plan = plan_for(InvalidationEvent("widget_area"))

        assert plan.flushes == CacheGroup.CONTENT
        assert "widget_area" in caplog.text

    def test_entity_type_without_id_only_flushes(self) -> None:
        plan = plan_for(InvalidationEvent("movie"))

        assert plan.deletes == ()
        assert not plan.is_empty


class TestInvalidationRouter:
    def test_failed_delete_is_reported_and_flushes_still_run(self) -> None:
        # Given
        cache = ObjectCache(FlakyBackend())
        cache.set("q1", ["result"], CacheGroup.SEARCH)
        router = InvalidationRouter(cache)

        # When
        report = router.on_event(InvalidationEvent.for_entity("movie", 42))

        # Then
        assert not report.ok
        assert len(report.failures) == 5
        assert report.flushed == [CacheGroup.MOVIES, CacheGroup.SEARCH, CacheGroup.RECOMMENDATIONS]
        assert cache.get("q1", CacheGroup.SEARCH) is MISS

    def test_router_applies_plan(self, object_cache: ObjectCache) -> None:
        # Given
        object_cache.set("movie_data_42", {"id": 42}, CacheGroup.MOVIES)
        object_cache.set("movie_card_42", "<article/>", CacheGroup.FRAGMENTS)
        object_cache.set("similar_content_42_10", [], CacheGroup.RECOMMENDATIONS)
        object_cache.set("person_data_1", {"id": 1}, CacheGroup.PEOPLE)
        router = InvalidationRouter(object_cache)

        # When
        report = router(InvalidationEvent.for_entity("movie", 42))

        # Then
        assert report.ok
        assert object_cache.get("movie_data_42", CacheGroup.MOVIES) is MISS
        assert object_cache.get("movie_card_42", CacheGroup.FRAGMENTS) is MISS
        assert object_cache.get("similar_content_42_10", CacheGroup.RECOMMENDATIONS) is MISS
        assert object_cache.get("person_data_1", CacheGroup.PEOPLE) == {"id": 1}


class TestMutationInvalidation:
    """Writes through the content store invalidate through the event bus."""

    def test_rating_update_flushes_search_entries(
        self,
        object_cache: ObjectCache,
        content_store: ContentStore,
        event_bus: EventBus,
    ) -> None:
        # Given
        event_bus.subscribe(InvalidationRouter(object_cache).on_event)
        movie_id = content_store.save_entity("movie", {"title": "Skyline Heist", "rating": 7.2})
        object_cache.set("search_skyline", [{"id": movie_id}], CacheGroup.SEARCH)
        object_cache.set(f"movie_data_{movie_id}", {"id": movie_id}, CacheGroup.MOVIES)

        # When
        content_store.save_entity("movie", {"rating": 8.0}, entity_id=movie_id)

        # Then
        assert object_cache.get("search_skyline", CacheGroup.SEARCH) is MISS
        assert object_cache.get(f"movie_data_{movie_id}", CacheGroup.MOVIES) is MISS
