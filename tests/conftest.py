"""
Pytest configuration and shared fixtures for cinecache tests.

Provides a controllable clock, an in-memory cache backend, a content
store on a temporary SQLite database and a small seeded catalog.
"""

from __future__ import annotations

import os
from collections.abc import Generator
from pathlib import Path
from typing import Any

import pytest

from cinecache.config.models.settings import Settings
from cinecache.content.database import DatabaseManager
from cinecache.content.store import ContentStore
from cinecache.core.events import EventBus
from cinecache.services.backends.memory import InMemoryCacheBackend
from cinecache.services.cache_manager import CacheManager
from cinecache.services.object_cache import ObjectCache


class FakeClock:
    """Manually advanced time source."""

    def __init__(self, start: float = 1_700_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def memory_backend(fake_clock: FakeClock) -> InMemoryCacheBackend:
    return InMemoryCacheBackend(clock=fake_clock)


@pytest.fixture
def object_cache(memory_backend: InMemoryCacheBackend) -> ObjectCache:
    return ObjectCache(memory_backend)


@pytest.fixture
def settings(monkeypatch: pytest.MonkeyPatch) -> Settings:
    """Default settings, isolated from CINECACHE_* variables of the host."""
    for name in list(os.environ):
        if name.startswith("CINECACHE_"):
            monkeypatch.delenv(name)
    return Settings()


@pytest.fixture
def content_db(tmp_path: Path) -> Generator[DatabaseManager, None, None]:
    db = DatabaseManager(f"sqlite:///{tmp_path / 'catalog.db'}")
    db.initialize()
    yield db
    db.close()


@pytest.fixture
def event_bus() -> EventBus:
    return EventBus()


@pytest.fixture
def content_store(content_db: DatabaseManager, event_bus: EventBus) -> ContentStore:
    return ContentStore(content_db, event_bus)


MOVIES: list[dict[str, Any]] = [
    {"title": "Skyline Heist", "popularity": 90.0, "rating": 7.2, "release_date": "2021-05-01", "runtime": 118, "status": "Released"},
    {"title": "River of Glass", "popularity": 80.0, "rating": 8.4, "release_date": "2019-10-12", "runtime": 131, "status": "Released"},
    {"title": "Night Shift", "popularity": 70.0, "rating": 6.1, "release_date": "2023-02-17", "runtime": 97, "status": "Released"},
    {"title": "The Long Thaw", "popularity": 60.0, "rating": 5.5, "release_date": "2018-01-05", "runtime": 104, "status": "Released"},
    {"title": "Paper Lanterns", "popularity": 50.0, "rating": 7.9, "release_date": "2024-11-22", "runtime": 125, "status": "Post Production"},
]

TV_SERIES: list[dict[str, Any]] = [
    {"name": "Harbor Lights", "popularity": 40.0, "vote_average": 8.0, "first_air_date": "2020-09-01", "status": "Returning Series"},
    {"name": "Dust Roads", "popularity": 20.0, "vote_average": 7.1, "first_air_date": "2016-03-11", "status": "Ended"},
]

PEOPLE: list[dict[str, Any]] = [
    {"name": "Ada Moreno", "popularity": 33.0, "known_for_department": "Acting"},
    {"name": "Jun Park", "popularity": 12.5, "known_for_department": "Directing"},
]


@pytest.fixture
def seeded_catalog(content_store: ContentStore) -> dict[str, list[int]]:
    """Create the sample catalog; returns entity ids per type in seed order."""
    return {
        "movie": [content_store.save_entity("movie", attrs) for attrs in MOVIES],
        "tv": [content_store.save_entity("tv", attrs) for attrs in TV_SERIES],
        "people": [content_store.save_entity("people", attrs) for attrs in PEOPLE],
    }


@pytest.fixture
def cache_manager(
    settings: Settings,
    memory_backend: InMemoryCacheBackend,
    content_store: ContentStore,
) -> Generator[CacheManager, None, None]:
    manager = CacheManager(settings, backend=memory_backend, store=content_store)
    yield manager
    manager.close()
