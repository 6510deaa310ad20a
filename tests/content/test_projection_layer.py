"""Tests for projection rows and projection-backed listings."""

from __future__ import annotations

import logging
import sqlite3
from datetime import date
from pathlib import Path

import pytest
from sqlalchemy import select

from cinecache.content.models import DramaProjection, Entity, MovieProjection, PeopleProjection, TVProjection
from cinecache.content.projection import QueryOptimizer, build_projection_values
from cinecache.content.store import ContentStore
from cinecache.shared.errors import DomainError, InvalidEntityTypeError, InvalidSortKeyError


class TestBuildProjectionValues:
    def test_coerces_movie_attributes(self) -> None:
        values = build_projection_values(
            "movie",
            {"rating": "7.5", "popularity": 12, "runtime": "118", "release_date": "2021-05-01T00:00:00", "tmdb_id": "603"},
        )

        assert values == {
            "tmdb_id": 603,
            "release_date": date(2021, 5, 1),
            "rating": 7.5,
            "popularity": 12.0,
            "runtime": 118,
            "status": None,
        }

    def test_accepts_tmdb_attribute_names(self) -> None:
        values = build_projection_values("tv", {"vote_average": 8.0, "first_air_date": "2020-09-01"})

        assert values["rating"] == 8.0
        assert values["first_air_date"] == date(2020, 9, 1)

    def test_people_carry_department(self) -> None:
        values = build_projection_values("people", {"known_for_department": "Acting"})

        assert values["known_for_department"] == "Acting"
        assert "release_date" not in values

    def test_rejects_unknown_type(self) -> None:
        with pytest.raises(InvalidEntityTypeError):
            build_projection_values("book", {})

    def test_bad_date_raises_value_error(self) -> None:
        with pytest.raises(ValueError):
            build_projection_values("movie", {"release_date": "soon"})


class TestProjectionSync:
    def test_sort_by_rating_uses_projection_with_id_tie_break(self, content_store: ContentStore) -> None:
        # Given
        first = content_store.save_entity("movie", {"title": "A", "rating": 3.5})
        second = content_store.save_entity("movie", {"title": "B", "rating": 8.1})
        third = content_store.save_entity("movie", {"title": "C", "rating": 6.0})
        tied = content_store.save_entity("movie", {"title": "D", "rating": 6.0})

        # When
        listing = content_store.list_entities("movie", order_by="rating", order_dir="desc")

        # Then
        assert [r["id"] for r in listing] == [second, third, tied, first]
        assert listing[0]["rating"] == 8.1

    def test_update_refreshes_projection_row(self, content_store: ContentStore) -> None:
        # Given
        movie_id = content_store.save_entity("movie", {"title": "A", "rating": 5.0, "status": "Released"})

        # When
        content_store.save_entity("movie", {"rating": 9.0}, entity_id=movie_id)

        # Then
        row = content_store.projections.get(movie_id, "movie")
        assert row is not None
        assert row["rating"] == 9.0
        assert row["status"] == "Released"

    def test_failed_upsert_keeps_previous_row(
        self,
        content_store: ContentStore,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        # Given
        movie_id = content_store.save_entity("movie", {"title": "A", "rating": 5.0, "release_date": "2020-01-01"})

        # When
        with caplog.at_level(logging.ERROR):
            saved = content_store.save_entity("movie", {"rating": 9.0, "release_date": "someday"}, entity_id=movie_id)

        # Then - the entity write stands, the projection row is stale
        assert saved == movie_id
        assert content_store.get_entity("movie", movie_id)["rating"] == 9.0
        row = content_store.projections.get(movie_id, "movie")
        assert row["rating"] == 5.0
        assert row["release_date"] == date(2020, 1, 1)
        assert any(getattr(r, "error_code", None) == "PROJECTION_WRITE_FAILED" for r in caplog.records)

    def test_upsert_reports_failure(self, content_store: ContentStore) -> None:
        assert content_store.projections.upsert(1, "movie", {"runtime": "long"}) is False

    def test_projection_row_removed_with_entity(self, content_store: ContentStore) -> None:
        movie_id = content_store.save_entity("movie", {"title": "Gone", "rating": 4.0})

        assert content_store.delete_entity("movie", movie_id) is True

        assert content_store.projections.get(movie_id, "movie") is None
        assert content_store.projections.stats()["movie_projection"] == 0

    def test_rebuild_restores_rows(self, content_store: ContentStore) -> None:
        # Given
        movie_id = content_store.save_entity("movie", {"title": "A", "popularity": 10.0})
        content_store.projections.delete(movie_id, "movie")

        # When
        written = content_store.projections.rebuild("movie")

        # Then
        assert written == 1
        assert content_store.projections.get(movie_id, "movie")["popularity"] == 10.0

    def test_cleanup_removes_orphaned_rows(self, content_store: ContentStore, tmp_path: Path) -> None:
        # Given - an orphan written behind the ORM's back with foreign keys off
        content_store.save_entity("movie", {"title": "Kept", "popularity": 1.0})
        with sqlite3.connect(tmp_path / "catalog.db") as raw:
            raw.execute(
                "INSERT INTO movie_projection (entity_id, popularity, updated_at) VALUES (999, 1.0, '2024-01-01 00:00:00')"
            )

        # When
        removed = content_store.projections.cleanup_orphans()

        # Then
        assert removed == 1
        assert content_store.projections.stats()["movie_projection"] == 1


class TestProjectionQueries:
    def test_top_ids_by_popularity(self, content_store: ContentStore, seeded_catalog: dict[str, list[int]]) -> None:
        assert content_store.projections.top_ids("movie", 2) == seeded_catalog["movie"][:2]
        assert content_store.projections.top_ids("movie", 0) == []

    def test_similar_ids_share_status(self, content_store: ContentStore, seeded_catalog: dict[str, list[int]]) -> None:
        movies = seeded_catalog["movie"]

        assert content_store.projections.similar_ids(movies[0], 10) == movies[1:4]
        assert content_store.projections.similar_ids(movies[4], 10) == []
        assert content_store.projections.similar_ids(12345, 10) == []


class TestListingFilters:
    def test_status_filter(self, content_store: ContentStore, seeded_catalog: dict[str, list[int]]) -> None:
        listing = content_store.list_entities("movie", {"status": "Post Production"})

        assert [r["title"] for r in listing] == ["Paper Lanterns"]

    def test_min_rating_filter(self, content_store: ContentStore, seeded_catalog: dict[str, list[int]]) -> None:
        listing = content_store.list_entities("movie", {"min_rating": 7.5}, order_by="rating")

        assert [r["title"] for r in listing] == ["River of Glass", "Paper Lanterns"]

    def test_year_filter_uses_type_date_column(
        self,
        content_store: ContentStore,
        seeded_catalog: dict[str, list[int]],
    ) -> None:
        assert [r["title"] for r in content_store.list_entities("movie", {"year": 2021})] == ["Skyline Heist"]
        assert [r["title"] for r in content_store.list_entities("tv", {"year": 2016})] == ["Dust Roads"]

    def test_unknown_filter_is_rejected(self, content_store: ContentStore) -> None:
        with pytest.raises(DomainError, match="Unsupported filter"):
            content_store.list_entities("movie", {"genre": "drama"})

    def test_unknown_filter_with_empty_value_is_rejected(self, content_store: ContentStore) -> None:
        with pytest.raises(DomainError, match="Unsupported filter 'genre'"):
            content_store.list_entities("movie", {"genre": None})

    def test_year_filter_is_rejected_for_people(self, content_store: ContentStore) -> None:
        with pytest.raises(DomainError, match="Unsupported filter 'year'"):
            content_store.list_entities("people", {"year": 2020})

    def test_release_date_sort_maps_to_first_air_date(
        self,
        content_store: ContentStore,
        seeded_catalog: dict[str, list[int]],
    ) -> None:
        listing = content_store.list_entities("tv", order_by="release_date", order_dir="asc")

        assert [r["title"] for r in listing] == ["Dust Roads", "Harbor Lights"]
        assert listing[0]["first_air_date"] == "2016-03-11"

    def test_people_default_to_popularity(
        self,
        content_store: ContentStore,
        seeded_catalog: dict[str, list[int]],
    ) -> None:
        listing = content_store.list_entities("people")

        assert [r["title"] for r in listing] == ["Ada Moreno", "Jun Park"]
        assert listing[1]["known_for_department"] == "Directing"

    def test_pagination(self, content_store: ContentStore, seeded_catalog: dict[str, list[int]]) -> None:
        page = content_store.list_entities("movie", order_by="popularity", limit=2, offset=2)

        assert [r["title"] for r in page] == ["Night Shift", "The Long Thaw"]


class TestQueryOptimizer:
    def test_invalid_sort_key(self, content_store: ContentStore) -> None:
        with pytest.raises(InvalidSortKeyError):
            content_store.list_entities("movie", order_by="title")

    def test_date_sort_is_invalid_for_people(self) -> None:
        with pytest.raises(InvalidSortKeyError):
            QueryOptimizer().sort_column("people", "release_date")

    def test_invalid_direction(self) -> None:
        with pytest.raises(InvalidSortKeyError):
            QueryOptimizer().rewrite(select(Entity), "movie", "rating", "sideways")

    def test_invalid_entity_type(self, content_store: ContentStore) -> None:
        with pytest.raises(InvalidEntityTypeError):
            content_store.list_entities("book")

    def test_entities_without_projection_are_listed_last(
        self,
        content_store: ContentStore,
        seeded_catalog: dict[str, list[int]],
    ) -> None:
        # Given
        movie_id = content_store.save_entity("movie", {"title": "Orphaned", "rating": 9.5})
        content_store.projections.delete(movie_id, "movie")

        # When
        listing = content_store.list_entities("movie", order_by="rating", order_dir="desc")

        # Then
        assert len(listing) == len(seeded_catalog["movie"]) + 1
        assert listing[-1]["id"] == movie_id
        assert listing[-1]["runtime"] is None

    def test_entity_with_failed_first_projection_is_still_listed(self, content_store: ContentStore) -> None:
        # Given
        movie_id = content_store.save_entity("movie", {"title": "New", "rating": 7.0, "release_date": "TBA"})

        # When
        listing = content_store.list_entities("movie", order_by="rating")

        # Then
        assert content_store.projections.get(movie_id, "movie") is None
        assert [r["id"] for r in listing] == [movie_id]
        assert listing[0]["title"] == "New"


class TestProjectionModels:
    @pytest.mark.parametrize("model", [MovieProjection, TVProjection, DramaProjection, PeopleProjection])
    def test_entity_id_is_cascading_primary_key(self, model: type) -> None:
        column = model.__table__.c.entity_id

        assert column.primary_key
        assert [fk.target_fullname for fk in column.foreign_keys] == ["entities.id"]
        assert next(iter(column.foreign_keys)).ondelete == "CASCADE"

    def test_composite_rating_index_per_table(self) -> None:
        names = {index.name for index in TVProjection.__table__.indexes}

        assert "idx_tv_projection_rating_popularity" in names
