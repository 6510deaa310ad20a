"""Tests for cache key builders."""

from __future__ import annotations

import pytest

from cinecache.services.keys import (
    card_key,
    entity_data_key,
    entity_list_key,
    list_group,
    search_key,
    similar_content_key,
)
from cinecache.shared.constants import CacheGroup, EntityType
from cinecache.shared.errors import InvalidEntityTypeError


@pytest.mark.parametrize(
    ("entity_type", "expected"),
    [
        ("movie", ("movie_data_7", CacheGroup.MOVIES)),
        ("tv", ("tv_data_7", CacheGroup.TV_SERIES)),
        (EntityType.DRAMA, ("tv_data_7", CacheGroup.TV_SERIES)),
        ("people", ("person_data_7", CacheGroup.PEOPLE)),
    ],
)
def test_entity_data_key(entity_type, expected) -> None:
    assert entity_data_key(entity_type, 7) == expected


def test_unknown_type_is_rejected() -> None:
    with pytest.raises(InvalidEntityTypeError):
        entity_data_key("book", 1)
    with pytest.raises(InvalidEntityTypeError):
        card_key("book", 1)


def test_card_and_list_keys() -> None:
    assert card_key("people", 3) == "person_card_3"
    assert list_group("drama") == CacheGroup.DRAMAS
    assert similar_content_key(42, 10) == "similar_content_42_10"


def test_search_key_normalizes_query() -> None:
    assert search_key(" Heist ", {"entity_type": "movie"}, 20) == search_key("heist", {"entity_type": "movie"}, 20)
    assert search_key("heist", None, 20) != search_key("heist", None, 10)


def test_entity_list_key_depends_on_query() -> None:
    base = entity_list_key("movie", order_by="rating", limit=24)

    assert base == entity_list_key("movie", limit=24, order_by="rating")
    assert base != entity_list_key("movie", order_by="popularity", limit=24)
    assert base.startswith("movie_list_")
