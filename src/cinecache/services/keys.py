"""Cache key builders shared by the façade and the warmer."""

from __future__ import annotations

import hashlib
from typing import Any

import orjson

from cinecache.shared.constants import CacheGroup, CacheKeys, EntityType
from cinecache.shared.errors import InvalidEntityTypeError

# entity type -> (data key template, data group)
ENTITY_DATA: dict[str, tuple[str, str]] = {
    EntityType.MOVIE.value: (CacheKeys.MOVIE_DATA, CacheGroup.MOVIES),
    EntityType.TV.value: (CacheKeys.TV_DATA, CacheGroup.TV_SERIES),
    EntityType.DRAMA.value: (CacheKeys.TV_DATA, CacheGroup.TV_SERIES),
    EntityType.PEOPLE.value: (CacheKeys.PERSON_DATA, CacheGroup.PEOPLE),
}

CARD_KEYS: dict[str, str] = {
    EntityType.MOVIE.value: CacheKeys.MOVIE_CARD,
    EntityType.TV.value: CacheKeys.TV_CARD,
    EntityType.DRAMA.value: CacheKeys.TV_CARD,
    EntityType.PEOPLE.value: CacheKeys.PERSON_CARD,
}

# Group holding cached listings of each type
LIST_GROUPS: dict[str, str] = {
    EntityType.MOVIE.value: CacheGroup.MOVIES,
    EntityType.TV.value: CacheGroup.TV_SERIES,
    EntityType.DRAMA.value: CacheGroup.DRAMAS,
    EntityType.PEOPLE.value: CacheGroup.PEOPLE,
}


def _type_key(entity_type: EntityType | str) -> str:
    return entity_type.value if isinstance(entity_type, EntityType) else str(entity_type)


def entity_data_key(entity_type: EntityType | str, entity_id: int) -> tuple[str, str]:
    """Return ``(key, group)`` of an entity's data entry.

    Raises:
        InvalidEntityTypeError: If the type is not cached
    """
    try:
        template, group = ENTITY_DATA[_type_key(entity_type)]
    except KeyError:
        raise InvalidEntityTypeError(_type_key(entity_type), "entity_data_key") from None
    return template.format(id=entity_id), group


def card_key(entity_type: EntityType | str, entity_id: int) -> str:
    """Return the fragment key of an entity card."""
    try:
        return CARD_KEYS[_type_key(entity_type)].format(id=entity_id)
    except KeyError:
        raise InvalidEntityTypeError(_type_key(entity_type), "card_key") from None


def list_group(entity_type: EntityType | str) -> str:
    try:
        return LIST_GROUPS[_type_key(entity_type)]
    except KeyError:
        raise InvalidEntityTypeError(_type_key(entity_type), "list_group") from None


def digest(*parts: Any) -> str:
    """MD5 digest of the canonical JSON encoding of ``parts``."""
    payload = orjson.dumps(parts, option=orjson.OPT_SORT_KEYS | orjson.OPT_NON_STR_KEYS)
    return hashlib.md5(payload).hexdigest()  # noqa: S324


def tmdb_response_key(endpoint: str, params: dict[str, Any] | None = None) -> str:
    return CacheKeys.TMDB_RESPONSE.format(digest=digest(endpoint, params or {}))


def search_key(query: str, filters: dict[str, Any] | None = None, limit: int | None = None) -> str:
    return CacheKeys.SEARCH_RESULTS.format(digest=digest(query.strip().lower(), filters or {}, limit))


def entity_list_key(entity_type: EntityType | str, **query: Any) -> str:
    return CacheKeys.ENTITY_LIST.format(entity_type=_type_key(entity_type), digest=digest(query))


def similar_content_key(entity_id: int, limit: int) -> str:
    return CacheKeys.SIMILAR_CONTENT.format(id=entity_id, limit=limit)
