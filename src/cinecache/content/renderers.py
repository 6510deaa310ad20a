"""Default fragment renderers.

Renderers print their markup; the fragment cache captures it. Each
factory returns a zero-argument callable bound to one entity.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from html import escape
from typing import Any

from cinecache.content.store import ContentStore
from cinecache.shared.constants import EntityType

_CARD_FIELDS: dict[str, tuple[str, ...]] = {
    EntityType.MOVIE.value: ("release_date", "rating", "runtime"),
    EntityType.TV.value: ("first_air_date", "rating", "status"),
    EntityType.DRAMA.value: ("first_air_date", "rating", "status"),
    EntityType.PEOPLE.value: ("known_for_department", "popularity"),
}


def render_card(record: dict[str, Any] | None) -> None:
    """Print the card markup for an entity record."""
    if not record:
        print("", end="")
        return

    entity_type = record.get("entity_type", "")
    print(f'<article class="card card-{escape(entity_type)}" data-id="{record.get("id")}">', end="")
    print(f"<h3>{escape(str(record.get('title', '')))}</h3>", end="")
    for field in _CARD_FIELDS.get(entity_type, ()):
        value = record.get(field)
        if value is not None:
            print(f'<span class="{field}">{escape(str(value))}</span>', end="")
    print("</article>", end="")


def card_renderer(store: ContentStore, entity_type: EntityType | str, entity_id: int) -> Callable[[], None]:
    """Return a renderer printing the card of one entity."""

    def render() -> None:
        render_card(store.get_entity(entity_type, entity_id))

    return render


def navigation_renderer(items: Sequence[tuple[str, str]]) -> Callable[[], None]:
    """Return a renderer printing a navigation menu.

    Args:
        items: (label, url) pairs
    """

    def render() -> None:
        print('<nav class="primary-menu"><ul>', end="")
        for label, url in items:
            print(f'<li><a href="{escape(url)}">{escape(label)}</a></li>', end="")
        print("</ul></nav>", end="")

    return render


DEFAULT_NAVIGATION: tuple[tuple[str, str], ...] = (
    ("Movies", "/movies/"),
    ("TV Shows", "/tv/"),
    ("Dramas", "/dramas/"),
    ("People", "/people/"),
)
