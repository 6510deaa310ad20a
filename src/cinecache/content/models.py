"""SQLAlchemy models for the catalog content store.

Entities keep their fields as generic attribute rows; each primary entity
type also has a projection table holding the scalar fields used for
sorting and filtering. Projection rows are keyed by the entity id and
removed with the entity through an ON DELETE CASCADE foreign key.
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Any

import orjson
from sqlalchemy import (
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import declarative_base, declared_attr, relationship

from cinecache.shared.constants import EntityType
from cinecache.shared.errors import InvalidEntityTypeError

Base = declarative_base()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Entity(Base):  # type: ignore[valid-type,misc]
    """A catalog entity (movie, TV series, drama or person)."""

    __tablename__ = "entities"

    id = Column(Integer, primary_key=True, autoincrement=True)
    entity_type = Column(String(20), nullable=False, index=True)
    title = Column(String(255), nullable=False, default="", index=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)

    attributes = relationship(
        "EntityAttribute",
        back_populates="entity",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def attribute_map(self) -> dict[str, Any]:
        """Return decoded attribute values keyed by name."""
        return {attr.name: attr.decoded_value() for attr in self.attributes}

    def to_record(self) -> dict[str, Any]:
        """Return the entity as a plain dict."""
        return {
            **self.attribute_map(),
            "id": self.id,
            "entity_type": self.entity_type,
            "title": self.title,
        }


class EntityAttribute(Base):  # type: ignore[valid-type,misc]
    """Generic per-entity attribute row (name, JSON-encoded value)."""

    __tablename__ = "entity_attributes"

    id = Column(Integer, primary_key=True, autoincrement=True)
    entity_id = Column(
        Integer,
        ForeignKey("entities.id", ondelete="CASCADE"),
        nullable=False,
    )
    name = Column(String(100), nullable=False)
    value = Column(Text, nullable=True)

    entity = relationship("Entity", back_populates="attributes")

    __table_args__ = (
        UniqueConstraint("entity_id", "name", name="uq_entity_attributes_entity_name"),
        Index("idx_entity_attributes_name", "name"),
    )

    @staticmethod
    def encode(value: Any) -> str:
        return orjson.dumps(value).decode("utf-8")

    def decoded_value(self) -> Any:
        if self.value is None:
            return None
        return orjson.loads(self.value)


class ProjectionMixin:
    """Columns shared by every projection table.

    Subclasses add their date column; every scalar column is indexed and
    (rating, popularity) also has a composite index.
    """

    @declared_attr
    def entity_id(cls):  # noqa: N805
        return Column(
            Integer,
            ForeignKey("entities.id", ondelete="CASCADE"),
            primary_key=True,
            autoincrement=False,
        )

    tmdb_id = Column(Integer, nullable=True, index=True)
    rating = Column(Float, nullable=True, index=True)
    popularity = Column(Float, nullable=True, index=True)
    runtime = Column(Integer, nullable=True, index=True)
    status = Column(String(50), nullable=True, index=True)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)

    @declared_attr
    def __table_args__(cls):  # noqa: N805
        return (
            Index(f"idx_{cls.__tablename__}_rating_popularity", "rating", "popularity"),
        )

    # Attribute names copied from the entity, in addition to the shared columns
    date_column = None
    extra_columns = ()

    @classmethod
    def scalar_columns(cls) -> tuple[str, ...]:
        names = ["tmdb_id"]
        if cls.date_column:
            names.append(cls.date_column)
        names.extend(("rating", "popularity", "runtime", "status"))
        names.extend(cls.extra_columns)
        return tuple(names)

    def to_dict(self) -> dict[str, Any]:
        return {name: getattr(self, name) for name in self.scalar_columns()}


class MovieProjection(ProjectionMixin, Base):  # type: ignore[valid-type,misc]
    __tablename__ = "movie_projection"

    release_date = Column(Date, nullable=True, index=True)
    date_column = "release_date"


class TVProjection(ProjectionMixin, Base):  # type: ignore[valid-type,misc]
    __tablename__ = "tv_projection"

    first_air_date = Column(Date, nullable=True, index=True)
    date_column = "first_air_date"


class DramaProjection(ProjectionMixin, Base):  # type: ignore[valid-type,misc]
    __tablename__ = "drama_projection"

    first_air_date = Column(Date, nullable=True, index=True)
    date_column = "first_air_date"


class PeopleProjection(ProjectionMixin, Base):  # type: ignore[valid-type,misc]
    __tablename__ = "people_projection"

    known_for_department = Column(String(100), nullable=True, index=True)
    extra_columns = ("known_for_department",)


PROJECTION_MODELS: dict[str, type[ProjectionMixin]] = {
    EntityType.MOVIE.value: MovieProjection,
    EntityType.TV.value: TVProjection,
    EntityType.DRAMA.value: DramaProjection,
    EntityType.PEOPLE.value: PeopleProjection,
}


def projection_model(entity_type: EntityType | str, operation: str | None = None) -> type[ProjectionMixin]:
    """Return the projection model for an entity type.

    Raises:
        InvalidEntityTypeError: If the type has no projection table
    """
    key = entity_type.value if isinstance(entity_type, EntityType) else str(entity_type)
    try:
        return PROJECTION_MODELS[key]
    except KeyError:
        raise InvalidEntityTypeError(key, operation) from None


def parse_date(value: Any) -> date | None:
    """Coerce an ISO date string (or date/datetime) to a date.

    Raises:
        ValueError: If a string is not an ISO date
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])
