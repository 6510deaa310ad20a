"""Query projection layer.

ProjectionRepository keeps one side-table row per entity in step with the
entity's scalar attributes. QueryOptimizer rewrites listing queries to
sort and filter on the indexed projection columns instead of the generic
attribute rows.

Every sort is tie-broken by entity id ascending so paginated listings are
stable across requests.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Any

from sqlalchemy import delete, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.sql import Select

from cinecache.content.database import DatabaseManager
from cinecache.content.models import (
    PROJECTION_MODELS,
    Entity,
    parse_date,
    projection_model,
)
from cinecache.shared.constants import EntityType, SortDirection, SortKeys
from cinecache.shared.errors import (
    DomainError,
    ErrorCode,
    ErrorContext,
    InvalidSortKeyError,
    ProjectionWriteError,
)
from cinecache.shared.logging import log_operation_error

logger = logging.getLogger(__name__)

# Alternative attribute names accepted from source data (TMDB naming)
_ATTRIBUTE_ALIASES: dict[str, tuple[str, ...]] = {
    "rating": ("rating", "vote_average"),
    "release_date": ("release_date",),
    "first_air_date": ("first_air_date", "release_date"),
}

_COERCERS: dict[str, Any] = {
    "tmdb_id": int,
    "rating": float,
    "popularity": float,
    "runtime": int,
    "status": str,
    "known_for_department": str,
    "release_date": parse_date,
    "first_air_date": parse_date,
}

FILTER_KEYS = ("status", "min_rating", "min_popularity", "year")


def build_projection_values(entity_type: str, attributes: dict[str, Any]) -> dict[str, Any]:
    """Derive projection column values from entity attributes.

    Raises:
        InvalidEntityTypeError: If the type has no projection table
        ValueError: If an attribute cannot be coerced to its column type
        TypeError: If an attribute has an unusable type
    """
    model = projection_model(entity_type, "build_projection_values")
    values: dict[str, Any] = {}
    for column in model.scalar_columns():
        raw = None
        for name in _ATTRIBUTE_ALIASES.get(column, (column,)):
            if attributes.get(name) not in (None, ""):
                raw = attributes[name]
                break
        values[column] = None if raw is None else _COERCERS[column](raw)
    return values


class QueryOptimizer:
    """Rewrites entity listing queries to use projection tables.

    Example:
        >>> base = select(Entity).where(Entity.entity_type == "movie")
        >>> stmt = QueryOptimizer().rewrite(base, "movie", "rating", "desc")
    """

    def sort_column(self, entity_type: str, order_by: str) -> Any:
        """Return the projection column for a sort key.

        Raises:
            InvalidSortKeyError: If the key is not sortable for the type
        """
        model = projection_model(entity_type, "rewrite")
        column_name = order_by
        if order_by in (SortKeys.RELEASE_DATE, SortKeys.FIRST_AIR_DATE):
            column_name = model.date_column
        if order_by not in SortKeys.ALL or column_name is None:
            raise InvalidSortKeyError(str(order_by), str(entity_type))
        return getattr(model, column_name)

    def rewrite(
        self,
        base_query: Select,
        entity_type: EntityType | str,
        order_by: str | None = None,
        order_dir: SortDirection | str = SortDirection.DESC,
    ) -> Select:
        """Join projection columns into ``base_query`` and order by them.

        Args:
            base_query: A select over Entity
            entity_type: Entity type being listed
            order_by: Sort key, or None to keep the base ordering
            order_dir: "asc" or "desc"

        Returns:
            The rewritten select; rows are (Entity, *projection columns)

        Raises:
            InvalidEntityTypeError: If the type has no projection table
            InvalidSortKeyError: If the sort key or direction is unsupported
        """
        model = projection_model(entity_type, "rewrite")
        entity_type = EntityType(entity_type).value
        raw_direction = order_dir.value if isinstance(order_dir, SortDirection) else str(order_dir).lower()
        try:
            direction = SortDirection(raw_direction)
        except ValueError:
            raise InvalidSortKeyError(f"{order_by} {order_dir}", entity_type) from None

        columns = [getattr(model, name).label(name) for name in model.scalar_columns()]
        stmt = (
            base_query.outerjoin(model, model.entity_id == Entity.id)
            .add_columns(*columns)
        )

        if order_by is None and entity_type == EntityType.PEOPLE.value:
            order_by, direction = SortKeys.POPULARITY, SortDirection.DESC

        if order_by is None:
            return stmt.order_by(Entity.id.asc())

        column = self.sort_column(entity_type, order_by)
        primary = column.desc() if direction is SortDirection.DESC else column.asc()
        return stmt.order_by(None).order_by(primary.nulls_last(), Entity.id.asc())

    def apply_filters(
        self,
        stmt: Select,
        entity_type: EntityType | str,
        filters: dict[str, Any] | None,
    ) -> Select:
        """Restrict a rewritten select by projection filters.

        Supported keys: status, min_rating, min_popularity, year.

        Raises:
            DomainError: If a filter key is unknown or not applicable
        """
        if not filters:
            return stmt

        model = projection_model(entity_type, "apply_filters")
        for key, value in filters.items():
            if key not in FILTER_KEYS or (key == "year" and not model.date_column):
                raise DomainError(
                    ErrorCode.VALIDATION_ERROR,
                    f"Unsupported filter '{key}' for entity type '{entity_type}'",
                    ErrorContext(
                        operation="apply_filters",
                        additional_data={"filter": key, "entity_type": str(entity_type)},
                    ),
                )
            if value is None:
                continue
            if key == "status":
                stmt = stmt.where(model.status == str(value))
            elif key == "min_rating":
                stmt = stmt.where(model.rating >= float(value))
            elif key == "min_popularity":
                stmt = stmt.where(model.popularity >= float(value))
            else:
                date_column = getattr(model, model.date_column)
                year = int(value)
                stmt = stmt.where(date_column.between(date(year, 1, 1), date(year, 12, 31)))
        return stmt


class ProjectionRepository:
    """Maintains projection rows.

    Each write runs in its own transaction, after the entity write has
    committed. A failed write is logged and leaves the previous row as it
    was.

    Args:
        db: Content database manager
    """

    def __init__(self, db: DatabaseManager) -> None:
        self.db = db

    def upsert(self, entity_id: int, entity_type: str, attributes: dict[str, Any]) -> bool:
        """Create or refresh the projection row for an entity.

        Returns:
            True if the row was written, False if the write failed
        """
        try:
            values = build_projection_values(entity_type, attributes)
            model = projection_model(entity_type, "upsert")
            with self.db.transaction() as session:
                row = session.get(model, entity_id)
                if row is None:
                    row = model(entity_id=entity_id)
                    session.add(row)
                for name, value in values.items():
                    setattr(row, name, value)
        except (SQLAlchemyError, ValueError, TypeError) as e:
            self._log_failure("upsert", entity_id, entity_type, e)
            return False

        logger.debug("Projection upserted for %s:%d", entity_type, entity_id)
        return True

    def delete(self, entity_id: int, entity_type: str) -> bool:
        """Delete a projection row explicitly.

        Returns:
            True if a row was removed
        """
        model = projection_model(entity_type, "delete")
        try:
            with self.db.transaction() as session:
                result = session.execute(delete(model).where(model.entity_id == entity_id))
                return bool(result.rowcount)
        except SQLAlchemyError as e:
            self._log_failure("delete", entity_id, entity_type, e)
            return False

    def get(self, entity_id: int, entity_type: str) -> dict[str, Any] | None:
        """Return the projection row as a dict, or None."""
        model = projection_model(entity_type, "get")
        with self.db.transaction() as session:
            row = session.get(model, entity_id)
            return None if row is None else row.to_dict()

    def top_ids(self, entity_type: str, limit: int) -> list[int]:
        """Return the ids of the ``limit`` most popular entities."""
        if limit <= 0:
            return []
        model = projection_model(entity_type, "top_ids")
        stmt = (
            select(model.entity_id)
            .order_by(model.popularity.desc().nulls_last(), model.entity_id.asc())
            .limit(limit)
        )
        with self.db.transaction() as session:
            return [int(entity_id) for entity_id in session.scalars(stmt)]

    def similar_ids(self, entity_id: int, limit: int, entity_type: str = EntityType.MOVIE.value) -> list[int]:
        """Return ids of same-status entities ordered by popularity.

        The entity itself is excluded. An entity without a projection row
        has no recommendations.
        """
        model = projection_model(entity_type, "similar_ids")
        with self.db.transaction() as session:
            source = session.get(model, entity_id)
            if source is None:
                return []
            stmt = select(model.entity_id).where(model.entity_id != entity_id)
            if source.status is not None:
                stmt = stmt.where(model.status == source.status)
            stmt = stmt.order_by(model.popularity.desc().nulls_last(), model.entity_id.asc()).limit(limit)
            return [int(i) for i in session.scalars(stmt)]

    def rebuild(self, entity_type: str) -> int:
        """Re-derive every projection row of a type from its entities.

        Returns:
            Number of rows written
        """
        projection_model(entity_type, "rebuild")
        with self.db.transaction() as session:
            entities = [
                (entity.id, entity.attribute_map())
                for entity in session.scalars(select(Entity).where(Entity.entity_type == entity_type))
            ]

        written = sum(1 for entity_id, attributes in entities if self.upsert(entity_id, entity_type, attributes))
        logger.info("Rebuilt %d/%d %s projection rows", written, len(entities), entity_type)
        return written

    def cleanup_orphans(self) -> int:
        """Delete projection rows whose entity no longer exists.

        Returns:
            Number of rows removed
        """
        removed = 0
        with self.db.transaction() as session:
            for model in PROJECTION_MODELS.values():
                orphaned = ~model.entity_id.in_(select(Entity.id))
                result = session.execute(delete(model).where(orphaned))
                removed += result.rowcount or 0
        if removed:
            logger.info("Removed %d orphaned projection rows", removed)
        return removed

    def stats(self) -> dict[str, int]:
        """Return the row count of every projection table."""
        with self.db.transaction() as session:
            return {
                model.__tablename__: int(session.scalar(select(func.count()).select_from(model)) or 0)
                for model in PROJECTION_MODELS.values()
            }

    @staticmethod
    def _log_failure(operation: str, entity_id: int, entity_type: str, e: Exception) -> None:
        error = ProjectionWriteError(
            ErrorCode.PROJECTION_WRITE_FAILED,
            f"Projection {operation} failed for {entity_type}:{entity_id}: {e!s}",
            ErrorContext(
                operation=f"projection_{operation}",
                additional_data={"entity_type": entity_type, "entity_id": entity_id},
            ),
            original_error=e,
        )
        log_operation_error(logger, error)


__all__ = [
    "FILTER_KEYS",
    "ProjectionRepository",
    "QueryOptimizer",
    "build_projection_values",
]
