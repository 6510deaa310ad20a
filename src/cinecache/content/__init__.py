"""Catalog content store and query projection layer."""

from .database import DatabaseManager
from .models import (
    PROJECTION_MODELS,
    DramaProjection,
    Entity,
    EntityAttribute,
    MovieProjection,
    PeopleProjection,
    TVProjection,
    projection_model,
)
from .projection import ProjectionRepository, QueryOptimizer, build_projection_values
from .store import ContentStore

__all__ = [
    "PROJECTION_MODELS",
    "ContentStore",
    "DatabaseManager",
    "DramaProjection",
    "Entity",
    "EntityAttribute",
    "MovieProjection",
    "PeopleProjection",
    "ProjectionRepository",
    "QueryOptimizer",
    "TVProjection",
    "build_projection_values",
    "projection_model",
]
