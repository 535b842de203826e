"""
Data models and schemas.

This package contains the resource inventory and migration mapping models used
throughout the engine.

Modules:
- resource: Resource, Category and the derived CategorySnapshot
- mapping: MappingGroup and its closed enumerations (type, direction, status, priority, category)
- base: enum coercion and timestamp helpers
"""

from migration_mapper.models.mapping import (
    MAX_NOTES_LENGTH,
    HistoryEntry,
    MappingCategory,
    MappingDirection,
    MappingGroup,
    MappingType,
    MigrationPriority,
    MigrationStatus,
)
from migration_mapper.models.resource import Category, CategorySnapshot, Resource

__all__ = [
    "MAX_NOTES_LENGTH",
    "Category",
    "CategorySnapshot",
    "HistoryEntry",
    "MappingCategory",
    "MappingDirection",
    "MappingGroup",
    "MappingType",
    "MigrationPriority",
    "MigrationStatus",
    "Resource",
]
