"""
Storage backends.

Modules:
- base: the abstract Store interface (CRUD plus compare-and-swap for mappings)
- memory: thread-safe in-memory implementation
- workspace: YAML files inside a migration-mapper workspace
"""

from migration_mapper.store.base import Store
from migration_mapper.store.memory import MemoryStore
from migration_mapper.store.workspace import WorkspaceStore

__all__ = ["MemoryStore", "Store", "WorkspaceStore"]
