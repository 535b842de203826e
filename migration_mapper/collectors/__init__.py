"""
Resource collectors.

Modules:
- base: BaseCollector interface and StaticCollector
- file: InventoryFileCollector for JSON/YAML inventory exports
"""

from migration_mapper.collectors.base import BaseCollector, StaticCollector
from migration_mapper.collectors.file import InventoryFileCollector

__all__ = ["BaseCollector", "InventoryFileCollector", "StaticCollector"]
