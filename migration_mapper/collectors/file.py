"""
Inventory file collector.

Reads resources exported by an external discovery tool as JSON or YAML. The
file holds either a list of resource records or an object with a
``resources`` list; records are validated against
``schema/inventory.schema.json`` before conversion.
"""

import json
import logging
from pathlib import Path
from typing import Any

import yaml
from jsonschema import ValidationError as SchemaValidationError
from jsonschema import validate

from migration_mapper.collectors.base import BaseCollector
from migration_mapper.exceptions import InventoryError
from migration_mapper.models import Resource

logger = logging.getLogger(__name__)

SCHEMA_FILE = Path(__file__).parent.parent / "schema" / "inventory.schema.json"


class InventoryFileCollector(BaseCollector):
    """Loads Resource records from a JSON or YAML inventory file."""

    def __init__(self, path: Path):
        self.path = Path(path)
        self._cache: list[Resource] | None = None

    @property
    def name(self) -> str:
        return f"file:{self.path.name}"

    def collect(self) -> list[Resource]:
        if self._cache is None:
            records = self._load_records()
            self._cache = [Resource.from_dict(record) for record in records]
            logger.info(f"Loaded {len(self._cache)} resources from {self.path}")
        return list(self._cache)

    def _load_records(self) -> list[dict[str, Any]]:
        if not self.path.is_file():
            raise InventoryError(str(self.path), "file not found")

        text = self.path.read_text()
        try:
            if self.path.suffix.lower() == ".json":
                data = json.loads(text)
            else:
                data = yaml.safe_load(text)
        except (json.JSONDecodeError, yaml.YAMLError) as e:
            raise InventoryError(str(self.path), f"parse error: {e}") from e

        if isinstance(data, dict):
            data = data.get("resources")
        if data is None:
            data = []

        schema = json.loads(SCHEMA_FILE.read_text())
        try:
            validate(instance=data, schema=schema)
        except SchemaValidationError as e:
            location = ".".join(str(p) for p in e.path) or "<root>"
            raise InventoryError(str(self.path), f"{e.message} (at {location})") from e

        seen = set()
        unique = []
        for record in data:
            if record["resource_id"] in seen:
                logger.warning(
                    f"Skipping duplicate resource {record['resource_id']} in {self.path}"
                )
                continue
            seen.add(record["resource_id"])
            unique.append(record)
        return unique
