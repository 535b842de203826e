"""
YAML-backed store persisted inside a workspace.

State lives in ``state/resources.yaml`` and ``state/mappings.yaml``. Reads
reload the files when their modification time changes; writes always reload
first, so a compare-and-swap checks against what is on disk.
"""

import logging
from datetime import datetime
from pathlib import Path

import yaml

from migration_mapper.exceptions import ValidationError
from migration_mapper.models import MappingGroup, Resource
from migration_mapper.store.memory import MemoryStore
from migration_mapper.util.files import write_text

logger = logging.getLogger(__name__)


class WorkspaceStore(MemoryStore):
    """Persists resources and mapping groups as YAML files under ``state_dir``."""

    def __init__(self, state_dir: Path):
        super().__init__()
        self.state_dir = Path(state_dir)
        self.resources_file = self.state_dir / "resources.yaml"
        self.mappings_file = self.state_dir / "mappings.yaml"
        self._loaded_mtimes: tuple[int, int] | None = None
        self._refresh()

    # Reads

    def get_resource(self, resource_id: str) -> Resource | None:
        with self._lock:
            self._refresh()
            return super().get_resource(resource_id)

    def list_resources(self) -> list[Resource]:
        with self._lock:
            self._refresh()
            return super().list_resources()

    def get_mapping(self, group_id: str) -> MappingGroup | None:
        with self._lock:
            self._refresh()
            return super().get_mapping(group_id)

    def list_mappings(self) -> list[MappingGroup]:
        with self._lock:
            self._refresh()
            return super().list_mappings()

    # Writes

    def save_resource(self, resource: Resource) -> None:
        with self._lock:
            self._refresh(force=True)
            super().save_resource(resource)
            self._flush_resources()

    def save_resources(self, resources: list[Resource]) -> None:
        """Insert or replace many resources with a single file write."""
        with self._lock:
            self._refresh(force=True)
            for resource in resources:
                super().save_resource(resource)
            self._flush_resources()

    def add_mapping(self, group: MappingGroup) -> None:
        with self._lock:
            self._refresh(force=True)
            super().add_mapping(group)
            self._flush_mappings()

    def replace_mapping(self, group: MappingGroup, expected_updated_at: datetime) -> None:
        with self._lock:
            self._refresh(force=True)
            super().replace_mapping(group, expected_updated_at)
            self._flush_mappings()

    def delete_mapping(self, group_id: str, expected_updated_at: datetime) -> None:
        with self._lock:
            self._refresh(force=True)
            super().delete_mapping(group_id, expected_updated_at)
            self._flush_mappings()

    # File handling

    def _mtimes(self) -> tuple[int, int]:
        return (
            self.resources_file.stat().st_mtime_ns if self.resources_file.exists() else 0,
            self.mappings_file.stat().st_mtime_ns if self.mappings_file.exists() else 0,
        )

    def _refresh(self, force: bool = False) -> None:
        # mtimes miss writes landing within one filesystem clock tick
        mtimes = self._mtimes()
        if not force and mtimes == self._loaded_mtimes:
            return

        resources = {}
        for record in self._read_records(self.resources_file, "resources"):
            resource = Resource.from_dict(record)
            resources[resource.resource_id] = resource

        mappings = {}
        for record in self._read_records(self.mappings_file, "mappings"):
            group = MappingGroup.from_dict(record)
            mappings[group.id] = group

        self._resources = resources
        self._mappings = mappings
        self._loaded_mtimes = mtimes
        logger.debug(
            f"Loaded {len(resources)} resources and {len(mappings)} mappings from {self.state_dir}"
        )

    def _read_records(self, path: Path, key: str) -> list[dict]:
        if not path.exists():
            return []
        try:
            with open(path) as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ValidationError(f"Failed to parse {path}: {e}") from e

        if data is None:
            return []
        if not isinstance(data, dict) or not isinstance(data.get(key, []), list):
            raise ValidationError(f"Invalid state file {path}: expected a '{key}' list")
        return data.get(key, [])

    def _flush_resources(self) -> None:
        records = [r.to_dict() for r in self._resources.values()]
        self._dump(self.resources_file, {"resources": records})

    def _flush_mappings(self) -> None:
        records = [g.to_dict() for g in self._mappings.values()]
        self._dump(self.mappings_file, {"mappings": records})

    def _dump(self, path: Path, data: dict) -> None:
        write_text(
            path,
            yaml.dump(data, default_flow_style=False, sort_keys=False, allow_unicode=True),
        )
        self._loaded_mtimes = self._mtimes()
