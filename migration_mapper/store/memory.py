"""
Thread-safe in-memory store.
"""

import copy
import threading
import uuid
from datetime import datetime

from migration_mapper.exceptions import ConflictError, NotFoundError, ValidationError
from migration_mapper.models import MappingGroup, Resource
from migration_mapper.models.base import format_timestamp
from migration_mapper.store.base import Store


class MemoryStore(Store):
    """
    Dict-backed store guarded by a re-entrant lock.

    Records are deep-copied on the way in and out so callers can never mutate
    stored state without going through a compare-and-swap.
    """

    def __init__(self, resources: list[Resource] | None = None):
        self._lock = threading.RLock()
        self._resources: dict[str, Resource] = {}
        self._mappings: dict[str, MappingGroup] = {}
        for resource in resources or []:
            self.save_resource(resource)

    def get_resource(self, resource_id: str) -> Resource | None:
        with self._lock:
            resource = self._resources.get(resource_id)
            return copy.deepcopy(resource) if resource is not None else None

    def list_resources(self) -> list[Resource]:
        with self._lock:
            return [copy.deepcopy(r) for r in self._resources.values()]

    def save_resource(self, resource: Resource) -> None:
        with self._lock:
            self._resources[resource.resource_id] = copy.deepcopy(resource)

    def new_mapping_id(self) -> str:
        with self._lock:
            while True:
                group_id = f"mapping-{uuid.uuid4().hex[:12]}"
                if group_id not in self._mappings:
                    return group_id

    def get_mapping(self, group_id: str) -> MappingGroup | None:
        with self._lock:
            group = self._mappings.get(group_id)
            return copy.deepcopy(group) if group is not None else None

    def list_mappings(self) -> list[MappingGroup]:
        with self._lock:
            return [copy.deepcopy(g) for g in self._mappings.values()]

    def add_mapping(self, group: MappingGroup) -> None:
        with self._lock:
            if group.id in self._mappings:
                raise ValidationError(f"Mapping id already exists: {group.id}")
            self._mappings[group.id] = copy.deepcopy(group)

    def replace_mapping(self, group: MappingGroup, expected_updated_at: datetime) -> None:
        with self._lock:
            self._check_version(group.id, expected_updated_at)
            self._mappings[group.id] = copy.deepcopy(group)

    def delete_mapping(self, group_id: str, expected_updated_at: datetime) -> None:
        with self._lock:
            self._check_version(group_id, expected_updated_at)
            del self._mappings[group_id]

    def _check_version(self, group_id: str, expected_updated_at: datetime) -> None:
        current = self._mappings.get(group_id)
        if current is None:
            raise NotFoundError("Mapping", group_id)
        if current.updated_at != expected_updated_at:
            raise ConflictError(
                group_id,
                format_timestamp(expected_updated_at),
                format_timestamp(current.updated_at),
            )
