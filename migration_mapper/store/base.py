"""
Store interface for resource and mapping-group persistence.

The engine never touches storage directly; every read and write goes through a
Store. Mapping writes are compare-and-swap operations keyed on the group's
``updated_at`` so that concurrent writers are detected instead of silently
overwriting each other.
"""

from abc import ABC, abstractmethod
from datetime import datetime

from migration_mapper.models import MappingGroup, Resource


class Store(ABC):
    """
    Abstract base class for storage backends.

    Implementations must make ``replace_mapping`` and ``delete_mapping``
    atomic: the version check and the write happen under the same lock (or
    transaction), and a failed check leaves the stored group untouched.
    """

    # Resources

    @abstractmethod
    def get_resource(self, resource_id: str) -> Resource | None:
        """Return the resource with this id, or None."""
        pass

    @abstractmethod
    def list_resources(self) -> list[Resource]:
        """Return all resources in insertion order."""
        pass

    @abstractmethod
    def save_resource(self, resource: Resource) -> None:
        """Insert or replace a resource record."""
        pass

    def save_resources(self, resources: list[Resource]) -> None:
        """Insert or replace several resource records."""
        for resource in resources:
            self.save_resource(resource)

    def get_resources(self, resource_ids: list[str]) -> dict[str, Resource]:
        """Resolve several ids at once; unknown ids are absent from the result."""
        found = {}
        for resource_id in resource_ids:
            resource = self.get_resource(resource_id)
            if resource is not None:
                found[resource_id] = resource
        return found

    # Mapping groups

    @abstractmethod
    def new_mapping_id(self) -> str:
        """Return a fresh, unused mapping group id."""
        pass

    @abstractmethod
    def get_mapping(self, group_id: str) -> MappingGroup | None:
        """Return the mapping group with this id, or None."""
        pass

    @abstractmethod
    def list_mappings(self) -> list[MappingGroup]:
        """Return all mapping groups in creation order."""
        pass

    @abstractmethod
    def add_mapping(self, group: MappingGroup) -> None:
        """Insert a new mapping group (its id must not exist yet)."""
        pass

    @abstractmethod
    def replace_mapping(self, group: MappingGroup, expected_updated_at: datetime) -> None:
        """
        Replace a stored group if its ``updated_at`` still equals the expected value.

        Raises:
            NotFoundError: If the group does not exist
            ConflictError: If the stored ``updated_at`` differs
        """
        pass

    @abstractmethod
    def delete_mapping(self, group_id: str, expected_updated_at: datetime) -> None:
        """
        Delete a stored group if its ``updated_at`` still equals the expected value.

        Raises:
            NotFoundError: If the group does not exist
            ConflictError: If the stored ``updated_at`` differs
        """
        pass
