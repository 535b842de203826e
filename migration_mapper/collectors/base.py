"""
Base collector interface for resource inventory sources.

Collectors produce Resource records; the engine never initiates discovery
itself. Anything that can list resources (a cloud SDK scanner, an exported
inventory file, a fixture list) plugs in by implementing ``list_resources``.
"""

from abc import ABC, abstractmethod

from migration_mapper.engine.query import FilterCriteria, filter_resources
from migration_mapper.exceptions import NotFoundError
from migration_mapper.models import Resource


class BaseCollector(ABC):
    """
    Abstract base class for all resource collectors.

    Example:
        >>> class MyCollector(BaseCollector):
        ...     @property
        ...     def name(self) -> str:
        ...         return "my_source"
        ...
        ...     def collect(self) -> list[Resource]:
        ...         return [Resource("i-123", "ec2-instance", "us-east-1")]
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Return the collector name used in logs."""
        pass

    @abstractmethod
    def collect(self) -> list[Resource]:
        """Return every resource this collector knows about."""
        pass

    def list_resources(self, resource_filter: FilterCriteria | None = None) -> list[Resource]:
        """
        Return collected resources, optionally filtered.

        Args:
            resource_filter: Filter applied to the collected resources

        Returns:
            Matching resources in collection order
        """
        resources = self.collect()
        if resource_filter is None:
            return resources
        return filter_resources(resources, resource_filter)

    def resource_by_id(self, resource_id: str) -> Resource:
        """
        Return one collected resource.

        Raises:
            NotFoundError: If the collector has no such resource
        """
        for resource in self.collect():
            if resource.resource_id == resource_id:
                return resource
        raise NotFoundError("Resource", resource_id)

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}(name='{self.name}')>"


class StaticCollector(BaseCollector):
    """Collector over an in-memory list of resources."""

    def __init__(self, resources: list[Resource], name: str = "static"):
        self._resources = list(resources)
        self._name = name

    @property
    def name(self) -> str:
        return self._name

    def collect(self) -> list[Resource]:
        return list(self._resources)
