"""
Category classification of individual resources.
"""

import logging
from collections import Counter
from typing import Iterable

from migration_mapper.exceptions import NotFoundError
from migration_mapper.models import Category, CategorySnapshot, Resource
from migration_mapper.models.base import next_timestamp, parse_enum
from migration_mapper.store.base import Store

logger = logging.getLogger(__name__)


class CategoryClassifier:
    """Validates and applies category changes to resources held in a Store."""

    def __init__(self, store: Store):
        self.store = store

    def set_category(
        self, resource_id: str, category: Category | str, notes: str | None = None
    ) -> Resource:
        """
        Set the migration category of one resource.

        Re-applying the current category succeeds and refreshes the audit
        timestamp. Only ``category``, ``categorized_at`` and (when given)
        ``category_notes`` change.

        Args:
            resource_id: Resource to classify
            category: old, new or uncategorized
            notes: Optional classification notes

        Returns:
            The updated resource

        Raises:
            ValidationError: If category is not a known category
            NotFoundError: If the resource does not exist
        """
        category = parse_enum(Category, category, "category")

        resource = self.store.get_resource(resource_id)
        if resource is None:
            raise NotFoundError("Resource", resource_id)

        updated = resource.with_category(
            category, next_timestamp(resource.categorized_at), notes
        )
        self.store.save_resource(updated)

        if resource.category is category:
            logger.debug(f"Resource {resource_id} already {category.value}, timestamp refreshed")
        else:
            logger.info(
                f"Categorized {resource_id}: {resource.category.value} -> {category.value}"
            )
        return updated


def snapshot(resources: Iterable[Resource]) -> CategorySnapshot:
    """Count resources per category."""
    counts = Counter(resource.category for resource in resources)
    return CategorySnapshot(
        old=counts[Category.OLD],
        new=counts[Category.NEW],
        uncategorized=counts[Category.UNCATEGORIZED],
    )
