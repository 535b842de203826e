"""
Operations exposed to the CLI and to embedding applications.

MigrationService wires the classifier, mapping graph, bulk coordinator,
scorer and query functions to one Store and one set of engine settings.
It adds no rules of its own: every check lives in the engine modules.
"""

import logging
import threading
from dataclasses import replace
from datetime import datetime
from typing import Any, Sequence

from migration_mapper.collectors.base import BaseCollector
from migration_mapper.engine import scoring
from migration_mapper.engine.bulk import (
    BulkOperationCoordinator,
    BulkResult,
    MappingRequest,
    ProgressCallback,
)
from migration_mapper.engine.classifier import CategoryClassifier, snapshot
from migration_mapper.engine.graph import MappingGraph
from migration_mapper.engine.query import (
    FilterCriteria,
    Page,
    SortSpec,
    filter_mappings,
    filter_resources,
    paginate,
)
from migration_mapper.exceptions import ValidationError
from migration_mapper.models import (
    CategorySnapshot,
    MappingCategory,
    MappingDirection,
    MappingGroup,
    MappingType,
    MigrationPriority,
    MigrationStatus,
    Resource,
)
from migration_mapper.models.base import format_timestamp, utc_now
from migration_mapper.store.base import Store
from migration_mapper.util.config import EngineSettings

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = ("notes", "mapping_type", "mapping_direction", "priority", "category")

# Number of groups listed in the recent/upcoming sections of statistics
STATISTICS_LIST_LIMIT = 10


class MigrationService:
    """Facade over the migration mapping and categorization engine."""

    def __init__(self, store: Store, settings: EngineSettings | None = None):
        self.store = store
        self.settings = settings or EngineSettings()
        self.classifier = CategoryClassifier(store)
        self.graph = MappingGraph(store)
        self.bulk = BulkOperationCoordinator(self.classifier, self.graph, self.settings.bulk)

    # Categorization

    def categorize(self, resource_id: str, category: str, notes: str | None = None) -> Resource:
        """Set one resource's category."""
        return self.classifier.set_category(resource_id, category, notes)

    def bulk_categorize(
        self,
        resource_ids: Sequence[str],
        category: str,
        notes: str | None = None,
        confirmed: bool = False,
        cancel: threading.Event | None = None,
        on_item: ProgressCallback | None = None,
    ) -> BulkResult[str]:
        """
        Categorize a selection; per-item failures are reported, not raised.

        Selections above the warning threshold need ``confirmed=True``.
        """
        return self.bulk.bulk_categorize(
            resource_ids, category, notes, confirmed=confirmed, cancel=cancel, on_item=on_item
        )

    def categories(self) -> CategorySnapshot:
        """Return current per-category counts."""
        return snapshot(self.store.list_resources())

    # Suggestions

    def suggest_mappings(
        self,
        pool_filter: FilterCriteria | None = None,
        per_source_limit: int | None = None,
    ) -> list[scoring.Suggestion]:
        """
        Score candidate mappings over the stored resources.

        Args:
            pool_filter: Restrict the candidate pool (e.g. one region or type)
            per_source_limit: Keep at most this many suggestions per source

        Returns:
            Suggestions ordered by descending confidence
        """
        pool = self.store.list_resources()
        if pool_filter is not None:
            pool = filter_resources(pool, pool_filter, self._mapped_ids())
        return scoring.suggest(pool, self.settings.scoring, per_source_limit)

    # Mapping groups

    def get_mapping(self, group_id: str) -> MappingGroup:
        return self.graph.get(group_id)

    def create_mapping(
        self,
        source_ids: list[str],
        target_ids: list[str],
        mapping_type: MappingType | str = MappingType.REPLACEMENT,
        mapping_direction: MappingDirection | str = MappingDirection.OLD_TO_NEW,
        notes: str | None = None,
        confidence: int | None = None,
        priority: MigrationPriority | str = MigrationPriority.MEDIUM,
        category: MappingCategory | str = MappingCategory.UNDECIDED,
    ) -> MappingGroup:
        return self.graph.create(
            source_ids,
            target_ids,
            mapping_type,
            mapping_direction,
            notes=notes,
            confidence=confidence,
            priority=priority,
            category=category,
        )

    def update_mapping(
        self, group_id: str, patch: dict[str, Any], expected_updated_at: datetime | str
    ) -> MappingGroup:
        """
        Apply a partial update to a mapping group.

        Args:
            group_id: Group to update
            patch: Any of notes, mapping_type, mapping_direction, priority, category
            expected_updated_at: Version the caller last read

        Raises:
            ValidationError: If the patch names an unknown field
        """
        unknown = sorted(set(patch) - set(UPDATABLE_FIELDS))
        if unknown:
            raise ValidationError(
                f"Cannot update field(s): {', '.join(unknown)}",
                f"Updatable fields are: {', '.join(UPDATABLE_FIELDS)}. "
                "Use advance_status to change the migration status.",
            )
        return self.graph.update(group_id, expected_updated_at, **patch)

    def add_targets(
        self, group_id: str, target_ids: list[str], expected_updated_at: datetime | str
    ) -> MappingGroup:
        return self.graph.add_targets(group_id, target_ids, expected_updated_at)

    def remove_targets(
        self, group_id: str, target_ids: list[str], expected_updated_at: datetime | str
    ) -> MappingGroup:
        return self.graph.remove_targets(group_id, target_ids, expected_updated_at)

    def delete_mapping(self, group_id: str, expected_updated_at: datetime | str) -> None:
        self.graph.delete(group_id, expected_updated_at)

    def advance_status(
        self,
        group_id: str,
        new_status: MigrationStatus | str,
        expected_updated_at: datetime | str,
        reason: str | None = None,
    ) -> MappingGroup:
        return self.graph.set_status(group_id, new_status, expected_updated_at, reason)

    def check_mapping(self, group_id: str) -> list[str]:
        """Return integrity problems of a stored group (empty when consistent)."""
        return self.graph.check(group_id)

    def bulk_map(
        self,
        requests: Sequence["MappingRequest | tuple[str, str]"],
        confirmed: bool = False,
        cancel: threading.Event | None = None,
        on_item: ProgressCallback | None = None,
    ) -> BulkResult[MappingGroup]:
        return self.bulk.bulk_map(requests, confirmed, cancel, on_item)

    def bulk_delete_mappings(
        self,
        group_ids: Sequence[str],
        confirmed: bool = False,
        cancel: threading.Event | None = None,
        on_item: ProgressCallback | None = None,
    ) -> BulkResult[str]:
        return self.bulk.bulk_delete(group_ids, confirmed, cancel, on_item)

    # Queries

    def list_mappings(
        self,
        criteria: FilterCriteria | None = None,
        sort: SortSpec | None = None,
        cursor: str | None = None,
        page_size: int | None = None,
    ) -> Page:
        """Filter, sort and page mapping groups."""
        groups = self.store.list_mappings()
        resources_by_id = {r.resource_id: r for r in self.store.list_resources()}
        matching = filter_mappings(groups, criteria or FilterCriteria(), resources_by_id)
        return self._page(matching, sort or SortSpec(), cursor, page_size)

    def list_resources(
        self,
        criteria: FilterCriteria | None = None,
        sort: SortSpec | None = None,
        cursor: str | None = None,
        page_size: int | None = None,
    ) -> Page:
        """Filter, sort and page resources (default order: by name)."""
        matching = filter_resources(
            self.store.list_resources(), criteria or FilterCriteria(), self._mapped_ids()
        )
        return self._page(matching, sort or SortSpec(field="name"), cursor, page_size)

    def unmapped_resources(self, criteria: FilterCriteria | None = None) -> list[Resource]:
        """Return resources referenced by no mapping group, by type then name."""
        criteria = replace(criteria or FilterCriteria(), status="unmapped")
        matching = filter_resources(self.store.list_resources(), criteria, self._mapped_ids())
        return sorted(matching, key=lambda r: (r.resource_type, r.display_name.lower()))

    def export_all(self) -> dict[str, Any]:
        """Return every resource and mapping group as plain data. Changes nothing."""
        resources = self.store.list_resources()
        mappings = self.store.list_mappings()
        return {
            "resources": [r.to_dict() for r in resources],
            "mappings": [g.to_dict() for g in mappings],
            "exported_at": format_timestamp(utc_now()),
            "total_resources": len(resources),
            "total_mappings": len(mappings),
        }

    def statistics(self) -> dict[str, Any]:
        """
        Summarize migration progress.

        Returns:
            Dict with overview counts, counts by status / mapping type /
            priority / mapping category, the resource category snapshot,
            and the most recently migrated and next not-started groups
        """
        resources = self.store.list_resources()
        mappings = self.store.list_mappings()
        mapped = self._mapped_ids(mappings)

        done = [
            g
            for g in mappings
            if g.migration_status in (MigrationStatus.MIGRATED, MigrationStatus.VERIFIED)
        ]
        progress = round(len(done) / len(mappings) * 100, 1) if mappings else 0.0

        recent = sorted(
            done,
            key=lambda g: format_timestamp(g.migrated_at) or "",
            reverse=True,
        )[:STATISTICS_LIST_LIMIT]
        upcoming = sorted(
            (g for g in mappings if g.migration_status is MigrationStatus.NOT_STARTED),
            key=lambda g: (g.priority.rank, format_timestamp(g.created_at)),
        )[:STATISTICS_LIST_LIMIT]

        return {
            "overview": {
                "total_resources": len(resources),
                "mapped_resources": sum(1 for r in resources if r.resource_id in mapped),
                "unmapped_resources": sum(1 for r in resources if r.resource_id not in mapped),
                "total_mappings": len(mappings),
                "migration_progress": progress,
            },
            "by_status": _count_by(mappings, MigrationStatus, lambda g: g.migration_status),
            "by_mapping_type": _count_by(mappings, MappingType, lambda g: g.mapping_type),
            "by_priority": _count_by(mappings, MigrationPriority, lambda g: g.priority),
            "by_mapping_category": _count_by(mappings, MappingCategory, lambda g: g.category),
            "categories": snapshot(resources).to_dict(),
            "recent_migrations": [g.to_dict() for g in recent],
            "upcoming_migrations": [g.to_dict() for g in upcoming],
        }

    # Inventory

    def sync_inventory(self, collector: BaseCollector) -> dict[str, int]:
        """
        Upsert the collector's resources into the store.

        New resources are stored as collected. Existing resources keep their
        stored category and classification audit fields; every other attribute
        is refreshed from the collector.

        Returns:
            Counts of added and updated resources
        """
        collected = collector.list_resources()
        added = updated = 0
        to_save = []

        for resource in collected:
            existing = self.store.get_resource(resource.resource_id)
            if existing is None:
                added += 1
                to_save.append(resource)
                continue
            updated += 1
            to_save.append(
                replace(
                    resource,
                    category=existing.category,
                    categorized_at=existing.categorized_at,
                    category_notes=existing.category_notes,
                )
            )

        if to_save:
            self.store.save_resources(to_save)
        logger.info(
            f"Synced inventory from {collector.name}: {added} added, {updated} updated"
        )
        return {"added": added, "updated": updated}

    # Internals

    def _mapped_ids(self, mappings: list[MappingGroup] | None = None) -> set[str]:
        if mappings is None:
            mappings = self.store.list_mappings()
        return {member_id for group in mappings for member_id in group.member_ids}

    def _page(self, items: list, sort: SortSpec, cursor: str | None, page_size: int | None) -> Page:
        pagination = self.settings.pagination
        return paginate(
            items,
            sort,
            cursor,
            page_size if page_size is not None else pagination.default_page_size,
            pagination.max_page_size,
        )


def _count_by(mappings: list[MappingGroup], enum_cls, key) -> dict[str, int]:
    counts = {member.value: 0 for member in enum_cls}
    for group in mappings:
        counts[key(group).value] += 1
    return counts
