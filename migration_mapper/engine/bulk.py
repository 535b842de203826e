"""
Bulk classification and mapping over a selection set.

Each item is processed on its own: a failing item is recorded in
``BulkResult.failed`` and the remaining items still run. Only selection-level
problems abort the call, and they do so before anything changes: an empty
selection, a selection above the hard cap, or a missing confirmation. Deletes
always need confirmation; other operations need it once the selection is above
the warning threshold.
"""

import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Generic, Sequence, TypeVar

from migration_mapper.engine.classifier import CategoryClassifier
from migration_mapper.engine.graph import MappingGraph
from migration_mapper.exceptions import (
    ConfirmationRequiredError,
    LimitExceededError,
    MigrationMapperError,
    ValidationError,
)
from migration_mapper.models import (
    Category,
    MappingCategory,
    MappingDirection,
    MappingGroup,
    MappingType,
    MigrationPriority,
)
from migration_mapper.models.base import parse_enum
from migration_mapper.util.config import BulkLimits

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class LimitWarning:
    """Selection is above the warning threshold but within the hard cap."""

    size: int
    threshold: int
    limit: int
    kind: str = "limit_warning"

    @property
    def message(self) -> str:
        return (
            f"Bulk selection of {self.size} items is above the warning threshold of "
            f"{self.threshold} (hard limit {self.limit})"
        )

    def to_dict(self) -> dict[str, Any]:
        return {"kind": self.kind, "message": self.message, "size": self.size}


@dataclass(frozen=True)
class BulkFailure:
    """One item that failed, with the error that stopped it."""

    id: str
    error: MigrationMapperError

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "error": self.error.to_dict()}


@dataclass
class BulkResult(Generic[T]):
    """
    Aggregated outcome of a bulk operation.

    Attributes:
        succeeded: Per-item results, in selection order
        failed: Per-item failures, in selection order
        warnings: Selection-level warnings (e.g. LimitWarning)
        cancelled: True if the caller stopped the run early
        skipped: Items not attempted because of cancellation
    """

    succeeded: list[T] = field(default_factory=list)
    failed: list[BulkFailure] = field(default_factory=list)
    warnings: list[LimitWarning] = field(default_factory=list)
    cancelled: bool = False
    skipped: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed and not self.cancelled

    def to_dict(self) -> dict[str, Any]:
        return {
            "succeeded": [_serialize(item) for item in self.succeeded],
            "failed": [failure.to_dict() for failure in self.failed],
            "warnings": [warning.to_dict() for warning in self.warnings],
            "cancelled": self.cancelled,
            "skipped": list(self.skipped),
        }


def _serialize(item: Any) -> Any:
    return item.to_dict() if hasattr(item, "to_dict") else item


@dataclass(frozen=True)
class MappingRequest:
    """One mapping to create in a bulk_map call."""

    source_ids: list[str]
    target_ids: list[str] = field(default_factory=list)
    mapping_type: MappingType | str = MappingType.REPLACEMENT
    mapping_direction: MappingDirection | str = MappingDirection.OLD_TO_NEW
    notes: str | None = None
    confidence: int | None = None
    priority: MigrationPriority | str = MigrationPriority.MEDIUM
    category: MappingCategory | str = MappingCategory.UNDECIDED

    @property
    def label(self) -> str:
        """Identify the request in BulkResult.failed."""
        return f"{','.join(self.source_ids)}->{','.join(self.target_ids) or '(none)'}"

    @classmethod
    def pair(cls, source_id: str, target_id: str, notes: str | None = None) -> "MappingRequest":
        """Build a one-to-one old_to_new replacement request."""
        return cls(source_ids=[source_id], target_ids=[target_id], notes=notes)


def _as_request(request: Any) -> MappingRequest:
    if isinstance(request, MappingRequest):
        return request
    if isinstance(request, (tuple, list)) and len(request) == 2:
        return MappingRequest.pair(*request)
    raise ValidationError(
        f"Invalid bulk mapping request: {request!r}",
        "Pass MappingRequest objects or (source_id, target_id) pairs.",
    )


ProgressCallback = Callable[[str], None]


class BulkOperationCoordinator:
    """Drives the classifier and the mapping graph over a selection."""

    def __init__(
        self,
        classifier: CategoryClassifier,
        graph: MappingGraph,
        limits: BulkLimits | None = None,
    ):
        self.classifier = classifier
        self.graph = graph
        self.limits = limits or BulkLimits()

    def check_selection(
        self, size: int, confirmed: bool = False, operation: str = "Bulk operation"
    ) -> list[LimitWarning]:
        """
        Validate a selection size before any mutation.

        Selections above the warning threshold run only when ``confirmed`` is
        True; the warning is then returned so it can be attached to the result.

        Returns:
            Warnings to attach to the result (empty when below the threshold)

        Raises:
            ValidationError: If the selection is empty
            LimitExceededError: If the selection is above the hard cap
            ConfirmationRequiredError: If the selection is above the warning
                threshold and not confirmed (carries the LimitWarning)
        """
        if size == 0:
            raise ValidationError("Bulk selection is empty")
        if size > self.limits.max_selections:
            raise LimitExceededError(size, self.limits.max_selections)
        if size > self.limits.warning_threshold:
            warning = LimitWarning(size, self.limits.warning_threshold, self.limits.max_selections)
            logger.warning(warning.message)
            if not confirmed:
                raise ConfirmationRequiredError(operation, size, warning)
            return [warning]
        return []

    def bulk_categorize(
        self,
        resource_ids: Sequence[str],
        category: Category | str,
        notes: str | None = None,
        confirmed: bool = False,
        cancel: threading.Event | None = None,
        on_item: ProgressCallback | None = None,
    ) -> BulkResult[str]:
        """
        Categorize each resource independently.

        Args:
            resource_ids: Selection, processed in order
            category: Category to apply
            notes: Optional notes applied to every resource
            confirmed: Required for selections above the warning threshold
            cancel: Event checked between items for early termination
            on_item: Called with each id after it is processed

        Returns:
            BulkResult whose ``succeeded`` lists the categorized ids
        """
        category = parse_enum(Category, category, "category")

        def categorize(resource_id: str) -> str:
            self.classifier.set_category(resource_id, category, notes)
            return resource_id

        return self._run(
            list(resource_ids),
            categorize,
            label=lambda resource_id: resource_id,
            operation=f"categorize as {category.value}",
            confirmed=confirmed,
            cancel=cancel,
            on_item=on_item,
        )

    def bulk_map(
        self,
        requests: Sequence["MappingRequest | tuple[str, str]"],
        confirmed: bool = False,
        cancel: threading.Event | None = None,
        on_item: ProgressCallback | None = None,
    ) -> BulkResult[MappingGroup]:
        """
        Create one mapping group per request.

        Plain ``(source_id, target_id)`` tuples are accepted as one-to-one
        old_to_new replacements.

        Returns:
            BulkResult whose ``succeeded`` lists the created groups

        Raises:
            ValidationError: If a request is neither a MappingRequest nor a pair
        """
        normalized = [_as_request(request) for request in requests]
        return self._run(
            normalized,
            lambda request: self.graph.create(
                request.source_ids,
                request.target_ids,
                request.mapping_type,
                request.mapping_direction,
                notes=request.notes,
                confidence=request.confidence,
                priority=request.priority,
                category=request.category,
            ),
            label=lambda request: request.label,
            operation="map",
            confirmed=confirmed,
            cancel=cancel,
            on_item=on_item,
        )

    def bulk_delete(
        self,
        group_ids: Sequence[str],
        confirmed: bool = False,
        cancel: threading.Event | None = None,
        on_item: ProgressCallback | None = None,
    ) -> BulkResult[str]:
        """
        Delete mapping groups. Destructive: requires ``confirmed=True``.

        Each group is deleted at the version read just before deleting it.

        Raises:
            ConfirmationRequiredError: If confirmed is not True
        """
        group_ids = list(group_ids)
        if not confirmed:
            self.check_selection(len(group_ids), operation="Bulk delete")
            raise ConfirmationRequiredError("Bulk delete", len(group_ids))

        def delete(group_id: str) -> str:
            group = self.graph.get(group_id)
            self.graph.delete(group_id, group.updated_at)
            return group_id

        return self._run(
            group_ids,
            delete,
            label=lambda group_id: group_id,
            operation="delete",
            confirmed=confirmed,
            cancel=cancel,
            on_item=on_item,
        )

    def _run(self, items, action, label, operation, confirmed, cancel, on_item) -> BulkResult:
        warnings = self.check_selection(len(items), confirmed, f"Bulk {operation}")
        result = BulkResult(warnings=warnings)

        for index, item in enumerate(items):
            if cancel is not None and cancel.is_set():
                result.cancelled = True
                result.skipped = [label(rest) for rest in items[index:]]
                logger.info(
                    f"Bulk {operation} cancelled after {index} item(s); "
                    f"{len(result.skipped)} skipped"
                )
                break
            try:
                result.succeeded.append(action(item))
            except MigrationMapperError as e:
                logger.debug(f"Bulk {operation} failed for {label(item)}: {e.message}")
                result.failed.append(BulkFailure(label(item), e))
            if on_item is not None:
                on_item(label(item))

        logger.info(
            f"Bulk {operation}: {len(result.succeeded)} succeeded, {len(result.failed)} failed"
        )
        return result
