"""
Mapping group lifecycle: creation, validation, membership changes and deletion.

Every mutation follows the same pattern: read the current group, check the
caller's ``expected_updated_at``, build a fully validated copy, then hand the
copy to the store's compare-and-swap. A failure at any step leaves the stored
group exactly as it was.
"""

import logging
from dataclasses import replace
from datetime import datetime

from migration_mapper.engine import status as status_machine
from migration_mapper.exceptions import ConflictError, NotFoundError, ValidationError
from migration_mapper.models import (
    MAX_NOTES_LENGTH,
    HistoryEntry,
    MappingCategory,
    MappingDirection,
    MappingGroup,
    MappingType,
    MigrationPriority,
    MigrationStatus,
    Resource,
)
from migration_mapper.models.base import (
    format_timestamp,
    next_timestamp,
    parse_enum,
    parse_timestamp,
)
from migration_mapper.store.base import Store

logger = logging.getLogger(__name__)


def direction_violations(
    direction: MappingDirection,
    sources: list[Resource],
    targets: list[Resource],
) -> list[str]:
    """
    List members whose category contradicts ``direction``.

    Args:
        direction: Mapping direction to check
        sources: Resolved source resources
        targets: Resolved target resources

    Returns:
        Human-readable violation messages (empty when consistent)
    """
    violations = []
    for role, members, required in (
        ("source", sources, direction.source_category),
        ("target", targets, direction.target_category),
    ):
        if required is None:
            continue
        for member in members:
            if member.category is not required:
                violations.append(
                    f"{role} {member.resource_id} is {member.category.value}, "
                    f"{direction.value} requires {required.value}"
                )
    return violations


def _clean_ids(ids: list[str], role: str) -> list[str]:
    cleaned = []
    for resource_id in ids:
        if not isinstance(resource_id, str) or not resource_id.strip():
            raise ValidationError(f"Invalid {role} resource id: {resource_id!r}")
        cleaned.append(resource_id.strip())
    duplicates = sorted({i for i in cleaned if cleaned.count(i) > 1})
    if duplicates:
        raise ValidationError(f"Duplicate {role} resource ids: {', '.join(duplicates)}")
    return cleaned


def _clean_notes(notes: str | None) -> str | None:
    if notes is None:
        return None
    if len(notes) > MAX_NOTES_LENGTH:
        raise ValidationError(
            f"Notes are {len(notes)} characters long; the limit is {MAX_NOTES_LENGTH}"
        )
    return notes or None


class MappingGraph:
    """Owns mapping groups stored in a Store."""

    def __init__(self, store: Store):
        self.store = store

    # Reads

    def get(self, group_id: str) -> MappingGroup:
        """
        Return a mapping group.

        Raises:
            NotFoundError: If the group does not exist
        """
        group = self.store.get_mapping(group_id)
        if group is None:
            raise NotFoundError("Mapping", group_id)
        return group

    def check(self, group_id: str) -> list[str]:
        """
        Report integrity problems of a stored group without changing it.

        Detects members that no longer exist, groups without targets and
        direction violations caused by resources recategorized after the group
        was created.

        Returns:
            Problem descriptions (empty when the group is consistent)
        """
        group = self.get(group_id)
        resolved = self.store.get_resources(group.member_ids)

        problems = [
            f"Resource not found: {member_id}"
            for member_id in group.member_ids
            if member_id not in resolved
        ]
        if not group.target_ids:
            problems.append("No target resources")

        problems.extend(
            direction_violations(
                group.mapping_direction,
                [resolved[i] for i in group.source_ids if i in resolved],
                [resolved[i] for i in group.target_ids if i in resolved],
            )
        )
        return problems

    # Validation

    def validate_membership(
        self,
        source_ids: list[str],
        target_ids: list[str],
        direction: MappingDirection,
    ) -> None:
        """
        Validate a complete group membership against the store.

        Raises:
            ValidationError: Empty sources, duplicates, a resource on both sides,
                or a direction/category mismatch
            NotFoundError: If a referenced resource does not exist
        """
        if not source_ids:
            raise ValidationError(
                "A mapping group needs at least one source resource",
                "Pass one or more source resource ids.",
            )

        overlap = sorted(set(source_ids) & set(target_ids))
        if overlap:
            raise ValidationError(
                f"Resources cannot be both source and target: {', '.join(overlap)}"
            )

        resolved = self.store.get_resources([*source_ids, *target_ids])
        for resource_id in [*source_ids, *target_ids]:
            if resource_id not in resolved:
                raise NotFoundError("Resource", resource_id)

        violations = direction_violations(
            direction,
            [resolved[i] for i in source_ids],
            [resolved[i] for i in target_ids],
        )
        if violations:
            raise ValidationError(
                f"Mapping direction {direction.value} does not match resource categories: "
                + "; ".join(violations),
                "Recategorize the resources, pick another direction, or use any_to_any.",
            )

    # Mutations

    def create(
        self,
        source_ids: list[str],
        target_ids: list[str],
        mapping_type: MappingType | str,
        mapping_direction: MappingDirection | str,
        notes: str | None = None,
        confidence: int | None = None,
        priority: MigrationPriority | str = MigrationPriority.MEDIUM,
        category: MappingCategory | str = MappingCategory.UNDECIDED,
    ) -> MappingGroup:
        """
        Create a validated mapping group with status ``not_started``.

        Args:
            source_ids: Non-empty source resource ids
            target_ids: Target resource ids (may be empty)
            mapping_type: Relationship kind
            mapping_direction: Category rule for the members
            notes: Optional notes (at most 1000 characters)
            confidence: 0-100 for machine-suggested groups
            priority: Scheduling priority
            category: Migration plan (default undecided)

        Returns:
            The stored group

        Raises:
            ValidationError: On any invalid input
            NotFoundError: If a referenced resource does not exist
        """
        mapping_type = parse_enum(MappingType, mapping_type, "mapping_type")
        mapping_direction = parse_enum(MappingDirection, mapping_direction, "mapping_direction")
        priority = parse_enum(MigrationPriority, priority, "priority")
        category = parse_enum(MappingCategory, category, "category")
        source_ids = _clean_ids(list(source_ids), "source")
        target_ids = _clean_ids(list(target_ids), "target")
        notes = _clean_notes(notes)
        if confidence is not None and not (
            isinstance(confidence, int) and 0 <= confidence <= 100
        ):
            raise ValidationError(f"Confidence must be an integer from 0 to 100, got {confidence!r}")

        self.validate_membership(source_ids, target_ids, mapping_direction)

        now = next_timestamp(None)
        if target_ids:
            details = (
                f"Created {mapping_type.value} mapping: "
                f"{len(source_ids)} source(s) -> {len(target_ids)} target(s)"
            )
        else:
            details = f"Mapped {len(source_ids)} source(s) to nothing ({mapping_type.value})"

        group = MappingGroup(
            id=self.store.new_mapping_id(),
            source_ids=source_ids,
            target_ids=target_ids,
            mapping_type=mapping_type,
            mapping_direction=mapping_direction,
            migration_status=MigrationStatus.NOT_STARTED,
            notes=notes,
            confidence=confidence,
            priority=priority,
            category=category,
            created_at=now,
            updated_at=now,
            history=[HistoryEntry("created", now, details)],
        )
        self.store.add_mapping(group)
        logger.info(f"Created mapping {group.id} ({details})")
        return group

    def add_targets(
        self, group_id: str, target_ids: list[str], expected_updated_at: datetime | str
    ) -> MappingGroup:
        """
        Append targets to a group; rejected as a whole if any new member is invalid.

        Raises:
            NotFoundError, ConflictError, ValidationError
        """
        group = self._current(group_id, expected_updated_at)
        new_ids = _clean_ids(list(target_ids), "target")
        if not new_ids:
            raise ValidationError("No target resource ids given")
        already = [i for i in new_ids if i in group.target_ids]
        if already:
            raise ValidationError(
                f"Already targets of mapping {group_id}: {', '.join(already)}"
            )

        targets = [*group.target_ids, *new_ids]
        self.validate_membership(group.source_ids, targets, group.mapping_direction)
        return self._commit(
            group,
            "targets_added",
            f"Added {len(new_ids)} target resource(s)",
            target_ids=targets,
        )

    def remove_targets(
        self, group_id: str, target_ids: list[str], expected_updated_at: datetime | str
    ) -> MappingGroup:
        """
        Remove targets from a group; rejected as a whole if any id is not a target.

        Raises:
            NotFoundError, ConflictError, ValidationError
        """
        group = self._current(group_id, expected_updated_at)
        removed = _clean_ids(list(target_ids), "target")
        if not removed:
            raise ValidationError("No target resource ids given")
        unknown = [i for i in removed if i not in group.target_ids]
        if unknown:
            raise ValidationError(f"Not targets of mapping {group_id}: {', '.join(unknown)}")

        targets = [i for i in group.target_ids if i not in removed]
        self.validate_membership(group.source_ids, targets, group.mapping_direction)
        return self._commit(
            group,
            "targets_removed",
            f"Removed {len(removed)} target resource(s)",
            target_ids=targets,
        )

    def update(
        self,
        group_id: str,
        expected_updated_at: datetime | str,
        notes: str | None = None,
        mapping_type: MappingType | str | None = None,
        mapping_direction: MappingDirection | str | None = None,
        priority: MigrationPriority | str | None = None,
        category: MappingCategory | str | None = None,
    ) -> MappingGroup:
        """
        Patch notes, type, direction, priority or category (None leaves a field
        unchanged, an empty string clears the notes).

        A direction change re-validates the current membership.

        Raises:
            NotFoundError, ConflictError, ValidationError
        """
        group = self._current(group_id, expected_updated_at)
        changes = {}
        described = []

        if notes is not None:
            changes["notes"] = _clean_notes(notes)
            described.append("notes")
        if mapping_type is not None:
            changes["mapping_type"] = parse_enum(MappingType, mapping_type, "mapping_type")
            described.append(f"type to {changes['mapping_type'].value}")
        if priority is not None:
            changes["priority"] = parse_enum(MigrationPriority, priority, "priority")
            described.append(f"priority to {changes['priority'].value}")
        if category is not None:
            changes["category"] = parse_enum(MappingCategory, category, "category")
            described.append(f"category to {changes['category'].value}")
        if mapping_direction is not None:
            direction = parse_enum(MappingDirection, mapping_direction, "mapping_direction")
            self.validate_membership(group.source_ids, group.target_ids, direction)
            changes["mapping_direction"] = direction
            described.append(f"direction to {direction.value}")

        if not changes:
            raise ValidationError(
                "Nothing to update",
                "Pass at least one of notes, mapping_type, mapping_direction, priority "
                "or category.",
            )

        return self._commit(group, "updated", f"Updated {', '.join(described)}", **changes)

    def set_status(
        self,
        group_id: str,
        new_status: MigrationStatus | str,
        expected_updated_at: datetime | str,
        reason: str | None = None,
    ) -> MappingGroup:
        """
        Move a group through the status machine and persist the result.

        Raises:
            NotFoundError, ConflictError, ValidationError, InvalidTransitionError
        """
        group = self._current(group_id, expected_updated_at)
        advanced = status_machine.advance(group, new_status, reason)
        self.store.replace_mapping(advanced, group.updated_at)
        logger.info(
            f"Mapping {group_id} status {group.migration_status.value} -> "
            f"{advanced.migration_status.value}"
        )
        return advanced

    def delete(self, group_id: str, expected_updated_at: datetime | str) -> None:
        """
        Delete a group. Referenced resources are untouched.

        Raises:
            NotFoundError: If the group does not exist (including a repeated delete)
            ConflictError: If the group changed since ``expected_updated_at``
        """
        group = self._current(group_id, expected_updated_at)
        self.store.delete_mapping(group_id, group.updated_at)
        logger.info(f"Deleted mapping {group_id}")

    # Internals

    def _current(self, group_id: str, expected_updated_at: datetime | str) -> MappingGroup:
        expected = parse_timestamp(expected_updated_at)
        if expected is None:
            raise ValidationError(
                "expected_updated_at is required for mapping mutations",
                "Read the mapping first and pass its updated_at value.",
            )
        group = self.get(group_id)
        if group.updated_at != expected:
            raise ConflictError(
                group_id, format_timestamp(expected), format_timestamp(group.updated_at)
            )
        return group

    def _commit(self, group: MappingGroup, action: str, details: str, **changes) -> MappingGroup:
        now = next_timestamp(group.updated_at)
        updated = replace(
            group,
            updated_at=now,
            history=[*group.history, HistoryEntry(action, now, details)],
            **changes,
        )
        self.store.replace_mapping(updated, group.updated_at)
        logger.info(f"Mapping {group.id}: {details}")
        return updated
