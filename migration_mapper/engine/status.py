"""
Migration status state machine for mapping groups.

Forward progress is linear (not_started -> in_progress -> migrated -> verified).
Any non-terminal state may short-circuit to excluded or deprecated, migrated and
verified may roll back, and a rolled-back group may only restart from
not_started. Every other move is rejected.
"""

from dataclasses import replace
from datetime import datetime

from migration_mapper.exceptions import InvalidTransitionError
from migration_mapper.models import HistoryEntry, MappingGroup, MigrationStatus
from migration_mapper.models.base import next_timestamp, parse_enum

S = MigrationStatus

TRANSITIONS: dict[MigrationStatus, tuple[MigrationStatus, ...]] = {
    S.NOT_STARTED: (S.IN_PROGRESS, S.EXCLUDED, S.DEPRECATED),
    S.IN_PROGRESS: (S.MIGRATED, S.EXCLUDED, S.DEPRECATED),
    S.MIGRATED: (S.VERIFIED, S.ROLLBACK, S.EXCLUDED, S.DEPRECATED),
    S.VERIFIED: (S.ROLLBACK, S.EXCLUDED, S.DEPRECATED),
    S.ROLLBACK: (S.NOT_STARTED,),
    S.EXCLUDED: (),
    S.DEPRECATED: (),
}

TERMINAL_STATUSES = frozenset(status for status, targets in TRANSITIONS.items() if not targets)


def allowed_transitions(current: MigrationStatus | str) -> list[MigrationStatus]:
    """Return the statuses reachable in one step from ``current``."""
    return list(TRANSITIONS[parse_enum(MigrationStatus, current, "migration_status")])


def can_transition(current: MigrationStatus | str, new: MigrationStatus | str) -> bool:
    """Return True if ``current -> new`` is a legal move."""
    current = parse_enum(MigrationStatus, current, "migration_status")
    new = parse_enum(MigrationStatus, new, "migration_status")
    return new in TRANSITIONS[current]


def check_transition(current: MigrationStatus, new: MigrationStatus) -> None:
    """
    Raise InvalidTransitionError unless ``current -> new`` is legal.

    Raises:
        InvalidTransitionError: Naming the attempted from/to pair
    """
    if new not in TRANSITIONS[current]:
        raise InvalidTransitionError(
            current.value,
            new.value,
            [status.value for status in TRANSITIONS[current]],
        )


def advance(
    group: MappingGroup,
    new_status: MigrationStatus | str,
    reason: str | None = None,
    at: datetime | None = None,
) -> MappingGroup:
    """
    Return a copy of ``group`` moved to ``new_status``.

    The input group is never modified. Milestone timestamps are stamped on the
    copy (migrated_at, verified_at, rolled_back_at) and the move is appended to
    its history; ``reason`` is kept as the rollback reason when rolling back.

    Args:
        group: Current group state
        new_status: Target status (member or string value)
        reason: Optional operator explanation
        at: Timestamp to use (defaults to a fresh, strictly later timestamp)

    Returns:
        Transitioned copy with a new ``updated_at``

    Raises:
        ValidationError: If new_status is not a known status
        InvalidTransitionError: If the move is not in the transition table
    """
    new_status = parse_enum(MigrationStatus, new_status, "migration_status")
    check_transition(group.migration_status, new_status)

    now = at or next_timestamp(group.updated_at)
    details = f"Status changed from {group.migration_status.value} to {new_status.value}"
    if reason:
        details += f": {reason}"

    changes = {
        "migration_status": new_status,
        "status_changed_at": now,
        "updated_at": now,
        "history": [*group.history, HistoryEntry("status_changed", now, details)],
    }
    if new_status is S.MIGRATED:
        changes["migrated_at"] = now
    elif new_status is S.VERIFIED:
        changes["verified_at"] = now
    elif new_status is S.ROLLBACK:
        changes["rolled_back_at"] = now
        changes["rollback_reason"] = reason

    return replace(group, **changes)
