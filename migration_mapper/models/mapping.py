"""Mapping group models.

A MappingGroup is a many-to-many relation between source and target resources
recording one migration decision. Groups reference resources by id only; the
referenced records live in the store and are resolved at validation time.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from migration_mapper.models.base import (
    format_timestamp,
    parse_enum,
    parse_timestamp,
)
from migration_mapper.models.resource import Category

MAX_NOTES_LENGTH = 1000


class MappingType(Enum):
    """Kind of relationship a mapping group records."""

    REPLACEMENT = "replacement"
    CONSOLIDATION = "consolidation"
    SPLIT = "split"
    DEPENDENCY = "dependency"
    DEPRECATION = "deprecation"
    REMOVAL = "removal"
    ADDITION = "addition"

    def __str__(self) -> str:
        return self.value

    @property
    def description(self) -> str:
        return {
            "replacement": "Direct resource replacement",
            "consolidation": "Multiple resources consolidated into fewer",
            "split": "One resource split into several",
            "dependency": "Target depends on the source during migration",
            "deprecation": "Source is deprecated without a direct successor",
            "removal": "Source is scheduled for removal",
            "addition": "Newly added resources with no legacy counterpart",
        }[self.value]


class MappingDirection(Enum):
    """
    Permitted category combination between a group's sources and targets.

    ANY_TO_ANY waives the category check entirely.
    """

    OLD_TO_NEW = "old_to_new"
    NEW_TO_OLD = "new_to_old"
    OLD_TO_OLD = "old_to_old"
    NEW_TO_NEW = "new_to_new"
    ANY_TO_ANY = "any_to_any"

    def __str__(self) -> str:
        return self.value

    @property
    def source_category(self) -> Category | None:
        """Category every source must have (None when unconstrained)."""
        if self is MappingDirection.ANY_TO_ANY:
            return None
        return Category(self.value.split("_to_")[0])

    @property
    def target_category(self) -> Category | None:
        """Category every target must have (None when unconstrained)."""
        if self is MappingDirection.ANY_TO_ANY:
            return None
        return Category(self.value.split("_to_")[1])

    @property
    def label(self) -> str:
        return {
            "old_to_new": "Legacy → Modern",
            "new_to_old": "Modern → Legacy",
            "old_to_old": "Legacy → Legacy",
            "new_to_new": "Modern → Modern",
            "any_to_any": "Flexible",
        }[self.value]


class MigrationStatus(Enum):
    """Lifecycle stage of a mapping group's migration."""

    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    MIGRATED = "migrated"
    VERIFIED = "verified"
    EXCLUDED = "excluded"
    DEPRECATED = "deprecated"
    ROLLBACK = "rollback"

    def __str__(self) -> str:
        return self.value


class MigrationPriority(Enum):
    """Scheduling priority of a mapping group."""

    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    def __str__(self) -> str:
        return self.value

    @property
    def rank(self) -> int:
        """Return numeric rank for sorting (lower = more urgent)."""
        return {"critical": 0, "high": 1, "medium": 2, "low": 3}[self.value]


class MappingCategory(Enum):
    """
    Migration plan chosen for a mapping group.

    Levels:
        KEEP_MANUAL: Stays managed by hand
        MIGRATE_TERRAFORM: Moves under Terraform management
        TO_BE_REMOVED: Scheduled for removal
        DEPRECATED: Kept but no longer developed
        UNDECIDED: No plan chosen yet
        STAGING: Staging-only infrastructure
        CHRONE: Scheduled (cron) workloads
    """

    KEEP_MANUAL = "keep_manual"
    MIGRATE_TERRAFORM = "migrate_terraform"
    TO_BE_REMOVED = "to_be_removed"
    DEPRECATED = "deprecated"
    UNDECIDED = "undecided"
    STAGING = "staging"
    CHRONE = "chrone"

    def __str__(self) -> str:
        return self.value

    @property
    def label(self) -> str:
        return {
            "keep_manual": "Keep Manual",
            "migrate_terraform": "Migrate to Terraform",
            "to_be_removed": "To Be Removed",
            "deprecated": "Deprecated",
            "undecided": "Undecided",
            "staging": "Staging",
            "chrone": "Chrone",
        }[self.value]


@dataclass(frozen=True)
class HistoryEntry:
    """One audit trail record on a mapping group."""

    action: str
    timestamp: datetime
    details: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "action": self.action,
            "timestamp": format_timestamp(self.timestamp),
            "details": self.details,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "HistoryEntry":
        return cls(
            action=data["action"],
            timestamp=parse_timestamp(data["timestamp"]),
            details=data.get("details", ""),
        )


@dataclass
class MappingGroup:
    """
    A migration decision linking source resources to target resources.

    Attributes:
        id: Identity assigned by the store on creation
        source_ids: Ordered, non-empty resource references
        target_ids: Ordered resource references (empty means "earmarked, not yet matched")
        mapping_type: Kind of relationship
        mapping_direction: Category rule the members must satisfy
        migration_status: Current state in the status machine
        notes: Free text, at most MAX_NOTES_LENGTH characters
        confidence: 0-100 for machine-suggested groups, None otherwise
        priority: Scheduling priority
        category: Migration plan (undecided until someone chooses one)
        created_at: Creation timestamp
        updated_at: Version stamp for optimistic concurrency
        history: Append-only audit trail
    """

    id: str
    source_ids: list[str]
    target_ids: list[str]
    mapping_type: MappingType
    mapping_direction: MappingDirection
    created_at: datetime
    updated_at: datetime
    migration_status: MigrationStatus = MigrationStatus.NOT_STARTED
    notes: str | None = None
    confidence: int | None = None
    priority: MigrationPriority = MigrationPriority.MEDIUM
    category: MappingCategory = MappingCategory.UNDECIDED
    status_changed_at: datetime | None = None
    migrated_at: datetime | None = None
    verified_at: datetime | None = None
    rolled_back_at: datetime | None = None
    rollback_reason: str | None = None
    history: list[HistoryEntry] = field(default_factory=list)

    @property
    def member_ids(self) -> list[str]:
        """Every referenced resource id, sources first."""
        return [*self.source_ids, *self.target_ids]

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON/YAML serialization."""
        return {
            "id": self.id,
            "source_ids": list(self.source_ids),
            "target_ids": list(self.target_ids),
            "mapping_type": self.mapping_type.value,
            "mapping_direction": self.mapping_direction.value,
            "migration_status": self.migration_status.value,
            "notes": self.notes,
            "confidence": self.confidence,
            "priority": self.priority.value,
            "category": self.category.value,
            "created_at": format_timestamp(self.created_at),
            "updated_at": format_timestamp(self.updated_at),
            "status_changed_at": format_timestamp(self.status_changed_at),
            "migrated_at": format_timestamp(self.migrated_at),
            "verified_at": format_timestamp(self.verified_at),
            "rolled_back_at": format_timestamp(self.rolled_back_at),
            "rollback_reason": self.rollback_reason,
            "history": [entry.to_dict() for entry in self.history],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "MappingGroup":
        return cls(
            id=str(data["id"]),
            source_ids=[str(i) for i in data.get("source_ids", [])],
            target_ids=[str(i) for i in data.get("target_ids", [])],
            mapping_type=parse_enum(MappingType, data["mapping_type"], "mapping_type"),
            mapping_direction=parse_enum(
                MappingDirection, data["mapping_direction"], "mapping_direction"
            ),
            migration_status=parse_enum(
                MigrationStatus, data.get("migration_status", "not_started"), "migration_status"
            ),
            notes=data.get("notes"),
            confidence=data.get("confidence"),
            priority=parse_enum(MigrationPriority, data.get("priority", "medium"), "priority"),
            category=parse_enum(MappingCategory, data.get("category", "undecided"), "category"),
            created_at=parse_timestamp(data["created_at"]),
            updated_at=parse_timestamp(data["updated_at"]),
            status_changed_at=parse_timestamp(data.get("status_changed_at")),
            migrated_at=parse_timestamp(data.get("migrated_at")),
            verified_at=parse_timestamp(data.get("verified_at")),
            rolled_back_at=parse_timestamp(data.get("rolled_back_at")),
            rollback_reason=data.get("rollback_reason"),
            history=[HistoryEntry.from_dict(h) for h in data.get("history", [])],
        )
