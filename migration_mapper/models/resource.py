"""Resource inventory models.

A Resource is a discovered infrastructure item. The collector owns every field
except the migration category and its audit trail, which only the category
classifier changes.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Any

from migration_mapper.exceptions import ValidationError
from migration_mapper.models.base import (
    format_timestamp,
    parse_enum,
    parse_timestamp,
    utc_now,
)


class Category(Enum):
    """
    Migration classification of a resource.

    Levels:
        OLD: Legacy infrastructure that is being replaced
        NEW: Modern infrastructure that replaces legacy resources
        UNCATEGORIZED: Not yet reviewed
    """

    OLD = "old"
    NEW = "new"
    UNCATEGORIZED = "uncategorized"

    def __str__(self) -> str:
        return self.value

    @property
    def label(self) -> str:
        """Return the display label used in reports."""
        return {
            "old": "Legacy",
            "new": "Modern",
            "uncategorized": "Uncategorized",
        }[self.value]


@dataclass
class Resource:
    """A discovered infrastructure item."""

    resource_id: str
    resource_type: str
    region: str
    name: str | None = None
    category: Category = Category.UNCATEGORIZED
    tags: dict[str, str] = field(default_factory=dict)
    last_seen_at: datetime = field(default_factory=utc_now)
    account_id: str | None = None
    arn: str | None = None

    # Classifier audit trail
    categorized_at: datetime | None = None
    category_notes: str | None = None

    @property
    def display_name(self) -> str:
        return self.name or self.resource_id

    def with_category(
        self, category: Category, at: datetime, notes: str | None = None
    ) -> "Resource":
        """Return a copy carrying a new category and audit timestamp."""
        return replace(
            self,
            category=category,
            categorized_at=at,
            category_notes=notes if notes is not None else self.category_notes,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON/YAML serialization."""
        return {
            "resource_id": self.resource_id,
            "resource_type": self.resource_type,
            "region": self.region,
            "name": self.name,
            "category": self.category.value,
            "tags": dict(self.tags),
            "last_seen_at": format_timestamp(self.last_seen_at),
            "account_id": self.account_id,
            "arn": self.arn,
            "categorized_at": format_timestamp(self.categorized_at),
            "category_notes": self.category_notes,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Resource":
        """Build a Resource from a serialized or inventory record."""
        try:
            resource_id = str(data["resource_id"])
            resource_type = str(data["resource_type"])
        except KeyError as e:
            raise ValidationError(f"Resource record is missing field {e.args[0]!r}") from e

        tags = data.get("tags") or {}
        if not isinstance(tags, dict):
            raise ValidationError(f"Resource {resource_id}: tags must be a mapping")

        return cls(
            resource_id=resource_id,
            resource_type=resource_type,
            region=str(data.get("region") or "unknown"),
            name=data.get("name"),
            category=parse_enum(Category, data.get("category") or "uncategorized", "category"),
            tags={str(k): str(v) for k, v in tags.items()},
            last_seen_at=parse_timestamp(data.get("last_seen_at")) or utc_now(),
            account_id=data.get("account_id"),
            arn=data.get("arn"),
            categorized_at=parse_timestamp(data.get("categorized_at")),
            category_notes=data.get("category_notes"),
        )


@dataclass(frozen=True)
class CategorySnapshot:
    """Counts of resources per category, recomputed on demand."""

    old: int = 0
    new: int = 0
    uncategorized: int = 0

    @property
    def total(self) -> int:
        return self.old + self.new + self.uncategorized

    @property
    def progress_pct(self) -> float:
        """Share of resources that have been categorized, in percent."""
        if self.total == 0:
            return 0.0
        return round((self.old + self.new) / self.total * 100, 1)

    def to_dict(self) -> dict[str, Any]:
        return {
            "old": self.old,
            "new": self.new,
            "uncategorized": self.uncategorized,
            "total": self.total,
            "progress_pct": self.progress_pct,
        }
