"""Configuration utility functions."""

from dataclasses import dataclass, field
from typing import Any

DEFAULT_WEIGHTS = {
    "resource_type": 50,
    "tags": 20,
    "name": 20,
    "region": 10,
}


@dataclass(frozen=True)
class BulkLimits:
    """Selection-size limits for bulk operations."""

    warning_threshold: int = 25
    max_selections: int = 50


@dataclass(frozen=True)
class ScoringSettings:
    """Suggestion scoring configuration."""

    min_confidence: int = 0
    weights: dict[str, int] = field(default_factory=lambda: dict(DEFAULT_WEIGHTS))


@dataclass(frozen=True)
class PaginationSettings:
    """Page-size bounds for list operations."""

    default_page_size: int = 50
    max_page_size: int = 250


@dataclass(frozen=True)
class EngineSettings:
    """Typed view of the workspace configuration consumed by the engine."""

    bulk: BulkLimits = field(default_factory=BulkLimits)
    scoring: ScoringSettings = field(default_factory=ScoringSettings)
    pagination: PaginationSettings = field(default_factory=PaginationSettings)
    log_level: str = "WARNING"

    @classmethod
    def from_config(cls, config: dict[str, Any] | None) -> "EngineSettings":
        """
        Build settings from a (schema-validated) configuration dict.

        Missing sections and keys fall back to defaults.

        Args:
            config: Parsed migration-mapper.yaml contents

        Returns:
            EngineSettings instance
        """
        config = config or {}
        bulk = config.get("bulk", {})
        suggestions = config.get("suggestions", {})
        pagination = config.get("pagination", {})

        weights = dict(DEFAULT_WEIGHTS)
        weights.update(suggestions.get("weights", {}))

        return cls(
            bulk=BulkLimits(
                warning_threshold=int(bulk.get("warning_threshold", 25)),
                max_selections=int(bulk.get("max_selections", 50)),
            ),
            scoring=ScoringSettings(
                min_confidence=int(suggestions.get("min_confidence", 0)),
                weights=weights,
            ),
            pagination=PaginationSettings(
                default_page_size=int(pagination.get("default_page_size", 50)),
                max_page_size=int(pagination.get("max_page_size", 250)),
            ),
            log_level=str(config.get("logging", {}).get("level", "WARNING")),
        )
