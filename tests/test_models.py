"""
Tests for resource and mapping group models.
"""

from datetime import datetime, timedelta, timezone

import pytest

from migration_mapper.exceptions import ValidationError
from migration_mapper.models import (
    Category,
    MappingCategory,
    MappingDirection,
    MappingGroup,
    MappingType,
    MigrationPriority,
    MigrationStatus,
    Resource,
)
from migration_mapper.models.base import next_timestamp, parse_enum, parse_timestamp


class TestParsing:
    """Tests for enum and timestamp parsing helpers."""

    def test_parse_enum_value(self):
        assert parse_enum(Category, "old", "category") is Category.OLD

    def test_parse_enum_member_passthrough(self):
        assert parse_enum(Category, Category.NEW, "category") is Category.NEW

    def test_parse_enum_invalid(self):
        with pytest.raises(ValidationError) as exc_info:
            parse_enum(MigrationPriority, "urgent", "priority")

        assert "Invalid priority: 'urgent'" in exc_info.value.message
        assert "critical, high, medium, low" in exc_info.value.suggestion

    def test_parse_naive_timestamp_is_utc(self):
        parsed = parse_timestamp("2024-03-01T12:00:00")

        assert parsed == datetime(2024, 3, 1, 12, tzinfo=timezone.utc)

    def test_parse_offset_timestamp_converted_to_utc(self):
        parsed = parse_timestamp("2024-03-01T10:00:00+05:00")

        assert parsed == datetime(2024, 3, 1, 5, tzinfo=timezone.utc)
        assert parsed.utcoffset() == timedelta(0)
        assert parsed.isoformat() == "2024-03-01T05:00:00+00:00"

    def test_parse_empty_timestamp(self):
        assert parse_timestamp("") is None
        assert parse_timestamp(None) is None

    def test_parse_invalid_timestamp(self):
        with pytest.raises(ValidationError):
            parse_timestamp("yesterday")

    def test_next_timestamp_strictly_increases(self):
        future = datetime.now(timezone.utc) + timedelta(hours=1)

        assert next_timestamp(future) == future + timedelta(microseconds=1)
        assert next_timestamp(None) <= datetime.now(timezone.utc)


class TestResource:
    """Tests for the Resource model."""

    def test_from_dict_defaults(self):
        resource = Resource.from_dict({"resource_id": "vol-1", "resource_type": "ebs-volume"})

        assert resource.region == "unknown"
        assert resource.category is Category.UNCATEGORIZED
        assert resource.tags == {}
        assert resource.display_name == "vol-1"

    def test_tags_must_be_mapping(self):
        with pytest.raises(ValidationError, match="tags"):
            Resource.from_dict(
                {"resource_id": "vol-1", "resource_type": "ebs-volume", "tags": ["a"]}
            )

    def test_with_category_keeps_notes(self):
        resource = Resource("vol-1", "ebs-volume", "us-east-1", category_notes="first pass")
        at = datetime(2024, 1, 1, tzinfo=timezone.utc)

        updated = resource.with_category(Category.OLD, at)

        assert updated.category is Category.OLD
        assert updated.categorized_at == at
        assert updated.category_notes == "first pass"
        assert resource.category is Category.UNCATEGORIZED


class TestMappingEnums:
    """Tests for mapping enum helpers."""

    @pytest.mark.parametrize(
        "direction,source,target",
        [
            (MappingDirection.OLD_TO_NEW, Category.OLD, Category.NEW),
            (MappingDirection.NEW_TO_OLD, Category.NEW, Category.OLD),
            (MappingDirection.NEW_TO_NEW, Category.NEW, Category.NEW),
            (MappingDirection.ANY_TO_ANY, None, None),
        ],
    )
    def test_direction_categories(self, direction, source, target):
        assert direction.source_category is source
        assert direction.target_category is target

    def test_priority_rank(self):
        ranked = sorted(MigrationPriority, key=lambda p: p.rank)

        assert ranked[0] is MigrationPriority.CRITICAL
        assert ranked[-1] is MigrationPriority.LOW

    def test_mapping_category_labels(self):
        assert MappingCategory.MIGRATE_TERRAFORM.label == "Migrate to Terraform"
        assert MappingCategory.UNDECIDED.label == "Undecided"
        assert str(MappingCategory.TO_BE_REMOVED) == "to_be_removed"


class TestMappingGroup:
    """Tests for MappingGroup serialization."""

    def test_from_dict_reads_stored_record(self):
        now = datetime(2024, 5, 1, tzinfo=timezone.utc)
        group = MappingGroup(
            id="g-1",
            source_ids=["a", "b"],
            target_ids=["c"],
            mapping_type=MappingType.CONSOLIDATION,
            mapping_direction=MappingDirection.OLD_TO_NEW,
            created_at=now,
            updated_at=now,
            migration_status=MigrationStatus.MIGRATED,
            migrated_at=now,
        )

        restored = MappingGroup.from_dict(group.to_dict())

        assert restored == group
        assert restored.member_ids == ["a", "b", "c"]

    def test_from_dict_defaults(self):
        group = MappingGroup.from_dict(
            {
                "id": "g-2",
                "source_ids": ["a"],
                "mapping_type": "removal",
                "mapping_direction": "old_to_old",
                "created_at": "2024-05-01T00:00:00+00:00",
                "updated_at": "2024-05-01T00:00:00+00:00",
            }
        )

        assert group.target_ids == []
        assert group.migration_status is MigrationStatus.NOT_STARTED
        assert group.priority is MigrationPriority.MEDIUM
        assert group.history == []
        assert group.category is MappingCategory.UNDECIDED

    def test_category_round_trip(self):
        now = datetime(2024, 5, 1, tzinfo=timezone.utc)
        group = MappingGroup(
            id="g-3",
            source_ids=["a"],
            target_ids=["b"],
            mapping_type=MappingType.REPLACEMENT,
            mapping_direction=MappingDirection.OLD_TO_NEW,
            created_at=now,
            updated_at=now,
            category=MappingCategory.KEEP_MANUAL,
        )

        data = group.to_dict()

        assert data["category"] == "keep_manual"
        assert MappingGroup.from_dict(data).category is MappingCategory.KEEP_MANUAL

    def test_invalid_category_in_record(self):
        with pytest.raises(ValidationError, match="category"):
            MappingGroup.from_dict(
                {
                    "id": "g-4",
                    "source_ids": ["a"],
                    "mapping_type": "removal",
                    "mapping_direction": "old_to_old",
                    "created_at": "2024-05-01T00:00:00+00:00",
                    "updated_at": "2024-05-01T00:00:00+00:00",
                    "category": "someday",
                }
            )
