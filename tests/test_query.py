"""
Tests for filtering, sorting and cursor pagination.
"""

from dataclasses import replace
from datetime import datetime, timedelta, timezone

import pytest

from migration_mapper.engine.query import (
    FilterCriteria,
    SortSpec,
    decode_cursor,
    encode_cursor,
    filter_mappings,
    filter_resources,
    paginate,
    sort_items,
)
from migration_mapper.exceptions import ValidationError
from migration_mapper.models import (
    MappingCategory,
    MappingDirection,
    MappingGroup,
    MappingType,
    MigrationPriority,
    MigrationStatus,
    Resource,
)

BASE = datetime(2026, 3, 1, tzinfo=timezone.utc)


def numbered(count, start=0):
    return [Resource(f"r{i:03d}", "ec2-instance", "us-east-1") for i in range(start, start + count)]


def ids(items):
    return [item.resource_id for item in items]


def make_group(group_id, sources, targets=(), status="not_started", priority="medium", notes=None, minutes=0):
    at = BASE + timedelta(minutes=minutes)
    return MappingGroup(
        id=group_id,
        source_ids=list(sources),
        target_ids=list(targets),
        mapping_type=MappingType.REPLACEMENT,
        mapping_direction=MappingDirection.OLD_TO_NEW,
        created_at=at,
        updated_at=at,
        migration_status=MigrationStatus(status),
        priority=MigrationPriority(priority),
        notes=notes,
    )


class TestFilterResources:
    """Tests for filter_resources."""

    def test_all_is_no_op(self, resources):
        assert filter_resources(resources, FilterCriteria()) == resources

    def test_conjunctive_filters(self, resources):
        criteria = FilterCriteria(resource_type="ec2-instance", category="new")

        assert ids(filter_resources(resources, criteria)) == ["i-new-web"]

    def test_search_is_case_insensitive(self, resources):
        assert ids(filter_resources(resources, FilterCriteria(search="ORDERS"))) == [
            "db-legacy",
            "db-aurora",
        ]

    def test_region_filter(self, resources):
        assert ids(filter_resources(resources, FilterCriteria(region="us-west-2"))) == ["db-aurora"]

    def test_mapped_status(self, resources):
        mapped = {"i-legacy-web", "i-new-web"}

        unmapped = filter_resources(resources, FilterCriteria(status="unmapped"), mapped)

        assert ids(unmapped) == ["db-legacy", "db-aurora", "bucket-logs"]

    def test_invalid_status(self, resources):
        with pytest.raises(ValidationError):
            filter_resources(resources, FilterCriteria(status="migrated"))


class TestFilterMappings:
    """Tests for filter_mappings."""

    @pytest.fixture
    def groups(self):
        return [
            make_group("mapping-web", ["i-legacy-web"], ["i-new-web"], notes="lift and shift"),
            make_group("mapping-db", ["db-legacy"], ["db-aurora"], status="in_progress", priority="high"),
        ]

    def test_search_spans_member_names(self, groups, resources):
        by_id = {r.resource_id: r for r in resources}

        result = filter_mappings(groups, FilterCriteria(search="aurora"), by_id)

        assert [g.id for g in result] == ["mapping-db"]

    def test_search_notes(self, groups, resources):
        by_id = {r.resource_id: r for r in resources}

        result = filter_mappings(groups, FilterCriteria(search="shift"), by_id)

        assert [g.id for g in result] == ["mapping-web"]

    def test_search_unresolved_member_by_id(self, groups):
        result = filter_mappings(groups, FilterCriteria(search="i-new"), {})

        assert [g.id for g in result] == ["mapping-web"]

    def test_status_and_priority(self, groups, resources):
        by_id = {r.resource_id: r for r in resources}

        assert [g.id for g in filter_mappings(groups, FilterCriteria(status="in_progress"), by_id)] == [
            "mapping-db"
        ]
        assert filter_mappings(groups, FilterCriteria(priority="low"), by_id) == []

    def test_type_matches_any_source(self, groups, resources):
        by_id = {r.resource_id: r for r in resources}

        result = filter_mappings(groups, FilterCriteria(resource_type="rds-instance"), by_id)

        assert [g.id for g in result] == ["mapping-db"]

    def test_mapping_category(self, groups, resources):
        by_id = {r.resource_id: r for r in resources}
        planned = [replace(groups[0], category=MappingCategory.MIGRATE_TERRAFORM), groups[1]]

        result = filter_mappings(planned, FilterCriteria(mapping_category="migrate_terraform"), by_id)

        assert [g.id for g in result] == ["mapping-web"]
        assert [g.id for g in filter_mappings(planned, FilterCriteria(mapping_category="undecided"), by_id)] == [
            "mapping-db"
        ]


class TestSort:
    """Tests for sort_items."""

    def test_ties_broken_by_identity(self):
        items = [Resource(i, "ec2-instance", "us-east-1", name="same") for i in ("c", "a", "b")]

        assert ids(sort_items(items, SortSpec(field="name"))) == ["a", "b", "c"]

    def test_descending_keeps_identity_ascending_within_ties(self):
        items = [
            Resource("b", "ec2-instance", "us-east-1", name="x"),
            Resource("a", "ec2-instance", "us-east-1", name="x"),
            Resource("c", "ec2-instance", "us-east-1", name="y"),
        ]

        assert ids(sort_items(items, SortSpec(field="name", order="desc"))) == ["c", "a", "b"]

    def test_groups_by_priority(self):
        groups = [
            make_group("m1", ["a"], priority="low"),
            make_group("m2", ["a"], priority="critical"),
        ]

        assert [g.id for g in sort_items(groups, SortSpec(field="priority"))] == ["m2", "m1"]

    def test_mixed_utc_offsets_sort_by_instant(self):
        """Test last_seen_at orders by instant, not by the recorded offset."""
        items = [
            Resource.from_dict(
                {"resource_id": "b", "resource_type": "ec2-instance", "last_seen_at": "2026-03-01T06:00:00+00:00"}
            ),
            Resource.from_dict(
                {"resource_id": "a", "resource_type": "ec2-instance", "last_seen_at": "2026-03-01T10:00:00+05:00"}
            ),
        ]

        assert ids(sort_items(items, SortSpec(field="last_seen_at"))) == ["a", "b"]

    def test_offset_datetimes_built_directly(self):
        plus_five = timezone(timedelta(hours=5))
        items = [
            Resource("b", "ec2-instance", "us-east-1", last_seen_at=datetime(2026, 3, 1, 6, tzinfo=timezone.utc)),
            Resource("a", "ec2-instance", "us-east-1", last_seen_at=datetime(2026, 3, 1, 10, tzinfo=plus_five)),
            Resource("c", "ec2-instance", "us-east-1", last_seen_at=datetime(2026, 3, 1, 6, 0, 0, 500)),
        ]

        sort = SortSpec(field="last_seen_at")
        first_page = paginate(items, sort, page_size=1)
        second_page = paginate(items, sort, first_page.next_cursor, page_size=5)

        assert ids(sort_items(items, sort)) == ["a", "b", "c"]
        assert ids(first_page.items) == ["a"]
        assert ids(second_page.items) == ["b", "c"]

    def test_unknown_field(self, resources):
        with pytest.raises(ValidationError, match="Invalid sort field"):
            sort_items(resources, SortSpec(field="colour"))

    def test_unknown_order(self, resources):
        with pytest.raises(ValidationError):
            sort_items(resources, SortSpec(field="name", order="up"))


class TestPaginate:
    """Tests for cursor pagination."""

    def test_23_items_in_pages_of_10(self):
        """Test pages of 10, 10 and 3 with a null terminal cursor."""
        items = numbered(23)
        sort = SortSpec(field="id")

        first = paginate(items, sort, page_size=10)
        second = paginate(items, sort, first.next_cursor, page_size=10)
        third = paginate(items, sort, second.next_cursor, page_size=10)

        assert [len(p.items) for p in (first, second, third)] == [10, 10, 3]
        assert third.next_cursor is None
        assert ids(first.items + second.items + third.items) == ids(items)

    def test_exact_multiple_has_no_dangling_cursor(self):
        page = paginate(numbered(10), SortSpec(field="id"), page_size=10)

        assert page.next_cursor is None

    def test_appended_items_after_cursor(self):
        """Test resuming from an old cursor after appends returns only unseen items in order."""
        items = numbered(23)
        sort = SortSpec(field="id")
        first = paginate(items, sort, page_size=10)

        grown = items + numbered(4, start=23)
        rest = []
        cursor = first.next_cursor
        while cursor is not None:
            page = paginate(grown, sort, cursor, page_size=10)
            rest.extend(page.items)
            cursor = page.next_cursor

        assert ids(rest) == [f"r{i:03d}" for i in range(10, 27)]
        assert not set(ids(rest)) & set(ids(first.items))

    def test_cursor_for_other_sort_rejected(self):
        items = numbered(5)
        page = paginate(items, SortSpec(field="id"), page_size=2)

        with pytest.raises(ValidationError, match="different sort"):
            paginate(items, SortSpec(field="name"), page.next_cursor, page_size=2)

    def test_malformed_cursor(self):
        with pytest.raises(ValidationError, match="Invalid pagination cursor"):
            paginate(numbered(3), SortSpec(field="id"), "not-a-cursor!!", page_size=2)

    @pytest.mark.parametrize("page_size", [0, 251])
    def test_page_size_bounds(self, page_size):
        with pytest.raises(ValidationError, match="page size"):
            paginate(numbered(3), SortSpec(field="id"), page_size=page_size)

    def test_deterministic(self):
        items = numbered(15)
        sort = SortSpec(field="type", order="desc")

        assert paginate(items, sort, page_size=7) == paginate(items, sort, page_size=7)

    def test_mapping_groups_by_created_at_desc(self):
        groups = [make_group(f"m{i}", ["a"], minutes=i) for i in range(5)]
        sort = SortSpec(field="created_at", order="desc")

        first = paginate(groups, sort, page_size=2)
        second = paginate(groups, sort, first.next_cursor, page_size=2)

        assert [g.id for g in first.items + second.items] == ["m4", "m3", "m2", "m1"]


class TestCursorEncoding:
    """Tests for the cursor token format."""

    def test_cursor_is_url_safe(self):
        cursor = encode_cursor(SortSpec(field="name"), "web/api+1", "r?1")

        assert all(c.isalnum() or c in "-_" for c in cursor)
        assert decode_cursor(cursor, SortSpec(field="name")) == ("web/api+1", "r?1")
