"""
Filtering, sorting and cursor pagination over resources and mapping groups.

Everything here is a pure function over in-memory collections: no I/O, no
mutation of the inputs. Ordering is always total (ties are broken by the
item's identity) so repeated calls over identical input produce identical
pages, and cursors stay valid when new items are appended.
"""

import base64
import binascii
import json
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Iterable, Mapping, Sequence, TypeVar, Union

from migration_mapper.exceptions import ValidationError
from migration_mapper.models import MappingGroup, Resource
from migration_mapper.models.base import parse_timestamp

ALL = "all"

T = TypeVar("T", Resource, MappingGroup)
Item = Union[Resource, MappingGroup]


@dataclass(frozen=True)
class FilterCriteria:
    """
    Conjunctive filter set. ``"all"`` (or an empty search) disables a filter.

    Attributes:
        search: Case-insensitive substring over name/id/type/notes (and group members)
        resource_type: Exact resource type (for groups: any source has it)
        region: Exact region (for groups: any source is in it)
        status: For groups the migration status; for resources "mapped"/"unmapped"
        category: Exact resource category (resources only)
        mapping_type: Exact mapping type (groups only)
        priority: Exact priority (groups only)
        mapping_category: Exact migration plan category (groups only)
    """

    search: str = ""
    resource_type: str = ALL
    region: str = ALL
    status: str = ALL
    category: str = ALL
    mapping_type: str = ALL
    priority: str = ALL
    mapping_category: str = ALL


@dataclass(frozen=True)
class SortSpec:
    """Sort field and direction."""

    field: str = "created_at"
    order: str = "asc"

    @property
    def descending(self) -> bool:
        return self.order == "desc"


@dataclass(frozen=True)
class Page:
    """One page of results plus the cursor for the next one (None when exhausted)."""

    items: list
    next_cursor: str | None


def _active(value: str | None) -> bool:
    return bool(value) and value != ALL


def _contains(needle: str, *haystacks: str | None) -> bool:
    return any(h is not None and needle in h.lower() for h in haystacks)


def _resource_matches_search(resource: Resource, needle: str) -> bool:
    return _contains(
        needle,
        resource.name,
        resource.resource_id,
        resource.resource_type,
        resource.category_notes,
    )


def filter_resources(
    resources: Iterable[Resource],
    criteria: FilterCriteria,
    mapped_ids: set[str] | None = None,
) -> list[Resource]:
    """
    Apply ``criteria`` to resources.

    Args:
        resources: Resources to filter
        criteria: Filter set
        mapped_ids: Ids referenced by at least one mapping group; required for a
            "mapped"/"unmapped" status filter

    Returns:
        Matching resources in input order
    """
    needle = criteria.search.strip().lower()
    if _active(criteria.status) and criteria.status not in ("mapped", "unmapped"):
        raise ValidationError(
            f"Invalid resource status filter: {criteria.status!r}",
            "Resource status filters are 'mapped', 'unmapped' or 'all'.",
        )
    mapped_ids = mapped_ids or set()

    result = []
    for resource in resources:
        if needle and not _resource_matches_search(resource, needle):
            continue
        if _active(criteria.resource_type) and resource.resource_type != criteria.resource_type:
            continue
        if _active(criteria.region) and resource.region != criteria.region:
            continue
        if _active(criteria.category) and resource.category.value != criteria.category:
            continue
        if _active(criteria.status):
            is_mapped = resource.resource_id in mapped_ids
            if is_mapped != (criteria.status == "mapped"):
                continue
        result.append(resource)
    return result


def filter_mappings(
    groups: Iterable[MappingGroup],
    criteria: FilterCriteria,
    resources_by_id: Mapping[str, Resource],
) -> list[MappingGroup]:
    """
    Apply ``criteria`` to mapping groups.

    Search matches the group's id and notes plus the name, id and type of
    every source and target. Type and region filters match when any source
    has the value. Members missing from ``resources_by_id`` still match on id.

    Args:
        groups: Mapping groups to filter
        criteria: Filter set
        resources_by_id: Lookup used to resolve member ids

    Returns:
        Matching groups in input order
    """
    needle = criteria.search.strip().lower()

    result = []
    for group in groups:
        if needle and not _group_matches_search(group, needle, resources_by_id):
            continue

        sources = [resources_by_id.get(i) for i in group.source_ids]
        if _active(criteria.resource_type) and not any(
            s is not None and s.resource_type == criteria.resource_type for s in sources
        ):
            continue
        if _active(criteria.region) and not any(
            s is not None and s.region == criteria.region for s in sources
        ):
            continue
        if _active(criteria.status) and group.migration_status.value != criteria.status:
            continue
        if _active(criteria.mapping_type) and group.mapping_type.value != criteria.mapping_type:
            continue
        if _active(criteria.priority) and group.priority.value != criteria.priority:
            continue
        if _active(criteria.mapping_category) and group.category.value != criteria.mapping_category:
            continue
        result.append(group)
    return result


def _group_matches_search(
    group: MappingGroup, needle: str, resources_by_id: Mapping[str, Resource]
) -> bool:
    if _contains(needle, group.id, group.notes):
        return True
    for member_id in group.member_ids:
        member = resources_by_id.get(member_id)
        if member is None:
            if needle in member_id.lower():
                return True
        elif _resource_matches_search(member, needle):
            return True
    return False


# Sorting

RESOURCE_SORT_FIELDS = {
    "name": lambda r: (r.name or r.resource_id).lower(),
    "type": lambda r: r.resource_type.lower(),
    "region": lambda r: r.region.lower(),
    "category": lambda r: r.category.value,
    "last_seen_at": lambda r: _timestamp_key(r.last_seen_at),
    "id": lambda r: r.resource_id,
}

MAPPING_SORT_FIELDS = {
    "created_at": lambda g: _timestamp_key(g.created_at),
    "updated_at": lambda g: _timestamp_key(g.updated_at),
    "status": lambda g: g.migration_status.value,
    "mapping_type": lambda g: g.mapping_type.value,
    "priority": lambda g: g.priority.rank,
    "category": lambda g: g.category.value,
    "confidence": lambda g: g.confidence if g.confidence is not None else -1,
    "id": lambda g: g.id,
}


def _timestamp_key(value: datetime | None) -> str:
    # Fixed-width UTC isoformat strings order lexicographically
    if value is None:
        return ""
    return parse_timestamp(value).isoformat(timespec="microseconds")


def _identity(item: Item) -> str:
    return item.resource_id if isinstance(item, Resource) else item.id


def _key_function(items: Sequence[Item], sort: SortSpec):
    if sort.order not in ("asc", "desc"):
        raise ValidationError(f"Invalid sort order: {sort.order!r}", "Use 'asc' or 'desc'.")

    if not items:
        fields = {**RESOURCE_SORT_FIELDS, **MAPPING_SORT_FIELDS}
    elif isinstance(items[0], Resource):
        fields = RESOURCE_SORT_FIELDS
    else:
        fields = MAPPING_SORT_FIELDS

    if sort.field not in fields:
        raise ValidationError(
            f"Invalid sort field: {sort.field!r}",
            f"Sort by one of: {', '.join(sorted(fields))}",
        )
    return fields[sort.field]


def sort_items(items: Sequence[T], sort: SortSpec) -> list[T]:
    """
    Stable sort by ``sort.field``; ties are broken by ascending identity.

    Args:
        items: Resources or mapping groups (not mixed)
        sort: Field and order

    Returns:
        New sorted list
    """
    key = _key_function(items, sort)
    by_identity = sorted(items, key=_identity)
    # sorted() with reverse=True keeps equal elements in their prior order
    return sorted(by_identity, key=key, reverse=sort.descending)


# Pagination


def encode_cursor(sort: SortSpec, value: Any, identity: str) -> str:
    """Encode the last-seen sort position as an opaque URL-safe token."""
    payload = json.dumps([sort.field, sort.order, value, identity], separators=(",", ":"))
    return base64.urlsafe_b64encode(payload.encode()).decode().rstrip("=")


def decode_cursor(cursor: str, sort: SortSpec) -> tuple[Any, str]:
    """
    Decode a cursor issued by :func:`encode_cursor`.

    Raises:
        ValidationError: If the cursor is malformed or was issued for another sort
    """
    try:
        padded = cursor + "=" * (-len(cursor) % 4)
        field, order, value, identity = json.loads(base64.urlsafe_b64decode(padded))
    except (binascii.Error, ValueError, TypeError):
        raise ValidationError(f"Invalid pagination cursor: {cursor!r}") from None

    if (field, order) != (sort.field, sort.order):
        raise ValidationError(
            "Pagination cursor was issued for a different sort order",
            "Restart pagination without a cursor after changing the sort.",
        )
    return value, identity


def _is_after(position: tuple[Any, str], cursor: tuple[Any, str], descending: bool) -> bool:
    value, identity = position
    cursor_value, cursor_identity = cursor
    if value == cursor_value:
        return identity > cursor_identity
    return value < cursor_value if descending else value > cursor_value


def paginate(
    items: Sequence[T],
    sort: SortSpec,
    cursor: str | None = None,
    page_size: int = 50,
    max_page_size: int = 250,
) -> Page:
    """
    Return the page of ``items`` following ``cursor`` in ``sort`` order.

    The cursor records the last returned sort value and identity rather than
    an offset, so items appended after it was issued are picked up and items
    already returned are never repeated.

    Args:
        items: Resources or mapping groups (unsorted)
        sort: Ordering the cursor refers to
        cursor: Token from a previous page, or None for the first page
        page_size: Maximum items per page
        max_page_size: Upper bound for page_size

    Returns:
        Page with items and the next cursor (None when no items remain)
    """
    if page_size < 1 or page_size > max_page_size:
        raise ValidationError(
            f"Invalid page size: {page_size}",
            f"Page size must be between 1 and {max_page_size}.",
        )

    ordered = sort_items(items, sort)
    key = _key_function(ordered, sort)

    if cursor:
        position = decode_cursor(cursor, sort)
        ordered = [
            item
            for item in ordered
            if _is_after((key(item), _identity(item)), position, sort.descending)
        ]

    page_items = ordered[:page_size]
    next_cursor = None
    if len(ordered) > page_size:
        last = page_items[-1]
        next_cursor = encode_cursor(sort, key(last), _identity(last))

    return Page(items=page_items, next_cursor=next_cursor)
