"""Shared helpers for model coercion and timestamps."""

from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import TypeVar

from migration_mapper.exceptions import ValidationError

E = TypeVar("E", bound=Enum)


def parse_enum(enum_cls: type[E], value: "E | str", field_name: str) -> E:
    """
    Coerce a string or enum member into ``enum_cls``.

    Args:
        enum_cls: Target enumeration
        value: Member or its string value
        field_name: Name used in the error message

    Returns:
        The matching enum member

    Raises:
        ValidationError: If the value is not one of the enum's values
    """
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(member.value for member in enum_cls)
        raise ValidationError(
            f"Invalid {field_name}: {value!r}",
            f"{field_name} must be one of: {allowed}",
        ) from None


def utc_now() -> datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def next_timestamp(previous: datetime | None) -> datetime:
    """Return a timestamp strictly later than ``previous``."""
    now = utc_now()
    if previous is not None and now <= previous:
        return previous + timedelta(microseconds=1)
    return now


def format_timestamp(value: datetime | None) -> str | None:
    """Serialize a datetime as ISO-8601 (None passes through)."""
    return value.isoformat() if value is not None else None


def parse_timestamp(value: "datetime | str | None") -> datetime | None:
    """Parse an ISO-8601 string into an aware UTC datetime (naive values are taken as UTC)."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        try:
            parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
        except ValueError:
            raise ValidationError(f"Invalid timestamp: {value!r}") from None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)
