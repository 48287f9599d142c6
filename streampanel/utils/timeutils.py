"""Time helpers shared by the protocol adapters and importers.

All datetimes stored in the catalog are naive UTC.
"""

from datetime import datetime, timezone


def utcnow() -> datetime:
    """Current time as a naive UTC datetime."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_naive_utc(value: datetime) -> datetime:
    """Convert an aware datetime to naive UTC; naive values are assumed UTC already."""
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def unix_seconds(value: datetime | None) -> int:
    """Unix timestamp in whole seconds for a naive UTC datetime."""
    if value is None:
        return 0
    return int(value.replace(tzinfo=timezone.utc).timestamp())


def unix_string(value: datetime | None) -> str:
    return str(unix_seconds(value))


def iso_utc(value: datetime) -> str:
    """ISO-8601 string with a trailing Z, millisecond precision."""
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


def sql_timestamp(value: datetime) -> str:
    """``YYYY-MM-DD HH:MM:SS`` as used by Xtream EPG listings."""
    return value.strftime("%Y-%m-%d %H:%M:%S")
