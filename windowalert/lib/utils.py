"""Shared utility functions."""
from datetime import UTC, datetime

# SQLite datetime format (space separator, not T)
_SQLITE_DATETIME_FMT = "%Y-%m-%d %H:%M:%S"


def from_epoch(seconds: int) -> datetime:
    """Convert epoch seconds to an aware UTC datetime."""
    return datetime.fromtimestamp(seconds, UTC)


def to_sqlite(dt: datetime) -> str:
    """Format a datetime as UTC text for SQLite storage.

    Naive datetimes are taken to be UTC already.
    """
    if dt.tzinfo is not None:
        dt = dt.astimezone(UTC)
    return dt.strftime(_SQLITE_DATETIME_FMT)


def from_sqlite(value: str) -> datetime:
    """Parse a stored SQLite timestamp back into an aware UTC datetime."""
    return datetime.strptime(value, _SQLITE_DATETIME_FMT).replace(tzinfo=UTC)
