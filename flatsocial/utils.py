"""Utility functions for flatsocial.

Timestamp helpers shared by the store, plus the naming scheme used for
copied media files.
"""

import time
from datetime import UTC, datetime
from pathlib import Path

from dateutil import parser as dateutil_parser  # type: ignore[import-untyped]

CREATED_AT_FORMAT = "%Y-%m-%d %H:%M:%S"


def utc_now() -> datetime:
    """Get current UTC timestamp as timezone-aware datetime.

    Example:
        >>> now = utc_now()
        >>> now.tzinfo == UTC
        True
    """
    return datetime.now(UTC)


def format_created_at(dt: datetime) -> str:
    """Format a datetime as the fixed-width ``createdAt`` column value.

    Aware datetimes are converted to UTC first; naive ones are taken as UTC.

    Example:
        >>> format_created_at(datetime(2024, 1, 5, 9, 3, 7, tzinfo=UTC))
        '2024-01-05 09:03:07'
    """
    if dt.tzinfo is not None:
        dt = dt.astimezone(UTC)
    return dt.strftime(CREATED_AT_FORMAT)


def now_created_at() -> str:
    """Current UTC time as a ``createdAt`` value."""
    return format_created_at(utc_now())


def parse_created_at(value: str | None) -> datetime | None:
    """Parse a stored ``createdAt`` value into an aware UTC datetime.

    Args:
        value: Stored timestamp (``YYYY-MM-DD HH:MM:SS``) or None

    Returns:
        Parsed datetime in UTC, or None for empty input

    Raises:
        ValueError: If the value is not a valid timestamp
    """
    if not value:
        return None

    dt = dateutil_parser.isoparse(value)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


def current_millis() -> int:
    """Milliseconds since the epoch, used for comment ids and media names."""
    return time.time_ns() // 1_000_000


def media_filename(original: str | Path, millis: int | None = None) -> str:
    """Build the stored name for a copied media file.

    Example:
        >>> media_filename("/tmp/cat.png", millis=1700000000000)
        '1700000000000_cat.png'
    """
    stamp = current_millis() if millis is None else millis
    return f"{stamp}_{Path(original).name}"
