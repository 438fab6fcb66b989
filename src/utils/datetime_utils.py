"""Datetime utilities for timezone-aware UTC timestamps.

Usage:
    from src.utils.datetime_utils import utc_now, to_iso_utc

    # For SQLAlchemy Column defaults
    created_at = Column(DateTime, default=utc_now)

    # For exported documents
    exported_at = to_iso_utc(utc_now())
"""

from datetime import datetime, timezone
from typing import Optional


def utc_now() -> datetime:
    """Return current UTC time as timezone-aware datetime."""
    return datetime.now(timezone.utc)


def to_iso_utc(value: Optional[datetime]) -> Optional[str]:
    """Format a datetime as an ISO-8601 UTC string with a trailing 'Z'.

    Naive datetimes (as returned by SQLite) are assumed to already be UTC.

    Args:
        value: Datetime to format, or None

    Returns:
        String like '2025-01-31T18:04:05.123Z', or None when value is None
    """
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)
    return value.isoformat(timespec="milliseconds").replace("+00:00", "Z")
