"""Datetime helpers for timezone-aware UTC timestamps.

Stage completion dates live inside JSON columns, so they are stored as
ISO-8601 strings and parsed back into aware datetimes here.

Usage:
    from flexo_orders.utils.datetime_utils import utc_now, to_iso, from_iso

    stamp = to_iso(utc_now())
    when = from_iso(stamp)
"""

from datetime import datetime, timezone
from typing import Optional


def utc_now() -> datetime:
    """Return current UTC time as timezone-aware datetime."""
    return datetime.now(timezone.utc)


def ensure_aware(value: datetime) -> datetime:
    """Treat naive datetimes (as SQLite hands them back) as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def to_iso(value: Optional[datetime]) -> Optional[str]:
    """Serialize a datetime to an ISO-8601 string, passing None through."""
    if value is None:
        return None
    return ensure_aware(value).isoformat()


def from_iso(value: Optional[str]) -> Optional[datetime]:
    """Parse an ISO-8601 string produced by to_iso(), passing None through."""
    if not value:
        return None
    return ensure_aware(datetime.fromisoformat(value))
