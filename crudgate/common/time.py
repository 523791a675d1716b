"""
Time Utilities

Policy:
- Stamp records and audit entries with UTC-aware datetimes.
- Access grants store their expiry either as epoch milliseconds or as a datetime.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional

UTC = timezone.utc


def utc_now() -> datetime:
    """Return current UTC time (timezone-aware)."""
    return datetime.now(UTC)


def ensure_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """
    Ensure a datetime is UTC-aware.

    - If `dt` is naive, treat it as UTC.
    - If `dt` is timezone-aware, convert it to UTC.
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


def to_utc_naive(dt: Optional[datetime]) -> Optional[datetime]:
    """
    Convert a datetime to naive UTC for database storage.

    Returns `None` if input is `None`.
    """
    aware = ensure_utc(dt)
    if aware is None:
        return None
    return aware.replace(tzinfo=None)


def expiry_to_datetime(expire: Any) -> Optional[datetime]:
    """
    Normalize an access-grant expiry to a UTC-aware datetime.

    Accepts epoch milliseconds (int, float or numeric string) or a datetime.
    Returns None when the value cannot be interpreted.
    """
    if expire is None or isinstance(expire, bool):
        return None
    if isinstance(expire, datetime):
        return ensure_utc(expire)
    try:
        millis = float(expire)
    except (TypeError, ValueError):
        return None
    return datetime.fromtimestamp(millis / 1000, UTC)


def is_expired(expire: Any, now: Optional[datetime] = None) -> bool:
    """Return True if the expiry is unreadable or lies before `now`."""
    expires_at = expiry_to_datetime(expire)
    if expires_at is None:
        return True
    return (now or utc_now()) > expires_at
