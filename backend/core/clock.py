"""
Single source of "now" for the application.

Every timestamp the business logic writes or compares goes through
:func:`utcnow`, so tests can pin the clock with one monkeypatch.
"""

from datetime import datetime, timezone
from typing import Optional


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(value: Optional[datetime]) -> Optional[datetime]:
    """
    Attach UTC to naive datetimes (SQLite drops the offset on the way back)
    and convert aware ones to UTC.
    """
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
