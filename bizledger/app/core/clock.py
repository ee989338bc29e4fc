"""
Time helpers.

All timestamps are generated in Python (UTC) so ordering by created_at
keeps microsecond resolution on every backend.
"""

from datetime import datetime, time, timezone, date


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def start_of_day(day: date) -> datetime:
    """Midnight UTC of the given day."""
    return datetime.combine(day, time.min, tzinfo=timezone.utc)
