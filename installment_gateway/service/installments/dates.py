"""Date helpers shared by the installment rules."""

from datetime import datetime, timedelta, timezone
from typing import Optional

from .money import round_half_up


def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def ensure_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Attach UTC to naive datetimes (some drivers drop the offset)."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def add_days(value: datetime, days: int) -> datetime:
    return value + timedelta(days=days)


def whole_days_between(start: datetime, end: datetime) -> int:
    """Number of days between two instants, rounded to the nearest day."""
    seconds = (end - start).total_seconds()
    return round_half_up(seconds / 86400)
