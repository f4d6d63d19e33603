"""Injectable wall clock; the app reads time through ``app.state.clock``."""

from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone
from typing import Callable

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(dt: datetime) -> datetime:
    """Normalise a potentially-naive timestamp to UTC-aware."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def day_bounds(day: date) -> tuple[datetime, datetime]:
    """Half-open UTC range ``[day 00:00, next day 00:00)``."""
    start = datetime.combine(day, time.min, tzinfo=timezone.utc)
    return start, start + timedelta(days=1)


def date_window(start_date: date, end_date: date) -> tuple[datetime, datetime]:
    """Inclusive date range as the half-open instant range it covers."""
    return day_bounds(start_date)[0], day_bounds(end_date)[1]
