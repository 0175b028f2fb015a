"""Time buckets and query windows for the `when` filter.

All calendar arithmetic ("today", "this Saturday") happens in the time zone of
the evaluation timestamp passed in as ``now``; nothing here reads the clock.
"""
import logging
from datetime import datetime, time, timedelta, timezone
from enum import Enum
from typing import Optional, Tuple

logger = logging.getLogger(__name__)

NOW_WINDOW = timedelta(hours=2)
TONIGHT_START = time(17, 0)
SATURDAY = 5  # datetime.weekday(): Monday == 0


class TimeBucket(str, Enum):
    NOW = "now"
    TONIGHT = "tonight"
    WEEKEND = "weekend"
    LATER = "later"


class WhenFilter(str, Enum):
    NOW = "now"
    TONIGHT = "tonight"
    WEEKEND = "weekend"
    MONTH = "month"
    LATER = "later"


TimeWindow = Tuple[datetime, Optional[datetime]]


def as_aware(value: datetime) -> datetime:
    """Treat naive datetimes (SQLite drops offsets) as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _align(value: datetime, now: datetime) -> datetime:
    """Express ``value`` in the same zone as ``now``."""
    if now.tzinfo is None:
        return value if value.tzinfo is None else value.astimezone(timezone.utc).replace(tzinfo=None)
    return as_aware(value).astimezone(now.tzinfo)


def _start_of_day(now: datetime) -> datetime:
    return now.replace(hour=0, minute=0, second=0, microsecond=0)


def _end_of_day(day: datetime) -> datetime:
    return day.replace(hour=23, minute=59, second=59, microsecond=999999)


def _weekend_bounds(now: datetime) -> Tuple[datetime, datetime]:
    days_until_saturday = (SATURDAY - now.weekday()) % 7
    saturday = _start_of_day(now) + timedelta(days=days_until_saturday)
    sunday = _end_of_day(saturday + timedelta(days=1))
    return saturday, sunday


def _add_month(day: datetime) -> datetime:
    year = day.year + (day.month // 12)
    month = day.month % 12 + 1
    # Clamp to the last valid day of the target month (Jan 31 -> Feb 28/29)
    for candidate in (day.day, 30, 29, 28):
        try:
            return day.replace(year=year, month=month, day=min(day.day, candidate))
        except ValueError:
            continue
    raise ValueError(f"Cannot add a month to {day!r}")


def _coerce_when(when) -> Optional[WhenFilter]:
    if when is None or when == "":
        return None
    if isinstance(when, WhenFilter):
        return when
    try:
        return WhenFilter(str(when).strip())
    except ValueError:
        return None


def bucket_by_when(start_time: datetime, when, now: datetime) -> Optional[TimeBucket]:
    """
    Classify an event start against the requested `when` filter.

    Returns None when no filter was requested. Each filter value only checks
    its own window; anything outside it falls through to LATER.
    """
    when = _coerce_when(when)
    if when is None:
        return None

    start = _align(start_time, now)

    if when == WhenFilter.NOW and now <= start <= now + NOW_WINDOW:
        return TimeBucket.NOW

    if when == WhenFilter.TONIGHT:
        tonight_start = datetime.combine(now.date(), TONIGHT_START, tzinfo=now.tzinfo)
        if tonight_start <= start <= _end_of_day(now):
            return TimeBucket.TONIGHT

    if when == WhenFilter.WEEKEND:
        saturday, sunday = _weekend_bounds(now)
        if saturday <= start <= sunday:
            return TimeBucket.WEEKEND

    return TimeBucket.LATER


def time_window(when, now: datetime) -> Optional[TimeWindow]:
    """
    Build the (start, end) range used to query candidate events.

    ``end`` is None for the open-ended LATER window. Unknown values give None.
    """
    when = _coerce_when(when)
    if when is None:
        return None

    start_of_day = _start_of_day(now)

    if when == WhenFilter.NOW:
        return now, now + NOW_WINDOW
    if when == WhenFilter.TONIGHT:
        return start_of_day.replace(hour=TONIGHT_START.hour), start_of_day + timedelta(days=1)
    if when == WhenFilter.WEEKEND:
        return _weekend_bounds(now)
    if when == WhenFilter.MONTH:
        return now, _add_month(start_of_day)
    return now, None
