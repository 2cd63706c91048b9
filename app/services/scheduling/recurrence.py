# app/services/scheduling/recurrence.py
"""
Weekly recurrence for bulk scheduling.

Occurrences advance by a fixed 168 hours. The stride is absolute time, not
calendar weeks, so a series keeps the same UTC instant across month ends and
DST changes (the local wall-clock time shifts by an hour after a DST switch).
"""
from datetime import date, datetime, time, timedelta, timezone
from typing import List
from zoneinfo import ZoneInfo

from app.core.exceptions import ValidationError

WEEKLY_STRIDE = timedelta(hours=168)


def weekly_occurrences(start: datetime, count: int) -> List[datetime]:
    """``start``, ``start + 168h``, ... ``count`` instants in total, in UTC"""
    if start.tzinfo is None:
        raise ValidationError("start must be timezone-aware")
    if count <= 0:
        raise ValidationError("count must be positive", details={"count": count})
    # Adding to a ZoneInfo-aware datetime is wall-clock arithmetic; step in UTC
    start = start.astimezone(timezone.utc)
    return [start + WEEKLY_STRIDE * i for i in range(count)]


def first_weekday_on_or_after(start_date: date, day_of_week: int) -> date:
    """First date with the given 0=Sunday based weekday, ``start_date`` included"""
    current = (start_date.weekday() + 1) % 7
    return start_date + timedelta(days=(day_of_week - current) % 7)


def weekly_series(
        day_of_week: int,
        local_time: time,
        start_date: date,
        end_date: date,
        tz: ZoneInfo
) -> List[datetime]:
    """
    Occurrences of ``day_of_week`` at ``local_time`` (teacher timezone) from
    ``start_date`` through ``end_date``, stepping by the fixed weekly stride.
    """
    first_day = first_weekday_on_or_after(start_date, day_of_week)
    first = datetime.combine(first_day, local_time, tzinfo=tz).astimezone(timezone.utc)
    last_instant = datetime.combine(end_date + timedelta(days=1), time.min, tzinfo=tz).astimezone(timezone.utc)

    if first >= last_instant:
        return []

    count = (last_instant - first - timedelta(microseconds=1)) // WEEKLY_STRIDE + 1
    return weekly_occurrences(first, count)
