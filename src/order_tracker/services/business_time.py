"""Elapsed business time between pipeline milestones.

A business day is Monday to Friday and not in the holiday calendar. All
datetimes are naive local wall-clock values.
"""

from __future__ import annotations

from datetime import date, datetime, time, timedelta
from typing import AbstractSet, Optional
from zoneinfo import ZoneInfo

_HOUR = 3600.0


def local_now(tz_name: str) -> datetime:
    """Current wall-clock time in ``tz_name``, without tzinfo."""
    return datetime.now(ZoneInfo(tz_name)).replace(tzinfo=None)


def is_business_day(day: date, holidays: AbstractSet[date] = frozenset()) -> bool:
    if isinstance(day, datetime):
        day = day.date()
    return day.weekday() < 5 and day not in holidays


def business_days_between(
    start: Optional[datetime],
    end: Optional[datetime],
    holidays: AbstractSet[date] = frozenset(),
) -> int:
    """Business days elapsed since ``start``.

    Counts business dates in ``[start, end]`` inclusive and subtracts one,
    flooring at zero.
    """
    if start is None or end is None:
        return 0
    current = start.date() if isinstance(start, datetime) else start
    target = end.date() if isinstance(end, datetime) else end
    if current > target:
        return 0

    count = 0
    while current <= target:
        if is_business_day(current, holidays):
            count += 1
        current += timedelta(days=1)
    return max(count - 1, 0)


def business_hours_between(
    start: Optional[datetime],
    end: Optional[datetime],
    holidays: AbstractSet[date] = frozenset(),
    *,
    now: Optional[datetime] = None,
) -> float:
    """Hours elapsed between ``start`` and ``end`` counting only business days.

    A start on a non-business day is moved to the next business day's
    midnight. ``end=None`` measures up to ``now`` (or the system clock).
    """
    if start is None:
        return 0.0
    if end is None:
        end = now or datetime.now()
    if start > end:
        return 0.0

    current = start
    while not is_business_day(current.date(), holidays):
        current = datetime.combine(current.date() + timedelta(days=1), time.min)
        if current > end:
            return 0.0

    total = 0.0
    day = current.date()
    last_day = end.date()
    while day <= last_day:
        if is_business_day(day, holidays):
            day_start = datetime.combine(day, time.min)
            next_midnight = day_start + timedelta(days=1)
            span_start = current if day == current.date() else day_start
            span_end = end if day == last_day else next_midnight
            total += (span_end - span_start).total_seconds() / _HOUR
        day += timedelta(days=1)

    return round(total, 2)
