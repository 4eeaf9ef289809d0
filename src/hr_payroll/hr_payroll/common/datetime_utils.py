from __future__ import annotations

import calendar
from datetime import date, datetime, timedelta
from typing import Iterator, Optional, Tuple, Union


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    return datetime.strptime(value, "%Y-%m-%d").date()


def as_date(value: Union[date, datetime, str]) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return parse_iso_date(str(value)[:10])


def now_local() -> datetime:
    """Current local time.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now()


def today_local() -> date:
    return now_local().date()


def inclusive_days(start: date, end: date) -> int:
    """Number of calendar days in [start, end], counting both ends."""
    return (end - start).days + 1


def iter_days(start: date, end: date) -> Iterator[date]:
    day = start
    while day <= end:
        yield day
        day += timedelta(days=1)


def ranges_overlap(a_start: date, a_end: date, b_start: date, b_end: date) -> bool:
    return a_start <= b_end and a_end >= b_start


def clip_range(start: date, end: date, bound_start: date, bound_end: date) -> Optional[Tuple[date, date]]:
    lo = max(start, bound_start)
    hi = min(end, bound_end)
    if lo > hi:
        return None
    return lo, hi


def month_bounds(month: int, year: int) -> Tuple[date, date]:
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)


def previous_month(today: date) -> Tuple[int, int]:
    """(month, year) of the calendar month before `today`."""
    if today.month == 1:
        return 12, today.year - 1
    return today.month - 1, today.year
