import calendar
from datetime import date, datetime, timedelta
from typing import List, Optional, Union

from compass import config
from compass.domain import Interval, MONTHLY, WEEKLY, YEARLY

DateLike = Union[date, datetime]


def as_date(reference: DateLike) -> date:
    if isinstance(reference, datetime):
        return reference.date()
    return reference


def month_interval(year: int, month: int) -> Interval:
    last_day = calendar.monthrange(year, month)[1]
    return Interval(date(year, month, 1), date(year, month, last_day))


def week_interval(reference: DateLike, week_start: Optional[str] = None) -> Interval:
    day = as_date(reference)
    first_weekday = config.week_start_index(week_start)
    offset = (day.weekday() - first_weekday) % 7
    start = day - timedelta(days=offset)
    return Interval(start, start + timedelta(days=6))


def year_interval(year: int) -> Interval:
    return Interval(date(year, 1, 1), date(year, 12, 31))


def resolve_period(period: str, reference: DateLike, week_start: Optional[str] = None) -> Interval:
    """Map a budget period tag and a reference date to the interval containing it.

    Weeks open on the configured week start (Monday unless
    ``COMPASS_WEEK_START`` says otherwise) for every caller.
    """
    day = as_date(reference)
    if period == MONTHLY:
        return month_interval(day.year, day.month)
    if period == WEEKLY:
        return week_interval(day, week_start)
    if period == YEARLY:
        return year_interval(day.year)
    raise ValueError(f"Unknown budget period {period!r}")


def shift_months(reference: DateLike, months: int) -> date:
    """Move ``reference`` by whole months, clamping the day to the target month."""
    day = as_date(reference)
    index = day.year * 12 + (day.month - 1) + months
    year, month = divmod(index, 12)
    month += 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(day.day, last_day))


def trailing_months(reference: DateLike, count: int) -> List[Interval]:
    """Month intervals for the ``count`` months ending with the reference month, oldest first."""
    result = []
    for back in range(count - 1, -1, -1):
        anchor = shift_months(reference, -back)
        result.append(month_interval(anchor.year, anchor.month))
    return result
