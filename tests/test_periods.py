from datetime import date, datetime

import pytest

from compass.domain import Interval
from compass.periods import resolve_period, shift_months, trailing_months, week_interval


def test_monthly_leap_february():
    assert resolve_period("monthly", date(2024, 2, 15)) == Interval(date(2024, 2, 1), date(2024, 2, 29))


def test_monthly_non_leap_february():
    assert resolve_period("monthly", date(2023, 2, 15)) == Interval(date(2023, 2, 1), date(2023, 2, 28))


def test_monthly_accepts_datetime_reference():
    interval = resolve_period("monthly", datetime(2024, 12, 31, 23, 59))
    assert interval == Interval(date(2024, 12, 1), date(2024, 12, 31))


def test_weekly_starts_on_monday_by_default():
    # 2024-03-10 is a Sunday, the last day of its Monday-first week
    assert resolve_period("weekly", date(2024, 3, 10)) == Interval(date(2024, 3, 4), date(2024, 3, 10))
    assert resolve_period("weekly", date(2024, 3, 4)) == Interval(date(2024, 3, 4), date(2024, 3, 10))


def test_weekly_sunday_start_when_requested():
    assert week_interval(date(2024, 3, 10), "sunday") == Interval(date(2024, 3, 10), date(2024, 3, 16))
    assert week_interval(date(2024, 3, 9), "sunday") == Interval(date(2024, 3, 3), date(2024, 3, 9))


def test_weekly_crosses_year_boundary():
    interval = resolve_period("weekly", date(2025, 1, 1))
    assert interval == Interval(date(2024, 12, 30), date(2025, 1, 5))


def test_yearly():
    assert resolve_period("yearly", date(2024, 7, 4)) == Interval(date(2024, 1, 1), date(2024, 12, 31))


def test_interval_contains_both_ends():
    interval = resolve_period("monthly", date(2024, 3, 10))
    assert interval.contains(date(2024, 3, 1))
    assert interval.contains(date(2024, 3, 31))
    assert not interval.contains(date(2024, 4, 1))


def test_unknown_period_rejected():
    with pytest.raises(ValueError):
        resolve_period("daily", date(2024, 3, 10))


def test_bad_week_start_rejected():
    with pytest.raises(ValueError):
        week_interval(date(2024, 3, 10), "friday")


def test_shift_months_clamps_day():
    assert shift_months(date(2024, 3, 31), -1) == date(2024, 2, 29)
    assert shift_months(date(2024, 1, 15), -2) == date(2023, 11, 15)


def test_trailing_months_oldest_first():
    months = trailing_months(date(2024, 2, 10), 3)
    assert [m.start for m in months] == [date(2023, 12, 1), date(2024, 1, 1), date(2024, 2, 1)]
    assert months[-1].end == date(2024, 2, 29)
