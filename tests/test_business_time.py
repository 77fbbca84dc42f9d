from datetime import date, datetime, timedelta

import pytest

from src.order_tracker.services.business_time import (
    business_days_between,
    business_hours_between,
    is_business_day,
)

MONDAY = datetime(2024, 3, 4, 9, 0)


def test_is_business_day_excludes_weekends_and_holidays() -> None:
    assert is_business_day(date(2024, 3, 4))
    assert not is_business_day(date(2024, 3, 9))
    assert not is_business_day(date(2024, 3, 10))
    assert not is_business_day(date(2024, 3, 5), {date(2024, 3, 5)})


def test_same_day_is_zero_business_days() -> None:
    for offset in range(7):
        day = MONDAY + timedelta(days=offset)
        assert business_days_between(day, day) == 0


def test_start_after_end_is_zero() -> None:
    assert business_days_between(MONDAY + timedelta(days=3), MONDAY) == 0
    assert business_hours_between(MONDAY + timedelta(hours=3), MONDAY) == 0.0


def test_week_span_with_one_weekend_counts_five_days() -> None:
    assert business_days_between(MONDAY, MONDAY + timedelta(days=7)) == 5


def test_thursday_to_wednesday_counts_four_days() -> None:
    thursday = datetime(2024, 3, 7, 10, 0)
    assert business_days_between(thursday, thursday + timedelta(days=6)) == 4


def test_holiday_reduces_business_days() -> None:
    holidays = {date(2024, 3, 6)}
    assert business_days_between(MONDAY, MONDAY + timedelta(days=4), holidays) == 3


def test_missing_endpoints() -> None:
    assert business_days_between(None, MONDAY) == 0
    assert business_days_between(MONDAY, None) == 0
    assert business_hours_between(None, MONDAY) == 0.0


def test_hours_within_one_day() -> None:
    assert business_hours_between(MONDAY, MONDAY + timedelta(hours=5, minutes=30)) == 5.5


def test_hours_skip_weekend() -> None:
    friday_noon = datetime(2024, 3, 8, 12, 0)
    monday_noon = datetime(2024, 3, 11, 12, 0)
    assert business_hours_between(friday_noon, monday_noon) == 24.0


def test_full_business_day_counts_twenty_four_hours() -> None:
    start = datetime(2024, 3, 4, 0, 0)
    assert business_hours_between(start, start + timedelta(days=1)) == 24.0


def test_start_on_weekend_moves_to_next_business_midnight() -> None:
    saturday = datetime(2024, 3, 9, 15, 0)
    monday_six = datetime(2024, 3, 11, 6, 0)
    assert business_hours_between(saturday, monday_six) == 6.0
    assert business_hours_between(saturday, datetime(2024, 3, 10, 20, 0)) == 0.0


def test_open_end_uses_now() -> None:
    assert business_hours_between(MONDAY, None, now=MONDAY + timedelta(hours=2)) == 2.0


@pytest.mark.parametrize("step_hours", [1, 7, 13])
def test_hours_monotonic_in_end(step_hours: int) -> None:
    holidays = {date(2024, 3, 12)}
    previous = 0.0
    end = MONDAY
    for _ in range(40):
        end += timedelta(hours=step_hours)
        current = business_hours_between(MONDAY, end, holidays)
        assert current >= previous
        previous = current
