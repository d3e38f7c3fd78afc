from datetime import date, datetime

import pytest

from components.budget.periods import day_window, local_today, start_of_week, to_utc, week_start_boundary

MELBOURNE = "Australia/Melbourne"


def test_start_of_week_is_monday():
    assert start_of_week(date(2026, 10, 21)) == date(2026, 10, 19)
    assert start_of_week(date(2026, 10, 19)) == date(2026, 10, 19)
    assert start_of_week(date(2026, 10, 25)) == date(2026, 10, 19)


def test_local_today_crosses_date_line():
    assert local_today(datetime(2026, 10, 20, 15, 0), MELBOURNE) == date(2026, 10, 21)
    assert local_today(datetime(2026, 10, 20, 15, 0), "UTC") == date(2026, 10, 20)


def test_week_start_boundary_in_local_time():
    monday, boundary = week_start_boundary(datetime(2026, 10, 21, 2, 0), MELBOURNE)

    assert monday == date(2026, 10, 19)
    assert boundary == datetime(2026, 10, 18, 13, 0)


def test_day_window_before_rollover_hour_belongs_to_previous_day():
    # 02:30 local on 21 October
    start, end = day_window(datetime(2026, 10, 20, 15, 30), MELBOURNE, 4)

    assert start == datetime(2026, 10, 19, 17, 0)
    assert end == datetime(2026, 10, 20, 17, 0)


def test_day_window_after_rollover_hour():
    # 05:00 local on 21 October
    start, end = day_window(datetime(2026, 10, 20, 18, 0), MELBOURNE, 4)

    assert start == datetime(2026, 10, 20, 17, 0)
    assert end == datetime(2026, 10, 21, 17, 0)


def test_day_window_midnight_rollover_in_utc():
    start, end = day_window(datetime(2026, 10, 21, 10, 0), "UTC", 0)

    assert start == datetime(2026, 10, 21, 0, 0)
    assert end == datetime(2026, 10, 22, 0, 0)


@pytest.mark.parametrize("hour", [-1, 24])
def test_day_window_rejects_invalid_hour(hour):
    with pytest.raises(ValueError):
        day_window(datetime(2026, 10, 21, 10, 0), "UTC", hour)


def test_to_utc_reads_naive_values_as_local_time():
    assert to_utc(datetime(2026, 10, 21), MELBOURNE) == datetime(2026, 10, 20, 13, 0)
    assert to_utc(datetime(2026, 7, 1, 9, 0), MELBOURNE) == datetime(2026, 6, 30, 23, 0)


def test_to_utc_keeps_explicit_offsets():
    aware = datetime.fromisoformat("2026-10-21T08:30:00+02:00")

    assert to_utc(aware, MELBOURNE) == datetime(2026, 10, 21, 6, 30)
