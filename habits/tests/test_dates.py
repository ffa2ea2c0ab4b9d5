from datetime import date, datetime, timedelta, timezone as dt_timezone
from zoneinfo import ZoneInfo

import pytest
from django.utils import timezone

from habits.services import dates


def test_is_same_day__ignores_time_of_day():
    assert dates.is_same_day(datetime(2025, 1, 15, 10, 30), datetime(2025, 1, 15, 18, 45))


def test_is_same_day__different_day_or_month():
    assert not dates.is_same_day(date(2025, 1, 15), date(2025, 1, 16))
    assert not dates.is_same_day(date(2025, 1, 15), date(2025, 2, 15))


def test_is_same_day__aware_datetime_uses_local_calendar_day():
    late_utc = datetime(2024, 1, 1, 20, 0, tzinfo=dt_timezone.utc)
    with timezone.override(ZoneInfo("Asia/Tokyo")):
        assert dates.is_same_day(late_utc, date(2024, 1, 2))
        assert not dates.is_same_day(late_utc, date(2024, 1, 1))


def test_days_elapsed_since__counts_start_and_today():
    today = date(2024, 1, 10)
    assert dates.days_elapsed_since(today, today=today) == 1
    assert dates.days_elapsed_since(date(2024, 1, 7), today=today) == 4
    assert dates.days_elapsed_since(date(2023, 12, 31), today=today) == 11


def test_days_elapsed_since__future_start_is_not_positive():
    today = date(2024, 1, 10)
    assert dates.days_elapsed_since(date(2024, 1, 11), today=today) == 0
    assert dates.days_elapsed_since(date(2024, 1, 20), today=today) < 0


def test_days_elapsed_since__defaults_to_local_today():
    three_days_ago = timezone.localdate() - timedelta(days=3)
    assert dates.days_elapsed_since(three_days_ago) == 4


def test_is_today():
    today = timezone.localdate()
    assert dates.is_today(today)
    assert not dates.is_today(today - timedelta(days=1))
    assert not dates.is_today(today + timedelta(days=1))
    assert dates.is_today(date(2024, 5, 5), today=date(2024, 5, 5))


def test_format_date__zero_pads():
    assert dates.format_date(date(2025, 1, 15)) == "2025-01-15"
    assert dates.format_date(date(2025, 1, 5)) == "2025-01-05"
    assert dates.format_date(datetime(2025, 11, 5, 23, 59)) == "2025-11-05"


@pytest.mark.parametrize("text", ["2024-01-01", "2024-02-29", "1999-12-31", "2025-10-05"])
def test_parse_date__round_trips_with_format_date(text):
    assert dates.format_date(dates.parse_date(text)) == text


@pytest.mark.parametrize("text", ["", "not a date", "2023-02-29", "2024-13-01"])
def test_parse_date__returns_none_for_invalid_input(text):
    assert dates.parse_date(text) is None


def test_to_date__normalizes_supported_types():
    assert dates.to_date("2024-03-01") == date(2024, 3, 1)
    assert dates.to_date(datetime(2024, 3, 1, 12)) == date(2024, 3, 1)
    assert dates.to_date(date(2024, 3, 1)) == date(2024, 3, 1)
    assert dates.to_date(None) is None
    assert dates.to_date(20240301) is None


def test_add_days__rolls_over_month_and_year_boundaries():
    assert dates.add_days("2024-12-31", 1) == "2025-01-01"
    assert dates.add_days("2024-03-01", -1) == "2024-02-29"
    assert dates.add_days("2023-03-01", -1) == "2023-02-28"
    assert dates.add_days(date(2024, 1, 31), 1) == date(2024, 2, 1)


@pytest.mark.parametrize("n", [-400, -31, -1, 0, 1, 29, 99, 366])
def test_add_days__inverse_and_congruent_with_format_date(n):
    d = date(2024, 2, 28)
    assert dates.add_days(dates.add_days(d, n), -n) == d
    assert dates.add_days(dates.format_date(d), n) == dates.format_date(dates.add_days(d, n))
