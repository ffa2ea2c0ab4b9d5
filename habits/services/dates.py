"""
Calendar-day helpers.

Everything here works on local calendar days: aware datetimes are converted
to the configured TIME_ZONE before their date is taken, naive ones are used
as-is. None of these functions raise on well-formed input.
"""
from datetime import date, datetime, timedelta
from typing import Optional, Union

from django.utils import dateparse, timezone

DateLike = Union[date, datetime, str]


def local_today() -> date:
    return timezone.localdate()


def to_date(value) -> Optional[date]:
    """Normalize a date, datetime or YYYY-MM-DD string; None if it isn't one."""
    if isinstance(value, datetime):
        if timezone.is_aware(value):
            value = timezone.localtime(value)
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        return parse_date(value)
    return None


def parse_date(text: str) -> Optional[date]:
    try:
        return dateparse.parse_date(text.strip())
    except ValueError:
        # well formatted but impossible, e.g. 2024-02-30
        return None


def format_date(value: Union[date, datetime]) -> str:
    return to_date(value).isoformat()


def is_same_day(a: Union[date, datetime], b: Union[date, datetime]) -> bool:
    return to_date(a) == to_date(b)


def is_today(value: Union[date, datetime], today: Optional[date] = None) -> bool:
    return to_date(value) == (today or local_today())


def days_elapsed_since(start: Union[date, datetime], today: Optional[date] = None) -> int:
    """
    Days from `start` to today, both inclusive.

    Returns 1 when `start` is today; zero or negative when `start` lies in
    the future.
    """
    today = today or local_today()
    return (today - to_date(start)).days + 1


def add_days(value: DateLike, days: int) -> DateLike:
    """
    Shift by `days` calendar days. A string in gives a string out, so
    add_days(format_date(d), n) == format_date(add_days(d, n)).
    """
    if isinstance(value, str):
        parsed = parse_date(value)
        if parsed is None:
            return value
        return format_date(parsed + timedelta(days=days))
    return to_date(value) + timedelta(days=days)
