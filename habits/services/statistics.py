"""
Streak and completion statistics over a habit's daily records.

Records are any objects with a `date` and a boolean `completed`. Nothing
here touches the database; results for empty input are 0.

Two streak flavours exist side by side:

- `calculate_streak` counts back from *today*: no completed record today
  means a streak of 0. Used for the single-habit view and coaching prompt.
- `calculate_current_streak` counts back from the latest completed day and
  never past the start date. Used by `calculate_stats`, the 100-day
  challenge summary.
"""
from dataclasses import dataclass
from datetime import date, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Optional

from habits.services.dates import days_elapsed_since, local_today, to_date

CHALLENGE_LENGTH = 100


@dataclass(frozen=True)
class HabitStats:
    completed_days: int
    total_days: int
    completion_rate: float
    current_streak: int
    longest_streak: int


def _round_rate(numerator: int, denominator: int) -> float:
    rate = Decimal(numerator) * 100 / Decimal(denominator)
    return float(rate.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def _completed_dates(records: Iterable) -> set[date]:
    return {to_date(r.date) for r in records if r.completed}


def calculate_streak(records: Iterable, *, today: Optional[date] = None) -> int:
    """Consecutive completed days ending today."""
    done = _completed_dates(records)
    day = today or local_today()
    streak = 0
    while day in done:
        streak += 1
        day -= timedelta(days=1)
    return streak


def calculate_longest_streak(records: Iterable, *, reset_on_incomplete: bool = False) -> int:
    """
    Longest run of completed days on consecutive dates.

    With `reset_on_incomplete`, a record explicitly marked incomplete also
    drops the running count to 0 (rather than only a gap restarting it at 1).
    """
    ordered = sorted(records, key=lambda r: to_date(r.date))
    best = 0
    cur = 0
    prev: Optional[date] = None
    for record in ordered:
        day = to_date(record.date)
        if not record.completed:
            if reset_on_incomplete:
                cur = 0
                prev = None
            continue
        if prev is not None and day == prev:
            continue
        if prev is not None and day == prev + timedelta(days=1):
            cur += 1
        else:
            cur = 1
        prev = day
        if cur > best:
            best = cur
    return best


def calculate_achievement_rate(records: Iterable, start_date, *, today: Optional[date] = None) -> float:
    """
    Percentage of elapsed days (start date through today) that were completed,
    rounded to one decimal place.
    """
    records = list(records)
    today = today or local_today()
    elapsed = days_elapsed_since(start_date, today=today)

    if elapsed <= 0:
        return 0.0
    if elapsed == 1:
        return 100.0 if today in _completed_dates(records) else 0.0

    achieved = sum(1 for r in records if r.completed)
    return _round_rate(achieved, elapsed)


def calculate_recent_achievement_rate(records: Iterable, window_days: int = 7, *, today: Optional[date] = None) -> float:
    """Rate over the trailing `window_days` ending today; missing days count as misses."""
    if window_days <= 0:
        return 0.0
    today = today or local_today()
    cutoff = today - timedelta(days=window_days - 1)
    achieved = sum(1 for day in _completed_dates(records) if cutoff <= day <= today)
    return _round_rate(achieved, window_days)


def calculate_completion_rate(records: Iterable, challenge_length: int = CHALLENGE_LENGTH) -> float:
    """Completed days as a percentage of the whole challenge."""
    if challenge_length <= 0:
        return 0.0
    return _round_rate(len(_completed_dates(records)), challenge_length)


def calculate_current_streak(records: Iterable, start_date) -> int:
    """Consecutive completed days ending at the most recent completed day."""
    start = to_date(start_date)
    done = sorted(_completed_dates(records), reverse=True)
    if not done:
        return 0

    streak = 0
    expected = done[0]
    for day in done:
        if day < start or day != expected:
            break
        streak += 1
        expected -= timedelta(days=1)
    return streak


def calculate_stats(records: Iterable, start_date, challenge_length: int = CHALLENGE_LENGTH) -> HabitStats:
    records = list(records)
    return HabitStats(
        completed_days=len(_completed_dates(records)),
        total_days=challenge_length,
        completion_rate=calculate_completion_rate(records, challenge_length),
        current_streak=calculate_current_streak(records, start_date),
        longest_streak=calculate_longest_streak(records, reset_on_incomplete=True),
    )
