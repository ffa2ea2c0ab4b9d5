from dataclasses import dataclass
from datetime import date, timedelta
from enum import Enum
from typing import Iterable, Iterator, Optional

from habits.services.dates import days_elapsed_since, format_date, local_today, to_date
from habits.services.statistics import CHALLENGE_LENGTH


class DayState(str, Enum):
    ACHIEVED = "achieved"
    FAILED = "failed"
    NOT_REACHED = "not-reached"


class ChallengeWindow:
    """
    The challenge's calendar days as YYYY-MM-DD strings, day 1 = start date.

    Iterating is lazy and can be repeated; nothing is materialized up front.
    """

    def __init__(self, start_date, length: int = CHALLENGE_LENGTH):
        self.start_date: date = to_date(start_date)
        self.length = max(length, 0)

    def __iter__(self) -> Iterator[str]:
        for offset in range(self.length):
            yield format_date(self.start_date + timedelta(days=offset))

    def __len__(self) -> int:
        return self.length

    @property
    def end_date(self) -> Optional[date]:
        if self.length == 0:
            return None
        return self.start_date + timedelta(days=self.length - 1)

    def __repr__(self) -> str:
        return f"ChallengeWindow({format_date(self.start_date)}, length={self.length})"


def generate_window(start_date, length: int = CHALLENGE_LENGTH) -> ChallengeWindow:
    return ChallengeWindow(start_date, length)


@dataclass(frozen=True)
class DayCell:
    day_number: int
    date: str
    state: DayState
    completed: Optional[bool]
    is_today: bool
    is_editable: bool

    @property
    def recorded(self) -> bool:
        return self.completed is not None


def classify_days(start_date, records: Iterable, length: int = CHALLENGE_LENGTH, *, today: Optional[date] = None) -> list[DayCell]:
    """
    Display state for every day of the challenge.

    achieved beats failed beats not-reached; `is_today` is an overlay.
    Days after today are never editable.
    """
    today = today or local_today()
    by_date = {format_date(r.date): bool(r.completed) for r in records}
    reached_days = days_elapsed_since(start_date, today=today)
    today_str = format_date(today)

    cells = []
    for index, day in enumerate(generate_window(start_date, length)):
        completed = by_date.get(day)
        reached = index < reached_days
        if completed:
            state = DayState.ACHIEVED
        elif reached:
            state = DayState.FAILED
        else:
            state = DayState.NOT_REACHED
        cells.append(DayCell(
            day_number=index + 1,
            date=day,
            state=state,
            completed=completed,
            is_today=day == today_str,
            is_editable=reached,
        ))
    return cells
