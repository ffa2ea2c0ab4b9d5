import re
from datetime import date
from typing import Optional

from habits.errors import ErrorKind, HabitError
from habits.models import DEFAULT_COLOR
from habits.services.dates import to_date

NAME_MAX_LENGTH = 100
NOTE_MAX_LENGTH = 500

_COLOR_RE = re.compile(r"^#[0-9a-fA-F]{6}$")


def clean_name(name) -> str:
    """Trimmed habit name; 1..100 characters."""
    if not isinstance(name, str) or not name.strip():
        raise HabitError(ErrorKind.VALIDATION, "Habit name is required.")
    name = name.strip()
    if len(name) > NAME_MAX_LENGTH:
        raise HabitError(ErrorKind.VALIDATION, f"Habit name must be at most {NAME_MAX_LENGTH} characters.")
    return name


def clean_color(color, default: Optional[str] = DEFAULT_COLOR) -> Optional[str]:
    if color is None or color == "":
        return default
    if not isinstance(color, str) or not _COLOR_RE.match(color):
        raise HabitError(ErrorKind.VALIDATION, "Color must be a hex code like #3B82F6.")
    return color


def clean_start_date(value, today: date) -> date:
    start = to_date(value)
    if start is None:
        raise HabitError(ErrorKind.INVALID_DATE, "Start date is not a valid date.")
    if start > today:
        raise HabitError(ErrorKind.INVALID_DATE, "Start date must be today or earlier.")
    return start


def clean_record_date(value, start_date: date, today: date) -> date:
    day = to_date(value)
    if day is None:
        raise HabitError(ErrorKind.INVALID_DATE, "Record date is not a valid date.")
    if day > today:
        raise HabitError(ErrorKind.INVALID_DATE, "Cannot record a future date.")
    if day < start_date:
        raise HabitError(ErrorKind.RECORD_BEFORE_START_DATE)
    return day


def clean_note(note) -> Optional[str]:
    if note is None:
        return None
    if not isinstance(note, str):
        raise HabitError(ErrorKind.VALIDATION, "Note must be text.")
    if len(note) > NOTE_MAX_LENGTH:
        raise HabitError(ErrorKind.VALIDATION, f"Note must be at most {NOTE_MAX_LENGTH} characters.")
    return note


def clean_completed(value) -> bool:
    if not isinstance(value, bool):
        raise HabitError(ErrorKind.VALIDATION, "completed must be true or false.")
    return value
