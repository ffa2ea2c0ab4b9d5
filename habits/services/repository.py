"""
Habit repositories.

Two implementations share one interface and one set of validation rules:

- StoreHabitRepository keeps a single habit and its records in a key-value
  RecordStore (in-memory or the store_items table).
- DatabaseHabitRepository uses the habits/habit_records tables and allows
  many habits unless constructed with single_habit=True.

Callers pick one with build_repository() or construct one directly; the
store is always handed in, never looked up globally.
"""
import logging
import uuid
from dataclasses import dataclass, field, replace
from datetime import date, datetime
from typing import Callable, Optional, Protocol

from django.conf import settings
from django.core.exceptions import ImproperlyConfigured
from django.db import transaction
from django.utils import timezone
from django.utils.dateparse import parse_datetime

from habits.errors import ErrorKind, HabitError
from habits.models import Habit, HabitRecord
from habits.services.dates import format_date, local_today, to_date
from habits.services.validation import (
    clean_color,
    clean_completed,
    clean_name,
    clean_note,
    clean_record_date,
    clean_start_date,
)
from habits.storage import DatabaseStore, RecordStore

logger = logging.getLogger(__name__)

HABIT_KEY = "habit"
RECORDS_KEY = "daily_records"


class HabitRepository(Protocol):
    single_habit: bool

    def get_habits(self): ...

    def get_habit(self, habit_id=None): ...

    def create_habit(self, *, name, start_date, color=None): ...

    def update_habit(self, habit_id, *, name=None, color=None, start_date=None): ...

    def record_day(self, *, date, completed, note=None, habit_id=None): ...

    def get_records(self, habit_id=None, start_date=None, end_date=None): ...

    def delete_habit(self, habit_id=None) -> None: ...

    def delete_records(self, habit_id=None) -> None: ...


def _optional_date(value, label: str) -> Optional[date]:
    if value is None or value == "":
        return None
    parsed = to_date(value)
    if parsed is None:
        raise HabitError(ErrorKind.INVALID_DATE, f"{label} is not a valid date.")
    return parsed


# --- key-value variant ---


@dataclass
class HabitData:
    id: str
    name: str
    start_date: date
    created_at: datetime
    updated_at: datetime
    color: Optional[str] = None

    def to_store(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "color": self.color,
            "start_date": format_date(self.start_date),
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }

    @classmethod
    def from_store(cls, data: dict) -> "HabitData":
        return cls(
            id=data["id"],
            name=data["name"],
            color=data.get("color"),
            start_date=to_date(data["start_date"]),
            created_at=parse_datetime(data["created_at"]),
            updated_at=parse_datetime(data["updated_at"]),
        )


@dataclass
class RecordData:
    id: str
    habit_id: str
    date: date
    completed: bool
    created_at: datetime
    updated_at: datetime
    note: Optional[str] = field(default=None)

    def to_store(self) -> dict:
        return {
            "id": self.id,
            "habit_id": self.habit_id,
            "date": format_date(self.date),
            "completed": self.completed,
            "note": self.note,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }

    @classmethod
    def from_store(cls, data: dict) -> "RecordData":
        return cls(
            id=data["id"],
            habit_id=data["habit_id"],
            date=to_date(data["date"]),
            completed=bool(data["completed"]),
            note=data.get("note"),
            created_at=parse_datetime(data["created_at"]),
            updated_at=parse_datetime(data["updated_at"]),
        )


class StoreHabitRepository:
    single_habit = True

    def __init__(
        self,
        store: RecordStore,
        *,
        today: Callable[[], date] = local_today,
        now: Callable[[], datetime] = timezone.now,
    ):
        self.store = store
        self._today = today
        self._now = now

    def get_habit(self, habit_id=None) -> Optional[HabitData]:
        data = self.store.get(HABIT_KEY)
        if data is None:
            return None
        habit = HabitData.from_store(data)
        if habit_id is not None and str(habit_id) != habit.id:
            return None
        return habit

    def get_habits(self) -> list[HabitData]:
        habit = self.get_habit()
        return [habit] if habit is not None else []

    def _require_habit(self, habit_id, missing_message: str) -> HabitData:
        habit = self.get_habit()
        if habit is None:
            raise HabitError(ErrorKind.VALIDATION, missing_message)
        if habit_id is not None and str(habit_id) != habit.id:
            raise HabitError(ErrorKind.VALIDATION, "Habit id does not match the registered habit.")
        return habit

    def create_habit(self, *, name, start_date, color=None) -> HabitData:
        name = clean_name(name)
        start = clean_start_date(start_date, self._today())
        color = clean_color(color)

        with self.store.atomic():
            if self.get_habit() is not None:
                raise HabitError(ErrorKind.DUPLICATE_HABIT)

            now = self._now()
            habit = HabitData(
                id=str(uuid.uuid4()),
                name=name,
                color=color,
                start_date=start,
                created_at=now,
                updated_at=now,
            )
            self.store.set(HABIT_KEY, habit.to_store())
        logger.info("Created habit %s (%r) starting %s", habit.id, habit.name, format_date(start))
        return habit

    def update_habit(self, habit_id, *, name=None, color=None, start_date=None) -> HabitData:
        with self.store.atomic():
            habit = self._require_habit(habit_id, "Habit does not exist.")

            changes = {}
            if name is not None:
                changes["name"] = clean_name(name)
            if color is not None:
                changes["color"] = clean_color(color)
            if start_date is not None:
                start = clean_start_date(start_date, self._today())
                records = self.get_records()
                if records and records[0].date < start:
                    raise HabitError(
                        ErrorKind.RECORD_BEFORE_START_DATE,
                        "Existing records precede the new start date.",
                    )
                changes["start_date"] = start

            habit = replace(habit, updated_at=self._now(), **changes)
            self.store.set(HABIT_KEY, habit.to_store())
        return habit

    def get_records(self, habit_id=None, start_date=None, end_date=None) -> list[RecordData]:
        if habit_id is not None and self.get_habit(habit_id) is None:
            return []
        start = _optional_date(start_date, "startDate")
        end = _optional_date(end_date, "endDate")

        records = [RecordData.from_store(r) for r in self.store.get(RECORDS_KEY) or []]
        if start is not None:
            records = [r for r in records if r.date >= start]
        if end is not None:
            records = [r for r in records if r.date <= end]
        return records

    def record_day(self, *, date, completed, note=None, habit_id=None) -> RecordData:
        with self.store.atomic():
            habit = self._require_habit(habit_id, "No habit is registered.")
            day = clean_record_date(date, habit.start_date, self._today())
            note = clean_note(note)
            completed = clean_completed(completed)

            records = self.get_records()
            now = self._now()
            for index, existing in enumerate(records):
                if existing.date == day:
                    record = replace(existing, completed=completed, note=note, updated_at=now)
                    records[index] = record
                    break
            else:
                record = RecordData(
                    id=str(uuid.uuid4()),
                    habit_id=habit.id,
                    date=day,
                    completed=completed,
                    note=note,
                    created_at=now,
                    updated_at=now,
                )
                records.append(record)

            records.sort(key=lambda r: r.date)
            self.store.set(RECORDS_KEY, [r.to_store() for r in records])
        return record

    def delete_records(self, habit_id=None) -> None:
        if habit_id is not None and self.get_habit(habit_id) is None:
            return
        self.store.remove(RECORDS_KEY)

    def delete_habit(self, habit_id=None) -> None:
        habit = self.get_habit(habit_id)
        if habit is None:
            return
        self.store.remove(HABIT_KEY)
        self.store.remove(RECORDS_KEY)
        logger.info("Deleted habit %s and its records", habit.id)


# --- relational variant ---


def _as_pk(habit_id) -> Optional[int]:
    try:
        return int(habit_id)
    except (TypeError, ValueError):
        return None


class DatabaseHabitRepository:
    def __init__(self, *, single_habit: bool = False, today: Callable[[], date] = local_today):
        self.single_habit = single_habit
        self._today = today

    def get_habits(self):
        # Explicit: Meta.ordering is dropped once the queryset is aggregated.
        return Habit.objects.order_by("-created_at", "-id")

    def get_habit(self, habit_id=None) -> Optional[Habit]:
        if habit_id is None:
            return Habit.objects.first() if self.single_habit else None
        pk = _as_pk(habit_id)
        if pk is None:
            return None
        return Habit.objects.filter(pk=pk).first()

    def _require_habit(self, habit_id, missing_message: str) -> Habit:
        if habit_id is None and not self.single_habit:
            raise HabitError(ErrorKind.VALIDATION, "habitId is required.")
        habit = self.get_habit(habit_id)
        if habit is None:
            raise HabitError(ErrorKind.VALIDATION, missing_message)
        return habit

    def create_habit(self, *, name, start_date, color=None) -> Habit:
        name = clean_name(name)
        start = clean_start_date(start_date, self._today())
        color = clean_color(color)

        with transaction.atomic():
            if self.single_habit and Habit.objects.exists():
                raise HabitError(ErrorKind.DUPLICATE_HABIT)
            habit = Habit.objects.create(name=name, color=color, start_date=start)

        logger.info("Created habit %s (%r) starting %s", habit.pk, habit.name, format_date(start))
        return habit

    def update_habit(self, habit_id, *, name=None, color=None, start_date=None) -> Habit:
        habit = self._require_habit(habit_id, "Habit does not exist.")

        update_fields = ["updated_at"]
        if name is not None:
            habit.name = clean_name(name)
            update_fields.append("name")
        if color is not None:
            habit.color = clean_color(color)
            update_fields.append("color")
        if start_date is not None:
            start = clean_start_date(start_date, self._today())
            if habit.records.filter(date__lt=start).exists():
                raise HabitError(
                    ErrorKind.RECORD_BEFORE_START_DATE,
                    "Existing records precede the new start date.",
                )
            habit.start_date = start
            update_fields.append("start_date")

        habit.save(update_fields=update_fields)
        return habit

    def get_records(self, habit_id=None, start_date=None, end_date=None):
        start = _optional_date(start_date, "startDate")
        end = _optional_date(end_date, "endDate")

        habit = self.get_habit(habit_id)
        if habit is None:
            return HabitRecord.objects.none()

        qs = habit.records.all()
        if start is not None:
            qs = qs.filter(date__gte=start)
        if end is not None:
            qs = qs.filter(date__lte=end)
        return qs

    def record_day(self, *, date, completed, note=None, habit_id=None) -> HabitRecord:
        habit = self._require_habit(habit_id, "No habit is registered.")
        day = clean_record_date(date, habit.start_date, self._today())
        note = clean_note(note)
        completed = clean_completed(completed)

        # INSERT ... ON CONFLICT (habit_id, date) DO UPDATE; the database
        # resolves a same-day race, not a read-then-write here.
        with transaction.atomic():
            HabitRecord.objects.bulk_create(
                [HabitRecord(habit=habit, date=day, completed=completed, note=note or "")],
                update_conflicts=True,
                unique_fields=["habit", "date"],
                update_fields=["completed", "note", "updated_at"],
            )
            return HabitRecord.objects.get(habit=habit, date=day)

    def delete_records(self, habit_id=None) -> None:
        habit = self.get_habit(habit_id)
        if habit is None:
            return
        HabitRecord.objects.filter(habit=habit).delete()

    def delete_habit(self, habit_id=None) -> None:
        habit = self.get_habit(habit_id)
        if habit is None:
            return
        pk = habit.pk
        habit.delete()
        logger.info("Deleted habit %s and its records", pk)


def build_repository() -> HabitRepository:
    backend = settings.HABITS_STORAGE_BACKEND
    if backend == "relational":
        return DatabaseHabitRepository(single_habit=settings.HABITS_SINGLE_HABIT)
    if backend == "keyvalue":
        return StoreHabitRepository(DatabaseStore(max_bytes=settings.HABITS_STORE_MAX_BYTES))
    raise ImproperlyConfigured(f"Unknown HABITS_STORAGE_BACKEND {backend!r}; use 'relational' or 'keyvalue'.")
