from __future__ import annotations
from typing import TYPE_CHECKING

from django.db import models

DEFAULT_COLOR = "#3B82F6"


class Habit(models.Model):
    name = models.CharField(max_length=100)
    color = models.CharField(max_length=7, default=DEFAULT_COLOR)
    start_date = models.DateField()
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "habits"
        ordering = ["-created_at", "-id"]

    if TYPE_CHECKING:
        # Django dynamically injects this via related_name="records"
        records = None

    def __str__(self) -> str:
        return self.name


class HabitRecord(models.Model):
    habit = models.ForeignKey(Habit, on_delete=models.CASCADE,
                              related_name="records")
    date = models.DateField()
    completed = models.BooleanField(default=False)
    note = models.CharField(max_length=500, blank=True, default="")
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "habit_records"
        constraints = [
            models.UniqueConstraint(fields=["habit", "date"], name="unique_record_per_habit_per_day")
        ]
        indexes = [
            models.Index(fields=["date"], name="idx_habit_records_date"),
        ]
        ordering = ["date"]

    def __str__(self) -> str:
        mark = "done" if self.completed else "missed"
        return f"{self.habit.name} @ {self.date} ({mark})"


class StoredItem(models.Model):
    """One key of the durable key-value store (see habits.storage.DatabaseStore)."""
    key = models.CharField(max_length=100, unique=True)
    value = models.JSONField()
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "store_items"

    def __str__(self) -> str:
        return self.key
