from datetime import timedelta

from django.conf import settings
from django.db.models import Count, Exists, OuterRef, Q

from habits.models import Habit, HabitRecord
from habits.services import statistics
from habits.services.calendar import classify_days
from habits.services.dates import local_today


def with_habit_stats(qs, today=None):
    """
    Adds efficient annotations used by derived GraphQL fields.

    - completed_days_anno
    - last_7_days_count_anno
    - completed_today_anno
    """
    today = today or local_today()
    start = today - timedelta(days=6)

    completed_today_exists = HabitRecord.objects.filter(
        habit_id=OuterRef("pk"), date=today, completed=True
    )

    return qs.annotate(
        completed_days_anno=Count(
            "records",
            filter=Q(records__completed=True),
            distinct=True,
        ),
        last_7_days_count_anno=Count(
            "records",
            filter=Q(records__completed=True, records__date__range=(start, today)),
            distinct=True,
        ),
        completed_today_anno=Exists(completed_today_exists),
    )


def _prefetched_records_or_none(habit):
    """
    If `records` were prefetched, Django keeps them in _prefetched_objects_cache;
    use them to avoid DB queries.
    """
    cache = getattr(habit, "_prefetched_objects_cache", None) or {}
    if "records" not in cache:
        return None
    return list(cache["records"])


def _records(habit: Habit):
    prefetched = _prefetched_records_or_none(habit)
    if prefetched is not None:
        return prefetched
    return list(habit.records.all())


def completed_days(habit: Habit) -> int:
    val = getattr(habit, "completed_days_anno", None)
    if val is not None:
        return int(val)
    prefetched = _prefetched_records_or_none(habit)
    if prefetched is not None:
        return sum(1 for r in prefetched if r.completed)
    return habit.records.filter(completed=True).count()


def completed_today(habit: Habit) -> bool:
    val = getattr(habit, "completed_today_anno", None)
    if val is not None:
        return bool(val)
    today = local_today()
    prefetched = _prefetched_records_or_none(habit)
    if prefetched is not None:
        return any(r.completed and r.date == today for r in prefetched)
    return habit.records.filter(date=today, completed=True).exists()


def last_7_days_count(habit: Habit) -> int:
    val = getattr(habit, "last_7_days_count_anno", None)
    if val is not None:
        return int(val)
    today = local_today()
    start = today - timedelta(days=6)
    prefetched = _prefetched_records_or_none(habit)
    if prefetched is not None:
        return sum(1 for r in prefetched if r.completed and start <= r.date <= today)
    return habit.records.filter(completed=True, date__range=(start, today)).count()


def current_streak(habit: Habit) -> int:
    # Challenge semantics: counted back from the latest completed day.
    return statistics.calculate_current_streak(_records(habit), habit.start_date)


def longest_streak(habit: Habit) -> int:
    return statistics.calculate_longest_streak(_records(habit), reset_on_incomplete=True)


def achievement_rate(habit: Habit) -> float:
    return statistics.calculate_achievement_rate(_records(habit), habit.start_date)


def stats_for(habit: Habit) -> statistics.HabitStats:
    return statistics.calculate_stats(
        _records(habit), habit.start_date, settings.HABITS_CHALLENGE_LENGTH
    )


def calendar_for(habit: Habit):
    return classify_days(habit.start_date, _records(habit), settings.HABITS_CHALLENGE_LENGTH)
