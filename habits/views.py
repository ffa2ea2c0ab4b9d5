import functools
import json
import logging

from django.conf import settings
from django.http import JsonResponse, StreamingHttpResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_http_methods, require_POST

from habits.errors import ErrorKind, HabitError
from habits.services import statistics
from habits.services.calendar import classify_days
from habits.services.coaching import CoachingClient, build_system_message, clean_messages
from habits.services.dates import add_days, format_date
from habits.services.repository import build_repository

logger = logging.getLogger(__name__)


def _error(message: str, code: str, status: int) -> JsonResponse:
    return JsonResponse({"error": {"message": message, "code": code}}, status=status)


def api_errors(view):
    """Map domain errors to their status codes; log and hide anything else."""

    @functools.wraps(view)
    def wrapper(request, *args, **kwargs):
        try:
            return view(request, *args, **kwargs)
        except HabitError as exc:
            return JsonResponse({"error": exc.as_dict()}, status=exc.status_code)
        except Exception:
            logger.exception("Unhandled error in %s %s", request.method, request.path)
            return _error("An unexpected error occurred.", "INTERNAL_ERROR", 500)

    return wrapper


def _json_body(request) -> dict:
    try:
        body = json.loads(request.body or b"{}")
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise HabitError(ErrorKind.VALIDATION, "Request body must be valid JSON.") from exc
    if not isinstance(body, dict):
        raise HabitError(ErrorKind.VALIDATION, "Request body must be a JSON object.")
    return body


def serialize_habit(habit) -> dict:
    return {
        "id": habit.id,
        "name": habit.name,
        "color": habit.color,
        "startDate": format_date(habit.start_date),
        "createdAt": habit.created_at.isoformat(),
        "updatedAt": habit.updated_at.isoformat(),
    }


def serialize_record(record) -> dict:
    return {
        "id": record.id,
        "habitId": record.habit_id,
        "date": format_date(record.date),
        "completed": record.completed,
        "note": record.note or None,
        "createdAt": record.created_at.isoformat(),
        "updatedAt": record.updated_at.isoformat(),
    }


def serialize_stats(habit, records) -> dict:
    stats = statistics.calculate_stats(records, habit.start_date, settings.HABITS_CHALLENGE_LENGTH)
    return {
        "completedDays": stats.completed_days,
        "totalDays": stats.total_days,
        "completionRate": stats.completion_rate,
        "currentStreak": stats.current_streak,
        "longestStreak": stats.longest_streak,
        "todayStreak": statistics.calculate_streak(records),
        "achievementRate": statistics.calculate_achievement_rate(records, habit.start_date),
        "recentAchievementRate": statistics.calculate_recent_achievement_rate(records),
    }


# GET/POST /api/habits
@csrf_exempt
@require_http_methods(["GET", "POST"])
@api_errors
def habit_list(request):
    repository = build_repository()
    if request.method == "GET":
        return JsonResponse({"habits": [serialize_habit(h) for h in repository.get_habits()]})

    body = _json_body(request)
    habit = repository.create_habit(
        name=body.get("name"),
        start_date=body.get("startDate"),
        color=body.get("color"),
    )
    return JsonResponse({"habit": serialize_habit(habit)}, status=201)


# GET/PATCH/DELETE /api/habits/<id>
@csrf_exempt
@require_http_methods(["GET", "PATCH", "DELETE"])
@api_errors
def habit_detail(request, habit_id):
    repository = build_repository()

    if request.method == "DELETE":
        repository.delete_habit(habit_id)
        return JsonResponse({"success": True})

    habit = repository.get_habit(habit_id)
    if habit is None:
        return _error("Habit not found", "HABIT_NOT_FOUND", 404)

    if request.method == "PATCH":
        body = _json_body(request)
        habit = repository.update_habit(
            habit.id,
            name=body.get("name"),
            color=body.get("color"),
            start_date=body.get("startDate"),
        )
        return JsonResponse({"habit": serialize_habit(habit)})

    records = list(repository.get_records(habit.id))
    return JsonResponse({"habit": serialize_habit(habit), "stats": serialize_stats(habit, records)})


# GET /api/habits/<id>/calendar
@require_http_methods(["GET"])
@api_errors
def habit_calendar(request, habit_id):
    repository = build_repository()
    habit = repository.get_habit(habit_id)
    if habit is None:
        return _error("Habit not found", "HABIT_NOT_FOUND", 404)

    cells = classify_days(habit.start_date, repository.get_records(habit.id), settings.HABITS_CHALLENGE_LENGTH)
    return JsonResponse({
        "days": [
            {
                "dayNumber": cell.day_number,
                "date": cell.date,
                "state": cell.state.value,
                "completed": cell.completed,
                "isToday": cell.is_today,
                "isEditable": cell.is_editable,
            }
            for cell in cells
        ]
    })


# GET /api/records?habitId=1&startDate=2024-01-01&endDate=2024-04-09
# POST /api/records (upsert)
@csrf_exempt
@require_http_methods(["GET", "POST"])
@api_errors
def record_list(request):
    repository = build_repository()

    if request.method == "POST":
        body = _json_body(request)
        record = repository.record_day(
            habit_id=body.get("habitId"),
            date=body.get("date"),
            completed=body.get("completed"),
            note=body.get("note"),
        )
        return JsonResponse({"record": serialize_record(record)}, status=201)

    habit_id = request.GET.get("habitId")
    if not habit_id:
        return _error("habitId is required", "INVALID_INPUT", 400)

    habit = repository.get_habit(habit_id)
    if habit is None:
        return _error("Habit not found", "HABIT_NOT_FOUND", 404)

    start_date = request.GET.get("startDate") or format_date(habit.start_date)
    end_date = request.GET.get("endDate") or add_days(start_date, settings.HABITS_CHALLENGE_LENGTH - 1)
    records = repository.get_records(habit.id, start_date=start_date, end_date=end_date)
    return JsonResponse({"records": [serialize_record(r) for r in records]})


# POST /api/chat
@csrf_exempt
@require_POST
@api_errors
def chat(request):
    body = _json_body(request)
    messages = clean_messages(body.get("messages"))

    repository = build_repository()
    habit = repository.get_habit(body.get("habitId"))
    records = list(repository.get_records(habit.id)) if habit is not None else []
    system_message = build_system_message(habit, records)

    client = CoachingClient()

    def stream():
        try:
            yield from client.stream_reply(messages, system_message)
        except Exception:
            logger.exception("Coaching stream failed")
        finally:
            client.close()

    return StreamingHttpResponse(stream(), content_type="text/plain; charset=utf-8")
