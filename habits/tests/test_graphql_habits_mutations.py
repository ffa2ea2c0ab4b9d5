import json
from datetime import timedelta

import pytest
from django.test import override_settings
from django.utils import timezone

from habits.models import Habit, HabitRecord

pytestmark = pytest.mark.django_db


def _post_graphql(client, query: str, variables=None):
    payload = {"query": query}
    if variables is not None:
        payload["variables"] = variables

    response = client.post("/graphql/", data=payload, content_type="application/json")
    return json.loads(response.content)


def _data(client, query: str, variables=None):
    result = _post_graphql(client, query, variables)
    # helpful assertion message if graphql errors happen
    assert "errors" not in result, result.get("errors")
    return result["data"]


CREATE = """
  mutation($name: String!, $startDate: String!, $color: String) {
    createHabit(name: $name, startDate: $startDate, color: $color) {
      habit { id name color startDate completedDays }
    }
  }
"""

RECORD = """
  mutation($habitId: ID!, $date: String!, $completed: Boolean!, $note: String) {
    recordDay(habitId: $habitId, date: $date, completed: $completed, note: $note) {
      record { id date completed note }
      habit { completedDays currentStreak }
    }
  }
"""


def test_create_habit__returns_new_habit(client):
    today = timezone.localdate()

    data = _data(client, CREATE, {"name": " Gym ", "startDate": str(today)})
    habit = data["createHabit"]["habit"]

    assert habit["name"] == "Gym"
    assert habit["color"] == "#3B82F6"
    assert habit["startDate"] == str(today)
    assert habit["completedDays"] == 0
    assert Habit.objects.filter(pk=habit["id"]).exists()


def test_create_habit__validation_error_carries_kind_and_code(client):
    result = _post_graphql(client, CREATE, {"name": "   ", "startDate": str(timezone.localdate())})

    assert result["data"]["createHabit"] is None
    extensions = result["errors"][0]["extensions"]
    assert extensions["kind"] == "ValidationError"
    assert extensions["code"] == "VALIDATION_ERROR"
    assert extensions["statusCode"] == 400
    assert Habit.objects.count() == 0


def test_create_habit__future_start_is_invalid_date(client):
    tomorrow = timezone.localdate() + timedelta(days=1)

    result = _post_graphql(client, CREATE, {"name": "Gym", "startDate": str(tomorrow)})
    assert result["errors"][0]["extensions"]["kind"] == "InvalidDateError"


@override_settings(HABITS_SINGLE_HABIT=True)
def test_create_habit__single_habit_mode_rejects_second(client):
    today = str(timezone.localdate())
    _data(client, CREATE, {"name": "Gym", "startDate": today})

    result = _post_graphql(client, CREATE, {"name": "Read", "startDate": today})
    assert result["errors"][0]["extensions"]["kind"] == "DuplicateHabitError"
    assert Habit.objects.count() == 1


def test_record_day__same_day_twice_updates_in_place(client):
    today = timezone.localdate()
    habit = Habit.objects.create(name="Read", start_date=today - timedelta(days=3))

    first = _data(client, RECORD, {"habitId": str(habit.id), "date": str(today), "completed": True})["recordDay"]
    second = _data(
        client,
        RECORD,
        {"habitId": str(habit.id), "date": str(today), "completed": False, "note": "too tired"},
    )["recordDay"]

    assert first["record"]["completed"] is True
    assert first["habit"] == {"completedDays": 1, "currentStreak": 1}

    assert second["record"]["id"] == first["record"]["id"]
    assert second["record"]["completed"] is False
    assert second["record"]["note"] == "too tired"
    assert second["habit"]["completedDays"] == 0

    assert HabitRecord.objects.filter(habit=habit).count() == 1


def test_record_day__before_start_date_is_rejected(client):
    today = timezone.localdate()
    habit = Habit.objects.create(name="Read", start_date=today)

    result = _post_graphql(
        client,
        RECORD,
        {"habitId": str(habit.id), "date": str(today - timedelta(days=1)), "completed": True},
    )

    extensions = result["errors"][0]["extensions"]
    assert extensions["kind"] == "RecordBeforeStartDateError"
    assert extensions["statusCode"] == 422
    assert HabitRecord.objects.count() == 0


def test_update_habit__changes_only_given_fields(client):
    today = timezone.localdate()
    habit = Habit.objects.create(name="Read", start_date=today - timedelta(days=5))

    query = """
      mutation($id: ID!, $color: String) {
        updateHabit(id: $id, color: $color) {
          habit { name color startDate }
        }
      }
    """
    data = _data(client, query, {"id": str(habit.id), "color": "#10B981"})

    assert data["updateHabit"]["habit"] == {
        "name": "Read",
        "color": "#10B981",
        "startDate": str(today - timedelta(days=5)),
    }


def test_delete_habit__removes_records_too(client):
    today = timezone.localdate()
    habit = Habit.objects.create(name="Read", start_date=today - timedelta(days=1))
    HabitRecord.objects.create(habit=habit, date=today, completed=True)

    query = """
      mutation($id: ID!) {
        deleteHabit(id: $id) { ok deletedId }
      }
    """
    data = _data(client, query, {"id": str(habit.id)})

    assert data["deleteHabit"] == {"ok": True, "deletedId": str(habit.id)}
    assert Habit.objects.count() == 0
    assert HabitRecord.objects.count() == 0

    # deleting again is a no-op
    assert _data(client, query, {"id": str(habit.id)})["deleteHabit"]["ok"] is True
