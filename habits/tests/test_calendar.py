from dataclasses import dataclass
from datetime import date

from habits.services.calendar import DayState, classify_days, generate_window
from habits.services.dates import add_days


@dataclass
class Rec:
    date: date
    completed: bool


def test_generate_window__hundred_contiguous_days():
    days = list(generate_window("2024-01-01", 100))

    assert len(days) == 100
    assert days[0] == "2024-01-01"
    assert days[-1] == "2024-04-09"
    assert len(set(days)) == 100
    assert days == sorted(days)
    for prev, nxt in zip(days, days[1:]):
        assert add_days(prev, 1) == nxt


def test_generate_window__is_lazy_and_restartable():
    window = generate_window(date(2024, 1, 1), 3)

    it = iter(window)
    assert next(it) == "2024-01-01"
    assert list(window) == ["2024-01-01", "2024-01-02", "2024-01-03"]
    assert list(window) == list(window)
    assert len(window) == 3
    assert window.end_date == date(2024, 1, 3)


def test_generate_window__empty():
    window = generate_window("2024-01-01", 0)
    assert list(window) == []
    assert window.end_date is None


def test_classify_days__state_precedence_and_overlays():
    records = [
        Rec(date(2024, 1, 1), True),
        Rec(date(2024, 1, 2), False),
    ]
    cells = classify_days("2024-01-01", records, 100, today=date(2024, 1, 3))

    assert len(cells) == 100
    assert [c.day_number for c in cells[:3]] == [1, 2, 3]

    assert cells[0].state is DayState.ACHIEVED
    assert cells[0].recorded

    assert cells[1].state is DayState.FAILED
    assert cells[1].recorded
    assert cells[1].completed is False

    # today, reached but unrecorded
    assert cells[2].state is DayState.FAILED
    assert not cells[2].recorded
    assert cells[2].is_today
    assert cells[2].is_editable

    assert cells[3].state is DayState.NOT_REACHED
    assert not cells[3].is_today
    assert not cells[3].is_editable
    assert all(not c.is_editable for c in cells[3:])


def test_classify_days__completed_today_is_achieved_and_today():
    cells = classify_days(date(2024, 1, 1), [Rec(date(2024, 1, 3), True)], 5, today=date(2024, 1, 3))

    assert cells[2].state is DayState.ACHIEVED
    assert cells[2].is_today
    assert sum(c.is_today for c in cells) == 1


def test_classify_days__challenge_not_started_yet():
    cells = classify_days(date(2024, 1, 10), [], 5, today=date(2024, 1, 3))
    assert all(c.state is DayState.NOT_REACHED for c in cells)
    assert not any(c.is_today for c in cells)
