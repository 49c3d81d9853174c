from datetime import date, time

import pytest

from classplanner.config import parse_sessions
from classplanner.models.models import DayOfWeek, SchedulePattern
from classplanner.services.entities import SlotConflictError
from classplanner.services.slot_grid import (
    SlotGrid, TimeWindow, build_windows, date_for_day, days_for_pattern
)

MON = DayOfWeek.MONDAY


@pytest.fixture
def grid():
    return SlotGrid.from_config("08:00-12:00,13:00-16:00")


def test_default_grid_has_fourteen_half_hour_windows(grid):
    assert len(grid) == 14
    assert grid.windows[0] == (time(8, 0), time(8, 30))
    assert grid.windows[7] == (time(11, 30), time(12, 0))
    assert grid.windows[8] == (time(13, 0), time(13, 30))
    assert grid.windows[-1] == (time(15, 30), time(16, 0))


def test_lunch_is_not_bookable(grid):
    starts = [w.start for w in grid.windows]
    assert time(12, 0) not in starts
    assert time(12, 30) not in starts


def test_span_cannot_cross_lunch(grid):
    assert grid.span_fits(6, 2)
    assert not grid.span_fits(7, 2)
    assert not grid.span_fits(13, 2)


def test_span_times(grid):
    assert grid.span_times(2, 3) == (time(9, 0), time(10, 30))


def test_reserve_blocks_teacher_and_classroom(grid):
    keys = grid.reserve(MON, 0, 2, teacher_id=1, classroom_id=10)

    assert len(keys) == 2
    assert not grid.is_free(MON, 1, 1, 99)
    assert not grid.is_free(MON, 1, 99, 10)
    assert grid.is_free(MON, 2, 1, 10)
    assert grid.is_free(DayOfWeek.TUESDAY, 0, 1, 10)


def test_reserve_is_all_or_nothing(grid):
    grid.reserve(MON, 2, 1, teacher_id=1, classroom_id=10)

    with pytest.raises(SlotConflictError):
        grid.reserve(MON, 0, 3, teacher_id=1, classroom_id=11)

    assert grid.is_free(MON, 0, 1, 11)
    assert grid.is_free(MON, 1, 1, 11)
    assert len(grid.used_slots) == 1


def test_subject_registry(grid):
    assert not grid.has_subject(1, MON, "Math")
    grid.record_subject(1, MON, "Math")
    assert grid.has_subject(1, MON, "Math")
    assert not grid.has_subject(2, MON, "Math")
    assert grid.subjects_on(1, MON) == {"Math"}


@pytest.mark.parametrize("pattern, expected", [
    (SchedulePattern.MWF, [DayOfWeek.MONDAY, DayOfWeek.WEDNESDAY, DayOfWeek.FRIDAY]),
    (SchedulePattern.TTH, [DayOfWeek.TUESDAY, DayOfWeek.THURSDAY]),
    (SchedulePattern.DAILY, [
        DayOfWeek.MONDAY, DayOfWeek.TUESDAY, DayOfWeek.WEDNESDAY,
        DayOfWeek.THURSDAY, DayOfWeek.FRIDAY,
    ]),
    (None, [DayOfWeek.MONDAY, DayOfWeek.WEDNESDAY, DayOfWeek.FRIDAY]),
])
def test_days_for_pattern(pattern, expected):
    assert days_for_pattern(pattern) == expected


def test_date_for_day_from_monday_and_midweek():
    monday = date(2026, 10, 19)
    assert date_for_day(monday, DayOfWeek.FRIDAY) == date(2026, 10, 23)
    assert date_for_day(monday, DayOfWeek.MONDAY) == monday
    # starting on a Wednesday wraps Monday into the following week
    assert date_for_day(date(2026, 10, 21), DayOfWeek.MONDAY) == date(2026, 10, 26)


def test_build_windows_drops_partial_tail():
    windows = build_windows(parse_sessions("08:00-09:45"))
    assert [w.start for w in windows] == [time(8, 0), time(8, 30), time(9, 0)]


@pytest.mark.parametrize("raw", ["08:00-07:00", "08:00-12:00,11:00-13:00", "eight-nine"])
def test_parse_sessions_rejects_bad_input(raw):
    with pytest.raises(ValueError):
        parse_sessions(raw)


def test_grid_rejects_windows_that_are_not_half_hours():
    with pytest.raises(ValueError):
        SlotGrid([TimeWindow(time(8, 0), time(9, 0))])
