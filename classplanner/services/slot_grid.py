"""
Run-scoped model of the bookable half-hour windows and what has been used.

A new ``SlotGrid`` is created for every generation run; nothing here is
process-wide.
"""

from collections import defaultdict
from datetime import date, datetime, time, timedelta
from typing import Dict, List, NamedTuple, Optional, Sequence, Set, Tuple

from classplanner import config
from classplanner.models.models import DayOfWeek, SchedulePattern
from classplanner.services.entities import SlotConflictError

WEEKDAYS = [
    DayOfWeek.MONDAY, DayOfWeek.TUESDAY, DayOfWeek.WEDNESDAY,
    DayOfWeek.THURSDAY, DayOfWeek.FRIDAY,
]

PATTERN_DAYS = {
    SchedulePattern.MWF: [DayOfWeek.MONDAY, DayOfWeek.WEDNESDAY, DayOfWeek.FRIDAY],
    SchedulePattern.TTH: [DayOfWeek.TUESDAY, DayOfWeek.THURSDAY],
    SchedulePattern.DAILY: WEEKDAYS,
}


class TimeWindow(NamedTuple):
    start: time
    end: time


class SlotKey(NamedTuple):
    day: DayOfWeek
    window: int
    teacher_id: int
    classroom_id: int


def add_minutes(value: time, minutes: int) -> time:
    return (datetime.combine(date.min, value) + timedelta(minutes=minutes)).time()


def days_for_pattern(pattern: Optional[SchedulePattern]) -> List[DayOfWeek]:
    """Meeting days for a section pattern; unset means Mon/Wed/Fri."""
    return list(PATTERN_DAYS[pattern or SchedulePattern.MWF])


def date_for_day(week_start: date, day: DayOfWeek) -> date:
    """First date on or after ``week_start`` that falls on ``day``."""
    offset = (list(DayOfWeek).index(day) - week_start.weekday()) % 7
    return week_start + timedelta(days=offset)


def build_windows(sessions: Sequence[Tuple[time, time]]) -> List[TimeWindow]:
    """Cut each teaching session into half-hour windows (partial tails dropped)."""
    windows: List[TimeWindow] = []
    for session_start, session_end in sessions:
        cursor = session_start
        while True:
            nxt = add_minutes(cursor, config.SLOT_MINUTES)
            # add_minutes wraps at midnight, so a wrapped value ends the session too
            if nxt > session_end or nxt <= cursor:
                break
            windows.append(TimeWindow(cursor, nxt))
            cursor = nxt
    return windows


class SlotGrid:
    """
    Ordered daily windows plus the used-slot registry for one run.

    A window is free for a (teacher, classroom) pair when no reserved
    SlotKey on that day and window uses either of them.
    """

    def __init__(self, windows: Sequence[TimeWindow]):
        self.windows: Tuple[TimeWindow, ...] = tuple(windows)
        for window in self.windows:
            if add_minutes(window.start, config.SLOT_MINUTES) != window.end:
                raise ValueError(
                    f"Window {window.start:%H:%M}-{window.end:%H:%M} is not "
                    f"{config.SLOT_MINUTES} minutes long"
                )
        self._used: Set[SlotKey] = set()
        self._teacher_busy: Set[Tuple[DayOfWeek, int, int]] = set()
        self._classroom_busy: Set[Tuple[DayOfWeek, int, int]] = set()
        self._section_day_subjects: Dict[Tuple[int, DayOfWeek], Set[str]] = defaultdict(set)

    @classmethod
    def from_config(cls, sessions: Optional[str] = None) -> "SlotGrid":
        parsed = config.parse_sessions(sessions or config.SCHEDULE_SESSIONS)
        return cls(build_windows(parsed))

    def __len__(self) -> int:
        return len(self.windows)

    @property
    def used_slots(self) -> frozenset:
        return frozenset(self._used)

    # -- span geometry --------------------------------------------------------

    def span_fits(self, start: int, length: int) -> bool:
        """Span lies inside the grid and does not jump a break between sessions."""
        if length <= 0 or start < 0 or start + length > len(self.windows):
            return False
        for i in range(start + 1, start + length):
            if self.windows[i].start != self.windows[i - 1].end:
                return False
        return True

    def span_times(self, start: int, length: int) -> TimeWindow:
        return TimeWindow(self.windows[start].start, self.windows[start + length - 1].end)

    # -- occupancy ------------------------------------------------------------

    def is_free(self, day: DayOfWeek, index: int, teacher_id: int, classroom_id: int) -> bool:
        return (
            (day, index, teacher_id) not in self._teacher_busy
            and (day, index, classroom_id) not in self._classroom_busy
        )

    def span_is_free(self, day: DayOfWeek, start: int, length: int, teacher_id: int, classroom_id: int) -> bool:
        if not self.span_fits(start, length):
            return False
        return all(
            self.is_free(day, i, teacher_id, classroom_id)
            for i in range(start, start + length)
        )

    def reserve(self, day: DayOfWeek, start: int, length: int, teacher_id: int, classroom_id: int) -> List[SlotKey]:
        """Reserve ``[start, start+length)``; all or nothing."""
        if not self.span_is_free(day, start, length, teacher_id, classroom_id):
            raise SlotConflictError(
                f"Windows {start}-{start + length - 1} on {day.value} are not free "
                f"for teacher {teacher_id} / classroom {classroom_id}"
            )
        keys = [SlotKey(day, i, teacher_id, classroom_id) for i in range(start, start + length)]
        for key in keys:
            self._used.add(key)
            self._teacher_busy.add((day, key.window, teacher_id))
            self._classroom_busy.add((day, key.window, classroom_id))
        return keys

    # -- section/day/subject registry ----------------------------------------

    def has_subject(self, section_id: int, day: DayOfWeek, subject_name: str) -> bool:
        return subject_name in self._section_day_subjects.get((section_id, day), ())

    def record_subject(self, section_id: int, day: DayOfWeek, subject_name: str) -> None:
        self._section_day_subjects[(section_id, day)].add(subject_name)

    def subjects_on(self, section_id: int, day: DayOfWeek) -> frozenset:
        return frozenset(self._section_day_subjects.get((section_id, day), ()))
