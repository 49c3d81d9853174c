"""
Immutable snapshots of catalog rows and the values produced by a generation run.

The engine never touches ORM objects while allocating: rows are snapshotted
into these frozen dataclasses up front, and placements are turned back into
``Schedule`` rows only when they are persisted.
"""

from dataclasses import dataclass
from datetime import date, datetime, time
from typing import FrozenSet, Optional

from classplanner.config import ANY_ROOM_TYPE, SLOT_MINUTES
from classplanner.models.models import (
    Classroom, DayOfWeek, SchedulePattern, ScheduleStatus, Schedule, Section, Subject, Teacher
)


class SchedulingError(Exception):
    """Base class for scheduling failures."""


class PrerequisiteError(SchedulingError):
    """The catalog is not ready for a generation run."""


class SlotConflictError(SchedulingError):
    """A reservation touched a window that is already taken."""


@dataclass(frozen=True)
class TeacherInfo:
    id: int
    full_name: str
    subjects: FrozenSet[str]
    available_days: FrozenSet[DayOfWeek]
    available_start_time: time
    available_end_time: time

    @classmethod
    def from_model(cls, teacher: Teacher) -> "TeacherInfo":
        return cls(
            id=teacher.id,
            full_name=teacher.full_name,
            subjects=frozenset(teacher.subjects or ()),
            available_days=frozenset(DayOfWeek(d) for d in (teacher.available_days or ())),
            available_start_time=teacher.available_start_time,
            available_end_time=teacher.available_end_time,
        )

    def can_teach(self, subject_name: str) -> bool:
        return subject_name in self.subjects

    def is_available(self, day: DayOfWeek, start: time, end: time) -> bool:
        """True when ``[start, end]`` on ``day`` sits inside the daily window."""
        return (
            day in self.available_days
            and self.available_start_time <= start
            and self.available_end_time >= end
        )


@dataclass(frozen=True)
class ClassroomInfo:
    id: int
    room_name: str
    room_type: str
    capacity: int

    @classmethod
    def from_model(cls, classroom: Classroom) -> "ClassroomInfo":
        return cls(
            id=classroom.id,
            room_name=classroom.room_name,
            room_type=classroom.room_type,
            capacity=classroom.capacity,
        )

    def fits(self, required_capacity: int, room_type: str) -> bool:
        if self.capacity < required_capacity:
            return False
        return room_type == ANY_ROOM_TYPE or self.room_type == room_type


@dataclass(frozen=True)
class SectionInfo:
    id: int
    section_name: str
    student_count: int
    schedule_pattern: Optional[SchedulePattern] = None

    @classmethod
    def from_model(cls, section: Section) -> "SectionInfo":
        return cls(
            id=section.id,
            section_name=section.section_name,
            student_count=section.student_count,
            schedule_pattern=section.schedule_pattern,
        )


@dataclass(frozen=True)
class SubjectInfo:
    id: int
    name: str
    code: str
    duration_per_week: float  # hours
    required_room_type: str
    priority: int

    @classmethod
    def from_model(cls, subject: Subject) -> "SubjectInfo":
        return cls(
            id=subject.id,
            name=subject.name,
            code=subject.code,
            duration_per_week=float(subject.duration_per_week),
            required_room_type=subject.required_room_type or ANY_ROOM_TYPE,
            priority=subject.priority or 0,
        )


@dataclass(frozen=True)
class BlockRequest:
    """One contiguous block of half-hour units to place for a (section, subject) pair."""
    section: SectionInfo
    subject: SubjectInfo
    required_capacity: int
    room_type: str
    priority: int
    duration_index: int  # 0-based position among the subject's blocks
    block_length: int    # half-hour units

    @property
    def minutes(self) -> int:
        return self.block_length * SLOT_MINUTES

    def describe(self) -> str:
        return (
            f"{self.section.section_name} - {self.subject.name} "
            f"(Block {self.duration_index + 1}, {format_duration(self.minutes)})"
        )


@dataclass(frozen=True)
class Placement:
    """A committed class meeting; persisted as a ``Schedule`` row."""
    date: date
    day_of_week: DayOfWeek
    start_time: time
    end_time: time
    teacher: TeacherInfo
    classroom: ClassroomInfo
    subject: SubjectInfo
    section: Optional[SectionInfo] = None
    notes: Optional[str] = None
    is_recurring: bool = True
    status: ScheduleStatus = ScheduleStatus.SCHEDULED
    duration_index: Optional[int] = None
    block_length: Optional[int] = None  # half-hour units; known only for generated placements

    @property
    def duration_minutes(self) -> int:
        start = datetime.combine(self.date, self.start_time)
        end = datetime.combine(self.date, self.end_time)
        return int((end - start).total_seconds() // 60)

    def to_model(self, run_id: Optional[int] = None) -> Schedule:
        return Schedule(
            date=self.date,
            day_of_week=self.day_of_week,
            start_time=self.start_time,
            end_time=self.end_time,
            teacher_id=self.teacher.id,
            classroom_id=self.classroom.id,
            section_id=self.section.id if self.section else None,
            subject_id=self.subject.id,
            run_id=run_id,
            notes=self.notes,
            is_recurring=self.is_recurring,
            status=self.status,
            duration_index=self.duration_index,
        )

    @classmethod
    def from_model(cls, schedule: Schedule) -> "Placement":
        return cls(
            date=schedule.date,
            day_of_week=schedule.day_of_week,
            start_time=schedule.start_time,
            end_time=schedule.end_time,
            teacher=TeacherInfo.from_model(schedule.teacher),
            classroom=ClassroomInfo.from_model(schedule.classroom),
            subject=SubjectInfo.from_model(schedule.subject),
            section=SectionInfo.from_model(schedule.section) if schedule.section else None,
            notes=schedule.notes,
            is_recurring=bool(schedule.is_recurring),
            status=schedule.status,
            duration_index=schedule.duration_index,
        )


def format_duration(minutes: float) -> str:
    """``90 -> '1.5 hours'``, ``30 -> '30 minutes'``."""
    if minutes >= 60:
        return f"{minutes / 60:.1f} hours"
    return f"{minutes:.0f} minutes"
