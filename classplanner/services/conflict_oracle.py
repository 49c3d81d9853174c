"""
Conflict checks against persisted schedules, and the incremental placement
path that uses them.

Intervals are half-open: meetings that only touch at an endpoint do not
conflict.
"""

import logging
from dataclasses import dataclass, replace
from datetime import date, time, timedelta
from typing import List, Optional, Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from classplanner.config import ANY_ROOM_TYPE
from classplanner.models.models import (
    Classroom, DayOfWeek, Schedule, ScheduleStatus, Subject, Teacher
)
from classplanner.services.entities import ClassroomInfo, TeacherInfo

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WeeklyRequest:
    """A fully specified meeting to place against the existing calendar."""
    subject_name: str
    day_of_week: DayOfWeek
    start_time: time
    end_time: time
    required_capacity: int = 0
    room_type: str = ANY_ROOM_TYPE
    section_id: Optional[int] = None
    date: Optional[date] = None
    notes: Optional[str] = None
    is_recurring: bool = False


def intervals_overlap(start1: time, end1: time, start2: time, end2: time) -> bool:
    return start1 < end2 and start2 < end1


def _conflict_query(
    db: Session, column, resource_id: int, on_date: date, start: time, end: time,
    exclude_id: Optional[int] = None,
):
    query = db.query(Schedule).filter(
        column == resource_id,
        Schedule.date == on_date,
        Schedule.status != ScheduleStatus.CANCELLED,
        Schedule.start_time < end,
        Schedule.end_time > start,
    )
    if exclude_id is not None:
        query = query.filter(Schedule.id != exclude_id)
    return query


def teacher_conflicts(
    db: Session, teacher_id: int, on_date: date, start: time, end: time, exclude_id: Optional[int] = None
) -> List[Schedule]:
    return _conflict_query(db, Schedule.teacher_id, teacher_id, on_date, start, end, exclude_id).all()


def classroom_conflicts(
    db: Session, classroom_id: int, on_date: date, start: time, end: time, exclude_id: Optional[int] = None
) -> List[Schedule]:
    return _conflict_query(db, Schedule.classroom_id, classroom_id, on_date, start, end, exclude_id).all()


def is_conflict_free(
    db: Session, teacher_id: int, classroom_id: int, on_date: date, start: time, end: time,
    exclude_id: Optional[int] = None,
) -> bool:
    """``exclude_id`` leaves one row out, for re-checking an edited schedule."""
    if _conflict_query(db, Schedule.teacher_id, teacher_id, on_date, start, end, exclude_id).first() is not None:
        return False
    return _conflict_query(db, Schedule.classroom_id, classroom_id, on_date, start, end, exclude_id).first() is None


def _candidate_pairs(db: Session, request: WeeklyRequest):
    teachers = [TeacherInfo.from_model(t) for t in db.query(Teacher).order_by(Teacher.id).all()]
    classrooms = [ClassroomInfo.from_model(c) for c in db.query(Classroom).order_by(Classroom.id).all()]

    teachers = [
        t for t in teachers
        if t.can_teach(request.subject_name)
        and t.is_available(request.day_of_week, request.start_time, request.end_time)
    ]
    classrooms = [c for c in classrooms if c.fits(request.required_capacity, request.room_type)]
    return teachers, classrooms


def find_best_schedule(db: Session, request: WeeklyRequest) -> Optional[Schedule]:
    """
    First (teacher, classroom) pair with no conflicts on the request's date.

    Returns an unsaved ``Schedule`` or None. Nothing is written, so asking
    again without new commits gives the same answer.
    """
    if request.date is None:
        raise ValueError("WeeklyRequest.date must be set before placement")
    if request.end_time <= request.start_time:
        return None

    subject = db.query(Subject).filter(Subject.name == request.subject_name).first()
    if subject is None:
        return None

    teachers, classrooms = _candidate_pairs(db, request)
    for teacher in teachers:
        for classroom in classrooms:
            if is_conflict_free(db, teacher.id, classroom.id, request.date, request.start_time, request.end_time):
                return Schedule(
                    date=request.date,
                    day_of_week=request.day_of_week,
                    start_time=request.start_time,
                    end_time=request.end_time,
                    teacher_id=teacher.id,
                    classroom_id=classroom.id,
                    section_id=request.section_id,
                    subject_id=subject.id,
                    notes=request.notes,
                    is_recurring=request.is_recurring,
                    status=ScheduleStatus.SCHEDULED,
                )
    return None


def generate_weekly_schedule(
    db: Session,
    requests: Sequence[WeeklyRequest],
    week_start: date,
) -> List[Schedule]:
    """
    Place caller-specified requests over the 7 days starting at ``week_start``.

    Each placement is flushed before the next request is examined, so later
    requests see earlier ones as conflicts. Returns the persisted schedules.
    """
    placed: List[Schedule] = []
    for offset in range(7):
        current = week_start + timedelta(days=offset)
        day = DayOfWeek.from_date(current)
        for request in (r for r in requests if r.day_of_week == day):
            dated = replace(request, date=current)
            schedule = find_best_schedule(db, dated)
            if schedule is None:
                logger.warning(
                    "Could not place %s on %s %s-%s",
                    dated.subject_name, current.isoformat(),
                    dated.start_time.strftime("%H:%M"), dated.end_time.strftime("%H:%M"),
                )
                continue
            try:
                with db.begin_nested():
                    db.add(schedule)
                    db.flush()
            except SQLAlchemyError as e:
                logger.warning("Failed to save schedule for %s: %s", dated.subject_name, e)
                continue
            placed.append(schedule)

    db.commit()
    logger.info("Weekly placement from %s: %d/%d placed", week_start.isoformat(), len(placed), len(requests))
    return placed
