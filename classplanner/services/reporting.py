"""
Aggregate statistics over placements.
"""

import logging
from collections import Counter
from datetime import date
from typing import Any, Dict, Sequence

from sqlalchemy.orm import Session

from classplanner.models.models import Schedule
from classplanner.services.entities import Placement

logger = logging.getLogger(__name__)


def build_statistics(placements: Sequence[Placement]) -> Dict[str, Any]:
    teacher_counts = Counter(p.teacher.full_name for p in placements)
    classroom_counts = Counter(p.classroom.room_name for p in placements)
    subject_counts = Counter(p.subject.name for p in placements)
    day_counts = Counter(p.day_of_week.value for p in placements)

    return {
        "total_schedules": len(placements),
        "teacher_utilization": dict(teacher_counts),
        "classroom_utilization": dict(classroom_counts),
        "subject_distribution": dict(subject_counts),
        "day_distribution": dict(day_counts),
    }


def get_schedule_statistics(db: Session, start_date: date, end_date: date) -> Dict[str, Any]:
    """Statistics over persisted schedules dated within ``[start_date, end_date]``."""
    if end_date < start_date:
        raise ValueError("end_date must not be before start_date")

    rows = (
        db.query(Schedule)
        .filter(Schedule.date >= start_date, Schedule.date <= end_date)
        .order_by(Schedule.date, Schedule.start_time)
        .all()
    )
    logger.debug("Computing statistics over %d schedules (%s to %s)", len(rows), start_date, end_date)
    return build_statistics([Placement.from_model(row) for row in rows])
