"""
Consistency checks over committed placements.
Violations are reported, never repaired, and checking never raises.
"""

import logging
from collections import defaultdict
from datetime import date
from typing import Dict, List, Optional, Sequence, Set, Tuple

from sqlalchemy.orm import Session, Query

from classplanner.config import SLOT_MINUTES
from classplanner.models.models import Schedule, ScheduleStatus
from classplanner.services.conflict_oracle import intervals_overlap
from classplanner.services.entities import Placement

logger = logging.getLogger(__name__)


def validate_same_day_subjects(placements: Sequence[Placement]) -> List[str]:
    """A section must not meet the same subject twice on one date."""
    violations = []
    seen: Dict[Tuple[int, date], Set[str]] = defaultdict(set)
    for p in placements:
        if p.section is None:
            continue
        subjects_on_day = seen[(p.section.id, p.date)]
        if p.subject.name in subjects_on_day:
            violations.append(
                f"{p.section.section_name} has {p.subject.name} multiple times on "
                f"{p.day_of_week.value} {p.date.isoformat()}"
            )
        else:
            subjects_on_day.add(p.subject.name)
    return violations


def find_overlaps(placements: Sequence[Placement]) -> List[str]:
    """Pairs of placements that share a teacher or classroom and overlap in time."""
    violations = []
    by_date: Dict[date, List[Placement]] = defaultdict(list)
    for p in placements:
        by_date[p.date].append(p)

    for on_date, day_placements in by_date.items():
        ordered = sorted(day_placements, key=lambda p: p.start_time)
        for i, first in enumerate(ordered):
            for second in ordered[i + 1:]:
                if not intervals_overlap(first.start_time, first.end_time, second.start_time, second.end_time):
                    break  # sorted by start: nothing later overlaps ``first`` either
                window = f"{on_date.isoformat()} {first.start_time:%H:%M}-{first.end_time:%H:%M}"
                if first.teacher.id == second.teacher.id:
                    violations.append(f"Teacher conflict for {first.teacher.full_name} on {window}")
                if first.classroom.id == second.classroom.id:
                    violations.append(f"Classroom conflict for {first.classroom.room_name} on {window}")
    return violations


def find_duration_mismatches(placements: Sequence[Placement]) -> List[str]:
    """
    Placements whose length is not a whole number of half hours, or, for
    generated placements, does not match their block length.
    """
    violations = []
    for p in placements:
        minutes = p.duration_minutes
        if minutes <= 0 or minutes % SLOT_MINUTES:
            violations.append(f"{p.subject.name} on {p.date.isoformat()} lasts {minutes} minutes")
        elif p.block_length is not None and minutes != p.block_length * SLOT_MINUTES:
            violations.append(
                f"{p.subject.name} on {p.date.isoformat()} lasts {minutes} minutes "
                f"for a {p.block_length * SLOT_MINUTES}-minute block"
            )
    return violations


class ScheduleValidator:
    """Runs every check over a run's placements or over persisted schedules."""

    def __init__(self, db: Optional[Session] = None):
        self.db = db

    def validate_placements(self, placements: Sequence[Placement]) -> Tuple[bool, List[str]]:
        violations: List[str] = []
        try:
            violations.extend(validate_same_day_subjects(placements))
            violations.extend(find_overlaps(placements))
            violations.extend(find_duration_mismatches(placements))
        except Exception:
            logger.exception("Schedule validation could not complete")
            return False, ["Validation could not complete"]

        unique = sorted(set(violations))
        for violation in unique:
            logger.warning("VIOLATION: %s", violation)
        if not unique:
            logger.info("Validation passed for %d placements", len(placements))
        return len(unique) == 0, unique

    def _query_schedules(self, start_date: Optional[date], end_date: Optional[date]) -> Query:
        query = self.db.query(Schedule).filter(Schedule.status != ScheduleStatus.CANCELLED)
        if start_date is not None:
            query = query.filter(Schedule.date >= start_date)
        if end_date is not None:
            query = query.filter(Schedule.date <= end_date)
        return query

    def validate_full_schedule(
        self,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> Tuple[bool, List[str]]:
        if self.db is None:
            raise ValueError("validate_full_schedule needs a database session")
        rows = self._query_schedules(start_date, end_date).all()
        return self.validate_placements([Placement.from_model(row) for row in rows])
