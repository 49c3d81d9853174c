"""
Scheduler engine for weekly class meetings: greedy first-fit constraint
satisfaction over a half-hour slot grid.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Any, Dict, List, Optional, Sequence, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from classplanner.models.models import (
    Classroom, GenerationRun, Schedule, ScheduleConfig, ScheduleStatus, Section, Subject, Teacher
)
from classplanner.services.block_splitter import generate_requests
from classplanner.services.entities import (
    BlockRequest, ClassroomInfo, Placement, PrerequisiteError, SectionInfo, SubjectInfo,
    TeacherInfo, format_duration
)
from classplanner.services.reporting import build_statistics
from classplanner.services.slot_grid import SlotGrid, date_for_day, days_for_pattern
from classplanner.services.validators import ScheduleValidator
from classplanner.services.workload import IdentityBalancer, WorkloadBalancer

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Allocation (pure, no I/O)
# ---------------------------------------------------------------------------

@dataclass
class AllocationOutcome:
    placements: List[Placement] = field(default_factory=list)
    unschedulable: List[Tuple[BlockRequest, str]] = field(default_factory=list)


def candidate_teachers(request: BlockRequest, teachers: Sequence[TeacherInfo]) -> List[TeacherInfo]:
    return [t for t in teachers if t.can_teach(request.subject.name)]


def candidate_classrooms(request: BlockRequest, classrooms: Sequence[ClassroomInfo]) -> List[ClassroomInfo]:
    return [c for c in classrooms if c.fits(request.required_capacity, request.room_type)]


def _teacher_covers_span(teacher: TeacherInfo, grid: SlotGrid, day, start: int, length: int) -> bool:
    return all(
        teacher.is_available(day, grid.windows[i].start, grid.windows[i].end)
        for i in range(start, start + length)
    )


def find_placement(
    request: BlockRequest,
    teachers: Sequence[TeacherInfo],
    classrooms: Sequence[ClassroomInfo],
    grid: SlotGrid,
    week_start: date,
) -> Tuple[Optional[Placement], str]:
    """
    Commit the first feasible (day, start window, teacher, classroom) for ``request``.

    Returns the placement (already reserved in ``grid``) or None with the reason.
    """
    suitable_teachers = candidate_teachers(request, teachers)
    if not suitable_teachers:
        return None, f"no teacher teaches {request.subject.name}"

    suitable_classrooms = candidate_classrooms(request, classrooms)
    if not suitable_classrooms:
        return None, (
            f"no classroom of type {request.room_type} "
            f"holds {request.required_capacity} students"
        )

    length = request.block_length
    for day in days_for_pattern(request.section.schedule_pattern):
        if grid.has_subject(request.section.id, day, request.subject.name):
            logger.debug(
                "Skipping %s - %s already has %s",
                day.value, request.section.section_name, request.subject.name,
            )
            continue

        for start in range(0, len(grid) - length + 1):
            if not grid.span_fits(start, length):
                continue
            for teacher in suitable_teachers:
                if not _teacher_covers_span(teacher, grid, day, start, length):
                    continue
                for classroom in suitable_classrooms:
                    if not grid.span_is_free(day, start, length, teacher.id, classroom.id):
                        continue

                    grid.reserve(day, start, length, teacher.id, classroom.id)
                    grid.record_subject(request.section.id, day, request.subject.name)
                    window = grid.span_times(start, length)
                    placement = Placement(
                        date=date_for_day(week_start, day),
                        day_of_week=day,
                        start_time=window.start,
                        end_time=window.end,
                        teacher=teacher,
                        classroom=classroom,
                        section=request.section,
                        subject=request.subject,
                        notes=(
                            f"Auto-generated: {request.section.section_name} - {request.subject.name} "
                            f"(Block {request.duration_index + 1}, {format_duration(request.minutes)}: "
                            f"{window.start:%H:%M}-{window.end:%H:%M})"
                        ),
                        is_recurring=True,
                        status=ScheduleStatus.SCHEDULED,
                        duration_index=request.duration_index,
                        block_length=request.block_length,
                    )
                    return placement, ""

    return None, "no free window for any teacher/classroom pair"


def allocate(
    requests: Sequence[BlockRequest],
    teachers: Sequence[TeacherInfo],
    classrooms: Sequence[ClassroomInfo],
    grid: SlotGrid,
    week_start: date,
) -> AllocationOutcome:
    """Place requests in order; failures are recorded and never retried."""
    outcome = AllocationOutcome()
    for request in requests:
        placement, reason = find_placement(request, teachers, classrooms, grid, week_start)
        if placement is None:
            logger.warning("Could not schedule %s: %s", request.describe(), reason)
            outcome.unschedulable.append((request, reason))
            continue
        logger.debug(
            "Scheduled %s on %s %s-%s",
            request.describe(), placement.day_of_week.value,
            placement.start_time.strftime("%H:%M"), placement.end_time.strftime("%H:%M"),
        )
        outcome.placements.append(placement)
    return outcome


# ---------------------------------------------------------------------------
# Database-backed run
# ---------------------------------------------------------------------------

def monday_of(day: date) -> date:
    return day - timedelta(days=day.weekday())


@dataclass
class SchedulingResult:
    success: bool = False
    message: str = ""
    placements: List[Schedule] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    statistics: Dict[str, Any] = field(default_factory=dict)
    run_id: Optional[int] = None
    unschedulable: int = 0
    generation_time_ms: int = 0


class SchedulerEngine:
    """
    Runs one bulk generation: load catalog, split, allocate, persist.
    Each instance owns a fresh slot grid; do not share across runs.
    """

    def __init__(
        self,
        db: Session,
        week_start: Optional[date] = None,
        balancer: Optional[WorkloadBalancer] = None,
        replace_existing: bool = True,
    ):
        self.db = db
        self.week_start = week_start or monday_of(date.today())
        self.week_end = self.week_start + timedelta(days=6)
        self.balancer = balancer or IdentityBalancer()
        self.replace_existing = replace_existing
        self.validator = ScheduleValidator(db)

    def generate_optimized_schedule(self) -> SchedulingResult:
        """
        Run the full pipeline over the current catalog.

        Returns a failed result (nothing written) when prerequisites are not
        met or anything unexpected goes wrong.
        """
        start_time = datetime.utcnow()
        result = SchedulingResult()

        try:
            sections, subjects, teachers, classrooms = self._load_catalog()
            self._check_prerequisites(sections, subjects, teachers, classrooms)

            grid = self._build_grid()
            requests = generate_requests(sections, subjects)
            outcome = allocate(requests, teachers, classrooms, grid, self.week_start)
            result.unschedulable = len(outcome.unschedulable)
            for request, reason in outcome.unschedulable:
                result.warnings.append(f"Could not schedule {request.describe()}: {reason}")

            placements = self.balancer.balance(outcome.placements, teachers)
            _, violations = self.validator.validate_placements(placements)
            result.warnings.extend(f"Validation: {v}" for v in violations)

            if self.replace_existing:
                self._clear_week()

            run = GenerationRun(started_at=start_time)
            self.db.add(run)
            self.db.flush()

            saved, saved_placements = self._persist(placements, run.id, result.warnings)

            result.generation_time_ms = self._elapsed_ms(start_time)
            result.success = True
            result.message = f"Successfully generated {len(saved)} schedule entries"
            result.placements = saved
            result.statistics = build_statistics(saved_placements)
            result.run_id = run.id

            run.success = True
            run.generation_time_ms = result.generation_time_ms
            run.placed_count = len(saved)
            run.unschedulable_count = result.unschedulable
            run.warning_count = len(result.warnings)
            run.message = result.message
            self.db.commit()

            logger.info(
                "Generation run %s: %d placed, %d unschedulable, %d ms",
                run.id, len(saved), result.unschedulable, result.generation_time_ms,
            )
        except PrerequisiteError as e:
            self.db.rollback()
            result = SchedulingResult(success=False, message=str(e))
            logger.warning("Generation aborted: %s", e)
        except Exception as e:
            self.db.rollback()
            logger.exception("Schedule generation failed")
            result = SchedulingResult(success=False, message=f"Failed to generate schedule: {e}")

        if not result.success:
            result.generation_time_ms = self._elapsed_ms(start_time)
            self._record_failed_run(start_time, result)
        return result

    # -- steps ----------------------------------------------------------------

    def _load_catalog(self):
        sections = [SectionInfo.from_model(s) for s in self.db.query(Section).order_by(Section.id).all()]
        subjects = [
            SubjectInfo.from_model(s)
            for s in self.db.query(Subject).order_by(Subject.priority.desc(), Subject.name.asc()).all()
        ]
        teachers = [TeacherInfo.from_model(t) for t in self.db.query(Teacher).order_by(Teacher.id).all()]
        classrooms = [ClassroomInfo.from_model(c) for c in self.db.query(Classroom).order_by(Classroom.id).all()]
        return sections, subjects, teachers, classrooms

    @staticmethod
    def _check_prerequisites(sections, subjects, teachers, classrooms) -> None:
        empty = [
            name for name, items in (
                ("sections", sections), ("subjects", subjects),
                ("teachers", teachers), ("classrooms", classrooms),
            )
            if not items
        ]
        if empty:
            raise PrerequisiteError(f"Prerequisites not met: no {', '.join(empty)} defined")

        required = {s.name for s in subjects}
        covered = set()
        for teacher in teachers:
            covered |= teacher.subjects
        missing = sorted(required - covered)
        logger.debug("Required subjects: %s, teacher subjects: %s", sorted(required), sorted(covered))
        if missing:
            raise PrerequisiteError(
                f"Prerequisites not met: no teacher covers {', '.join(missing)}"
            )

    def _build_grid(self) -> SlotGrid:
        cfg = self.db.query(ScheduleConfig).order_by(ScheduleConfig.id.desc()).first()
        if cfg is None:
            return SlotGrid.from_config()
        return SlotGrid.from_config(cfg.sessions_spec())

    def _clear_week(self) -> None:
        deleted = self.db.query(Schedule).filter(
            Schedule.date >= self.week_start,
            Schedule.date <= self.week_end,
        ).delete(synchronize_session=False)
        if deleted:
            logger.info("Replaced %d existing schedules in week of %s", deleted, self.week_start)

    def _persist(
        self,
        placements: Sequence[Placement],
        run_id: int,
        warnings: List[str],
    ) -> Tuple[List[Schedule], List[Placement]]:
        saved: List[Schedule] = []
        saved_placements: List[Placement] = []
        for placement in placements:
            row = placement.to_model(run_id)
            try:
                with self.db.begin_nested():
                    self.db.add(row)
                    self.db.flush()
            except SQLAlchemyError as e:
                logger.warning("Failed to save schedule %s: %s", placement.notes, e)
                warnings.append(f"Failed to save schedule: {e}")
                continue
            saved.append(row)
            saved_placements.append(placement)
        return saved, saved_placements

    def _record_failed_run(self, start_time: datetime, result: SchedulingResult) -> None:
        try:
            run = GenerationRun(
                started_at=start_time,
                success=False,
                generation_time_ms=result.generation_time_ms,
                message=result.message,
            )
            self.db.add(run)
            self.db.commit()
            result.run_id = run.id
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception("Could not record failed generation run")

    @staticmethod
    def _elapsed_ms(start_time: datetime) -> int:
        return int((datetime.utcnow() - start_time).total_seconds() * 1000)
