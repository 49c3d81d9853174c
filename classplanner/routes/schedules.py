"""
API routes for schedule generation, lookup and management.
"""

import logging
import threading
from datetime import date, timedelta
from typing import List, Optional

from fastapi import APIRouter, Body, Depends, HTTPException
from sqlalchemy.orm import Session

from classplanner.models.database import get_db
from classplanner.models.models import (
    Classroom, DayOfWeek, GenerationRun, Schedule, ScheduleStatus, Section, Subject, Teacher
)
from classplanner.schemas.schemas import (
    GenerateScheduleRequest, GenerationRunResponse, ScheduleCreate, ScheduleGenerationResponse,
    ScheduleResponse, ScheduleUpdate, StatisticsResponse, ValidationReport, WeeklyRequestSchema
)
from classplanner.services.conflict_oracle import WeeklyRequest, generate_weekly_schedule, is_conflict_free
from classplanner.services.reporting import get_schedule_statistics
from classplanner.services.scheduling_engine import SchedulerEngine, monday_of
from classplanner.services.validators import ScheduleValidator

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/schedules", tags=["schedules"])

# One writer at a time for bulk generation and weekly placement.
_generation_lock = threading.Lock()


def _ordered(query):
    return query.order_by(Schedule.date, Schedule.start_time, Schedule.id)


def _check_range(start_date: date, end_date: date) -> None:
    if end_date < start_date:
        raise HTTPException(status_code=400, detail="end_date must not be before start_date")


def _check_manual_schedule(db: Session, schedule: Schedule, exclude_id: Optional[int] = None) -> None:
    """Reject a hand-entered meeting that is malformed or double-books a teacher or room."""
    if schedule.end_time <= schedule.start_time:
        raise HTTPException(status_code=400, detail="end_time must be after start_time")

    references = [
        (Teacher, schedule.teacher_id),
        (Classroom, schedule.classroom_id),
        (Subject, schedule.subject_id),
    ]
    if schedule.section_id is not None:
        references.append((Section, schedule.section_id))
    for model, item_id in references:
        if db.query(model).filter(model.id == item_id).first() is None:
            raise HTTPException(status_code=404, detail=f"{model.__name__} {item_id} not found")

    if schedule.status == ScheduleStatus.CANCELLED:
        return
    if not is_conflict_free(
        db, schedule.teacher_id, schedule.classroom_id,
        schedule.date, schedule.start_time, schedule.end_time,
        exclude_id=exclude_id,
    ):
        raise HTTPException(
            status_code=409,
            detail=(
                f"Teacher {schedule.teacher_id} or classroom {schedule.classroom_id} is already booked "
                f"on {schedule.date.isoformat()} {schedule.start_time:%H:%M}-{schedule.end_time:%H:%M}"
            ),
        )


@router.get("", response_model=List[ScheduleResponse])
async def list_schedules(
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    db: Session = Depends(get_db),
):
    query = db.query(Schedule)
    if start_date is not None:
        query = query.filter(Schedule.date >= start_date)
    if end_date is not None:
        query = query.filter(Schedule.date <= end_date)
    return _ordered(query).all()


@router.get("/date/{on_date}", response_model=List[ScheduleResponse])
async def schedules_on_date(on_date: date, db: Session = Depends(get_db)):
    return _ordered(db.query(Schedule).filter(Schedule.date == on_date)).all()


@router.get("/week", response_model=List[ScheduleResponse])
async def schedules_for_week(
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    db: Session = Depends(get_db),
):
    start_date = start_date or monday_of(date.today())
    end_date = end_date or start_date + timedelta(days=6)
    _check_range(start_date, end_date)
    return _ordered(
        db.query(Schedule).filter(Schedule.date >= start_date, Schedule.date <= end_date)
    ).all()


@router.get("/teacher/{teacher_id}", response_model=List[ScheduleResponse])
async def schedules_for_teacher(teacher_id: int, db: Session = Depends(get_db)):
    return _ordered(db.query(Schedule).filter(Schedule.teacher_id == teacher_id)).all()


@router.get("/classroom/{classroom_id}", response_model=List[ScheduleResponse])
async def schedules_for_classroom(classroom_id: int, db: Session = Depends(get_db)):
    return _ordered(db.query(Schedule).filter(Schedule.classroom_id == classroom_id)).all()


@router.post("/generate-optimized", response_model=ScheduleGenerationResponse)
def generate_optimized(
    request: Optional[GenerateScheduleRequest] = Body(default=None),
    db: Session = Depends(get_db),
):
    request = request or GenerateScheduleRequest()
    try:
        with _generation_lock:
            engine = SchedulerEngine(
                db,
                week_start=request.week_start,
                replace_existing=request.replace_existing,
            )
            result = engine.generate_optimized_schedule()

        return ScheduleGenerationResponse(
            success=result.success,
            message=result.message,
            run_id=result.run_id,
            generation_time_ms=result.generation_time_ms,
            placed_count=len(result.placements),
            unschedulable_count=result.unschedulable,
            warnings=result.warnings,
            statistics=result.statistics,
            schedules=[ScheduleResponse.model_validate(s) for s in result.placements],
        )
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error generating schedule: {str(e)}")


@router.post("/generate-weekly", response_model=List[ScheduleResponse])
def generate_weekly(
    requests: List[WeeklyRequestSchema],
    week_start: Optional[date] = None,
    db: Session = Depends(get_db),
):
    week_start = week_start or monday_of(date.today())
    try:
        weekly = [WeeklyRequest(**r.model_dump()) for r in requests]
        with _generation_lock:
            placed = generate_weekly_schedule(db, weekly, week_start)
        return placed
    except HTTPException:
        raise
    except Exception as e:
        db.rollback()
        raise HTTPException(status_code=500, detail=f"Error placing weekly schedule: {str(e)}")


@router.get("/statistics", response_model=StatisticsResponse)
async def schedule_statistics(
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    db: Session = Depends(get_db),
):
    start_date = start_date or monday_of(date.today())
    end_date = end_date or start_date + timedelta(days=6)
    _check_range(start_date, end_date)
    try:
        stats = get_schedule_statistics(db, start_date, end_date)
        return StatisticsResponse(start_date=start_date, end_date=end_date, **stats)
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error retrieving statistics: {str(e)}")


@router.post("/validate", response_model=ValidationReport)
async def validate_schedule(
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    db: Session = Depends(get_db),
):
    if start_date is not None and end_date is not None:
        _check_range(start_date, end_date)
    try:
        validator = ScheduleValidator(db)
        is_valid, violations = validator.validate_full_schedule(start_date, end_date)
        return ValidationReport(
            is_valid=is_valid,
            total_violations=len(violations),
            violations=violations,
        )
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error validating schedule: {str(e)}")


@router.get("/runs", response_model=List[GenerationRunResponse])
async def list_runs(limit: int = 20, db: Session = Depends(get_db)):
    return (
        db.query(GenerationRun)
        .order_by(GenerationRun.started_at.desc(), GenerationRun.id.desc())
        .limit(limit)
        .all()
    )


@router.delete("/clear")
def clear_schedules(db: Session = Depends(get_db)):
    try:
        with _generation_lock:
            deleted = db.query(Schedule).delete(synchronize_session=False)
            db.commit()
        logger.info("Cleared %d schedules", deleted)
        return {"success": True, "message": f"Cleared {deleted} schedules"}
    except Exception as e:
        db.rollback()
        raise HTTPException(status_code=500, detail=f"Error clearing schedules: {str(e)}")


@router.post("", response_model=ScheduleResponse, status_code=201)
def create_schedule(payload: ScheduleCreate, db: Session = Depends(get_db)):
    schedule = Schedule(**payload.model_dump(), day_of_week=DayOfWeek.from_date(payload.date))
    try:
        with _generation_lock:
            _check_manual_schedule(db, schedule)
            db.add(schedule)
            db.commit()
        db.refresh(schedule)
        logger.info("Created schedule %s on %s", schedule.id, schedule.date.isoformat())
        return schedule
    except HTTPException:
        raise
    except Exception as e:
        db.rollback()
        raise HTTPException(status_code=500, detail=f"Error creating schedule: {str(e)}")


@router.put("/{schedule_id}", response_model=ScheduleResponse)
def update_schedule(schedule_id: int, payload: ScheduleUpdate, db: Session = Depends(get_db)):
    schedule = db.query(Schedule).filter(Schedule.id == schedule_id).first()
    if schedule is None:
        raise HTTPException(status_code=404, detail=f"Schedule {schedule_id} not found")
    try:
        with _generation_lock:
            for field, value in payload.model_dump(exclude_unset=True).items():
                setattr(schedule, field, value)
            schedule.day_of_week = DayOfWeek.from_date(schedule.date)
            _check_manual_schedule(db, schedule, exclude_id=schedule.id)
            db.commit()
        db.refresh(schedule)
        return schedule
    except HTTPException:
        db.rollback()
        raise
    except Exception as e:
        db.rollback()
        raise HTTPException(status_code=500, detail=f"Error updating schedule: {str(e)}")


@router.get("/{schedule_id}", response_model=ScheduleResponse)
async def get_schedule(schedule_id: int, db: Session = Depends(get_db)):
    schedule = db.query(Schedule).filter(Schedule.id == schedule_id).first()
    if schedule is None:
        raise HTTPException(status_code=404, detail=f"Schedule {schedule_id} not found")
    return schedule


@router.delete("/{schedule_id}")
async def delete_schedule(schedule_id: int, db: Session = Depends(get_db)):
    schedule = db.query(Schedule).filter(Schedule.id == schedule_id).first()
    if schedule is None:
        raise HTTPException(status_code=404, detail=f"Schedule {schedule_id} not found")
    db.delete(schedule)
    db.commit()
    return {"success": True, "message": f"Schedule {schedule_id} deleted"}
