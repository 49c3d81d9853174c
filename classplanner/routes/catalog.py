"""
API routes for the catalog: teachers, classrooms, sections, subjects and school years.
"""

from datetime import date, time
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from classplanner.config import ANY_ROOM_TYPE
from classplanner.models.database import get_db
from classplanner.models.models import (
    Classroom, DayOfWeek, Schedule, SchoolYear, Section, Subject, Teacher
)
from classplanner.schemas.schemas import (
    ClassroomCreate, ClassroomResponse, ClassroomUpdate,
    SchoolYearCreate, SchoolYearResponse, SchoolYearUpdate,
    SectionCreate, SectionResponse, SectionUpdate,
    SubjectCreate, SubjectResponse, SubjectUpdate,
    TeacherCreate, TeacherResponse, TeacherUpdate
)
from classplanner.services.entities import ClassroomInfo, TeacherInfo

teachers_router = APIRouter(prefix="/api/teachers", tags=["teachers"])
classrooms_router = APIRouter(prefix="/api/classrooms", tags=["classrooms"])
sections_router = APIRouter(prefix="/api/sections", tags=["sections"])
subjects_router = APIRouter(prefix="/api/subjects", tags=["subjects"])
school_years_router = APIRouter(prefix="/api/school-years", tags=["school-years"])

routers = [teachers_router, classrooms_router, sections_router, subjects_router, school_years_router]


def _get_or_404(db: Session, model, item_id: int):
    item = db.query(model).filter(model.id == item_id).first()
    if item is None:
        raise HTTPException(status_code=404, detail=f"{model.__name__} {item_id} not found")
    return item


def _save(db: Session, item):
    try:
        db.add(item)
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise HTTPException(status_code=400, detail=f"Integrity error: {str(e.orig)}")
    db.refresh(item)
    return item


def _apply_update(item, payload) -> None:
    for field, value in payload.model_dump(exclude_unset=True).items():
        setattr(item, field, value)


def _delete(db: Session, model, item_id: int, fk_column) -> dict:
    item = _get_or_404(db, model, item_id)
    in_use = db.query(Schedule).filter(fk_column == item_id).count()
    if in_use:
        raise HTTPException(
            status_code=400,
            detail=f"{model.__name__} {item_id} is used by {in_use} schedules",
        )
    db.delete(item)
    db.commit()
    return {"success": True, "message": f"{model.__name__} {item_id} deleted"}


def _check_window(start: time, end: time) -> None:
    if end <= start:
        raise HTTPException(status_code=400, detail="end_time must be after start_time")


# ── Teachers ─────────────────────────────────────────────────────────────────

@teachers_router.get("", response_model=List[TeacherResponse])
async def list_teachers(db: Session = Depends(get_db)):
    return db.query(Teacher).order_by(Teacher.last_name, Teacher.first_name).all()


@teachers_router.get("/subject/{subject}", response_model=List[TeacherResponse])
async def teachers_for_subject(subject: str, db: Session = Depends(get_db)):
    teachers = db.query(Teacher).order_by(Teacher.id).all()
    return [t for t in teachers if subject in (t.subjects or [])]


@teachers_router.get("/available", response_model=List[TeacherResponse])
async def available_teachers(
    day: DayOfWeek,
    start_time: time,
    end_time: time,
    db: Session = Depends(get_db),
):
    _check_window(start_time, end_time)
    teachers = db.query(Teacher).order_by(Teacher.id).all()
    return [t for t in teachers if TeacherInfo.from_model(t).is_available(day, start_time, end_time)]


@teachers_router.get("/{teacher_id}", response_model=TeacherResponse)
async def get_teacher(teacher_id: int, db: Session = Depends(get_db)):
    return _get_or_404(db, Teacher, teacher_id)


@teachers_router.post("", response_model=TeacherResponse, status_code=201)
async def create_teacher(payload: TeacherCreate, db: Session = Depends(get_db)):
    _check_window(payload.available_start_time, payload.available_end_time)
    data = payload.model_dump()
    data["available_days"] = [d.value for d in payload.available_days]
    return _save(db, Teacher(**data))


@teachers_router.put("/{teacher_id}", response_model=TeacherResponse)
async def update_teacher(teacher_id: int, payload: TeacherUpdate, db: Session = Depends(get_db)):
    teacher = _get_or_404(db, Teacher, teacher_id)
    _check_window(
        payload.available_start_time or teacher.available_start_time,
        payload.available_end_time or teacher.available_end_time,
    )
    _apply_update(teacher, payload)
    if payload.available_days is not None:
        teacher.available_days = [d.value for d in payload.available_days]
    return _save(db, teacher)


@teachers_router.delete("/{teacher_id}")
async def delete_teacher(teacher_id: int, db: Session = Depends(get_db)):
    return _delete(db, Teacher, teacher_id, Schedule.teacher_id)


# ── Classrooms ───────────────────────────────────────────────────────────────

@classrooms_router.get("", response_model=List[ClassroomResponse])
async def list_classrooms(db: Session = Depends(get_db)):
    return db.query(Classroom).order_by(Classroom.room_name).all()


@classrooms_router.get("/available", response_model=List[ClassroomResponse])
async def available_classrooms(
    min_capacity: int = Query(0, ge=0),
    room_type: Optional[str] = None,
    db: Session = Depends(get_db),
):
    classrooms = db.query(Classroom).order_by(Classroom.capacity, Classroom.id).all()
    wanted = room_type or ANY_ROOM_TYPE
    return [c for c in classrooms if ClassroomInfo.from_model(c).fits(min_capacity, wanted)]


@classrooms_router.get("/{classroom_id}", response_model=ClassroomResponse)
async def get_classroom(classroom_id: int, db: Session = Depends(get_db)):
    return _get_or_404(db, Classroom, classroom_id)


@classrooms_router.post("", response_model=ClassroomResponse, status_code=201)
async def create_classroom(payload: ClassroomCreate, db: Session = Depends(get_db)):
    return _save(db, Classroom(**payload.model_dump()))


@classrooms_router.put("/{classroom_id}", response_model=ClassroomResponse)
async def update_classroom(classroom_id: int, payload: ClassroomUpdate, db: Session = Depends(get_db)):
    classroom = _get_or_404(db, Classroom, classroom_id)
    _apply_update(classroom, payload)
    return _save(db, classroom)


@classrooms_router.delete("/{classroom_id}")
async def delete_classroom(classroom_id: int, db: Session = Depends(get_db)):
    return _delete(db, Classroom, classroom_id, Schedule.classroom_id)


# ── Sections ─────────────────────────────────────────────────────────────────

@sections_router.get("", response_model=List[SectionResponse])
async def list_sections(db: Session = Depends(get_db)):
    return db.query(Section).order_by(Section.section_name).all()


@sections_router.get("/{section_id}", response_model=SectionResponse)
async def get_section(section_id: int, db: Session = Depends(get_db)):
    return _get_or_404(db, Section, section_id)


@sections_router.post("", response_model=SectionResponse, status_code=201)
async def create_section(payload: SectionCreate, db: Session = Depends(get_db)):
    return _save(db, Section(**payload.model_dump()))


@sections_router.put("/{section_id}", response_model=SectionResponse)
async def update_section(section_id: int, payload: SectionUpdate, db: Session = Depends(get_db)):
    section = _get_or_404(db, Section, section_id)
    _apply_update(section, payload)
    return _save(db, section)


@sections_router.delete("/{section_id}")
async def delete_section(section_id: int, db: Session = Depends(get_db)):
    return _delete(db, Section, section_id, Schedule.section_id)


# ── Subjects ─────────────────────────────────────────────────────────────────

@subjects_router.get("", response_model=List[SubjectResponse])
async def list_subjects(db: Session = Depends(get_db)):
    return db.query(Subject).order_by(Subject.priority.desc(), Subject.name.asc()).all()


@subjects_router.get("/room-type/{room_type}", response_model=List[SubjectResponse])
async def subjects_for_room_type(room_type: str, db: Session = Depends(get_db)):
    return (
        db.query(Subject)
        .filter(Subject.required_room_type == room_type)
        .order_by(Subject.priority.desc(), Subject.name.asc())
        .all()
    )


@subjects_router.get("/{subject_id}", response_model=SubjectResponse)
async def get_subject(subject_id: int, db: Session = Depends(get_db)):
    return _get_or_404(db, Subject, subject_id)


@subjects_router.post("", response_model=SubjectResponse, status_code=201)
async def create_subject(payload: SubjectCreate, db: Session = Depends(get_db)):
    return _save(db, Subject(**payload.model_dump()))


@subjects_router.put("/{subject_id}", response_model=SubjectResponse)
async def update_subject(subject_id: int, payload: SubjectUpdate, db: Session = Depends(get_db)):
    subject = _get_or_404(db, Subject, subject_id)
    _apply_update(subject, payload)
    return _save(db, subject)


@subjects_router.delete("/{subject_id}")
async def delete_subject(subject_id: int, db: Session = Depends(get_db)):
    return _delete(db, Subject, subject_id, Schedule.subject_id)


# ── School years ─────────────────────────────────────────────────────────────

def _check_dates(start_date: date, end_date: date) -> None:
    if end_date <= start_date:
        raise HTTPException(status_code=400, detail="end_date must be after start_date")


def _deactivate_other_years(db: Session, keep_id: Optional[int] = None) -> None:
    query = db.query(SchoolYear).filter(SchoolYear.is_active.is_(True))
    if keep_id is not None:
        query = query.filter(SchoolYear.id != keep_id)
    query.update({SchoolYear.is_active: False}, synchronize_session=False)


@school_years_router.get("", response_model=List[SchoolYearResponse])
async def list_school_years(db: Session = Depends(get_db)):
    return db.query(SchoolYear).order_by(SchoolYear.name.desc()).all()


@school_years_router.get("/active", response_model=SchoolYearResponse)
async def get_active_school_year(db: Session = Depends(get_db)):
    year = db.query(SchoolYear).filter(SchoolYear.is_active.is_(True)).first()
    if year is None:
        raise HTTPException(status_code=404, detail="No active school year")
    return year


@school_years_router.get("/{year_id}", response_model=SchoolYearResponse)
async def get_school_year(year_id: int, db: Session = Depends(get_db)):
    return _get_or_404(db, SchoolYear, year_id)


@school_years_router.post("", response_model=SchoolYearResponse, status_code=201)
async def create_school_year(payload: SchoolYearCreate, db: Session = Depends(get_db)):
    _check_dates(payload.start_date, payload.end_date)
    if payload.is_active:
        _deactivate_other_years(db)
    return _save(db, SchoolYear(**payload.model_dump()))


@school_years_router.put("/{year_id}", response_model=SchoolYearResponse)
async def update_school_year(year_id: int, payload: SchoolYearUpdate, db: Session = Depends(get_db)):
    year = _get_or_404(db, SchoolYear, year_id)
    _check_dates(
        payload.start_date or year.start_date,
        payload.end_date or year.end_date,
    )
    if payload.is_active:
        _deactivate_other_years(db, keep_id=year.id)
    _apply_update(year, payload)
    return _save(db, year)


@school_years_router.put("/{year_id}/activate", response_model=SchoolYearResponse)
async def activate_school_year(year_id: int, db: Session = Depends(get_db)):
    year = _get_or_404(db, SchoolYear, year_id)
    _deactivate_other_years(db, keep_id=year.id)
    year.is_active = True
    return _save(db, year)


@school_years_router.delete("/{year_id}")
async def delete_school_year(year_id: int, db: Session = Depends(get_db)):
    year = _get_or_404(db, SchoolYear, year_id)
    db.delete(year)
    db.commit()
    return {"success": True, "message": f"SchoolYear {year_id} deleted"}
