"""
Pydantic schemas for API request/response validation.
"""

import datetime as _dt
from datetime import date, datetime, time
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

from classplanner.config import ANY_ROOM_TYPE
from classplanner.models.models import DayOfWeek, SchedulePattern, ScheduleStatus


def _check_half_hours(value: Optional[float]) -> Optional[float]:
    if value is not None and (value * 2) != int(value * 2):
        raise ValueError("duration_per_week must be a multiple of 0.5 hours")
    return value


# Teacher Schemas
class TeacherBase(BaseModel):
    first_name: str = Field(..., min_length=1, max_length=50)
    last_name: str = Field(..., min_length=1, max_length=50)
    email: str = Field(..., min_length=3, max_length=100)
    subjects: List[str] = []
    available_days: List[DayOfWeek] = []
    available_start_time: time
    available_end_time: time
    phone_number: Optional[str] = None
    notes: Optional[str] = None


class TeacherCreate(TeacherBase):
    pass


class TeacherUpdate(BaseModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    subjects: Optional[List[str]] = None
    available_days: Optional[List[DayOfWeek]] = None
    available_start_time: Optional[time] = None
    available_end_time: Optional[time] = None
    phone_number: Optional[str] = None
    notes: Optional[str] = None


class TeacherResponse(TeacherBase):
    id: int
    full_name: str
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# Classroom Schemas
class ClassroomBase(BaseModel):
    room_name: str = Field(..., min_length=1, max_length=50)
    room_type: str = Field(..., min_length=1, max_length=50)
    capacity: int = Field(..., ge=1)
    location: Optional[str] = None
    description: Optional[str] = None


class ClassroomCreate(ClassroomBase):
    pass


class ClassroomUpdate(BaseModel):
    room_name: Optional[str] = None
    room_type: Optional[str] = None
    capacity: Optional[int] = Field(default=None, ge=1)
    location: Optional[str] = None
    description: Optional[str] = None


class ClassroomResponse(ClassroomBase):
    id: int
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# Section Schemas
class SectionBase(BaseModel):
    section_name: str = Field(..., min_length=1, max_length=50)
    grade_level: str = Field(..., min_length=1, max_length=20)
    student_count: int = Field(..., gt=0)
    schedule_pattern: Optional[SchedulePattern] = SchedulePattern.MWF
    description: Optional[str] = None


class SectionCreate(SectionBase):
    pass


class SectionUpdate(BaseModel):
    section_name: Optional[str] = None
    grade_level: Optional[str] = None
    student_count: Optional[int] = Field(default=None, gt=0)
    schedule_pattern: Optional[SchedulePattern] = None
    description: Optional[str] = None


class SectionResponse(SectionBase):
    id: int
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# Subject Schemas
class SubjectBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    code: str = Field(..., min_length=1, max_length=20)
    duration_per_week: float = Field(..., gt=0)
    required_room_type: str = ANY_ROOM_TYPE
    priority: int = 1
    description: Optional[str] = None

    @field_validator("duration_per_week")
    @classmethod
    def half_hour_duration(cls, v):
        return _check_half_hours(v)


class SubjectCreate(SubjectBase):
    pass


class SubjectUpdate(BaseModel):
    name: Optional[str] = None
    code: Optional[str] = None
    duration_per_week: Optional[float] = Field(default=None, gt=0)
    required_room_type: Optional[str] = None
    priority: Optional[int] = None
    description: Optional[str] = None

    @field_validator("duration_per_week")
    @classmethod
    def half_hour_duration(cls, v):
        return _check_half_hours(v)


class SubjectResponse(SubjectBase):
    id: int
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# School Year Schemas
class SchoolYearBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=20)  # e.g. "2026-2027"
    start_date: date
    end_date: date
    is_active: bool = False
    description: Optional[str] = None


class SchoolYearCreate(SchoolYearBase):
    pass


class SchoolYearUpdate(BaseModel):
    name: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    is_active: Optional[bool] = None
    description: Optional[str] = None


class SchoolYearResponse(SchoolYearBase):
    id: int
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# Schedule Schemas
class ScheduleResponse(BaseModel):
    id: int
    date: date
    day_of_week: DayOfWeek
    start_time: time
    end_time: time
    teacher_id: int
    classroom_id: int
    section_id: Optional[int] = None
    subject_id: int
    run_id: Optional[int] = None
    notes: Optional[str] = None
    is_recurring: bool
    status: ScheduleStatus
    duration_index: Optional[int] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ScheduleCreate(BaseModel):
    date: date
    start_time: time
    end_time: time
    teacher_id: int
    classroom_id: int
    section_id: Optional[int] = None
    subject_id: int
    notes: Optional[str] = None
    is_recurring: bool = False
    status: ScheduleStatus = ScheduleStatus.SCHEDULED


class ScheduleUpdate(BaseModel):
    date: Optional[_dt.date] = None
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    teacher_id: Optional[int] = None
    classroom_id: Optional[int] = None
    section_id: Optional[int] = None
    subject_id: Optional[int] = None
    notes: Optional[str] = None
    is_recurring: Optional[bool] = None
    status: Optional[ScheduleStatus] = None


# Schedule Generation Request/Response
class GenerateScheduleRequest(BaseModel):
    week_start: Optional[date] = None
    replace_existing: bool = True


class ScheduleGenerationResponse(BaseModel):
    success: bool
    message: str
    run_id: Optional[int] = None
    generation_time_ms: Optional[int] = None
    placed_count: int = 0
    unschedulable_count: int = 0
    warnings: List[str] = []
    statistics: Dict[str, Any] = {}
    schedules: List[ScheduleResponse] = []


class WeeklyRequestSchema(BaseModel):
    subject_name: str = Field(..., min_length=1)
    day_of_week: DayOfWeek
    start_time: time
    end_time: time
    required_capacity: int = Field(default=0, ge=0)
    room_type: str = ANY_ROOM_TYPE
    section_id: Optional[int] = None
    notes: Optional[str] = None
    is_recurring: bool = False


# Statistics
class StatisticsResponse(BaseModel):
    start_date: date
    end_date: date
    total_schedules: int
    teacher_utilization: Dict[str, int]
    classroom_utilization: Dict[str, int]
    subject_distribution: Dict[str, int]
    day_distribution: Dict[str, int]


# Validation Report
class ValidationReport(BaseModel):
    is_valid: bool
    total_violations: int
    violations: List[str]


class GenerationRunResponse(BaseModel):
    id: int
    started_at: Optional[datetime] = None
    generation_time_ms: Optional[int] = None
    success: bool
    placed_count: Optional[int] = 0
    unschedulable_count: Optional[int] = 0
    warning_count: Optional[int] = 0
    message: Optional[str] = None

    class Config:
        from_attributes = True
