"""
SQLAlchemy models for the class meeting scheduler.
"""

from datetime import datetime
from enum import Enum
from sqlalchemy import (
    Column, Integer, String, Float, ForeignKey, DateTime, Date, Time, Boolean, Text, JSON,
    Enum as SQLEnum, Index
)
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()


class DayOfWeek(str, Enum):
    """Days of the week, in calendar order (Monday first)."""
    MONDAY = "MONDAY"
    TUESDAY = "TUESDAY"
    WEDNESDAY = "WEDNESDAY"
    THURSDAY = "THURSDAY"
    FRIDAY = "FRIDAY"
    SATURDAY = "SATURDAY"
    SUNDAY = "SUNDAY"

    @classmethod
    def from_date(cls, value) -> "DayOfWeek":
        return list(cls)[value.weekday()]


class SchedulePattern(str, Enum):
    """Meeting-day pattern of a section."""
    MWF = "MWF"      # Monday, Wednesday, Friday
    TTH = "TTH"      # Tuesday, Thursday
    DAILY = "DAILY"  # Monday to Friday


class ScheduleStatus(str, Enum):
    """Lifecycle status of a schedule row."""
    SCHEDULED = "SCHEDULED"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class Teacher(Base):
    """A teacher with the subjects they can teach and a daily availability window."""
    __tablename__ = "teachers"

    id = Column(Integer, primary_key=True, index=True)
    first_name = Column(String(50), nullable=False)
    last_name = Column(String(50), nullable=False)
    email = Column(String(100), unique=True, nullable=False)
    subjects = Column(JSON, nullable=False, default=list)        # subject names
    available_days = Column(JSON, nullable=False, default=list)  # DayOfWeek values
    available_start_time = Column(Time, nullable=False)
    available_end_time = Column(Time, nullable=False)
    phone_number = Column(String(30), nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    schedules = relationship("Schedule", back_populates="teacher")

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"


class Classroom(Base):
    """A bookable room."""
    __tablename__ = "classrooms"

    id = Column(Integer, primary_key=True, index=True)
    room_name = Column(String(50), unique=True, nullable=False)
    room_type = Column(String(50), nullable=False)  # Lecture, Lab, Gym, ...
    capacity = Column(Integer, nullable=False)
    location = Column(String(100), nullable=True)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    schedules = relationship("Schedule", back_populates="classroom")


class Section(Base):
    """A group of students that meets on a fixed day pattern."""
    __tablename__ = "sections"

    id = Column(Integer, primary_key=True, index=True)
    section_name = Column(String(50), unique=True, nullable=False)
    grade_level = Column(String(20), nullable=False)
    student_count = Column(Integer, nullable=False)
    schedule_pattern = Column(SQLEnum(SchedulePattern), nullable=True, default=SchedulePattern.MWF)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    schedules = relationship("Schedule", back_populates="section")


class Subject(Base):
    """A subject taught for a number of hours per week."""
    __tablename__ = "subjects"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), unique=True, nullable=False)
    code = Column(String(20), unique=True, nullable=False)
    duration_per_week = Column(Float, nullable=False)  # hours, half-hour granularity
    required_room_type = Column(String(50), nullable=False, default="Any")
    priority = Column(Integer, nullable=False, default=1)  # higher = scheduled first
    description = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    schedules = relationship("Schedule", back_populates="subject")


class SchoolYear(Base):
    __tablename__ = "school_years"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(20), unique=True, nullable=False)  # e.g. "2026-2027"
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    is_active = Column(Boolean, default=False, nullable=False)  # at most one active year
    description = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)


class GenerationRun(Base):
    """Audit record of one bulk generation run."""
    __tablename__ = "generation_runs"

    id = Column(Integer, primary_key=True, index=True)
    started_at = Column(DateTime, default=datetime.utcnow)
    generation_time_ms = Column(Integer, nullable=True)
    success = Column(Boolean, default=False, nullable=False)
    placed_count = Column(Integer, default=0)
    unschedulable_count = Column(Integer, default=0)
    warning_count = Column(Integer, default=0)
    message = Column(Text, nullable=True)

    schedules = relationship("Schedule", back_populates="run")

    __table_args__ = (Index("ix_generation_runs_started_at", "started_at"),)


class Schedule(Base):
    """A committed class meeting (placement)."""
    __tablename__ = "schedules"

    id = Column(Integer, primary_key=True, index=True)

    # Time information
    date = Column(Date, nullable=False)
    day_of_week = Column(SQLEnum(DayOfWeek), nullable=False)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)

    # Assignment information
    teacher_id = Column(Integer, ForeignKey("teachers.id"), nullable=False)
    classroom_id = Column(Integer, ForeignKey("classrooms.id"), nullable=False)
    # Placements made through the weekly path may not name a section.
    section_id = Column(Integer, ForeignKey("sections.id"), nullable=True)
    subject_id = Column(Integer, ForeignKey("subjects.id"), nullable=False)
    run_id = Column(Integer, ForeignKey("generation_runs.id"), nullable=True)

    # Metadata
    notes = Column(Text, nullable=True)
    is_recurring = Column(Boolean, default=False, nullable=False)
    status = Column(SQLEnum(ScheduleStatus), default=ScheduleStatus.SCHEDULED, nullable=False)
    duration_index = Column(Integer, nullable=True)  # block sequence within the subject
    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    teacher = relationship("Teacher", back_populates="schedules")
    classroom = relationship("Classroom", back_populates="schedules")
    section = relationship("Section", back_populates="schedules")
    subject = relationship("Subject", back_populates="schedules")
    run = relationship("GenerationRun", back_populates="schedules")

    __table_args__ = (
        Index("ix_schedules_teacher_date", "teacher_id", "date"),
        Index("ix_schedules_classroom_date", "classroom_id", "date"),
        Index("ix_schedules_date_start", "date", "start_time"),
        Index("ix_schedules_run", "run_id"),
    )


class ScheduleConfig(Base):
    """Deployment override for the daily teaching grid."""
    __tablename__ = "schedule_configs"

    id = Column(Integer, primary_key=True, index=True)

    # Time constraints (HH:MM)
    morning_start_time = Column(String(5), default="08:00")
    morning_end_time = Column(String(5), default="12:00")
    afternoon_start_time = Column(String(5), default="13:00")
    afternoon_end_time = Column(String(5), default="16:00")

    created_at = Column(DateTime, default=datetime.utcnow)

    def sessions_spec(self) -> str:
        return (
            f"{self.morning_start_time}-{self.morning_end_time},"
            f"{self.afternoon_start_time}-{self.afternoon_end_time}"
        )
