"""
Shared fixtures: an in-memory SQLite database per test and catalog factories.
"""

from datetime import time

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from classplanner.main import app
from classplanner.models.database import get_db
from classplanner.models.models import Base, Classroom, SchedulePattern, Section, Subject, Teacher

WEEKDAYS = ["MONDAY", "TUESDAY", "WEDNESDAY", "THURSDAY", "FRIDAY"]


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    # pysqlite needs explicit BEGIN for SAVEPOINT to nest correctly
    @event.listens_for(engine, "connect")
    def _connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _begin(conn):
        conn.exec_driver_sql("BEGIN")

    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


# ── factories ────────────────────────────────────────────────────────────────

def make_teacher(db, first_name, subjects, days=None, start=time(8, 0), end=time(16, 0), last_name="Teacher"):
    teacher = Teacher(
        first_name=first_name,
        last_name=last_name,
        email=f"{first_name.lower()}.{last_name.lower()}@school.test",
        subjects=list(subjects),
        available_days=list(days or WEEKDAYS),
        available_start_time=start,
        available_end_time=end,
    )
    db.add(teacher)
    db.commit()
    return teacher


def make_classroom(db, room_name, room_type="Lecture", capacity=40):
    classroom = Classroom(room_name=room_name, room_type=room_type, capacity=capacity)
    db.add(classroom)
    db.commit()
    return classroom


def make_section(db, section_name, student_count=30, pattern=SchedulePattern.MWF):
    section = Section(
        section_name=section_name,
        grade_level="7",
        student_count=student_count,
        schedule_pattern=pattern,
    )
    db.add(section)
    db.commit()
    return section


def make_subject(db, name, hours, room_type="Any", priority=1, code=None):
    subject = Subject(
        name=name,
        code=code or name[:4].upper(),
        duration_per_week=hours,
        required_room_type=room_type,
        priority=priority,
    )
    db.add(subject)
    db.commit()
    return subject
