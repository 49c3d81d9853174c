"""
Seed data script to populate the database with a sample school catalog.
Run this before generating a schedule.
"""

from datetime import time

from classplanner.models.database import SessionLocal, init_db
from classplanner.models.models import (
    Classroom, DayOfWeek, ScheduleConfig, SchedulePattern, Section, Subject, Teacher
)

WEEKDAYS = [d.value for d in (
    DayOfWeek.MONDAY, DayOfWeek.TUESDAY, DayOfWeek.WEDNESDAY, DayOfWeek.THURSDAY, DayOfWeek.FRIDAY
)]


def seed_database():
    """Populate database with sample data."""

    # Initialize tables
    init_db()

    db = SessionLocal()

    try:
        # Check if data already exists
        if db.query(Teacher).count() > 0:
            print("Database already seeded. Skipping...")
            return

        # Create Sections
        sections_data = [
            ("Grade 7 - Rizal", "7", 35, SchedulePattern.MWF),
            ("Grade 7 - Bonifacio", "7", 32, SchedulePattern.TTH),
            ("Grade 8 - Mabini", "8", 38, SchedulePattern.DAILY),
        ]
        for name, grade, count, pattern in sections_data:
            db.add(Section(section_name=name, grade_level=grade, student_count=count, schedule_pattern=pattern))

        # Create Classrooms
        classroom_data = [
            ("Room 101", "Lecture", 40, "Main Building"),
            ("Room 102", "Lecture", 40, "Main Building"),
            ("Science Lab", "Lab", 40, "Annex"),
            ("Gymnasium", "Gym", 120, "Sports Complex"),
        ]
        for name, room_type, capacity, location in classroom_data:
            db.add(Classroom(room_name=name, room_type=room_type, capacity=capacity, location=location))

        # Create Subjects: (name, code, hours/week, room type, priority)
        subject_data = [
            ("Mathematics", "MATH", 3.5, "Lecture", 5),
            ("Science", "SCI", 3.0, "Lab", 4),
            ("English", "ENG", 2.5, "Lecture", 3),
            ("Physical Education", "PE", 2.0, "Gym", 2),
            ("Values Education", "VAL", 1.0, "Any", 1),
        ]
        for name, code, hours, room_type, priority in subject_data:
            db.add(Subject(
                name=name, code=code, duration_per_week=hours,
                required_room_type=room_type, priority=priority,
            ))

        # Create Teachers
        teacher_data = [
            ("Maria", "Santos", ["Mathematics"], WEEKDAYS),
            ("Jose", "Reyes", ["Mathematics", "Values Education"], WEEKDAYS),
            ("Ana", "Cruz", ["Science"], WEEKDAYS),
            ("Pedro", "Garcia", ["English", "Values Education"], WEEKDAYS),
            ("Liza", "Torres", ["Physical Education"], WEEKDAYS),
        ]
        for first, last, subjects, days in teacher_data:
            db.add(Teacher(
                first_name=first,
                last_name=last,
                email=f"{first.lower()}.{last.lower()}@school.example",
                subjects=subjects,
                available_days=days,
                available_start_time=time(8, 0),
                available_end_time=time(16, 0),
            ))

        # Daily teaching grid
        db.add(ScheduleConfig())

        # Commit all changes
        db.commit()
        print("Database seeded successfully!")
        print(f"  - {db.query(Section).count()} sections created")
        print(f"  - {db.query(Classroom).count()} classrooms created")
        print(f"  - {db.query(Subject).count()} subjects created")
        print(f"  - {db.query(Teacher).count()} teachers created")

    except Exception as e:
        db.rollback()
        print(f"Error seeding database: {str(e)}")
        raise
    finally:
        db.close()


if __name__ == "__main__":
    seed_database()
