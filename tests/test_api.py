"""
HTTP tests for the scheduler API, run against an in-memory database.
"""

import csv
import io

import pytest

WEEK = "2026-10-19"


def _seed(client):
    assert client.post("/api/sections", json={
        "section_name": "7-A", "grade_level": "7", "student_count": 30, "schedule_pattern": "MWF",
    }).status_code == 201
    assert client.post("/api/subjects", json={
        "name": "Science", "code": "SCI", "duration_per_week": 3.0,
        "required_room_type": "Lab", "priority": 4,
    }).status_code == 201
    teacher = client.post("/api/teachers", json={
        "first_name": "Ana", "last_name": "Cruz", "email": "ana.cruz@school.test",
        "subjects": ["Science"],
        "available_days": ["MONDAY", "TUESDAY", "WEDNESDAY", "THURSDAY", "FRIDAY"],
        "available_start_time": "08:00:00", "available_end_time": "16:00:00",
    })
    assert teacher.status_code == 201, teacher.text
    assert client.post("/api/classrooms", json={
        "room_name": "Lab 1", "room_type": "Lab", "capacity": 40,
    }).status_code == 201
    return teacher.json()


def _generate(client):
    response = client.post("/api/schedules/generate-optimized", json={"week_start": WEEK})
    assert response.status_code == 200, response.text
    return response.json()


def test_health_and_root(client):
    assert client.get("/health").json()["status"] == "OK"
    assert "endpoints" in client.get("/").json()


def test_catalog_crud(client):
    teacher = _seed(client)
    assert teacher["full_name"] == "Ana Cruz"

    updated = client.put(f"/api/teachers/{teacher['id']}", json={"subjects": ["Science", "Math"]})
    assert updated.status_code == 200
    assert updated.json()["subjects"] == ["Science", "Math"]

    assert client.get("/api/teachers/999").status_code == 404
    assert len(client.get("/api/subjects").json()) == 1
    assert len(client.get("/api/sections").json()) == 1

    duplicate = client.post("/api/classrooms", json={"room_name": "Lab 1", "room_type": "Lab", "capacity": 10})
    assert duplicate.status_code == 400

    classroom_id = client.get("/api/classrooms").json()[0]["id"]
    assert client.delete(f"/api/classrooms/{classroom_id}").status_code == 200
    assert client.get("/api/classrooms").json() == []


def test_subject_duration_must_be_half_hours(client):
    response = client.post("/api/subjects", json={"name": "Odd", "code": "ODD", "duration_per_week": 1.2})
    assert response.status_code == 422


@pytest.mark.parametrize("path, payload", [
    ("/api/sections", {"section_name": "7-Z", "grade_level": "7", "student_count": 0}),
    ("/api/subjects", {"name": "Homeroom", "code": "HR", "duration_per_week": 0}),
])
def test_catalog_rejects_empty_sections_and_subjects(client, path, payload):
    assert client.post(path, json=payload).status_code == 422


def test_teacher_update_rejects_inverted_window(client):
    teacher = _seed(client)

    response = client.put(f"/api/teachers/{teacher['id']}", json={"available_start_time": "17:00:00"})

    assert response.status_code == 400
    assert client.get(f"/api/teachers/{teacher['id']}").json()["available_start_time"] == "08:00:00"


def test_catalog_lookups(client):
    _seed(client)

    assert len(client.get("/api/teachers/subject/Science").json()) == 1
    assert client.get("/api/teachers/subject/History").json() == []

    available = client.get("/api/teachers/available", params={
        "day": "MONDAY", "start_time": "09:00:00", "end_time": "10:00:00",
    })
    assert len(available.json()) == 1
    saturday = client.get("/api/teachers/available", params={
        "day": "SATURDAY", "start_time": "09:00:00", "end_time": "10:00:00",
    })
    assert saturday.json() == []

    assert len(client.get("/api/classrooms/available", params={"min_capacity": 30, "room_type": "Lab"}).json()) == 1
    assert client.get("/api/classrooms/available", params={"min_capacity": 50}).json() == []
    assert len(client.get("/api/subjects/room-type/Lab").json()) == 1


def test_generate_and_query_schedules(client):
    teacher = _seed(client)

    body = _generate(client)

    assert body["success"] is True
    assert body["placed_count"] == 3
    assert body["message"] == "Successfully generated 3 schedule entries"
    assert [s["day_of_week"] for s in body["schedules"]] == ["MONDAY", "WEDNESDAY", "FRIDAY"]

    week = client.get("/api/schedules/week", params={"start_date": WEEK}).json()
    assert len(week) == 3
    assert len(client.get("/api/schedules/date/2026-10-21").json()) == 1
    assert len(client.get(f"/api/schedules/teacher/{teacher['id']}").json()) == 3

    schedule_id = week[0]["id"]
    assert client.get(f"/api/schedules/{schedule_id}").json()["start_time"] == "08:00:00"

    runs = client.get("/api/schedules/runs").json()
    assert runs[0]["success"] is True
    assert runs[0]["placed_count"] == 3


def test_generate_without_catalog_reports_failure(client):
    body = client.post("/api/schedules/generate-optimized").json()
    assert body["success"] is False
    assert body["message"].startswith("Prerequisites not met")


def test_statistics_and_validate(client):
    _seed(client)
    _generate(client)

    stats = client.get("/api/schedules/statistics", params={"start_date": WEEK, "end_date": "2026-10-25"})
    assert stats.status_code == 200
    assert stats.json()["total_schedules"] == 3
    assert stats.json()["classroom_utilization"] == {"Lab 1": 3}

    bad = client.get("/api/schedules/statistics", params={"start_date": "2026-10-25", "end_date": WEEK})
    assert bad.status_code == 400

    report = client.post("/api/schedules/validate").json()
    assert report["is_valid"] is True
    assert report["total_violations"] == 0


def test_generate_weekly(client):
    _seed(client)
    payload = [
        {"subject_name": "Science", "day_of_week": "TUESDAY", "start_time": "10:00:00", "end_time": "11:00:00"},
        {"subject_name": "Science", "day_of_week": "TUESDAY", "start_time": "10:30:00", "end_time": "11:30:00"},
    ]

    response = client.post("/api/schedules/generate-weekly", params={"week_start": WEEK}, json=payload)

    assert response.status_code == 200, response.text
    placed = response.json()
    assert len(placed) == 1
    assert placed[0]["date"] == "2026-10-20"


def test_delete_and_clear(client):
    _seed(client)
    _generate(client)
    schedule_id = client.get("/api/schedules").json()[0]["id"]

    assert client.delete(f"/api/schedules/{schedule_id}").status_code == 200
    assert client.get(f"/api/schedules/{schedule_id}").status_code == 404

    cleared = client.delete("/api/schedules/clear").json()
    assert cleared["message"] == "Cleared 2 schedules"
    assert client.get("/api/schedules").json() == []


def test_export_csv(client):
    _seed(client)
    _generate(client)

    response = client.get("/api/export/schedules", params={"start_date": WEEK, "format": "csv"})

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    rows = list(csv.DictReader(io.StringIO(response.text)))
    assert list(rows[0].keys()) == ["Day", "Time", "Subject", "Teacher", "Classroom", "Section", "Status", "Block"]
    assert rows[0]["Time"] == "08:00-09:00"
    assert rows[0]["Teacher"] == "Ana Cruz"
    assert [r["Block"] for r in rows] == ["1", "2", "3"]


@pytest.mark.parametrize("fmt, magic", [
    ("pdf", b"%PDF"),
    ("xlsx", b"PK"),
    ("json", b"{"),
])
def test_export_binary_formats(client, fmt, magic):
    _seed(client)
    _generate(client)

    response = client.get("/api/export/schedules", params={"start_date": WEEK, "format": fmt})

    assert response.status_code == 200
    assert response.content.startswith(magic)


def test_export_rejects_unknown_format(client):
    response = client.get("/api/export/schedules", params={"format": "docx"})
    assert response.status_code == 400


def test_school_years_keep_one_active(client):
    assert client.get("/api/school-years/active").status_code == 404

    first = client.post("/api/school-years", json={
        "name": "2025-2026", "start_date": "2025-06-01", "end_date": "2026-03-31", "is_active": True,
    })
    assert first.status_code == 201, first.text
    second = client.post("/api/school-years", json={
        "name": "2026-2027", "start_date": "2026-06-01", "end_date": "2027-03-31", "is_active": True,
    })
    assert second.status_code == 201

    years = client.get("/api/school-years").json()
    assert [(y["name"], y["is_active"]) for y in years] == [("2026-2027", True), ("2025-2026", False)]

    activated = client.put(f"/api/school-years/{first.json()['id']}/activate")
    assert activated.status_code == 200
    assert client.get("/api/school-years/active").json()["name"] == "2025-2026"
    assert sum(y["is_active"] for y in client.get("/api/school-years").json()) == 1

    updated = client.put(f"/api/school-years/{second.json()['id']}", json={"is_active": True, "description": "Current"})
    assert updated.json()["description"] == "Current"
    assert client.get("/api/school-years/active").json()["name"] == "2026-2027"


def test_school_year_validation_and_delete(client):
    year = client.post("/api/school-years", json={
        "name": "2026-2027", "start_date": "2026-06-01", "end_date": "2027-03-31",
    }).json()
    assert year["is_active"] is False

    duplicate = client.post("/api/school-years", json={
        "name": "2026-2027", "start_date": "2026-06-01", "end_date": "2027-03-31",
    })
    assert duplicate.status_code == 400
    inverted = client.post("/api/school-years", json={
        "name": "2027-2028", "start_date": "2028-03-31", "end_date": "2027-06-01",
    })
    assert inverted.status_code == 400
    assert client.put(f"/api/school-years/{year['id']}", json={"end_date": "2026-01-01"}).status_code == 400

    assert client.delete(f"/api/school-years/{year['id']}").status_code == 200
    assert client.get(f"/api/school-years/{year['id']}").status_code == 404
    assert client.put("/api/school-years/999/activate").status_code == 404


def _meeting(client, **overrides):
    teacher = _seed(client)
    meeting = {
        "date": "2026-10-20",
        "start_time": "09:00:00",
        "end_time": "10:00:00",
        "teacher_id": teacher["id"],
        "classroom_id": client.get("/api/classrooms").json()[0]["id"],
        "subject_id": client.get("/api/subjects").json()[0]["id"],
        "section_id": client.get("/api/sections").json()[0]["id"],
    }
    meeting.update(overrides)
    return meeting


def test_create_schedule_by_hand(client):
    meeting = _meeting(client)

    created = client.post("/api/schedules", json=meeting)

    assert created.status_code == 201, created.text
    body = created.json()
    assert body["day_of_week"] == "TUESDAY"
    assert body["status"] == "SCHEDULED"
    assert body["run_id"] is None
    assert client.get(f"/api/schedules/{body['id']}").status_code == 200


def test_create_schedule_rejects_conflicts_and_bad_input(client):
    meeting = _meeting(client)
    assert client.post("/api/schedules", json=meeting).status_code == 201

    overlapping = client.post("/api/schedules", json=dict(meeting, start_time="09:30:00", end_time="10:30:00"))
    assert overlapping.status_code == 409
    touching = client.post("/api/schedules", json=dict(meeting, start_time="10:00:00", end_time="11:00:00"))
    assert touching.status_code == 201
    cancelled = client.post("/api/schedules", json=dict(meeting, status="CANCELLED"))
    assert cancelled.status_code == 201

    inverted = client.post("/api/schedules", json=dict(meeting, start_time="11:00:00", end_time="10:00:00"))
    assert inverted.status_code == 400
    unknown = client.post("/api/schedules", json=dict(meeting, date="2026-10-21", teacher_id=999))
    assert unknown.status_code == 404
    assert len(client.get("/api/schedules").json()) == 3


def test_update_schedule_checks_conflicts_except_itself(client):
    meeting = _meeting(client)
    first = client.post("/api/schedules", json=meeting).json()
    client.post("/api/schedules", json=dict(meeting, start_time="10:00:00", end_time="11:00:00"))

    clash = client.put(f"/api/schedules/{first['id']}", json={"start_time": "09:30:00", "end_time": "10:30:00"})
    assert clash.status_code == 409
    assert client.get(f"/api/schedules/{first['id']}").json()["start_time"] == "09:00:00"

    renamed = client.put(f"/api/schedules/{first['id']}", json={"notes": "Lab safety"})
    assert renamed.status_code == 200
    assert renamed.json()["notes"] == "Lab safety"

    moved = client.put(f"/api/schedules/{first['id']}", json={"date": "2026-10-21", "start_time": "09:30:00",
                                                             "end_time": "10:30:00"})
    assert moved.status_code == 200
    assert moved.json()["day_of_week"] == "WEDNESDAY"

    assert client.put("/api/schedules/999", json={"notes": "x"}).status_code == 404
