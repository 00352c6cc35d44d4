"""
Tests for grade writes and score lookups.
"""

import asyncio
import pytest
from datetime import date
from fastapi.testclient import TestClient

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy import update
from sqlalchemy.pool import NullPool

from catechism_app.core.database import Base, get_db
from catechism_app.main import app
from catechism_app.models import AcademicYear, AttendanceRecordRow, Student


async def _seed(session_factory, engine):
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with session_factory() as session:
        session.add_all([
            Student(
                id="s1", class_id="c1", full_name="Giuse A",
                academic_hk1_fortyfive=8, academic_hk1_exam=9,
                academic_hk2_fortyfive=7, academic_hk2_exam=8,
            ),
            Student(
                id="s2", class_id="c1", full_name="Maria B",
                attendance_hk1_present=9, attendance_hk1_total=10,
                attendance_hk2_present=8, attendance_hk2_total=10,
            ),
            AttendanceRecordRow(student_id="s1", event_date=date(2024, 9, 5), weekday="Thứ 5", status="present"),
            AttendanceRecordRow(student_id="s1", event_date=date(2024, 9, 8), weekday="Chủ nhật", status="present"),
            AttendanceRecordRow(student_id="s1", event_date=date(2025, 6, 8), weekday="Chủ nhật", status="present"),
            AcademicYear(
                name="2024-2025", start_date=date(2024, 9, 1), end_date=date(2025, 5, 31),
                total_weeks=4, is_current=True
            ),
        ])
        await session.commit()


@pytest.fixture
def session_factory(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'students.db'}", poolclass=NullPool)
    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    asyncio.run(_seed(factory, engine))
    yield factory
    asyncio.run(engine.dispose())


@pytest.fixture
def client(session_factory):
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


class TestUpdateGrades:

    def test_patch_rounds_and_rescores(self, client):
        response = client.patch("/api/v1/students/s1/grades", json={"semester_1_exam": "9.555"})

        assert response.status_code == 200
        data = response.json()
        assert data["id"] == "s1"
        assert data["grades"]["semester_1_exam"] == 9.56
        assert data["grades"]["semester_1_45min"] == 8.0
        # (8 + 7 + 2 * 9.56 + 2 * 8) / 6
        assert data["scores"]["catechism_avg"] == 8.35

    def test_put_clears_grade(self, client):
        response = client.put("/api/v1/students/s1/grades", json={"semester_2_45min": ""})

        assert response.status_code == 200
        assert response.json()["grades"]["semester_2_45min"] is None

        scores = client.get("/api/v1/students/s1/scores").json()
        assert scores["grades"]["semester_2_45min"] is None

    @pytest.mark.parametrize("value", [11, -0.5, "abc", True, 10 ** 400, "1E+400"])
    def test_rejects_out_of_range(self, client, value):
        response = client.patch("/api/v1/students/s1/grades", json={"semester_1_exam": value})

        assert response.status_code == 400
        assert response.json()["detail"] == "Điểm phải nằm trong khoảng từ 0 đến 10."

    def test_rejects_payload_without_grade_fields(self, client):
        response = client.patch("/api/v1/students/s1/grades", json={"notes": "x"})
        assert response.status_code == 400

    def test_unknown_student(self, client):
        response = client.patch("/api/v1/students/missing/grades", json={"semester_1_exam": 5})
        assert response.status_code == 404


class TestStudentScores:

    def test_weekly_attendance_from_current_year(self, client):
        response = client.get("/api/v1/students/s1/scores")

        assert response.status_code == 200
        data = response.json()
        assert data["catechism_avg"] == 8.17
        assert data["attendance"]["weeks_with_thursday"] == 1
        assert data["attendance"]["weeks_with_sunday"] == 1
        assert data["attendance"]["total_weeks"] == 4
        assert data["attendance_avg"] == 2.5
        assert data["total_score"] == 5.9

    def test_total_weeks_query(self, client):
        data = client.get("/api/v1/students/s1/scores", params={"total_weeks": 10}).json()
        assert data["attendance_avg"] == 1.0

    def test_legacy_counters_without_events(self, client):
        data = client.get("/api/v1/students/s2/scores").json()

        assert data["attendance"] is None
        assert data["attendance_avg"] == 8.5
        assert data["catechism_avg"] is None
        assert data["total_score"] == 3.4

    def test_unknown_student(self, client):
        assert client.get("/api/v1/students/missing/scores").status_code == 404

    def test_events_after_year_end_are_ignored(self, client):
        data = client.get("/api/v1/students/s1/scores", params={"total_weeks": 1}).json()

        # The June Sunday falls after the academic year ends
        assert data["attendance"]["weeks_with_sunday"] == 1
        assert data["attendance_avg"] == 10.0

    def test_no_current_year_uses_legacy_counters(self, client, session_factory):
        async def close_year():
            async with session_factory() as session:
                await session.execute(update(AcademicYear).values(is_current=False))
                await session.commit()

        asyncio.run(close_year())

        data = client.get("/api/v1/students/s1/scores", params={"total_weeks": 30}).json()

        assert data["attendance"] is None
        assert data["attendance_avg"] is None
        assert data["catechism_avg"] == 8.17
