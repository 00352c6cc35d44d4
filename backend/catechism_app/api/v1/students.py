"""
Per-student grade writes and score lookups.
"""
import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from catechism_app.core.database import get_db
from catechism_app.models import AcademicYear, AttendanceRecordRow, Student
from catechism_app.schemas.student import GradeUpdateResponse, StudentGrades, StudentScoreCard
from catechism_app.services.scoring import GradeRecord, GradeValidationError, extract_grade_updates
from catechism_app.services.student_scores import StudentScoreCalculator

logger = logging.getLogger(__name__)

router = APIRouter()


def _student_row(student: Student) -> Dict[str, Any]:
    return {column.key: getattr(student, column.key) for column in Student.__table__.columns}


async def _current_academic_year(db: AsyncSession) -> Optional[AcademicYear]:
    result = await db.execute(
        select(AcademicYear).where(AcademicYear.is_current.is_(True)).limit(1)
    )
    return result.scalars().first()


async def _score_card(db: AsyncSession, student: Student, total_weeks: Optional[int]) -> StudentScoreCard:
    academic_year = await _current_academic_year(db)
    if total_weeks is not None:
        weeks = total_weeks
    else:
        weeks = (academic_year.total_weeks if academic_year else None) or 0

    if academic_year is None:
        # Events cannot be bounded without an academic year
        return StudentScoreCalculator(weeks).score(_student_row(student))

    stmt = select(AttendanceRecordRow).where(
        AttendanceRecordRow.student_id == student.id,
        AttendanceRecordRow.event_date >= academic_year.start_date,
    )
    if academic_year.end_date is not None:
        stmt = stmt.where(AttendanceRecordRow.event_date <= academic_year.end_date)
    result = await db.execute(stmt)
    records = [
        {
            "student_id": row.student_id,
            "event_date": row.event_date,
            "weekday": row.weekday,
            "status": row.status,
        }
        for row in result.scalars().all()
    ]
    # Without any event rows fall back to the legacy semester counters
    return StudentScoreCalculator(weeks).score(_student_row(student), records or None)


@router.patch("/{student_id}/grades", response_model=GradeUpdateResponse)
@router.put("/{student_id}/grades", response_model=GradeUpdateResponse)
async def update_student_grades(
    student_id: str,
    payload: Dict[str, Any] = Body(...),
    db: AsyncSession = Depends(get_db)
):
    """Write catechism grades; every value must be empty or within [0, 10]."""
    try:
        updates = extract_grade_updates(payload)
    except GradeValidationError as e:
        raise HTTPException(status_code=400, detail=e.message)

    student = await db.get(Student, student_id)
    if student is None:
        raise HTTPException(status_code=404, detail="Student not found.")

    for column, value in updates.items():
        setattr(student, column, value)

    await db.commit()
    await db.refresh(student)
    logger.info(f"Updated grades for student {student_id}: {sorted(updates)}")

    grades = GradeRecord.from_row(_student_row(student))
    return GradeUpdateResponse(
        id=student.id,
        grades=StudentGrades(
            semester_1_45min=grades.semester_1_45min,
            semester_1_exam=grades.semester_1_exam,
            semester_2_45min=grades.semester_2_45min,
            semester_2_exam=grades.semester_2_exam,
        ),
        scores=await _score_card(db, student, None),
    )


@router.get("/{student_id}/scores", response_model=StudentScoreCard)
async def get_student_scores(
    student_id: str,
    total_weeks: Optional[int] = Query(None),
    db: AsyncSession = Depends(get_db)
):
    student = await db.get(Student, student_id)
    if student is None:
        raise HTTPException(status_code=404, detail="Student not found.")
    return await _score_card(db, student, total_weeks)
