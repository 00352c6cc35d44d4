"""
Single-student scoring, independent of the sector aggregation.
"""
from dataclasses import asdict
from typing import Any, Iterable, Mapping, Optional

from catechism_app.schemas.student import AttendanceScore, StudentGrades, StudentScoreCard
from catechism_app.services.scoring import (
    GradeRecord, calculate_semester_attendance_average, calculate_total_score,
    calculate_weekly_attendance_score
)
from catechism_app.services.weekly_attendance import (
    AttendanceRecord, calculate_student_weekly_attendance, group_attendance_by_student_and_week
)
from catechism_app.utils.text import to_number_or_none


class StudentScoreCalculator:
    """Compute a score card for one student row.

    With per-event attendance records the weekly formula is used; without
    them the legacy semester present/total counters on the row are used.
    """

    def __init__(self, total_weeks: int = 0):
        self.total_weeks = total_weeks

    def score(
        self,
        student: Mapping[str, Any],
        attendance_records: Optional[Iterable[Any]] = None,
        total_weeks: Optional[int] = None
    ) -> StudentScoreCard:
        student_id = str(student.get("id") or "").strip()
        weeks = self.total_weeks if total_weeks is None else total_weeks

        grades = GradeRecord.from_row(student)
        catechism_avg = grades.average()

        attendance = None
        if attendance_records is not None:
            own_records = [
                record for record in (
                    item if isinstance(item, AttendanceRecord) else AttendanceRecord.from_row(item)
                    for item in attendance_records
                )
                if (record.student_id or "").strip() == student_id
            ]
            week_map = group_attendance_by_student_and_week(own_records).get(student_id, {})
            weekly = calculate_student_weekly_attendance(student_id, week_map)
            result = calculate_weekly_attendance_score(
                weekly.weeks_with_thursday, weekly.weeks_with_sunday, weeks
            )
            attendance = AttendanceScore(**asdict(result))
            attendance_avg = result.score
        else:
            attendance_avg = calculate_semester_attendance_average(
                to_number_or_none(student.get("attendance_hk1_present")),
                to_number_or_none(student.get("attendance_hk1_total")),
                to_number_or_none(student.get("attendance_hk2_present")),
                to_number_or_none(student.get("attendance_hk2_total")),
            )

        return StudentScoreCard(
            student_id=student_id,
            grades=StudentGrades(**asdict(grades)),
            catechism_avg=catechism_avg,
            attendance=attendance,
            attendance_avg=attendance_avg,
            total_score=calculate_total_score(catechism_avg, attendance_avg),
        )
