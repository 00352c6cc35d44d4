from pydantic import BaseModel
from typing import Optional


class StudentGrades(BaseModel):
    semester_1_45min: Optional[float] = None
    semester_1_exam: Optional[float] = None
    semester_2_45min: Optional[float] = None
    semester_2_exam: Optional[float] = None


class AttendanceScore(BaseModel):
    weeks_with_thursday: int
    weeks_with_sunday: int
    total_weeks: int
    score: Optional[float] = None  # None when the academic year has no weeks configured


class StudentScoreCard(BaseModel):
    student_id: str
    grades: StudentGrades
    catechism_avg: Optional[float] = None
    attendance: Optional[AttendanceScore] = None
    attendance_avg: Optional[float] = None
    total_score: Optional[float] = None


class GradeUpdateResponse(BaseModel):
    id: str
    grades: StudentGrades
    scores: StudentScoreCard
