from pydantic import BaseModel, Field
from typing import Optional, List


class SectorMetrics(BaseModel):
    sector: str
    total_classes: int = 0
    total_students: int = 0
    total_teachers: int = 0
    attendance_avg: Optional[float] = None  # None when no student had attendance data
    study_avg: Optional[float] = None


class SummaryMetrics(BaseModel):
    academic_year: str = "Chưa cập nhật"
    total_weeks: int = 0
    sectors: int = 0
    classes: int = 0
    students: int = 0
    teachers: int = 0


class DashboardMetrics(BaseModel):
    summary: SummaryMetrics
    sector_metrics: List[SectorMetrics] = Field(default_factory=list)


class AttendanceSessionSummary(BaseModel):
    session: str
    event_date: Optional[str] = None
    present: int = 0
    pending: int = 0


class DashboardResponse(BaseModel):
    summary: SummaryMetrics
    sector_metrics: List[SectorMetrics]
    recent_attendance: List[AttendanceSessionSummary] = []
