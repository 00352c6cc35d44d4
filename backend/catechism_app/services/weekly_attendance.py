"""
Weekly de-duplication of attendance events.

Attendance is counted per ISO week, not per event: a student earns at most
one thursday flag and one sunday flag per week, however many rows exist.
"""
import logging
from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, Iterable, Mapping, Optional

from catechism_app.services.scoring import AttendanceScoreResult, calculate_weekly_attendance_score
from catechism_app.services.weekday import (
    NormalizedWeekday, is_present_status, parse_event_date, resolve_weekday
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AttendanceRecord:
    student_id: Optional[str]
    event_date: Any
    weekday_label: Optional[str] = None
    status: Optional[str] = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "AttendanceRecord":
        weekday = row.get("weekday_label")
        if weekday is None:
            weekday = row.get("weekday")
        student_id = row.get("student_id")
        return cls(
            student_id=str(student_id) if student_id is not None else None,
            event_date=row.get("event_date"),
            weekday_label=weekday,
            status=row.get("status"),
        )


@dataclass
class WeeklyAttendanceSummary:
    week_key: str
    has_thursday_present: bool = False
    has_sunday_present: bool = False


@dataclass(frozen=True)
class StudentWeeklyAttendance:
    student_id: str
    weeks_with_thursday: int
    weeks_with_sunday: int


def get_week_identifier(value: Any) -> Optional[str]:
    """ISO-8601 week key ``YYYY-Www``; the year is the ISO year of the week's Thursday."""
    parsed = value if isinstance(value, date) else parse_event_date(value)
    if parsed is None:
        return None
    iso_year, iso_week, _ = parsed.isocalendar()
    return f"{iso_year}-W{iso_week:02d}"


def _as_record(item: Any) -> AttendanceRecord:
    if isinstance(item, AttendanceRecord):
        return item
    return AttendanceRecord.from_row(item)


def group_attendance_by_student_and_week(
    records: Iterable[Any]
) -> Dict[str, Dict[str, WeeklyAttendanceSummary]]:
    """
    Fold present attendance events into per-student, per-week summaries.

    Rows without a student or a date, rows whose status is not an explicit
    presence marker, and rows whose weekday classifies as ``other`` are
    skipped.  Flags are OR-ed, so duplicates and ordering do not matter.
    """
    student_weeks: Dict[str, Dict[str, WeeklyAttendanceSummary]] = {}

    for item in records:
        record = _as_record(item)
        student_id = (record.student_id or "").strip()
        event_date = parse_event_date(record.event_date)

        if not student_id or event_date is None:
            continue
        if not is_present_status(record.status):
            continue

        week_key = get_week_identifier(event_date)
        if not week_key:
            continue

        weekday = resolve_weekday(record.weekday_label, event_date)
        if weekday is NormalizedWeekday.OTHER:
            continue

        week_map = student_weeks.setdefault(student_id, {})
        summary = week_map.get(week_key)
        if summary is None:
            summary = WeeklyAttendanceSummary(week_key=week_key)
            week_map[week_key] = summary

        if weekday is NormalizedWeekday.SUNDAY:
            summary.has_sunday_present = True
        else:
            summary.has_thursday_present = True

    return student_weeks


def calculate_student_weekly_attendance(
    student_id: str,
    week_map: Mapping[str, WeeklyAttendanceSummary]
) -> StudentWeeklyAttendance:
    weeks_with_thursday = sum(1 for summary in week_map.values() if summary.has_thursday_present)
    weeks_with_sunday = sum(1 for summary in week_map.values() if summary.has_sunday_present)
    return StudentWeeklyAttendance(
        student_id=student_id,
        weeks_with_thursday=weeks_with_thursday,
        weeks_with_sunday=weeks_with_sunday,
    )


def calculate_bulk_attendance_scores(
    records: Iterable[Any],
    total_weeks: int
) -> Dict[str, AttendanceScoreResult]:
    """Attendance score for every student that has at least one present week."""
    results: Dict[str, AttendanceScoreResult] = {}
    for student_id, week_map in group_attendance_by_student_and_week(records).items():
        weekly = calculate_student_weekly_attendance(student_id, week_map)
        results[student_id] = calculate_weekly_attendance_score(
            weekly.weeks_with_thursday,
            weekly.weeks_with_sunday,
            total_weeks,
        )
    logger.debug(f"Calculated weekly attendance scores for {len(results)} students")
    return results
