"""
Score formulas for attendance, catechism grades and the combined total.

All results are rounded half-up to two decimals.  Missing grade components
are counted as zero (a partially graded student gets a diluted average);
only a completely empty input yields None.
"""
import math
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, Optional

from catechism_app.utils.text import to_number_or_none

THURSDAY_WEIGHT = 0.4
SUNDAY_WEIGHT = 0.6
MAX_SCORE = 10
CATECHISM_WEIGHT = 0.6
ATTENDANCE_WEIGHT = 0.4
EXAM_COEFFICIENT = 2
CATECHISM_DIVISOR = 6

MIN_GRADE = 0.0
MAX_GRADE = 10.0

# API field name -> students table column
GRADE_FIELD_TO_COLUMN: Dict[str, str] = {
    "semester_1_45min": "academic_hk1_fortyfive",
    "semester_1_exam": "academic_hk1_exam",
    "semester_2_45min": "academic_hk2_fortyfive",
    "semester_2_exam": "academic_hk2_exam",
}


class GradeValidationError(ValueError):
    """Raised when a grade written directly is not a number within [0, 10]."""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.field = field


def round_score(value: float, decimals: int = 2) -> float:
    quantum = Decimal(1).scaleb(-decimals)
    return float(Decimal(repr(value)).quantize(quantum, rounding=ROUND_HALF_UP))


@dataclass(frozen=True)
class AttendanceScoreResult:
    weeks_with_thursday: int
    weeks_with_sunday: int
    total_weeks: int
    score: Optional[float]


@dataclass(frozen=True)
class GradeRecord:
    semester_1_45min: Optional[float] = None
    semester_1_exam: Optional[float] = None
    semester_2_45min: Optional[float] = None
    semester_2_exam: Optional[float] = None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "GradeRecord":
        """Read grade columns from a students row; unparseable values become None."""
        return cls(
            semester_1_45min=to_number_or_none(row.get("academic_hk1_fortyfive")),
            semester_1_exam=to_number_or_none(row.get("academic_hk1_exam")),
            semester_2_45min=to_number_or_none(row.get("academic_hk2_fortyfive")),
            semester_2_exam=to_number_or_none(row.get("academic_hk2_exam")),
        )

    def is_empty(self) -> bool:
        return (
            self.semester_1_45min is None
            and self.semester_1_exam is None
            and self.semester_2_45min is None
            and self.semester_2_exam is None
        )

    def average(self) -> Optional[float]:
        return calculate_catechism_average(
            self.semester_1_45min,
            self.semester_1_exam,
            self.semester_2_45min,
            self.semester_2_exam,
        )


def calculate_weekly_attendance_score(
    weeks_with_thursday: int,
    weeks_with_sunday: int,
    total_weeks: int
) -> AttendanceScoreResult:
    """
    Score = (weeks_with_thursday * 0.4 + weeks_with_sunday * 0.6) * (10 / total_weeks)

    A non-positive ``total_weeks`` means the academic year is not configured;
    the score is then None rather than zero.
    """
    if total_weeks is None or total_weeks <= 0:
        return AttendanceScoreResult(
            weeks_with_thursday=weeks_with_thursday,
            weeks_with_sunday=weeks_with_sunday,
            total_weeks=total_weeks,
            score=None,
        )

    weighted_sum = weeks_with_thursday * THURSDAY_WEIGHT + weeks_with_sunday * SUNDAY_WEIGHT
    score = weighted_sum * (MAX_SCORE / total_weeks)

    return AttendanceScoreResult(
        weeks_with_thursday=weeks_with_thursday,
        weeks_with_sunday=weeks_with_sunday,
        total_weeks=total_weeks,
        score=round_score(score),
    )


def calculate_simple_attendance_score(
    present: Optional[float],
    total: Optional[float]
) -> Optional[float]:
    """Legacy score for sources that only report present/total counts."""
    if present is None or total is None or total == 0:
        return None
    return round_score((present / total) * MAX_SCORE)


def calculate_semester_attendance_average(
    hk1_present: Optional[float] = None,
    hk1_total: Optional[float] = None,
    hk2_present: Optional[float] = None,
    hk2_total: Optional[float] = None
) -> Optional[float]:
    """Legacy score over both semesters' present/total counters."""
    total_sessions = (hk1_total or 0) + (hk2_total or 0)
    total_present = (hk1_present or 0) + (hk2_present or 0)
    if total_sessions == 0:
        return None
    return calculate_simple_attendance_score(total_present, total_sessions)


def calculate_catechism_average(
    semester_1_45min: Optional[float] = None,
    semester_1_exam: Optional[float] = None,
    semester_2_45min: Optional[float] = None,
    semester_2_exam: Optional[float] = None
) -> Optional[float]:
    """(45min_S1 + 45min_S2 + 2 * exam_S1 + 2 * exam_S2) / 6"""
    if (
        semester_1_45min is None
        and semester_1_exam is None
        and semester_2_45min is None
        and semester_2_exam is None
    ):
        return None

    total = (
        (semester_1_45min or 0)
        + (semester_2_45min or 0)
        + (semester_1_exam or 0) * EXAM_COEFFICIENT
        + (semester_2_exam or 0) * EXAM_COEFFICIENT
    )
    return round_score(total / CATECHISM_DIVISOR)


def calculate_total_score(
    catechism_avg: Optional[float],
    attendance_avg: Optional[float]
) -> Optional[float]:
    """catechism_avg * 0.6 + attendance_avg * 0.4, a missing side counting as 0."""
    if catechism_avg is None and attendance_avg is None:
        return None
    return round_score(
        (catechism_avg or 0) * CATECHISM_WEIGHT + (attendance_avg or 0) * ATTENDANCE_WEIGHT
    )


def parse_grade_value(raw: Any, field: Optional[str] = None) -> Optional[float]:
    """
    Validate a grade submitted for a direct write.

    Returns None for an empty value, the value rounded to two decimals when it
    lies within [0, 10], and raises GradeValidationError otherwise.
    """
    if raw is None:
        return None
    if isinstance(raw, str) and not raw.strip():
        return None

    value = to_number_or_none(raw)
    if value is None or not math.isfinite(value):
        raise GradeValidationError("Điểm phải nằm trong khoảng từ 0 đến 10.", field=field)

    normalized = round_score(value)
    if normalized < MIN_GRADE or normalized > MAX_GRADE:
        raise GradeValidationError("Điểm phải nằm trong khoảng từ 0 đến 10.", field=field)
    return normalized


def extract_grade_updates(payload: Dict[str, Any]) -> Dict[str, Optional[float]]:
    """Map submitted grade fields to column updates, validating each value."""
    updates: Dict[str, Optional[float]] = {}
    for field, column in GRADE_FIELD_TO_COLUMN.items():
        if field not in payload:
            continue
        updates[column] = parse_grade_value(payload[field], field=field)

    if not updates:
        raise GradeValidationError("Không có trường điểm hợp lệ được cung cấp.")
    return updates
