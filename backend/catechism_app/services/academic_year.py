"""
Academic-year week counts.

``total_weeks`` normalizes attendance scores to the 0-10 scale, so every
academic year stores it; when it is not entered it is derived from the dates.
"""
import math
from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, Mapping, Optional

from catechism_app.services.weekday import parse_event_date
from catechism_app.utils.text import to_number_or_none


class AcademicYearValidationError(ValueError):
    """Raised when academic-year dates are missing or out of order."""
    pass


@dataclass
class AcademicYearInput:
    name: str
    start_date: Any
    end_date: Any
    semester1_start: Any
    semester1_end: Any
    semester2_start: Any
    semester2_end: Any
    total_weeks: Optional[float] = None
    semester1_weeks: Optional[float] = None
    semester2_weeks: Optional[float] = None
    is_current: bool = False


def calculate_weeks_between(start: date, end: date) -> int:
    """Number of (partial) weeks covering ``start``..``end`` inclusive, at least 1."""
    days = (end - start).days + 1
    return max(1, math.ceil(days / 7))


def normalize_weeks(value: Any, fallback: int) -> int:
    number = to_number_or_none(value)
    if number is None:
        return fallback
    return max(1, int(round(number)))


def build_academic_year_payload(data: AcademicYearInput) -> Dict[str, Any]:
    """Validate an academic year and fill in derived week counts."""
    name = (data.name or "").strip()
    if not name:
        raise AcademicYearValidationError("Vui lòng nhập tên năm học.")

    start = parse_event_date(data.start_date)
    end = parse_event_date(data.end_date)
    sem1_start = parse_event_date(data.semester1_start)
    sem1_end = parse_event_date(data.semester1_end)
    sem2_start = parse_event_date(data.semester2_start)
    sem2_end = parse_event_date(data.semester2_end)

    if None in (start, end, sem1_start, sem1_end, sem2_start, sem2_end):
        raise AcademicYearValidationError("Ngày tháng không hợp lệ. Vui lòng chọn lại.")
    if start > end:
        raise AcademicYearValidationError("Ngày bắt đầu phải trước ngày kết thúc năm học.")
    if sem1_start < start or sem1_end < sem1_start:
        raise AcademicYearValidationError("Thời gian học kỳ 1 không hợp lệ.")
    if sem2_start <= sem1_end or sem2_end < sem2_start:
        raise AcademicYearValidationError("Thời gian học kỳ 2 phải sau học kỳ 1 và hợp lệ.")
    if sem2_end > end:
        raise AcademicYearValidationError("Ngày kết thúc học kỳ 2 phải nằm trong năm học.")

    return {
        "name": name,
        "start_date": start,
        "end_date": end,
        "semester1_start": sem1_start,
        "semester1_end": sem1_end,
        "semester2_start": sem2_start,
        "semester2_end": sem2_end,
        "total_weeks": normalize_weeks(data.total_weeks, calculate_weeks_between(start, end)),
        "semester1_weeks": normalize_weeks(
            data.semester1_weeks, calculate_weeks_between(sem1_start, sem1_end)
        ),
        "semester2_weeks": normalize_weeks(
            data.semester2_weeks, calculate_weeks_between(sem2_start, sem2_end)
        ),
        "is_current": bool(data.is_current),
    }


def resolve_total_weeks(
    explicit: Optional[int],
    academic_year: Optional[Mapping[str, Any]],
    summary: Optional[Mapping[str, Any]],
    default: int = 0
) -> int:
    """Explicit value, then the current academic year, then the summary row."""
    candidates = (
        explicit,
        (academic_year or {}).get("total_weeks"),
        (summary or {}).get("total_weeks"),
    )
    for candidate in candidates:
        number = to_number_or_none(candidate)
        if number is not None:
            return int(number)
    return default
