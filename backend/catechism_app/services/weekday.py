"""
Weekday and attendance-status classification.

The parish only distinguishes the Sunday gathering from the midweek
gathering, so every non-Sunday weekday is classified as ``thursday``.
"""
import enum
from datetime import date, datetime
from typing import Any, Optional

from catechism_app.utils.text import normalize_text


class NormalizedWeekday(str, enum.Enum):
    THURSDAY = "thursday"
    SUNDAY = "sunday"
    OTHER = "other"


class AttendanceStatusClass(str, enum.Enum):
    PRESENT = "present"
    ABSENT = "absent"
    UNKNOWN = "unknown"


PRESENT_STATUS_TOKENS = frozenset({
    "PRESENT", "YES", "TRUE", "1", "ATTEND", "ATTENDED", "CO", "X", "P",
})
ABSENT_STATUS_TOKENS = frozenset({
    "ABSENT", "NO", "FALSE", "0", "VANG", "NGHI",
})

SUNDAY_LABEL_SUBSTRINGS = ("SUNDAY", "CHUNHAT")
SUNDAY_LABEL_EXACT = frozenset({"CN", "SUN"})
THURSDAY_LABEL_SUBSTRINGS = ("THURSDAY", "THUNAM", "THU5")
THURSDAY_LABEL_EXACT = frozenset({"T5"})


def classify_status(status: Any) -> AttendanceStatusClass:
    normalized = normalize_text(status)
    if not normalized:
        return AttendanceStatusClass.UNKNOWN
    if normalized in PRESENT_STATUS_TOKENS:
        return AttendanceStatusClass.PRESENT
    if normalized in ABSENT_STATUS_TOKENS:
        return AttendanceStatusClass.ABSENT
    return AttendanceStatusClass.UNKNOWN


def is_present_status(status: Any) -> bool:
    """Only an explicit presence marker counts; unknown statuses do not."""
    return classify_status(status) is AttendanceStatusClass.PRESENT


def parse_event_date(value: Any) -> Optional[date]:
    """Parse a calendar date from a date, datetime or ISO-prefixed string."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()[:10]
    if not text:
        return None
    try:
        return date.fromisoformat(text)
    except ValueError:
        return None


def _classify_label(weekday_label: Any) -> Optional[NormalizedWeekday]:
    normalized = normalize_text(weekday_label)
    if not normalized:
        return None
    if normalized in SUNDAY_LABEL_EXACT or any(token in normalized for token in SUNDAY_LABEL_SUBSTRINGS):
        return NormalizedWeekday.SUNDAY
    if normalized in THURSDAY_LABEL_EXACT or any(token in normalized for token in THURSDAY_LABEL_SUBSTRINGS):
        return NormalizedWeekday.THURSDAY
    return None


def resolve_weekday(weekday_label: Any = None, event_date: Any = None) -> NormalizedWeekday:
    """
    Classify an attendance event as thursday, sunday or other.

    The explicit label wins when it is recognizable; otherwise the calendar
    date decides (Sunday -> sunday, Monday..Saturday -> thursday).
    """
    from_label = _classify_label(weekday_label)
    if from_label is not None:
        return from_label

    parsed = parse_event_date(event_date)
    if parsed is None:
        return NormalizedWeekday.OTHER

    # date.weekday(): Monday == 0 ... Sunday == 6
    if parsed.weekday() == 6:
        return NormalizedWeekday.SUNDAY
    return NormalizedWeekday.THURSDAY
