"""
Latest-session attendance counts for the dashboard widget.
"""
from typing import Any, Dict, Iterable, List, Mapping, Sequence

from catechism_app.schemas.dashboard import AttendanceSessionSummary

DEFAULT_ATTENDANCE_SESSIONS = ("Thứ 5", "Chủ nhật")
UNLABELED_SESSION = "Khác"


def summarize_recent_attendance(
    records: Iterable[Mapping[str, Any]],
    total_students: int,
    sessions: Sequence[str] = DEFAULT_ATTENDANCE_SESSIONS
) -> List[AttendanceSessionSummary]:
    """
    Present count of the most recent event per weekday label.

    ``pending`` is the number of students not yet marked present for that
    session.
    """
    present_by_day: Dict[tuple, int] = {}

    for record in records:
        event_date = str(record.get("event_date") or "")[:10]
        if not event_date:
            continue
        weekday = str(record.get("weekday") or "").strip() or UNLABELED_SESSION
        key = (weekday, event_date)
        present_by_day.setdefault(key, 0)
        if str(record.get("status") or "").lower() == "present":
            present_by_day[key] += 1

    latest: Dict[str, tuple] = {}
    for (weekday, event_date), present in present_by_day.items():
        existing = latest.get(weekday)
        if existing is None or event_date > existing[0]:
            latest[weekday] = (event_date, present)

    summaries = []
    for session in sessions:
        event_date, present = latest.get(session, (None, 0))
        summaries.append(AttendanceSessionSummary(
            session=session,
            event_date=event_date,
            present=present,
            pending=max(total_students - present, 0),
        ))
    return summaries
