"""
Tests for the recent attendance widget summary.
"""

from catechism_app.services.attendance_summary import summarize_recent_attendance


def test_latest_event_per_session():
    records = [
        {"event_date": "2024-09-01", "weekday": "Chủ nhật", "status": "present"},
        {"event_date": "2024-09-08", "weekday": "Chủ nhật", "status": "absent"},
        {"event_date": "2024-09-08", "weekday": "Chủ nhật", "status": "Present"},
        {"event_date": "2024-09-05", "weekday": " Thứ 5 ", "status": "present"},
        {"event_date": "2024-09-05", "weekday": None, "status": "present"},
        {"event_date": None, "weekday": "Thứ 5", "status": "present"},
    ]

    summaries = summarize_recent_attendance(records, total_students=1)

    assert summaries[0].session == "Thứ 5"
    assert summaries[0].event_date == "2024-09-05"
    assert summaries[0].present == 1
    assert summaries[0].pending == 0

    assert summaries[1].session == "Chủ nhật"
    assert summaries[1].event_date == "2024-09-08"
    assert summaries[1].present == 1
    assert summaries[1].pending == 0


def test_sessions_without_events():
    summaries = summarize_recent_attendance([], total_students=12)
    assert [(s.session, s.event_date, s.present, s.pending) for s in summaries] == [
        ("Thứ 5", None, 0, 12),
        ("Chủ nhật", None, 0, 12),
    ]


def test_custom_sessions_and_unlabeled_bucket():
    records = [{"event_date": "2024-09-07", "weekday": "", "status": "present"}]
    summaries = summarize_recent_attendance(records, total_students=3, sessions=["Khác"])
    assert summaries[0].present == 1
    assert summaries[0].pending == 2
