"""
Tests for ISO-week grouping and de-duplication of attendance events.
"""

import pytest
from datetime import date

from catechism_app.services.weekly_attendance import (
    AttendanceRecord, get_week_identifier, group_attendance_by_student_and_week,
    calculate_student_weekly_attendance, calculate_bulk_attendance_scores
)


def record(student_id, event_date, status="present", weekday=None):
    return {"student_id": student_id, "event_date": event_date, "status": status, "weekday": weekday}


class TestWeekIdentifier:
    """ISO-8601 week keys."""

    @pytest.mark.parametrize("value,expected", [
        ("2024-09-05", "2024-W36"),
        ("2021-01-03", "2020-W53"),   # Sunday belonging to the last ISO week of 2020
        ("2019-12-30", "2020-W01"),   # Monday belonging to the first ISO week of 2020
        ("2026-01-01", "2026-W01"),
        (date(2024, 12, 29), "2024-W52"),
    ])
    def test_iso_week_keys(self, value, expected):
        assert get_week_identifier(value) == expected

    def test_invalid_date(self):
        assert get_week_identifier("garbage") is None
        assert get_week_identifier(None) is None


class TestGrouping:
    """Per-student weekly folding."""

    def test_same_sunday_record_twice_counts_once(self):
        rows = [record("s1", "2024-09-08"), record("s1", "2024-09-08")]
        weeks = group_attendance_by_student_and_week(rows)

        assert list(weeks) == ["s1"]
        summary = weeks["s1"]["2024-W36"]
        assert summary.has_sunday_present is True
        assert summary.has_thursday_present is False

        weekly = calculate_student_weekly_attendance("s1", weeks["s1"])
        assert weekly.weeks_with_sunday == 1
        assert weekly.weeks_with_thursday == 0

    def test_midweek_events_collapse_into_one_thursday(self):
        rows = [record("s1", "2024-09-03"), record("s1", "2024-09-05"), record("s1", "2024-09-07")]
        weekly = calculate_student_weekly_attendance(
            "s1", group_attendance_by_student_and_week(rows)["s1"]
        )
        assert weekly.weeks_with_thursday == 1

    def test_order_independent(self):
        rows = [
            record("s1", "2024-09-05"),
            record("s1", "2024-09-08"),
            record("s1", "2024-09-12", status="absent"),
            record("s1", "2024-09-15"),
        ]
        forward = group_attendance_by_student_and_week(rows)
        backward = group_attendance_by_student_and_week(list(reversed(rows)))
        assert forward == backward

    def test_skipped_rows(self):
        rows = [
            record(None, "2024-09-05"),
            record("  ", "2024-09-05"),
            record("s1", None),
            record("s1", "bad-date"),
            record("s1", "2024-09-05", status="absent"),
            record("s1", "2024-09-05", status="late"),
            record("s1", "2024-09-05", status=None),
        ]
        assert group_attendance_by_student_and_week(rows) == {}

    def test_weekday_label_overrides_date(self):
        rows = [record("s1", "2024-09-08", weekday="Thứ 5")]
        summary = group_attendance_by_student_and_week(rows)["s1"]["2024-W36"]
        assert summary.has_thursday_present is True
        assert summary.has_sunday_present is False

    def test_accepts_record_objects_and_trims_ids(self):
        rows = [
            AttendanceRecord(student_id=" s1 ", event_date="2024-09-08T09:00:00", status="P"),
            AttendanceRecord.from_row({"student_id": "s1", "event_date": "2024-09-05", "weekday_label": "T5", "status": "x"}),
        ]
        weeks = group_attendance_by_student_and_week(rows)
        summary = weeks["s1"]["2024-W36"]
        assert summary.has_sunday_present and summary.has_thursday_present


class TestBulkScores:

    def test_bulk_scores(self):
        rows = [
            record("s1", "2024-09-05"), record("s1", "2024-09-08"),
            record("s1", "2024-09-12"), record("s1", "2024-09-15"),
            record("s2", "2024-09-08"),
        ]
        scores = calculate_bulk_attendance_scores(rows, total_weeks=10)

        # s1: (2 * 0.4 + 2 * 0.6) * (10 / 10) = 2.0
        assert scores["s1"].weeks_with_thursday == 2
        assert scores["s1"].weeks_with_sunday == 2
        assert scores["s1"].score == 2.0
        # s2: 0.6 * 1 = 0.6
        assert scores["s2"].score == 0.6

    def test_bulk_scores_without_academic_year(self):
        scores = calculate_bulk_attendance_scores([record("s1", "2024-09-08")], total_weeks=0)
        assert scores["s1"].score is None
