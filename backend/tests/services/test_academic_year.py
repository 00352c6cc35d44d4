"""
Tests for academic-year week counting and validation.
"""

import pytest
from datetime import date

from catechism_app.services.academic_year import (
    AcademicYearInput, AcademicYearValidationError, build_academic_year_payload,
    calculate_weeks_between, normalize_weeks, resolve_total_weeks
)


@pytest.fixture
def year_input():
    return AcademicYearInput(
        name=" 2024-2025 ",
        start_date="2024-09-01",
        end_date="2025-05-31",
        semester1_start="2024-09-01",
        semester1_end="2025-01-12",
        semester2_start="2025-01-13",
        semester2_end="2025-05-31",
    )


class TestWeekCounting:

    def test_weeks_between(self):
        assert calculate_weeks_between(date(2024, 9, 1), date(2024, 9, 1)) == 1
        assert calculate_weeks_between(date(2024, 9, 1), date(2024, 9, 7)) == 1
        assert calculate_weeks_between(date(2024, 9, 1), date(2024, 9, 8)) == 2

    def test_normalize_weeks(self):
        assert normalize_weeks(32.4, 10) == 32
        assert normalize_weeks("0", 10) == 1
        assert normalize_weeks(None, 10) == 10
        assert normalize_weeks("abc", 10) == 10


class TestBuildPayload:

    def test_derived_weeks(self, year_input):
        payload = build_academic_year_payload(year_input)

        assert payload["name"] == "2024-2025"
        # 2024-09-01 .. 2025-05-31 is 273 days
        assert payload["total_weeks"] == 39
        assert payload["semester1_weeks"] == 20
        assert payload["semester2_weeks"] == 20
        assert payload["is_current"] is False

    def test_explicit_weeks_win(self, year_input):
        year_input.total_weeks = 33
        assert build_academic_year_payload(year_input)["total_weeks"] == 33

    def test_missing_name(self, year_input):
        year_input.name = "  "
        with pytest.raises(AcademicYearValidationError):
            build_academic_year_payload(year_input)

    @pytest.mark.parametrize("field,value", [
        ("start_date", "garbage"),
        ("end_date", "2024-08-01"),
        ("semester1_start", "2024-08-01"),
        ("semester2_start", "2025-01-10"),
        ("semester2_end", "2025-06-30"),
    ])
    def test_invalid_dates(self, year_input, field, value):
        setattr(year_input, field, value)
        with pytest.raises(AcademicYearValidationError):
            build_academic_year_payload(year_input)


class TestResolveTotalWeeks:

    def test_priority(self):
        assert resolve_total_weeks(12, {"total_weeks": 30}, {"total_weeks": 40}) == 12
        assert resolve_total_weeks(None, {"total_weeks": 30}, {"total_weeks": 40}) == 30
        assert resolve_total_weeks(None, {"total_weeks": None}, {"total_weeks": "40"}) == 40
        assert resolve_total_weeks(None, None, None) == 0
        assert resolve_total_weeks(None, None, {}, default=25) == 25
