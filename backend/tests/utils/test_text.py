"""
Tests for text normalization helpers.
"""

import pytest
from decimal import Decimal

from catechism_app.utils.text import (
    normalize_text, to_number_or_none, sanitize_class_id, normalize_class_id, collation_key
)


class TestNormalizeText:
    """Diacritic and punctuation stripping."""

    @pytest.mark.parametrize("raw", ["Ấu 1", "AU1", "  áu-1 "])
    def test_variants_share_one_token(self, raw):
        assert normalize_text(raw) == "AU1"

    def test_vietnamese_labels(self):
        assert normalize_text("Chiên con") == "CHIENCON"
        assert normalize_text("Nghĩa sĩ") == "NGHIASI"
        assert normalize_text("Chủ nhật") == "CHUNHAT"
        assert normalize_text("Thứ 5") == "THU5"

    def test_d_with_stroke_is_folded(self):
        assert normalize_text("Đoàn") == "DOAN"

    @pytest.mark.parametrize("raw", [None, "", "   ", "--/--"])
    def test_empty_input(self, raw):
        assert normalize_text(raw) == ""

    def test_non_string_input(self):
        assert normalize_text(12) == "12"


class TestToNumberOrNone:
    """Lenient numeric parsing for raw column values."""

    def test_numbers(self):
        assert to_number_or_none(7) == 7.0
        assert to_number_or_none(7.5) == 7.5
        assert to_number_or_none(Decimal("8.25")) == 8.25

    def test_numeric_strings(self):
        assert to_number_or_none(" 6.5 ") == 6.5
        assert to_number_or_none("10") == 10.0

    @pytest.mark.parametrize("raw", [None, "", "  ", "abc", "nan", "inf", float("nan"), float("inf"), True, [], {}])
    def test_unparseable_values(self, raw):
        assert to_number_or_none(raw) is None

    @pytest.mark.parametrize("raw", [10 ** 400, -(10 ** 400), Decimal("1E+400"), Decimal("NaN"), Decimal("sNaN"), "1E+400"])
    def test_values_beyond_float_range(self, raw):
        assert to_number_or_none(raw) is None


class TestClassIds:

    def test_sanitize_and_normalize(self):
        assert sanitize_class_id("  Class-A ") == "Class-A"
        assert normalize_class_id("  Class-A ") == "class-a"
        assert normalize_class_id(None) == ""

    def test_collation_ignores_diacritics(self):
        labels = ["Ấu nhi", "Anh", "Bình"]
        assert sorted(labels, key=collation_key) == ["Anh", "Ấu nhi", "Bình"]
