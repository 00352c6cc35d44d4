"""
Text helpers for matching free-text labels coming from inconsistent sources.
"""
import math
import re
import unicodedata
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

_NON_ALNUM = re.compile(r"[^A-Za-z0-9]")

# Letters without an NFD decomposition that still need folding
_EXTRA_FOLDS = str.maketrans({"Đ": "D", "đ": "d"})


def normalize_text(value: Any) -> str:
    """Strip diacritics and punctuation, then upper-case.

    ``"  áu-1 "`` -> ``"AU1"``; ``None`` or blank input -> ``""``.
    """
    if value is None:
        return ""
    text = str(value).translate(_EXTRA_FOLDS)
    decomposed = unicodedata.normalize("NFD", text)
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return _NON_ALNUM.sub("", stripped).upper()


def to_number_or_none(value: Any) -> Optional[float]:
    """Coerce a raw column value to a finite float, or None when it is not numeric."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        trimmed = value.strip()
        if not trimmed:
            return None
        try:
            value = Decimal(trimmed)
        except (InvalidOperation, ValueError):
            return None
    if not isinstance(value, (int, float, Decimal)):
        return None
    try:
        parsed = float(value)
    except (OverflowError, ValueError):
        return None
    return parsed if math.isfinite(parsed) else None


def sanitize_class_id(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def normalize_class_id(value: Any) -> str:
    """Class ids are joined case-insensitively after trimming."""
    return sanitize_class_id(value).lower()


def collation_key(value: str) -> tuple:
    """Sort key approximating a locale-aware comparison of display labels."""
    decomposed = unicodedata.normalize("NFD", (value or "").translate(_EXTRA_FOLDS))
    base = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return (base.casefold(), value or "")
