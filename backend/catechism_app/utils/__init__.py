"""
Utility helpers for the catechism engine.
"""

from .text import (
    normalize_text,
    to_number_or_none,
    sanitize_class_id,
    normalize_class_id,
    collation_key
)

__all__ = [
    'normalize_text',
    'to_number_or_none',
    'sanitize_class_id',
    'normalize_class_id',
    'collation_key'
]
