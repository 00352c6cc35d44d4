"""
Data sources for the catechism engine.
"""

from .row_source import (
    RowSource,
    FetchResult,
    SourceFetchError,
    InMemoryRowSource,
    DatabaseRowSource,
    fetch_all_pages
)

__all__ = [
    'RowSource',
    'FetchResult',
    'SourceFetchError',
    'InMemoryRowSource',
    'DatabaseRowSource',
    'fetch_all_pages'
]
