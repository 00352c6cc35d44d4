"""
Row sources feeding the scoring engine.

A row source answers one query per table and reports failures in the
returned FetchResult instead of raising, mirroring the ``{data, error}``
contract of the hosted database API the dashboard was built on.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Awaitable, Callable, Dict, List, Optional

from sqlalchemy import select, func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import async_sessionmaker

from catechism_app.models import (
    AcademicYear, AttendanceRecordRow, CatechismClass, Sector, Student, Teacher, UserProfile
)

logger = logging.getLogger(__name__)

Row = Dict[str, Any]


class SourceFetchError(Exception):
    """A single upstream query failed (network, permission or schema error)."""

    def __init__(self, message: str, source: Optional[str] = None,
                 original_exception: Optional[Exception] = None):
        super().__init__(message)
        self.message = message
        self.source = source
        self.original_exception = original_exception


@dataclass
class FetchResult:
    rows: List[Row] = field(default_factory=list)
    error: Optional[SourceFetchError] = None
    count: Optional[int] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def failed(cls, source: str, exc: Exception) -> "FetchResult":
        if isinstance(exc, SourceFetchError):
            return cls(error=exc)
        return cls(error=SourceFetchError(str(exc), source=source, original_exception=exc))


class RowSource(ABC):
    """Read-only access to the tables the engine aggregates."""

    @abstractmethod
    async def fetch_sectors(self) -> FetchResult:
        pass

    @abstractmethod
    async def fetch_classes(self) -> FetchResult:
        pass

    @abstractmethod
    async def fetch_teachers(self) -> FetchResult:
        pass

    @abstractmethod
    async def fetch_students_page(self, offset: int, limit: int) -> FetchResult:
        pass

    @abstractmethod
    async def fetch_attendance_page(
        self, offset: int, limit: int, since: Optional[date] = None, until: Optional[date] = None
    ) -> FetchResult:
        pass

    @abstractmethod
    async def count_rows(self, table: str) -> FetchResult:
        """Exact row count for ``table``, returned in ``FetchResult.count``."""
        pass

    async def fetch_summary(self) -> FetchResult:
        """Pre-computed dashboard summary row; sources without one return no rows."""
        return FetchResult()

    async def fetch_current_academic_year(self) -> FetchResult:
        return FetchResult()


PageFetcher = Callable[[int, int], Awaitable[FetchResult]]


async def fetch_all_pages(fetch_page: PageFetcher, page_size: int, label: str) -> List[Row]:
    """
    Read every page until a short page comes back.

    An error on any page stops paging and keeps the rows read so far.
    """
    rows: List[Row] = []
    offset = 0

    while True:
        try:
            result = await fetch_page(offset, page_size)
        except Exception as e:
            logger.warning(f"Dashboard {label} paging fallback: {e}")
            break

        if result.error is not None:
            logger.warning(f"Dashboard {label} paging fallback: {result.error.message}")
            break

        batch = result.rows or []
        rows.extend(batch)

        if len(batch) < page_size:
            break

        offset += page_size

    return rows


class InMemoryRowSource(RowSource):
    """
    Row source over already-fetched rows.

    ``errors`` maps a source name (``sectors``, ``classes``, ``students``,
    ``teachers``, ``attendance``, ``summary``, ``academic_year`` or
    ``count:<table>``) to an exception reported for that query.
    """

    def __init__(
        self,
        sectors: Optional[List[Row]] = None,
        classes: Optional[List[Row]] = None,
        students: Optional[List[Row]] = None,
        teachers: Optional[List[Row]] = None,
        attendance: Optional[List[Row]] = None,
        profiles: Optional[List[Row]] = None,
        summary: Optional[Row] = None,
        academic_year: Optional[Row] = None,
        errors: Optional[Dict[str, Exception]] = None
    ):
        self.sectors = list(sectors or [])
        self.classes = list(classes or [])
        self.students = list(students or [])
        self.teachers = list(teachers or [])
        self.attendance = list(attendance or [])
        self.profiles = profiles
        self.summary = summary
        self.academic_year = academic_year
        self.errors = dict(errors or {})

    def _result(self, source: str, rows: List[Row]) -> FetchResult:
        if source in self.errors:
            return FetchResult.failed(source, self.errors[source])
        return FetchResult(rows=list(rows))

    async def fetch_sectors(self) -> FetchResult:
        return self._result("sectors", self.sectors)

    async def fetch_classes(self) -> FetchResult:
        return self._result("classes", self.classes)

    async def fetch_teachers(self) -> FetchResult:
        return self._result("teachers", self.teachers)

    async def fetch_students_page(self, offset: int, limit: int) -> FetchResult:
        return self._result("students", self.students[offset:offset + limit])

    async def fetch_attendance_page(
        self, offset: int, limit: int, since: Optional[date] = None, until: Optional[date] = None
    ) -> FetchResult:
        rows = self.attendance
        if since is not None:
            cutoff = since.isoformat()
            rows = [row for row in rows if str(row.get("event_date") or "")[:10] >= cutoff]
        if until is not None:
            cutoff = until.isoformat()
            rows = [row for row in rows if str(row.get("event_date") or "")[:10] <= cutoff]
        return self._result("attendance", rows[offset:offset + limit])

    async def count_rows(self, table: str) -> FetchResult:
        source = f"count:{table}"
        if source in self.errors:
            return FetchResult.failed(source, self.errors[source])

        tables = {
            "sectors": self.sectors,
            "classes": self.classes,
            "students": self.students,
            "user_profiles": self.profiles,
        }
        rows = tables.get(table)
        if rows is None:
            return FetchResult(count=None)
        return FetchResult(count=len(rows))

    async def fetch_summary(self) -> FetchResult:
        return self._result("summary", [self.summary] if self.summary else [])

    async def fetch_current_academic_year(self) -> FetchResult:
        return self._result("academic_year", [self.academic_year] if self.academic_year else [])


def _model_to_row(obj: Any) -> Row:
    return {column.key: getattr(obj, column.key) for column in obj.__table__.columns}


class DatabaseRowSource(RowSource):
    """
    Row source reading the SQLAlchemy tables.

    Each query opens its own session from ``session_factory`` so the
    dashboard queries can run concurrently.
    """

    COUNT_MODELS = {
        "sectors": Sector,
        "classes": CatechismClass,
        "students": Student,
        "teachers": Teacher,
        "user_profiles": UserProfile,
    }

    def __init__(self, session_factory: async_sessionmaker):
        self.session_factory = session_factory

    async def _select_rows(self, source: str, stmt) -> FetchResult:
        try:
            async with self.session_factory() as session:
                result = await session.execute(stmt)
                return FetchResult(rows=[_model_to_row(obj) for obj in result.scalars().all()])
        except SQLAlchemyError as e:
            logger.error(f"Error querying {source}: {e}")
            return FetchResult.failed(source, e)

    async def fetch_sectors(self) -> FetchResult:
        return await self._select_rows("sectors", select(Sector))

    async def fetch_classes(self) -> FetchResult:
        return await self._select_rows("classes", select(CatechismClass))

    async def fetch_teachers(self) -> FetchResult:
        return await self._select_rows("teachers", select(Teacher))

    async def fetch_students_page(self, offset: int, limit: int) -> FetchResult:
        stmt = select(Student).order_by(Student.id).offset(offset).limit(limit)
        return await self._select_rows("students", stmt)

    async def fetch_attendance_page(
        self, offset: int, limit: int, since: Optional[date] = None, until: Optional[date] = None
    ) -> FetchResult:
        stmt = select(AttendanceRecordRow)
        if since is not None:
            stmt = stmt.where(AttendanceRecordRow.event_date >= since)
        if until is not None:
            stmt = stmt.where(AttendanceRecordRow.event_date <= until)
        stmt = stmt.order_by(
            AttendanceRecordRow.event_date.desc(), AttendanceRecordRow.id
        ).offset(offset).limit(limit)
        return await self._select_rows("attendance", stmt)

    async def count_rows(self, table: str) -> FetchResult:
        model = self.COUNT_MODELS.get(table)
        if model is None:
            return FetchResult.failed(f"count:{table}", SourceFetchError(f"Unknown table {table}"))
        try:
            async with self.session_factory() as session:
                result = await session.execute(select(func.count()).select_from(model))
                return FetchResult(count=int(result.scalar_one()))
        except SQLAlchemyError as e:
            logger.error(f"Error counting {table}: {e}")
            return FetchResult.failed(f"count:{table}", e)

    async def fetch_current_academic_year(self) -> FetchResult:
        stmt = select(AcademicYear).where(AcademicYear.is_current.is_(True)).limit(1)
        return await self._select_rows("academic_year", stmt)
