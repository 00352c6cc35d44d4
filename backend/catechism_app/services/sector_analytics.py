"""
Sector roll-up statistics for the dashboard.

Classes are attributed to sectors, students and teachers to classes, and
per-sector totals and score averages are accumulated in a single pass.
Every upstream query may fail independently; a failed query contributes no
rows and the report is built from whatever data is left.
"""
import asyncio
import logging
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Any, Awaitable, Dict, Iterable, List, Mapping, Optional, Set

from catechism_app.core.config import Settings, settings as default_settings
from catechism_app.integrations.row_source import FetchResult, RowSource, fetch_all_pages
from catechism_app.schemas.dashboard import (
    AttendanceSessionSummary, DashboardMetrics, DashboardResponse, SectorMetrics, SummaryMetrics
)
from catechism_app.services.academic_year import resolve_total_weeks
from catechism_app.services.attendance_summary import summarize_recent_attendance
from catechism_app.services.scoring import (
    GradeRecord, calculate_semester_attendance_average, calculate_weekly_attendance_score
)
from catechism_app.services.sector_resolver import (
    SectorRegistry, resolve_known_sector, resolve_sector_identifier
)
from catechism_app.services.weekday import parse_event_date
from catechism_app.services.weekly_attendance import calculate_bulk_attendance_scores
from catechism_app.utils.text import normalize_class_id, sanitize_class_id, to_number_or_none

logger = logging.getLogger(__name__)

DELETED_STATUS = "DELETED"

# Free-text columns on class rows, in resolution priority
CLASS_SECTOR_FIELDS = (
    "sector", "sector_code", "sector_name",
    "branch", "branch_code", "branch_name",
    "name", "code",
)

# Table counted for each top-line summary figure
SUMMARY_COUNT_TABLES = {
    "sectors": "sectors",
    "classes": "classes",
    "students": "students",
    "teachers": "user_profiles",
}


@dataclass
class LocalTotals:
    sectors: int = 0
    classes: int = 0
    students: int = 0
    teachers: int = 0


@dataclass
class SectorAggregation:
    sector_metrics: List[SectorMetrics]
    totals: LocalTotals
    class_sector_keys: Dict[str, str] = field(default_factory=dict)


def _is_deleted(student: Mapping[str, Any]) -> bool:
    status = student.get("status")
    if status is None:
        return False
    return str(status).strip().upper() == DELETED_STATUS


def _as_sector_id(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    return None


def _build_sector_id_map(registry: SectorRegistry, sectors: Iterable[Mapping[str, Any]]) -> Dict[int, str]:
    sector_id_to_key: Dict[int, str] = {}
    for sector in sectors:
        sector_id = _as_sector_id(sector.get("id"))
        if sector_id is None:
            continue
        key = registry.ensure(resolve_sector_identifier(sector.get("code"), sector.get("name")))
        if key:
            sector_id_to_key[sector_id] = key
    return sector_id_to_key


def _attribute_classes(
    registry: SectorRegistry,
    classes: Iterable[Mapping[str, Any]],
    sector_id_to_key: Mapping[int, str]
) -> Dict[str, str]:
    """Resolve each class to a sector; numeric sector id first, then labels."""
    class_sector_keys: Dict[str, str] = {}

    for cls in classes:
        if not cls:
            continue
        class_id = sanitize_class_id(cls.get("id"))
        # Duplicate class rows: the first resolvable row wins
        if not class_id or normalize_class_id(class_id) in class_sector_keys:
            continue

        sector_key: Optional[str] = None
        sector_id = _as_sector_id(cls.get("sector_id"))
        if sector_id is not None:
            sector_key = sector_id_to_key.get(sector_id)

        if not sector_key:
            labels = [cls.get(field_name) for field_name in CLASS_SECTOR_FIELDS]
            sector_key = registry.ensure(resolve_known_sector(*labels))

        if not sector_key:
            logger.debug(f"Class {class_id} has no resolvable sector")
            continue

        class_sector_keys[normalize_class_id(class_id)] = sector_key
        registry.accumulator(sector_key).total_classes += 1

    return class_sector_keys


def _accumulate_students(
    registry: SectorRegistry,
    students: Iterable[Mapping[str, Any]],
    class_sector_keys: Mapping[str, str],
    total_weeks: int,
    attendance_records: Optional[List[Mapping[str, Any]]]
) -> int:
    weekly_scores = None
    if attendance_records and total_weeks > 0:
        weekly_scores = calculate_bulk_attendance_scores(attendance_records, total_weeks)

    counted = 0
    for student in students:
        if not student or _is_deleted(student):
            continue
        class_id = sanitize_class_id(student.get("class_id"))
        if not class_id:
            continue
        sector_key = class_sector_keys.get(normalize_class_id(class_id))
        if not sector_key:
            continue

        accumulator = registry.accumulator(sector_key)
        accumulator.total_students += 1
        counted += 1

        if weekly_scores is not None:
            student_id = str(student.get("id") or "").strip()
            result = weekly_scores.get(student_id) or calculate_weekly_attendance_score(0, 0, total_weeks)
            attendance_score = result.score
        else:
            attendance_score = calculate_semester_attendance_average(
                to_number_or_none(student.get("attendance_hk1_present")),
                to_number_or_none(student.get("attendance_hk1_total")),
                to_number_or_none(student.get("attendance_hk2_present")),
                to_number_or_none(student.get("attendance_hk2_total")),
            )

        accumulator.add_attendance(attendance_score)
        accumulator.add_study(GradeRecord.from_row(student).average())

    return counted


def _accumulate_teachers(
    registry: SectorRegistry,
    teachers: Iterable[Mapping[str, Any]],
    class_sector_keys: Mapping[str, str]
) -> int:
    teacher_ids_by_sector: Dict[str, Set[str]] = {}
    distinct_teachers: Set[str] = set()

    for teacher in teachers:
        teacher_id = str(teacher.get("id") or "").strip() if teacher else ""
        if not teacher_id:
            continue

        sector_key = None
        class_id = sanitize_class_id(teacher.get("class_id"))
        if class_id:
            sector_key = class_sector_keys.get(normalize_class_id(class_id))
        if not sector_key:
            sector_key = registry.ensure(resolve_known_sector(
                teacher.get("sector"), teacher.get("class_name"), teacher.get("class_id")
            ))
        if not sector_key:
            logger.debug(f"Teacher {teacher_id} has no resolvable sector")
            continue

        seen = teacher_ids_by_sector.setdefault(sector_key, set())
        if teacher_id in seen:
            continue
        seen.add(teacher_id)
        distinct_teachers.add(teacher_id)
        registry.accumulator(sector_key).total_teachers += 1

    return len(distinct_teachers)


def aggregate_sector_metrics(
    sectors: Iterable[Mapping[str, Any]],
    classes: Iterable[Mapping[str, Any]],
    students: Iterable[Mapping[str, Any]],
    teachers: Iterable[Mapping[str, Any]],
    total_weeks: int = 0,
    attendance_records: Optional[List[Mapping[str, Any]]] = None
) -> SectorAggregation:
    """
    Build per-sector metrics from raw rows.

    Attendance averages use the weekly formula when per-event
    ``attendance_records`` are supplied and ``total_weeks`` is positive;
    otherwise the legacy semester present/total counters are used.
    """
    sectors = [sector for sector in sectors or [] if sector]
    classes = list(classes or [])

    registry = SectorRegistry()
    sector_id_to_key = _build_sector_id_map(registry, sectors)
    class_sector_keys = _attribute_classes(registry, classes, sector_id_to_key)
    student_count = _accumulate_students(
        registry, students or [], class_sector_keys, total_weeks or 0, attendance_records
    )
    teacher_count = _accumulate_teachers(registry, teachers or [], class_sector_keys)

    return SectorAggregation(
        sector_metrics=registry.finalize(),
        totals=LocalTotals(
            sectors=len(sectors),
            classes=len(class_sector_keys),
            students=student_count,
            teachers=teacher_count,
        ),
        class_sector_keys=class_sector_keys,
    )


class SectorAnalyticsService:
    """
    Dashboard entry point: fetches every source concurrently, then aggregates.

    Source failures are logged and replaced by empty results; this service
    never raises because a query failed.
    """

    def __init__(self, source: RowSource, settings: Optional[Settings] = None):
        self.source = source
        self.settings = settings or default_settings

    async def _safe_fetch(self, label: str, call: Awaitable[FetchResult]) -> FetchResult:
        try:
            result = await call
        except Exception as e:
            logger.warning(f"Dashboard {label} query fallback: {e}")
            return FetchResult.failed(label, e)

        if result is None:
            return FetchResult()
        if result.error is not None:
            logger.warning(f"Dashboard {label} query fallback: {result.error.message}")
        return result

    async def _fetch_paged(self, label: str, fetch_page) -> List[Dict[str, Any]]:
        try:
            return await fetch_all_pages(fetch_page, self.settings.ROW_PAGE_SIZE, label)
        except Exception as e:
            logger.warning(f"Dashboard {label} query fallback: {e}")
            return []

    async def _fetch_attendance(
        self, since: Optional[date], until: Optional[date] = None
    ) -> List[Dict[str, Any]]:
        async def fetch_page(offset: int, limit: int) -> FetchResult:
            return await self.source.fetch_attendance_page(offset, limit, since=since, until=until)

        return await self._fetch_paged("attendance", fetch_page)

    async def generate_dashboard_metrics(
        self,
        total_weeks: Optional[int] = None,
        weekly_attendance: bool = True
    ) -> DashboardMetrics:
        """
        Compute the dashboard summary and per-sector metrics.

        Args:
            total_weeks: Academic-year length; resolved from the current
                academic year or the summary row when omitted
            weekly_attendance: Score attendance from per-event records
                inside the current academic year instead of the legacy
                semester counters

        Returns:
            DashboardMetrics with top-line counts and sorted sector metrics
        """
        logger.info("Generating dashboard sector metrics")

        (
            summary_result,
            academic_year_result,
            sectors_result,
            classes_result,
            teachers_result,
            students,
            *count_results,
        ) = await asyncio.gather(
            self._safe_fetch("summary", self.source.fetch_summary()),
            self._safe_fetch("academic year", self.source.fetch_current_academic_year()),
            self._safe_fetch("sectors", self.source.fetch_sectors()),
            self._safe_fetch("classes", self.source.fetch_classes()),
            self._safe_fetch("teachers", self.source.fetch_teachers()),
            self._fetch_paged("students", self.source.fetch_students_page),
            *[
                self._safe_fetch(f"{table} count", self.source.count_rows(table))
                for table in SUMMARY_COUNT_TABLES.values()
            ],
        )

        summary_row = summary_result.rows[0] if summary_result.rows else {}
        academic_year = academic_year_result.rows[0] if academic_year_result.rows else None

        resolved_weeks = resolve_total_weeks(
            total_weeks,
            academic_year,
            summary_row,
            self.settings.DEFAULT_TOTAL_WEEKS,
        )

        attendance_records = None
        since = parse_event_date((academic_year or {}).get("start_date"))
        until = parse_event_date((academic_year or {}).get("end_date"))
        # Weekly scoring is bounded by the academic year; without one the legacy counters apply
        if weekly_attendance and resolved_weeks > 0 and since is not None:
            records = await self._fetch_attendance(since, until)
            # No per-event rows means weekly semantics are unavailable
            attendance_records = records or None

        aggregation = aggregate_sector_metrics(
            sectors_result.rows,
            classes_result.rows,
            students,
            teachers_result.rows,
            total_weeks=resolved_weeks,
            attendance_records=attendance_records,
        )

        summary = SummaryMetrics(
            academic_year=(
                (academic_year or {}).get("name")
                or summary_row.get("academic_year")
                or "Chưa cập nhật"
            ),
            total_weeks=resolved_weeks,
            **self._resolve_counts(
                dict(zip(SUMMARY_COUNT_TABLES.keys(), count_results)),
                summary_row,
                aggregation.totals,
            ),
        )

        logger.info(
            f"Dashboard metrics ready: {summary.classes} classes, {summary.students} students, "
            f"{len(aggregation.sector_metrics)} sectors"
        )
        return DashboardMetrics(summary=summary, sector_metrics=aggregation.sector_metrics)

    def _resolve_counts(
        self,
        count_results: Mapping[str, FetchResult],
        summary_row: Mapping[str, Any],
        totals: LocalTotals
    ) -> Dict[str, int]:
        """Exact count first, then the summary row, then locally aggregated totals."""
        counts = {}
        for name, result in count_results.items():
            if result.ok and isinstance(result.count, int):
                counts[name] = result.count
                continue
            summary_value = to_number_or_none(summary_row.get(name))
            if summary_value is not None:
                counts[name] = int(summary_value)
                continue
            counts[name] = getattr(totals, name)
        return counts

    async def generate_recent_attendance(
        self,
        total_students: int,
        today: Optional[date] = None
    ) -> List[AttendanceSessionSummary]:
        """Present/pending counts for the latest Thursday and Sunday sessions."""
        today = today or date.today()
        since = today - timedelta(days=self.settings.RECENT_ATTENDANCE_DAYS - 1)
        records = await self._fetch_attendance(since, today)
        return summarize_recent_attendance(records, total_students)

    async def generate_dashboard(
        self,
        total_weeks: Optional[int] = None,
        today: Optional[date] = None
    ) -> DashboardResponse:
        metrics = await self.generate_dashboard_metrics(total_weeks=total_weeks)
        recent = await self.generate_recent_attendance(
            max(metrics.summary.students, 0), today=today
        )
        return DashboardResponse(
            summary=metrics.summary,
            sector_metrics=metrics.sector_metrics,
            recent_attendance=recent,
        )
