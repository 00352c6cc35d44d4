"""
Dashboard endpoints: top-line counts, sector roll-ups and recent attendance.
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query

from catechism_app.api.deps import get_row_source
from catechism_app.integrations.row_source import RowSource
from catechism_app.schemas.dashboard import DashboardMetrics, DashboardResponse
from catechism_app.services.sector_analytics import SectorAnalyticsService

router = APIRouter()


@router.get("/summary", response_model=DashboardResponse)
async def get_dashboard_summary(
    total_weeks: Optional[int] = Query(None, description="Override the academic-year length"),
    source: RowSource = Depends(get_row_source)
):
    service = SectorAnalyticsService(source)
    return await service.generate_dashboard(total_weeks=total_weeks)


@router.get("/sector-metrics", response_model=DashboardMetrics)
async def get_sector_metrics(
    total_weeks: Optional[int] = Query(None),
    weekly_attendance: bool = Query(True, description="Use per-event weekly attendance scoring"),
    source: RowSource = Depends(get_row_source)
):
    service = SectorAnalyticsService(source)
    return await service.generate_dashboard_metrics(
        total_weeks=total_weeks, weekly_attendance=weekly_attendance
    )
