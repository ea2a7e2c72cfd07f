from fastapi import APIRouter, Depends, HTTPException, Query
from datetime import date, datetime, timedelta
from typing import List, Optional

from discipline.api.dependencies.auth import get_current_user
from discipline.api.dependencies.services import get_analytics, get_circle_service, get_now, get_repository
from discipline.api.schemas import (
    AnalyticsSummaryResponse, ComparativeAnalyticsResponse, HeatmapCellResponse,
    MonthlyReportResponse, WeeklyReportResponse
)
from discipline.core.config import settings
from discipline.domain.models.record import DailyRecord
from discipline.domain.models.user import UserProfile
from discipline.domain.repository import Repository
from discipline.domain.services.analytics_aggregator import AnalyticsAggregator
from discipline.domain.services.circle_service import CircleService

router = APIRouter(prefix="/analytics", tags=["Analytics"])


def _finalized(repository: Repository, user_id: str, start: date, end: date) -> List[DailyRecord]:
    """Only finalized days feed analytics; today's live record is left out."""
    return [r for r in repository.get_records_in_range(user_id, start, end) if r.is_finalized()]


@router.get("/summary", response_model=AnalyticsSummaryResponse)
def summary(
    days: int = Query(30, ge=1, le=365),
    analytics: AnalyticsAggregator = Depends(get_analytics),
    repository: Repository = Depends(get_repository),
    now: datetime = Depends(get_now),
    current_user: UserProfile = Depends(get_current_user),
):
    end = now.date()
    records = _finalized(repository, current_user.id, end - timedelta(days=days - 1), end)
    return analytics.summarize(records)


@router.get("/weekly", response_model=WeeklyReportResponse)
def weekly_report(
    week_of: Optional[date] = Query(None, description="Any day of the week, defaults to today"),
    analytics: AnalyticsAggregator = Depends(get_analytics),
    repository: Repository = Depends(get_repository),
    now: datetime = Depends(get_now),
    current_user: UserProfile = Depends(get_current_user),
):
    day = week_of or now.date()
    start = day - timedelta(days=day.weekday())
    records = _finalized(repository, current_user.id, start, start + timedelta(days=6))
    return analytics.weekly_report(records, day)


@router.get("/monthly", response_model=MonthlyReportResponse)
def monthly_report(
    month_of: Optional[date] = Query(None, description="Any day of the month, defaults to today"),
    analytics: AnalyticsAggregator = Depends(get_analytics),
    repository: Repository = Depends(get_repository),
    now: datetime = Depends(get_now),
    current_user: UserProfile = Depends(get_current_user),
):
    day = month_of or now.date()
    first = day.replace(day=1)
    next_first = (first + timedelta(days=32)).replace(day=1)
    previous_first = (first - timedelta(days=1)).replace(day=1)

    records = _finalized(repository, current_user.id, first, next_first - timedelta(days=1))
    previous = _finalized(repository, current_user.id, previous_first, first - timedelta(days=1))
    return analytics.monthly_report(records, day, previous)


@router.get("/heatmap", response_model=List[HeatmapCellResponse])
def heatmap(
    days: int = Query(settings.HEATMAP_DEFAULT_DAYS, ge=1, le=366),
    end: Optional[date] = Query(None),
    analytics: AnalyticsAggregator = Depends(get_analytics),
    repository: Repository = Depends(get_repository),
    now: datetime = Depends(get_now),
    current_user: UserProfile = Depends(get_current_user),
):
    last = end or now.date()
    records = _finalized(repository, current_user.id, last - timedelta(days=days - 1), last)
    return [
        HeatmapCellResponse(
            date=cell.date,
            score=cell.score,
            status=cell.status,
            color=analytics.heatmap_color(cell.score, cell.status),
        )
        for cell in analytics.heatmap(records, last, days)
    ]


@router.get("/compare", response_model=ComparativeAnalyticsResponse)
def compare_with_partner(
    days: int = Query(30, ge=1, le=365),
    analytics: AnalyticsAggregator = Depends(get_analytics),
    repository: Repository = Depends(get_repository),
    circles: CircleService = Depends(get_circle_service),
    now: datetime = Depends(get_now),
    current_user: UserProfile = Depends(get_current_user),
):
    partner_id = circles.partner_id(current_user.id)
    if partner_id is None:
        raise HTTPException(status_code=404, detail="Waiting for a partner to join")
    end = now.date()
    start = end - timedelta(days=days - 1)
    mine = _finalized(repository, current_user.id, start, end)
    theirs = _finalized(repository, partner_id, start, end)
    return analytics.compare(mine, theirs)
