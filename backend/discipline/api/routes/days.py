from fastapi import APIRouter, Depends, HTTPException
from datetime import date, datetime

from discipline.api.dependencies.auth import get_current_user
from discipline.api.dependencies.services import get_circle_service, get_day_end_service, get_now
from discipline.api.schemas import (
    DailyRecordResponse, DayEndResponse, TaskToggleRequest, VerdictResponse
)
from discipline.core.logging import get_logger
from discipline.domain.models.user import UserProfile
from discipline.domain.services.circle_service import CircleService
from discipline.domain.services.day_end_service import DayEndService

router = APIRouter(prefix="/days", tags=["Daily Record"])
logger = get_logger(__name__)


@router.get("/today", response_model=DailyRecordResponse)
def get_today(
    service: DayEndService = Depends(get_day_end_service),
    now: datetime = Depends(get_now),
    current_user: UserProfile = Depends(get_current_user),
):
    """Today's record, created empty on first access."""
    return service.get_or_create_record(current_user.id, now.date(), now)


@router.get("/{day}", response_model=DailyRecordResponse)
def get_day(
    day: date,
    service: DayEndService = Depends(get_day_end_service),
    now: datetime = Depends(get_now),
    current_user: UserProfile = Depends(get_current_user),
):
    if day > now.date():
        raise HTTPException(status_code=404, detail="No record for a future day")
    return service.get_or_create_record(current_user.id, day, now)


@router.put("/{day}/tasks/{task_id}", response_model=DailyRecordResponse)
def toggle_task(
    day: date,
    task_id: str,
    data: TaskToggleRequest,
    service: DayEndService = Depends(get_day_end_service),
    now: datetime = Depends(get_now),
    current_user: UserProfile = Depends(get_current_user),
):
    """Mark a task done or undone. Numeric tasks must carry a value inside their bounds."""
    if service.scoring.catalog.get(task_id) is None:
        raise HTTPException(status_code=404, detail="Task not found")
    if day > now.date():
        raise HTTPException(status_code=409, detail="Cannot record tasks for a future day")

    record, result = service.record_completion(
        current_user.id, day, task_id, data.completed, data.value, now, data.notes
    )
    if not result.valid:
        raise HTTPException(status_code=422, detail=result.reason)
    return record


@router.get("/{day}/verdict", response_model=VerdictResponse)
def get_verdict(
    day: date,
    service: DayEndService = Depends(get_day_end_service),
    now: datetime = Depends(get_now),
    current_user: UserProfile = Depends(get_current_user),
):
    return service.verdict(current_user.id, day, now)


@router.post("/{day}/end", response_model=DayEndResponse)
def end_day(
    day: date,
    service: DayEndService = Depends(get_day_end_service),
    circles: CircleService = Depends(get_circle_service),
    now: datetime = Depends(get_now),
    current_user: UserProfile = Depends(get_current_user),
):
    """Finalize the day: verdict, penalty on failure, streak and milestone reward."""
    outcome = service.end_day(current_user.id, day, now)
    if current_user.in_circle():
        circles.refresh_shared_streak(current_user.id, day)
    logger.info(
        "Day ended",
        user_id=current_user.id,
        date=day.isoformat(),
        status=outcome.record.status.value,
        already_processed=outcome.already_processed,
    )
    return outcome
