from fastapi import APIRouter, Depends, HTTPException, Query
from datetime import datetime
from typing import List, Optional

from discipline.api.dependencies.auth import get_current_user
from discipline.api.dependencies.services import get_day_end_service, get_now
from discipline.api.schemas import (
    EscalationResponse, PenaltyDefinitionResponse, PenaltyResponse, WaiveRequest
)
from discipline.domain.models.user import UserProfile
from discipline.domain.services.day_end_service import DayEndService

router = APIRouter(prefix="/penalties", tags=["Penalties"])


@router.get("", response_model=List[PenaltyResponse])
def penalty_history(
    limit: Optional[int] = Query(None, ge=1, le=365),
    service: DayEndService = Depends(get_day_end_service),
    current_user: UserProfile = Depends(get_current_user),
):
    """All penalties, most recent failed day first."""
    return service.penalty_history(current_user.id, limit=limit)


@router.get("/pending", response_model=List[PenaltyResponse])
def pending_penalties(
    service: DayEndService = Depends(get_day_end_service),
    current_user: UserProfile = Depends(get_current_user),
):
    return service.pending_penalties(current_user.id)


@router.get("/definitions", response_model=List[PenaltyDefinitionResponse])
def penalty_definitions(service: DayEndService = Depends(get_day_end_service)):
    return service.penalties.definitions


@router.get("/escalation", response_model=EscalationResponse)
def escalation(
    service: DayEndService = Depends(get_day_end_service),
    now: datetime = Depends(get_now),
    current_user: UserProfile = Depends(get_current_user),
):
    """Advisory only: severity of future penalties is not changed."""
    history = service.penalty_history(current_user.id)
    engine = service.penalties
    return EscalationResponse(
        escalation=engine.escalation_signal(history, now.date()),
        window_days=engine.escalation_window_days,
        threshold=engine.escalation_penalty_count,
        penalty_streak=engine.penalty_streak(history),
        has_pending=any(p.is_pending() for p in history),
    )


@router.get("/{penalty_id}/alternatives", response_model=List[PenaltyDefinitionResponse])
def penalty_alternatives(
    penalty_id: str,
    service: DayEndService = Depends(get_day_end_service),
    current_user: UserProfile = Depends(get_current_user),
):
    penalty = service.repository.get_penalty(current_user.id, penalty_id)
    if not penalty:
        raise HTTPException(status_code=404, detail="Penalty not found")
    return service.penalties.suggested_alternatives(penalty)


@router.post("/{penalty_id}/complete", response_model=PenaltyResponse)
def complete_penalty(
    penalty_id: str,
    service: DayEndService = Depends(get_day_end_service),
    now: datetime = Depends(get_now),
    current_user: UserProfile = Depends(get_current_user),
):
    return service.complete_penalty(current_user.id, penalty_id, now)


@router.post("/{penalty_id}/waive", response_model=PenaltyResponse)
def waive_penalty(
    penalty_id: str,
    data: WaiveRequest,
    service: DayEndService = Depends(get_day_end_service),
    now: datetime = Depends(get_now),
    current_user: UserProfile = Depends(get_current_user),
):
    return service.waive_penalty(current_user.id, penalty_id, now, data.reason)
