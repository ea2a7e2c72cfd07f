from fastapi import APIRouter, Depends, HTTPException
from datetime import datetime
from typing import List

from discipline.api.dependencies.auth import get_current_user
from discipline.api.dependencies.services import get_circle_service, get_now
from discipline.api.schemas import (
    ChallengeCreate, ChallengeResponse, CircleCreate, CircleJoin, CircleResponse,
    MessageResponse, PartnerPenaltyEdit, PartnerProgressResponse, PenaltyResponse
)
from discipline.domain.models.user import UserProfile
from discipline.domain.services.circle_service import CircleService

router = APIRouter(prefix="/couples", tags=["Couples Circle"])


@router.get("", response_model=CircleResponse)
def get_circle(
    service: CircleService = Depends(get_circle_service),
    current_user: UserProfile = Depends(get_current_user),
):
    return service.get_circle(current_user.id)


@router.post("", response_model=CircleResponse, status_code=201)
def create_circle(
    data: CircleCreate,
    service: CircleService = Depends(get_circle_service),
    current_user: UserProfile = Depends(get_current_user),
):
    """Create a circle and get the invite code to share with a partner."""
    return service.create_circle(current_user.id, data.name)


@router.post("/join", response_model=CircleResponse)
def join_circle(
    data: CircleJoin,
    service: CircleService = Depends(get_circle_service),
    current_user: UserProfile = Depends(get_current_user),
):
    return service.join_circle(current_user.id, data.invite_code)


@router.post("/leave", response_model=MessageResponse)
def leave_circle(
    service: CircleService = Depends(get_circle_service),
    current_user: UserProfile = Depends(get_current_user),
):
    service.leave_circle(current_user.id)
    return MessageResponse(message="Left circle")


# ──── Partner ─────────────────────────────────────────────────────────────────
@router.get("/partner/progress", response_model=PartnerProgressResponse)
def partner_progress(
    service: CircleService = Depends(get_circle_service),
    now: datetime = Depends(get_now),
    current_user: UserProfile = Depends(get_current_user),
):
    progress = service.partner_progress(current_user.id, now.date())
    if progress is None:
        raise HTTPException(status_code=404, detail="Waiting for a partner to join")
    return progress


@router.get("/partner/penalties", response_model=List[PenaltyResponse])
def partner_pending_penalties(
    service: CircleService = Depends(get_circle_service),
    current_user: UserProfile = Depends(get_current_user),
):
    partner_id = service.partner_id(current_user.id)
    if partner_id is None:
        raise HTTPException(status_code=404, detail="Waiting for a partner to join")
    return service.repository.get_pending_penalties(partner_id)


@router.put("/partner/penalties/{penalty_id}", response_model=PenaltyResponse)
def edit_partner_penalty(
    penalty_id: str,
    data: PartnerPenaltyEdit,
    service: CircleService = Depends(get_circle_service),
    now: datetime = Depends(get_now),
    current_user: UserProfile = Depends(get_current_user),
):
    """Swap the partner's pending penalty for another of the same severity. Allowed once."""
    return service.edit_partner_penalty(current_user.id, penalty_id, data.new_type, now, data.description)


# ──── Mutual challenges ───────────────────────────────────────────────────────
@router.post("/challenges", response_model=ChallengeResponse, status_code=201)
def add_challenge(
    data: ChallengeCreate,
    service: CircleService = Depends(get_circle_service),
    current_user: UserProfile = Depends(get_current_user),
):
    return service.add_challenge(current_user.id, data.name)


@router.post("/challenges/{challenge_id}/complete", response_model=ChallengeResponse)
def complete_challenge(
    challenge_id: str,
    service: CircleService = Depends(get_circle_service),
    current_user: UserProfile = Depends(get_current_user),
):
    return service.complete_challenge(current_user.id, challenge_id)
