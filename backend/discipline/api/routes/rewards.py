from fastapi import APIRouter, Depends
from datetime import datetime
from typing import List

from discipline.api.dependencies.auth import get_current_user
from discipline.api.dependencies.services import get_day_end_service, get_now
from discipline.api.schemas import RewardResponse, RewardSuggestionResponse
from discipline.domain.models.reward import RewardType
from discipline.domain.models.user import UserProfile
from discipline.domain.services.day_end_service import DayEndService

router = APIRouter(prefix="/rewards", tags=["Rewards"])


@router.get("", response_model=List[RewardResponse])
def claimable_rewards(
    service: DayEndService = Depends(get_day_end_service),
    now: datetime = Depends(get_now),
    current_user: UserProfile = Depends(get_current_user),
):
    """Rewards that are still claimable right now. Expired ones are left out."""
    return service.claimable_rewards(current_user.id, now)


@router.get("/history", response_model=List[RewardResponse])
def reward_history(
    service: DayEndService = Depends(get_day_end_service),
    current_user: UserProfile = Depends(get_current_user),
):
    return service.reward_history(current_user.id)


@router.get("/suggestions/{reward_type}", response_model=RewardSuggestionResponse)
def reward_suggestions(reward_type: RewardType, service: DayEndService = Depends(get_day_end_service)):
    streaks = service.streaks
    return RewardSuggestionResponse(
        type=reward_type,
        suggestion=streaks.suggest_reward(reward_type),
        suggestions=streaks.reward_suggestions(reward_type),
    )


@router.post("/{reward_id}/claim", response_model=RewardResponse)
def claim_reward(
    reward_id: str,
    service: DayEndService = Depends(get_day_end_service),
    now: datetime = Depends(get_now),
    current_user: UserProfile = Depends(get_current_user),
):
    return service.claim_reward(current_user.id, reward_id, now)
