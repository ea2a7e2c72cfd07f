from fastapi import APIRouter, Depends

from discipline.api.dependencies.auth import get_current_user
from discipline.api.dependencies.services import get_day_end_service
from discipline.api.schemas import StreakProgressResponse, StreakResponse
from discipline.domain.models.user import UserProfile
from discipline.domain.services.day_end_service import DayEndService

router = APIRouter(prefix="/streak", tags=["Streak"])


@router.get("", response_model=StreakProgressResponse)
def get_streak(
    service: DayEndService = Depends(get_day_end_service),
    current_user: UserProfile = Depends(get_current_user),
):
    streak = current_user.streak
    progress = service.streaks.milestone_progress(streak.current)
    return StreakProgressResponse(
        current=streak.current,
        longest=streak.longest,
        last_safe_date=streak.last_safe_date,
        next_milestone=progress.next,
        previous_milestone=progress.previous_milestone,
        progress=progress.progress,
        message=service.streaks.streak_status_message(streak.current),
    )


@router.post("/rebuild", response_model=StreakResponse)
def rebuild_streak(
    service: DayEndService = Depends(get_day_end_service),
    current_user: UserProfile = Depends(get_current_user),
):
    """Recompute the streak from all finalized days, e.g. after a backfill."""
    return service.rebuild_streak(current_user.id)
