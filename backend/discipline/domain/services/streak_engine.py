"""
Streak & Reward Engine — running streak fold, milestones and rewards.

Caller contract: day-end processing for date D runs after D-1 was processed.
Feeding an older day raises OutOfOrderDayEnd; use `rebuild_streak` to repair
after a backfill.
"""
import random
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import List, Optional, Sequence

from discipline.domain.exceptions import OutOfOrderDayEnd, PreconditionFailed
from discipline.domain.models.record import DailyRecord, DayStatus
from discipline.domain.models.reward import (
    Reward, RewardDefinition, RewardStatus, RewardType, StreakData
)

STREAK_MILESTONES = [3, 7, 14, 21, 30, 60, 90, 180, 365]
REWARD_EXPIRY_DAYS = 7

REWARD_DEFINITIONS: List[RewardDefinition] = [
    RewardDefinition(
        type=RewardType.MINOR,
        streak_required=3,
        name="3-Day Streak Reward",
        description="Earned for maintaining 3 consecutive safe days",
        suggestions=(
            "Favorite snack or treat",
            "Extra 30 minutes of leisure time",
            "Watch an episode of favorite show",
            "Small purchase under $10",
        ),
    ),
    RewardDefinition(
        type=RewardType.MEDIUM,
        streak_required=7,
        name="7-Day Streak Reward",
        description="Earned for maintaining 7 consecutive safe days (1 week)",
        suggestions=(
            "Nice meal at favorite restaurant",
            "Purchase something under $30",
            "Half-day off from extra tasks",
            "Movie night or gaming session",
            "Spa treatment or massage",
        ),
    ),
    RewardDefinition(
        type=RewardType.MAJOR,
        streak_required=30,
        name="30-Day Streak Reward",
        description="Earned for maintaining 30 consecutive safe days (1 month)",
        suggestions=(
            "Significant purchase you've been wanting",
            "Weekend trip or staycation",
            "Premium subscription for a month",
            "New equipment or gear",
            "Special experience (concert, event, etc.)",
            "Charity donation in your name",
        ),
    ),
]


@dataclass
class StreakUpdate:
    new_streak: StreakData
    milestone: Optional[int] = None
    reward: Optional[RewardDefinition] = None


@dataclass
class MilestoneProgress:
    current: int
    next: int
    progress: float
    previous_milestone: int


class StreakEngine:

    def __init__(self, rng: Optional[random.Random] = None, reward_expiry_days: int = REWARD_EXPIRY_DAYS):
        self.rng = rng or random.Random()
        self.reward_expiry_days = reward_expiry_days

    # ──── Streak derivation ───────────────────────────────────────────────────
    @staticmethod
    def streak_from_history(records: Sequence[DailyRecord], prior_current: int = 0) -> int:
        """
        Count safe days backwards from the most recent record.
        Warning days are skipped, the first failure stops the walk.
        """
        if not records:
            return prior_current
        streak = 0
        for record in sorted(records, key=lambda r: r.date, reverse=True):
            if record.status == DayStatus.SAFE:
                streak += 1
            elif record.status == DayStatus.FAILURE:
                break
        return streak

    def process_day_end(self, streak: StreakData, today_status: DayStatus, today: date) -> StreakUpdate:
        streak.check_invariants()
        if not today_status.is_final():
            raise PreconditionFailed(f"Day {today} must be finalized before streak processing")

        last = streak.last_safe_date
        if last is not None and today <= last:
            if today == last and today_status == DayStatus.SAFE:
                # already folded in
                return StreakUpdate(new_streak=streak)
            raise OutOfOrderDayEnd(
                f"Day {today} is not after last processed safe day {last}; rebuild the streak"
            )

        if today_status == DayStatus.SAFE:
            new_streak = streak.extended(today)
            milestone = self.check_milestone(new_streak.current)
            reward = self.reward_for_streak(milestone) if milestone else None
            return StreakUpdate(new_streak=new_streak, milestone=milestone, reward=reward)
        if today_status == DayStatus.FAILURE:
            return StreakUpdate(new_streak=streak.broken())
        # warning: neither extends nor breaks
        return StreakUpdate(new_streak=streak)

    @staticmethod
    def rebuild_streak(records: Sequence[DailyRecord]) -> StreakData:
        """Replay finalized history in date order through the day-end fold."""
        current, longest, last_safe = 0, 0, None
        for record in sorted(records, key=lambda r: r.date):
            if record.status == DayStatus.SAFE:
                current += 1
                longest = max(longest, current)
                last_safe = record.date
            elif record.status == DayStatus.FAILURE:
                current, last_safe = 0, None
        return StreakData(current=current, longest=longest, last_safe_date=last_safe)

    # ──── Milestones ──────────────────────────────────────────────────────────
    @staticmethod
    def check_milestone(current: int) -> Optional[int]:
        return current if current in STREAK_MILESTONES else None

    @staticmethod
    def next_milestone(current: int) -> int:
        return next((m for m in STREAK_MILESTONES if m > current), STREAK_MILESTONES[-1])

    def milestone_progress(self, current: int) -> MilestoneProgress:
        nxt = self.next_milestone(current)
        previous = max((m for m in STREAK_MILESTONES if m < current), default=0)
        span = nxt - previous
        progress = 100.0 if span <= 0 else (current - previous) / span * 100
        return MilestoneProgress(
            current=current,
            next=nxt,
            progress=round(min(100.0, max(0.0, progress)), 2),
            previous_milestone=previous,
        )

    @staticmethod
    def streak_status_message(current: int) -> str:
        if current == 0:
            return "Start your streak today. One safe day at a time."
        if current < 3:
            return f"{3 - current} more day(s) until your first reward."
        if current < 7:
            return f"{7 - current} more day(s) until the 7-day milestone."
        if current < 14:
            return f"Strong week! {14 - current} more days to 2-week milestone."
        if current < 30:
            return f"Impressive discipline! {30 - current} more days to monthly reward."
        if current < 60:
            return f"Outstanding! {60 - current} more days to 2-month milestone."
        if current < 90:
            return f"Elite discipline! {90 - current} more days to quarterly milestone."
        return "Legendary streak! You are building something permanent."

    # ──── Rewards ─────────────────────────────────────────────────────────────
    @staticmethod
    def reward_for_streak(streak_count: int) -> Optional[RewardDefinition]:
        return next((r for r in REWARD_DEFINITIONS if r.streak_required == streak_count), None)

    @staticmethod
    def reward_type_for_streak(streak_count: int) -> Optional[RewardType]:
        if streak_count >= 30:
            return RewardType.MAJOR
        if streak_count >= 7:
            return RewardType.MEDIUM
        if streak_count >= 3:
            return RewardType.MINOR
        return None

    @staticmethod
    def all_earned_rewards(streak_count: int) -> List[RewardDefinition]:
        return [r for r in REWARD_DEFINITIONS if streak_count >= r.streak_required]

    @staticmethod
    def reward_suggestions(reward_type: RewardType) -> List[str]:
        definition = next((r for r in REWARD_DEFINITIONS if r.type == reward_type), None)
        return list(definition.suggestions) if definition else []

    def suggest_reward(self, reward_type: RewardType) -> Optional[str]:
        suggestions = self.reward_suggestions(reward_type)
        return self.rng.choice(suggestions) if suggestions else None

    def build_reward(self, user_id: str, milestone: int, now: datetime) -> Optional[Reward]:
        definition = self.reward_for_streak(milestone)
        if definition is None:
            return None
        return Reward(
            id=None,
            user_id=user_id,
            type=definition.type,
            milestone=milestone,
            name=definition.name,
            description=definition.description,
            status=RewardStatus.CLAIMABLE,
            created_at=now,
            expires_at=now + timedelta(days=self.reward_expiry_days),
        )
