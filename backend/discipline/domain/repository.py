"""
Repository contract consumed by the services.

Implementations: SQLAlchemy (infrastructure/repositories/sql_repository.py)
and an in-memory one used by the service tests.
"""
from abc import ABC, abstractmethod
from datetime import date, datetime
from typing import List, Optional

from discipline.domain.exceptions import NotFound
from discipline.domain.models.circle import CouplesCircle
from discipline.domain.models.penalty import Penalty, PenaltyStatus
from discipline.domain.models.record import DailyRecord
from discipline.domain.models.reward import Reward, StreakData
from discipline.domain.models.user import UserProfile


class Repository(ABC):

    # ──── Users ───────────────────────────────────────────────────────────────
    @abstractmethod
    def get_user(self, user_id: str) -> Optional[UserProfile]: ...

    @abstractmethod
    def get_user_by_email(self, email: str) -> Optional[UserProfile]: ...

    @abstractmethod
    def create_user(self, profile: UserProfile) -> str: ...

    @abstractmethod
    def update_user(self, profile: UserProfile): ...

    def get_streak(self, user_id: str) -> StreakData:
        return self.require_user(user_id).streak

    def set_streak(self, user_id: str, streak: StreakData):
        profile = self.require_user(user_id)
        profile.streak = streak
        self.update_user(profile)

    def require_user(self, user_id: str) -> UserProfile:
        profile = self.get_user(user_id)
        if profile is None:
            raise NotFound(f"User {user_id} not found")
        return profile

    # ──── Daily records ───────────────────────────────────────────────────────
    @abstractmethod
    def get_daily_record(self, user_id: str, day: date) -> Optional[DailyRecord]: ...

    @abstractmethod
    def upsert_daily_record(self, user_id: str, day: date, record: DailyRecord): ...

    @abstractmethod
    def get_records_in_range(self, user_id: str, start: date, end: date) -> List[DailyRecord]:
        """Inclusive on both ends, oldest first."""

    @abstractmethod
    def get_all_records(self, user_id: str) -> List[DailyRecord]: ...

    # ──── Penalties ───────────────────────────────────────────────────────────
    @abstractmethod
    def create_penalty(self, user_id: str, penalty: Penalty) -> str: ...

    @abstractmethod
    def get_penalty(self, user_id: str, penalty_id: str) -> Optional[Penalty]: ...

    @abstractmethod
    def get_penalties(self, user_id: str, limit: Optional[int] = None) -> List[Penalty]:
        """Most recent failed day first."""

    @abstractmethod
    def get_penalty_for_date(self, user_id: str, day: date) -> Optional[Penalty]: ...

    @abstractmethod
    def update_penalty(self, penalty: Penalty): ...

    @abstractmethod
    def save_partner_edit(self, penalty: Penalty):
        """
        Persist a partner edit. Must re-read the stored row and raise
        PenaltyEditRejected if it was already edited by a partner.
        """

    def get_pending_penalties(self, user_id: str) -> List[Penalty]:
        return [p for p in self.get_penalties(user_id) if p.is_pending()]

    def has_pending_penalties(self, user_id: str) -> bool:
        return bool(self.get_pending_penalties(user_id))

    def update_penalty_status(self, user_id: str, penalty_id: str, status: PenaltyStatus, now: datetime) -> Penalty:
        penalty = self.get_penalty(user_id, penalty_id)
        if penalty is None:
            raise NotFound(f"Penalty {penalty_id} not found")
        if status == PenaltyStatus.COMPLETED:
            penalty.complete(now)
        elif status == PenaltyStatus.WAIVED:
            penalty.waive(now)
        self.update_penalty(penalty)
        return penalty

    # ──── Rewards ─────────────────────────────────────────────────────────────
    @abstractmethod
    def create_reward(self, user_id: str, reward: Reward) -> str: ...

    @abstractmethod
    def get_reward(self, user_id: str, reward_id: str) -> Optional[Reward]: ...

    @abstractmethod
    def get_rewards(self, user_id: str) -> List[Reward]:
        """Newest first."""

    @abstractmethod
    def update_reward(self, reward: Reward): ...

    def get_claimable_rewards(self, user_id: str, now: datetime) -> List[Reward]:
        return [r for r in self.get_rewards(user_id) if r.is_claimable(now)]

    def claim_reward(self, user_id: str, reward_id: str, now: datetime) -> Reward:
        reward = self.get_reward(user_id, reward_id)
        if reward is None:
            raise NotFound(f"Reward {reward_id} not found")
        reward.claim(now)
        self.update_reward(reward)
        return reward

    # ──── Couples circles ─────────────────────────────────────────────────────
    @abstractmethod
    def create_circle(self, circle: CouplesCircle) -> str: ...

    @abstractmethod
    def get_circle(self, circle_id: str) -> Optional[CouplesCircle]: ...

    @abstractmethod
    def get_circle_by_invite_code(self, invite_code: str) -> Optional[CouplesCircle]: ...

    @abstractmethod
    def update_circle(self, circle: CouplesCircle): ...

    @abstractmethod
    def delete_circle(self, circle_id: str):
        """Removes the circle and nulls `couples_circle_id` on every member profile."""
