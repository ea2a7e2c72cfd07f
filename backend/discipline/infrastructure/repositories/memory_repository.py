import copy
import uuid
from datetime import date
from typing import Dict, List, Optional, Tuple

from discipline.domain.exceptions import NotFound, PenaltyEditRejected
from discipline.domain.models.circle import CouplesCircle
from discipline.domain.models.penalty import EditedBy, Penalty
from discipline.domain.models.record import DailyRecord
from discipline.domain.models.reward import Reward
from discipline.domain.models.user import UserProfile
from discipline.domain.repository import Repository


def _new_id() -> str:
    return uuid.uuid4().hex


class InMemoryRepository(Repository):
    """
    Dict-backed repository. Objects are copied on the way in and out so
    callers see the same isolation a database gives them.
    """

    def __init__(self):
        self.users: Dict[str, UserProfile] = {}
        self.records: Dict[Tuple[str, date], DailyRecord] = {}
        self.penalties: Dict[str, Penalty] = {}
        self.rewards: Dict[str, Reward] = {}
        self.circles: Dict[str, CouplesCircle] = {}

    # ──── Users ───────────────────────────────────────────────────────────────
    def get_user(self, user_id: str) -> Optional[UserProfile]:
        return copy.deepcopy(self.users.get(user_id))

    def get_user_by_email(self, email: str) -> Optional[UserProfile]:
        match = next((u for u in self.users.values() if u.email == email), None)
        return copy.deepcopy(match)

    def create_user(self, profile: UserProfile) -> str:
        profile_id = profile.id or _new_id()
        stored = copy.deepcopy(profile)
        stored.id = profile_id
        self.users[profile_id] = stored
        return profile_id

    def update_user(self, profile: UserProfile):
        if profile.id not in self.users:
            raise NotFound(f"User {profile.id} not found")
        self.users[profile.id] = copy.deepcopy(profile)

    # ──── Daily records ───────────────────────────────────────────────────────
    def get_daily_record(self, user_id: str, day: date) -> Optional[DailyRecord]:
        return copy.deepcopy(self.records.get((user_id, day)))

    def upsert_daily_record(self, user_id: str, day: date, record: DailyRecord):
        self.records[(user_id, day)] = copy.deepcopy(record)

    def get_records_in_range(self, user_id: str, start: date, end: date) -> List[DailyRecord]:
        return [r for r in self.get_all_records(user_id) if start <= r.date <= end]

    def get_all_records(self, user_id: str) -> List[DailyRecord]:
        found = [copy.deepcopy(r) for (uid, _), r in self.records.items() if uid == user_id]
        return sorted(found, key=lambda r: r.date)

    # ──── Penalties ───────────────────────────────────────────────────────────
    def create_penalty(self, user_id: str, penalty: Penalty) -> str:
        stored = copy.deepcopy(penalty)
        stored.id = _new_id()
        stored.user_id = user_id
        self.penalties[stored.id] = stored
        return stored.id

    def get_penalty(self, user_id: str, penalty_id: str) -> Optional[Penalty]:
        penalty = self.penalties.get(penalty_id)
        if penalty is None or penalty.user_id != user_id:
            return None
        return copy.deepcopy(penalty)

    def get_penalties(self, user_id: str, limit: Optional[int] = None) -> List[Penalty]:
        found = sorted(
            (p for p in self.penalties.values() if p.user_id == user_id),
            key=lambda p: (p.date, p.created_at),
            reverse=True,
        )
        if limit is not None:
            found = found[:limit]
        return [copy.deepcopy(p) for p in found]

    def get_penalty_for_date(self, user_id: str, day: date) -> Optional[Penalty]:
        return next((p for p in self.get_penalties(user_id) if p.date == day), None)

    def update_penalty(self, penalty: Penalty):
        if penalty.id not in self.penalties:
            raise NotFound(f"Penalty {penalty.id} not found")
        self.penalties[penalty.id] = copy.deepcopy(penalty)

    def save_partner_edit(self, penalty: Penalty):
        stored = self.penalties.get(penalty.id)
        if stored is None:
            raise NotFound(f"Penalty {penalty.id} not found")
        if stored.edited_by == EditedBy.PARTNER:
            raise PenaltyEditRejected("Penalty was already edited by partner")
        self.penalties[penalty.id] = copy.deepcopy(penalty)

    # ──── Rewards ─────────────────────────────────────────────────────────────
    def create_reward(self, user_id: str, reward: Reward) -> str:
        stored = copy.deepcopy(reward)
        stored.id = _new_id()
        stored.user_id = user_id
        self.rewards[stored.id] = stored
        return stored.id

    def get_reward(self, user_id: str, reward_id: str) -> Optional[Reward]:
        reward = self.rewards.get(reward_id)
        if reward is None or reward.user_id != user_id:
            return None
        return copy.deepcopy(reward)

    def get_rewards(self, user_id: str) -> List[Reward]:
        found = sorted(
            (r for r in self.rewards.values() if r.user_id == user_id),
            key=lambda r: r.created_at,
            reverse=True,
        )
        return [copy.deepcopy(r) for r in found]

    def update_reward(self, reward: Reward):
        if reward.id not in self.rewards:
            raise NotFound(f"Reward {reward.id} not found")
        self.rewards[reward.id] = copy.deepcopy(reward)

    # ──── Couples circles ─────────────────────────────────────────────────────
    def create_circle(self, circle: CouplesCircle) -> str:
        stored = copy.deepcopy(circle)
        stored.id = _new_id()
        self.circles[stored.id] = stored
        return stored.id

    def get_circle(self, circle_id: str) -> Optional[CouplesCircle]:
        return copy.deepcopy(self.circles.get(circle_id))

    def get_circle_by_invite_code(self, invite_code: str) -> Optional[CouplesCircle]:
        match = next((c for c in self.circles.values() if c.invite_code == invite_code), None)
        return copy.deepcopy(match)

    def update_circle(self, circle: CouplesCircle):
        if circle.id not in self.circles:
            raise NotFound(f"Circle {circle.id} not found")
        self.circles[circle.id] = copy.deepcopy(circle)

    def delete_circle(self, circle_id: str):
        self.circles.pop(circle_id, None)
        for profile in self.users.values():
            if profile.couples_circle_id == circle_id:
                profile.couples_circle_id = None
