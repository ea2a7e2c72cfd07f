from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, List
import random
import secrets
import string
import uuid

from discipline.domain.exceptions import (
    AlreadyInCircle, CircleFull, NotFound, NotInCircle
)
from discipline.domain.models.record import DayStatus

CIRCLE_CAPACITY = 2
INVITE_CODE_LENGTH = 6
INVITE_CODE_ALPHABET = string.ascii_uppercase + string.digits


def generate_invite_code(rng: Optional[random.Random] = None) -> str:
    chooser = rng.choice if rng is not None else secrets.choice
    return "".join(chooser(INVITE_CODE_ALPHABET) for _ in range(INVITE_CODE_LENGTH))


def normalize_invite_code(code: str) -> str:
    return code.strip().upper()


@dataclass
class MutualChallenge:
    id: str
    name: str
    completed: bool = False


@dataclass
class CouplesCircle:
    id: Optional[str]
    invite_code: str
    created_by: str
    members: List[str]
    name: Optional[str] = None
    shared_streak: int = 0
    mutual_challenges: List[MutualChallenge] = field(default_factory=list)
    created_at: datetime = field(default_factory=datetime.utcnow)

    # ──── Business Rules ────────────────────────────────────────────
    def is_full(self) -> bool:
        return len(self.members) >= CIRCLE_CAPACITY

    def is_empty(self) -> bool:
        return not self.members

    def has_member(self, user_id: str) -> bool:
        return user_id in self.members

    def partner_of(self, user_id: str) -> Optional[str]:
        if not self.has_member(user_id):
            raise NotInCircle()
        return next((m for m in self.members if m != user_id), None)

    def join(self, user_id: str):
        if self.has_member(user_id):
            raise AlreadyInCircle("You are already in this circle")
        if self.is_full():
            raise CircleFull()
        self.members.append(user_id)

    def leave(self, user_id: str):
        if not self.has_member(user_id):
            raise NotInCircle()
        self.members.remove(user_id)

    def add_challenge(self, name: str) -> MutualChallenge:
        challenge = MutualChallenge(id=uuid.uuid4().hex[:12], name=name)
        self.mutual_challenges.append(challenge)
        return challenge

    def complete_challenge(self, challenge_id: str) -> MutualChallenge:
        for challenge in self.mutual_challenges:
            if challenge.id == challenge_id:
                challenge.completed = True
                return challenge
        raise NotFound(f"Challenge {challenge_id} not found")


@dataclass
class PartnerProgress:
    partner_id: str
    display_name: str
    today_score: int
    today_status: DayStatus
    current_streak: int
    longest_streak: int
    weekly_average: int
    tasks_completed: int
    total_tasks: int
