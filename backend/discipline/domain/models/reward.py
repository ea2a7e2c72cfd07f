from dataclasses import dataclass, field, replace
from datetime import datetime, date
from typing import Optional, Tuple
from enum import Enum

from discipline.domain.exceptions import InvalidTransition, InvariantViolation


class RewardType(str, Enum):
    MINOR = "minor"
    MEDIUM = "medium"
    MAJOR = "major"


class RewardStatus(str, Enum):
    CLAIMABLE = "claimable"
    CLAIMED = "claimed"
    EXPIRED = "expired"


@dataclass(frozen=True)
class RewardDefinition:
    type: RewardType
    streak_required: int
    name: str
    description: str
    suggestions: Tuple[str, ...] = ()


@dataclass
class Reward:
    id: Optional[str]
    user_id: str
    type: RewardType
    milestone: int
    name: str
    description: str
    expires_at: datetime
    status: RewardStatus = RewardStatus.CLAIMABLE
    claimed_at: Optional[datetime] = None
    created_at: datetime = field(default_factory=datetime.utcnow)

    # ──── Business Rules ────────────────────────────────────────────
    def is_expired(self, now: datetime) -> bool:
        """Expiry is derived on read; the stored status is never rewritten."""
        return now > self.expires_at

    def is_claimable(self, now: datetime) -> bool:
        return self.status == RewardStatus.CLAIMABLE and not self.is_expired(now)

    def claim(self, now: datetime):
        if self.status != RewardStatus.CLAIMABLE:
            raise InvalidTransition(f"Cannot claim reward in '{self.status.value}' state")
        if self.is_expired(now):
            raise InvalidTransition(f"Reward expired at {self.expires_at.isoformat()}")
        self.status = RewardStatus.CLAIMED
        self.claimed_at = now


# ──── Streak ──────────────────────────────────────────────────────────────────
@dataclass(frozen=True)
class StreakData:
    current: int = 0
    longest: int = 0
    last_safe_date: Optional[date] = None

    def check_invariants(self) -> "StreakData":
        if self.current < 0 or self.longest < 0:
            raise InvariantViolation(f"Negative streak values: {self}")
        if self.current > self.longest:
            raise InvariantViolation(
                f"Streak current ({self.current}) exceeds longest ({self.longest})"
            )
        return self

    def extended(self, day: date) -> "StreakData":
        current = self.current + 1
        return replace(self, current=current, longest=max(self.longest, current), last_safe_date=day)

    def broken(self) -> "StreakData":
        return replace(self, current=0, last_safe_date=None)
