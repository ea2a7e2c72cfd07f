from dataclasses import dataclass, field
from datetime import datetime, date
from typing import Optional, Dict, List
from enum import Enum

from discipline.domain.models.task import TaskCategory, TaskCompletion


class DayStatus(str, Enum):
    PENDING = "pending"
    SAFE = "safe"
    WARNING = "warning"
    FAILURE = "failure"

    def is_final(self) -> bool:
        return self != DayStatus.PENDING


# ──── Daily Record ────────────────────────────────────────────────────────────
@dataclass
class DailyRecord:
    user_id: str
    date: date
    tasks: Dict[str, TaskCompletion]
    total_points: int = 0
    earned_points: int = 0
    bonus_points: int = 0
    completion_percentage: int = 0
    status: DayStatus = DayStatus.PENDING
    day_ended_at: Optional[datetime] = None
    verdict_generated_at: Optional[datetime] = None
    penalty_assigned: Optional[str] = None   # penalty id
    reward_earned: Optional[str] = None      # reward id
    created_at: datetime = field(default_factory=datetime.utcnow)
    updated_at: Optional[datetime] = None

    def is_finalized(self) -> bool:
        return self.day_ended_at is not None

    def is_completed(self, task_id: str) -> bool:
        completion = self.tasks.get(task_id)
        return bool(completion and completion.completed)


# ──── Verdict ─────────────────────────────────────────────────────────────────
@dataclass
class CategoryBreakdown:
    category: TaskCategory
    completed: int
    total: int
    points: int
    max_points: int

    def completion_rate(self) -> float:
        if self.total == 0:
            return 0.0
        return self.completed / self.total * 100


@dataclass
class DailyVerdict:
    date: date
    status: DayStatus
    score: int
    threshold: int
    message: str
    breakdown: List[CategoryBreakdown]
    weakest_category: Optional[TaskCategory] = None
    # Penalty selection belongs to the penalty engine; left unset here.
    penalty_type: Optional[str] = None
    reward_type: Optional[str] = None
