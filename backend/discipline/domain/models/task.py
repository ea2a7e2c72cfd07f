from dataclasses import dataclass
from datetime import datetime
from typing import Optional
from enum import Enum


class TaskCategory(str, Enum):
    DEEN = "deen"
    HEALTH = "health"
    SLEEP = "sleep"
    NUTRITION = "nutrition"
    PRODUCTIVITY = "productivity"
    MENTAL = "mental"
    DIGITAL = "digital"
    DEEN_UPGRADE = "deen_upgrade"


class TaskPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


@dataclass(frozen=True)
class TaskDefinition:
    """
    Static catalog entry. Never persisted per user.

    `min_value` / `max_value` are the only bounds used to validate a numeric
    completion; `target_value` is the goal shown to the user and always lies
    inside those bounds.
    """
    id: str
    category: TaskCategory
    name: str
    description: str
    weight: int
    priority: TaskPriority
    is_optional: bool = False
    icon: str = ""
    requires_value: bool = False
    value_label: Optional[str] = None
    target_value: Optional[float] = None
    min_value: Optional[float] = None
    max_value: Optional[float] = None

    # ──── Business Rules ────────────────────────────────────────────
    def is_mandatory(self) -> bool:
        return not self.is_optional

    def is_critical(self) -> bool:
        return self.priority == TaskPriority.CRITICAL

    def counts_as_critical_miss(self) -> bool:
        return self.is_critical() and self.is_mandatory()


@dataclass
class TaskCompletion:
    task_id: str
    completed: bool = False
    value: Optional[float] = None
    completed_at: Optional[datetime] = None
    notes: Optional[str] = None
    updated_at: Optional[datetime] = None

    def mark(self, completed: bool, value: Optional[float], now: datetime):
        self.completed = completed
        self.value = value
        self.completed_at = now if completed else None
        self.updated_at = now


@dataclass(frozen=True)
class ValidationResult:
    valid: bool
    reason: Optional[str] = None

    @classmethod
    def ok(cls) -> "ValidationResult":
        return cls(valid=True)

    @classmethod
    def invalid(cls, reason: str) -> "ValidationResult":
        return cls(valid=False, reason=reason)
