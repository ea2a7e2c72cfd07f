from dataclasses import dataclass, field
from datetime import date
from typing import Optional, Dict, List
from enum import Enum

from discipline.domain.models.record import DayStatus
from discipline.domain.models.task import TaskCategory


class ComplianceTrend(str, Enum):
    IMPROVING = "improving"
    DECLINING = "declining"
    STABLE = "stable"


@dataclass
class StatusCounts:
    safe: int = 0
    warning: int = 0
    failure: int = 0


@dataclass
class CategoryStats:
    total_tasks: int = 0
    completed_tasks: int = 0
    completion_rate: int = 0
    average_points: int = 0


@dataclass
class TaskMissCount:
    task_id: str
    task_name: str
    miss_count: int
    category: TaskCategory


@dataclass
class HeatmapCell:
    date: date
    score: int
    status: DayStatus


@dataclass
class AnalyticsSummary:
    days: int
    average_score: int
    status_counts: StatusCounts
    category_breakdown: Dict[TaskCategory, CategoryStats]
    weakest_category: Optional[TaskCategory]
    strongest_category: Optional[TaskCategory]
    missed_tasks: List[TaskMissCount]
    trend: ComplianceTrend
    best_day_of_week: Optional[str]
    worst_day_of_week: Optional[str]


# ──── Reports ─────────────────────────────────────────────────────────────────
@dataclass
class WeeklyReport:
    id: str                  # YYYY-Www
    week_start: date
    week_end: date
    summary: AnalyticsSummary
    streak_maintained: bool


@dataclass
class MonthComparison:
    score_diff: int


@dataclass
class MonthlyReport:
    id: str                  # YYYY-MM
    month: str
    summary: AnalyticsSummary
    failure_frequency: float  # failures per week
    focus_area: Optional[TaskCategory]
    enforced_suggestion: Optional[str]
    vs_last_month: Optional[MonthComparison] = None


@dataclass
class ComparativeAnalytics:
    user_average: int
    partner_average: int
    difference: int
    leader: str              # "user" | "partner" | "tie"
    shared_safe_days: int = 0
    shared_failure_days: int = 0
    dates_compared: List[date] = field(default_factory=list)
