from pydantic import BaseModel, EmailStr, Field, field_validator
from typing import Optional, List, Dict
from datetime import datetime, date

from discipline.domain.models.analytics import ComplianceTrend
from discipline.domain.models.penalty import EditedBy, PenaltySeverity, PenaltyStatus, PenaltyType
from discipline.domain.models.record import DayStatus
from discipline.domain.models.reward import RewardStatus, RewardType
from discipline.domain.models.task import TaskCategory, TaskPriority


# ──── Users ───────────────────────────────────────────────────────────────────
class UserCreate(BaseModel):
    email: EmailStr
    display_name: str = Field(..., min_length=1, max_length=100)
    timezone: str = Field(default="UTC", max_length=64)

class StreakResponse(BaseModel):
    current: int
    longest: int
    last_safe_date: Optional[date]

    class Config:
        from_attributes = True

class UserResponse(BaseModel):
    id: str
    email: str
    display_name: str
    timezone: str
    streak: StreakResponse
    couples_circle_id: Optional[str]
    created_at: datetime

    class Config:
        from_attributes = True


# ──── Catalog ─────────────────────────────────────────────────────────────────
class TaskDefinitionResponse(BaseModel):
    id: str
    category: TaskCategory
    name: str
    description: str
    weight: int
    priority: TaskPriority
    is_optional: bool
    icon: str
    requires_value: bool
    value_label: Optional[str]
    target_value: Optional[float]
    min_value: Optional[float]
    max_value: Optional[float]

    class Config:
        from_attributes = True

class CategoryGroupResponse(BaseModel):
    category: TaskCategory
    name: str
    icon: str
    tasks: List[TaskDefinitionResponse]

class CatalogResponse(BaseModel):
    tasks: List[TaskDefinitionResponse]
    mandatory_count: int
    total_mandatory_points: int
    total_possible_points: int
    safe_threshold: int
    warning_threshold: int


# ──── Daily record ────────────────────────────────────────────────────────────
class TaskCompletionResponse(BaseModel):
    task_id: str
    completed: bool
    value: Optional[float]
    completed_at: Optional[datetime]
    notes: Optional[str]
    updated_at: Optional[datetime]

    class Config:
        from_attributes = True

class DailyRecordResponse(BaseModel):
    user_id: str
    date: date
    tasks: Dict[str, TaskCompletionResponse]
    total_points: int
    earned_points: int
    bonus_points: int
    completion_percentage: int
    status: DayStatus
    day_ended_at: Optional[datetime]
    verdict_generated_at: Optional[datetime]
    penalty_assigned: Optional[str]
    reward_earned: Optional[str]

    class Config:
        from_attributes = True

class TaskToggleRequest(BaseModel):
    completed: bool
    value: Optional[float] = None
    notes: Optional[str] = Field(default=None, max_length=1000)

class CategoryBreakdownResponse(BaseModel):
    category: TaskCategory
    completed: int
    total: int
    points: int
    max_points: int

class VerdictResponse(BaseModel):
    date: date
    status: DayStatus
    score: int
    threshold: int
    message: str
    breakdown: List[CategoryBreakdownResponse]
    weakest_category: Optional[TaskCategory]
    penalty_type: Optional[str]
    reward_type: Optional[str]


# ──── Penalties ───────────────────────────────────────────────────────────────
class PenaltyResponse(BaseModel):
    id: str
    user_id: str
    date: date
    type: PenaltyType
    severity: PenaltySeverity
    description: str
    status: PenaltyStatus
    completed_at: Optional[datetime]
    waived_at: Optional[datetime]
    waived_reason: Optional[str]
    edited_by: Optional[EditedBy]
    edited_at: Optional[datetime]
    original_type: Optional[PenaltyType]
    original_description: Optional[str]
    created_at: datetime

    class Config:
        from_attributes = True

class PenaltyDefinitionResponse(BaseModel):
    type: PenaltyType
    severity: PenaltySeverity
    name: str
    description: str
    duration: str
    icon: str

class WaiveRequest(BaseModel):
    reason: Optional[str] = Field(default=None, max_length=500)

class EscalationResponse(BaseModel):
    escalation: bool
    window_days: int
    threshold: int
    penalty_streak: int
    has_pending: bool


# ──── Rewards & streak ────────────────────────────────────────────────────────
class RewardResponse(BaseModel):
    id: str
    type: RewardType
    milestone: int
    name: str
    description: str
    expires_at: datetime
    status: RewardStatus
    claimed_at: Optional[datetime]
    created_at: datetime

    class Config:
        from_attributes = True

class RewardSuggestionResponse(BaseModel):
    type: RewardType
    suggestion: Optional[str]
    suggestions: List[str]

class StreakProgressResponse(BaseModel):
    current: int
    longest: int
    last_safe_date: Optional[date]
    next_milestone: int
    previous_milestone: int
    progress: float
    message: str


class DayEndResponse(BaseModel):
    record: DailyRecordResponse
    verdict: VerdictResponse
    streak: StreakResponse
    penalty: Optional[PenaltyResponse] = None
    milestone: Optional[int] = None
    reward: Optional[RewardResponse] = None
    escalation: bool
    already_processed: bool


# ──── Couples ─────────────────────────────────────────────────────────────────
class CircleCreate(BaseModel):
    name: Optional[str] = Field(default=None, max_length=100)

class CircleJoin(BaseModel):
    invite_code: str = Field(..., min_length=6, max_length=6)

    @field_validator("invite_code")
    @classmethod
    def alphanumeric(cls, v: str) -> str:
        if not v.isalnum():
            raise ValueError("Invite code must be alphanumeric")
        return v

class ChallengeCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)

class ChallengeResponse(BaseModel):
    id: str
    name: str
    completed: bool

class CircleResponse(BaseModel):
    id: str
    invite_code: str
    created_by: str
    members: List[str]
    name: Optional[str]
    shared_streak: int
    mutual_challenges: List[ChallengeResponse]
    created_at: datetime

    class Config:
        from_attributes = True

class PartnerProgressResponse(BaseModel):
    partner_id: str
    display_name: str
    today_score: int
    today_status: DayStatus
    current_streak: int
    longest_streak: int
    weekly_average: int
    tasks_completed: int
    total_tasks: int

class PartnerPenaltyEdit(BaseModel):
    new_type: PenaltyType
    description: Optional[str] = Field(default=None, max_length=500)


# ──── Analytics ───────────────────────────────────────────────────────────────
class StatusCountsResponse(BaseModel):
    safe: int
    warning: int
    failure: int

class CategoryStatsResponse(BaseModel):
    total_tasks: int
    completed_tasks: int
    completion_rate: int
    average_points: int

class TaskMissCountResponse(BaseModel):
    task_id: str
    task_name: str
    miss_count: int
    category: TaskCategory

class AnalyticsSummaryResponse(BaseModel):
    days: int
    average_score: int
    status_counts: StatusCountsResponse
    category_breakdown: Dict[TaskCategory, CategoryStatsResponse]
    weakest_category: Optional[TaskCategory]
    strongest_category: Optional[TaskCategory]
    missed_tasks: List[TaskMissCountResponse]
    trend: ComplianceTrend
    best_day_of_week: Optional[str]
    worst_day_of_week: Optional[str]

class WeeklyReportResponse(BaseModel):
    id: str
    week_start: date
    week_end: date
    summary: AnalyticsSummaryResponse
    streak_maintained: bool

class MonthComparisonResponse(BaseModel):
    score_diff: int

class MonthlyReportResponse(BaseModel):
    id: str
    month: str
    summary: AnalyticsSummaryResponse
    failure_frequency: float
    focus_area: Optional[TaskCategory]
    enforced_suggestion: Optional[str]
    vs_last_month: Optional[MonthComparisonResponse]

class HeatmapCellResponse(BaseModel):
    date: date
    score: int
    status: DayStatus
    color: str

class ComparativeAnalyticsResponse(BaseModel):
    user_average: int
    partner_average: int
    difference: int
    leader: str
    shared_safe_days: int
    shared_failure_days: int
    dates_compared: List[date]


# ──── Common ──────────────────────────────────────────────────────────────────
class MessageResponse(BaseModel):
    message: str
