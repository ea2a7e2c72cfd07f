"""
Task Catalog — static domain data + accessors.
Every task id is globally unique and belongs to one of the fixed categories.
"""
from datetime import date, datetime
from typing import Dict, Iterable, List, Optional

from discipline.domain.exceptions import InvariantViolation
from discipline.domain.models.record import DailyRecord
from discipline.domain.models.task import (
    TaskCategory, TaskCompletion, TaskDefinition, TaskPriority, ValidationResult
)

C = TaskCategory
P = TaskPriority

TASK_DEFINITIONS: List[TaskDefinition] = [
    # ──── Deen: mandatory prayers ─────────────────────────────────────────────
    TaskDefinition("fajr", C.DEEN, "Fajr Prayer", "Performed Fajr prayer on time", 15, P.CRITICAL, icon="🌅"),
    TaskDefinition("zuhr", C.DEEN, "Zuhr Prayer", "Performed Zuhr prayer on time", 12, P.CRITICAL, icon="☀️"),
    TaskDefinition("asr", C.DEEN, "Asr Prayer", "Performed Asr prayer on time", 12, P.CRITICAL, icon="🌤️"),
    TaskDefinition("maghrib", C.DEEN, "Maghrib Prayer", "Performed Maghrib prayer on time", 12, P.CRITICAL, icon="🌇"),
    TaskDefinition("isha", C.DEEN, "Isha Prayer", "Performed Isha prayer on time", 12, P.CRITICAL, icon="🌙"),

    # ──── Health & fitness ────────────────────────────────────────────────────
    TaskDefinition("workout", C.HEALTH, "Workout", "Completed workout session", 12, P.HIGH, icon="💪"),
    TaskDefinition(
        "steps", C.HEALTH, "Steps Goal", "Reached daily steps target", 8, P.HIGH, icon="👟",
        requires_value=True, value_label="steps", target_value=10000, min_value=10000,
    ),
    TaskDefinition("mobility", C.HEALTH, "Mobility/Stretching", "Completed mobility or stretching routine", 6, P.MEDIUM, icon="🧘"),

    # ──── Sleep discipline ────────────────────────────────────────────────────
    TaskDefinition("sleep_time", C.SLEEP, "Sleep Before Target", "Went to bed before target time", 10, P.HIGH, icon="🛏️"),
    TaskDefinition(
        "sleep_duration", C.SLEEP, "7-9 Hours Sleep", "Got 7-9 hours of quality sleep", 10, P.HIGH, icon="😴",
        requires_value=True, value_label="hours", target_value=7.5, min_value=7, max_value=9,
    ),
    TaskDefinition("no_phone_before_bed", C.SLEEP, "No Phone 30min Before Bed", "No phone usage 30 minutes before sleep", 8, P.HIGH, icon="📵"),

    # ──── Nutrition ───────────────────────────────────────────────────────────
    TaskDefinition("calories_logged", C.NUTRITION, "Calories Logged", "Tracked all food intake for the day", 6, P.MEDIUM, icon="📝"),
    TaskDefinition(
        "calories_target", C.NUTRITION, "Within Calorie Target", "Stayed within daily calorie target", 8, P.HIGH, icon="🎯",
        requires_value=True, value_label="calories",
    ),
    TaskDefinition("no_junk", C.NUTRITION, "No Junk Food", "Avoided junk food and processed snacks", 8, P.HIGH, icon="🚫"),
    TaskDefinition(
        "water", C.NUTRITION, "Water Goal Met", "Drank target amount of water", 6, P.MEDIUM, icon="💧",
        requires_value=True, value_label="glasses", target_value=8,
    ),

    # ──── Productivity ────────────────────────────────────────────────────────
    TaskDefinition("top_3_tasks", C.PRODUCTIVITY, "Top 3 Tasks Done", "Completed all 3 priority tasks for the day", 12, P.CRITICAL, icon="✅"),
    TaskDefinition("todo_70", C.PRODUCTIVITY, "≥70% To-Do List", "Completed at least 70% of to-do list", 8, P.HIGH, icon="📋"),
    TaskDefinition(
        "deep_work", C.PRODUCTIVITY, "Deep Work Session", "Completed focused deep work session", 10, P.HIGH, icon="🎯",
        requires_value=True, value_label="minutes", target_value=90,
    ),
    TaskDefinition(
        "learning", C.PRODUCTIVITY, "Learning/Reading", "Spent time learning or reading", 6, P.MEDIUM, icon="📚",
        requires_value=True, value_label="minutes", target_value=30,
    ),

    # ──── Mental control ──────────────────────────────────────────────────────
    TaskDefinition("mood_check", C.MENTAL, "Mood Check-in", "Completed mood check-in and reflection", 4, P.MEDIUM, icon="🧠"),
    TaskDefinition("gratitude", C.MENTAL, "Gratitude Practice", "Listed 3 things grateful for", 4, P.MEDIUM, icon="🙏"),
    TaskDefinition("journaling", C.MENTAL, "Journaling", "Completed daily journal entry", 6, P.MEDIUM, icon="📔"),

    # ──── Digital discipline ──────────────────────────────────────────────────
    TaskDefinition(
        "screen_time", C.DIGITAL, "Screen Time Under Limit", "Kept screen time under daily limit", 8, P.HIGH, icon="📱",
        requires_value=True, value_label="minutes",
    ),
    TaskDefinition("no_phone_after_isha", C.DIGITAL, "No Phone After Isha", "No unnecessary phone use after Isha", 8, P.HIGH, icon="🔕"),
    TaskDefinition(
        "social_media_fast", C.DIGITAL, "Social Media Fast", "Avoided social media for the day", 6, P.MEDIUM,
        is_optional=True, icon="🚷",
    ),

    # ──── Deen upgrade (optional, bonus only) ─────────────────────────────────
    TaskDefinition(
        "quran", C.DEEN_UPGRADE, "Quran Reading", "Read Quran today", 8, P.HIGH, is_optional=True, icon="📖",
        requires_value=True, value_label="pages", target_value=5,
    ),
    TaskDefinition("dhikr", C.DEEN_UPGRADE, "Dhikr/Adhkar", "Completed morning/evening adhkar", 6, P.MEDIUM, is_optional=True, icon="📿"),
    TaskDefinition("charity", C.DEEN_UPGRADE, "Daily Charity/Sadaqah", "Gave charity or helped someone", 6, P.MEDIUM, is_optional=True, icon="💝"),
]

CATEGORY_INFO: Dict[TaskCategory, Dict[str, str]] = {
    C.DEEN: {"name": "Deen", "icon": "🕌"},
    C.HEALTH: {"name": "Health & Fitness", "icon": "💪"},
    C.SLEEP: {"name": "Sleep Discipline", "icon": "🌙"},
    C.NUTRITION: {"name": "Nutrition", "icon": "🥗"},
    C.PRODUCTIVITY: {"name": "Productivity", "icon": "🚀"},
    C.MENTAL: {"name": "Mental Control", "icon": "🧠"},
    C.DIGITAL: {"name": "Digital Discipline", "icon": "📵"},
    C.DEEN_UPGRADE: {"name": "Deen Upgrade", "icon": "⭐"},
}

# The optional bonus category never takes part in pass/fail or weakest/strongest ranking
UPGRADE_CATEGORY = C.DEEN_UPGRADE


def category_name(category: TaskCategory) -> str:
    return CATEGORY_INFO[category]["name"]


class TaskCatalog:
    """Immutable, ordered view over a list of task definitions."""

    def __init__(self, definitions: Iterable[TaskDefinition]):
        self._definitions = tuple(definitions)
        self._by_id: Dict[str, TaskDefinition] = {}
        for task in self._definitions:
            if task.id in self._by_id:
                raise InvariantViolation(f"Duplicate task id '{task.id}' in catalog")
            if not isinstance(task.category, TaskCategory):
                raise InvariantViolation(f"Task '{task.id}' has unknown category {task.category!r}")
            if task.target_value is not None and not self._within_bounds(task, task.target_value):
                raise InvariantViolation(f"Task '{task.id}' target lies outside its validation bounds")
            self._by_id[task.id] = task

    # ──── Lookups ─────────────────────────────────────────────────────────────
    def all(self) -> List[TaskDefinition]:
        return list(self._definitions)

    def get(self, task_id: str) -> Optional[TaskDefinition]:
        return self._by_id.get(task_id)

    def require(self, task_id: str) -> TaskDefinition:
        task = self.get(task_id)
        if task is None:
            raise InvariantViolation(f"Unknown task id '{task_id}'")
        return task

    def tasks_by_category(self, category: TaskCategory) -> List[TaskDefinition]:
        return [t for t in self._definitions if t.category == category]

    def tasks_grouped_by_category(self) -> Dict[TaskCategory, List[TaskDefinition]]:
        grouped: Dict[TaskCategory, List[TaskDefinition]] = {c: [] for c in TaskCategory}
        for task in self._definitions:
            grouped[task.category].append(task)
        return grouped

    def mandatory_tasks(self) -> List[TaskDefinition]:
        return [t for t in self._definitions if t.is_mandatory()]

    def optional_tasks(self) -> List[TaskDefinition]:
        return [t for t in self._definitions if t.is_optional]

    def total_mandatory_points(self) -> int:
        return sum(t.weight for t in self.mandatory_tasks())

    def total_possible_points(self) -> int:
        return sum(t.weight for t in self._definitions)

    # ──── Daily population ────────────────────────────────────────────────────
    def empty_completions(self) -> Dict[str, TaskCompletion]:
        return {t.id: TaskCompletion(task_id=t.id) for t in self._definitions}

    def create_empty_daily_record(self, user_id: str, day: date, now: datetime) -> DailyRecord:
        return DailyRecord(
            user_id=user_id,
            date=day,
            tasks=self.empty_completions(),
            total_points=self.total_mandatory_points(),
            created_at=now,
        )

    def category_stats(self, completions: Dict[str, TaskCompletion]) -> Dict[TaskCategory, Dict[str, int]]:
        """Mandatory tasks only, keyed in catalog category order."""
        stats = {c: {"completed": 0, "total": 0, "points": 0, "max_points": 0} for c in TaskCategory}
        for task in self.mandatory_tasks():
            entry = stats[task.category]
            entry["total"] += 1
            entry["max_points"] += task.weight
            completion = completions.get(task.id)
            if completion and completion.completed:
                entry["completed"] += 1
                entry["points"] += task.weight
        return stats

    def uncompleted_mandatory_tasks(self, completions: Dict[str, TaskCompletion]) -> List[TaskDefinition]:
        return [
            t for t in self.mandatory_tasks()
            if not (completions.get(t.id) and completions[t.id].completed)
        ]

    # ──── Validation ──────────────────────────────────────────────────────────
    def validate_completion_value(self, task: TaskDefinition, value: Optional[float]) -> ValidationResult:
        if not task.requires_value:
            return ValidationResult.ok()
        if value is None:
            return ValidationResult.invalid(f"Please enter {task.value_label or 'a value'}")
        if value < 0:
            return ValidationResult.invalid("Value cannot be negative")
        if task.min_value is not None and value < task.min_value:
            if task.max_value is not None:
                return ValidationResult.invalid(
                    f"{task.name} should be between {task.min_value:g} and {task.max_value:g} {task.value_label}"
                )
            return ValidationResult.invalid(f"Need at least {task.min_value:g} {task.value_label}")
        if task.max_value is not None and value > task.max_value:
            if task.min_value is not None:
                return ValidationResult.invalid(
                    f"{task.name} should be between {task.min_value:g} and {task.max_value:g} {task.value_label}"
                )
            return ValidationResult.invalid(f"Cannot exceed {task.max_value:g} {task.value_label}")
        return ValidationResult.ok()

    @staticmethod
    def _within_bounds(task: TaskDefinition, value: float) -> bool:
        if task.min_value is not None and value < task.min_value:
            return False
        if task.max_value is not None and value > task.max_value:
            return False
        return True

    def __len__(self) -> int:
        return len(self._definitions)

    def __iter__(self):
        return iter(self._definitions)


DEFAULT_CATALOG = TaskCatalog(TASK_DEFINITIONS)
