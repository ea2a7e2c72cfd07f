"""
Scoring Engine — pure domain logic.
Turns a day's task completions into points, a percentage and a day status.
"""
import math
from dataclasses import replace
from datetime import datetime
from typing import Dict, List, Optional, Tuple

from discipline.domain.exceptions import RecordLocked
from discipline.domain.models.record import CategoryBreakdown, DailyRecord, DailyVerdict, DayStatus
from discipline.domain.models.task import TaskCategory, TaskCompletion, ValidationResult
from discipline.domain.services.task_catalog import (
    DEFAULT_CATALOG, UPGRADE_CATEGORY, TaskCatalog, category_name
)

SAFE_THRESHOLD_BASE = 65
SAFE_THRESHOLD_FLOOR = 55
WARNING_BAND = 15
# Above this many mandatory tasks the safe bar drops by THRESHOLD_STEP per task
THRESHOLD_TASK_PIVOT = 20
THRESHOLD_STEP = 0.5
CRITICAL_MISS_PENALTY = 1.2


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


class ScoringEngine:

    def __init__(self, catalog: TaskCatalog = DEFAULT_CATALOG):
        self.catalog = catalog

    # ──── Thresholds ──────────────────────────────────────────────────────────
    def safe_threshold(self, task_count: int) -> int:
        adjustment = max(0.0, (task_count - THRESHOLD_TASK_PIVOT) * THRESHOLD_STEP)
        return max(SAFE_THRESHOLD_FLOOR, round_half_up(SAFE_THRESHOLD_BASE - adjustment))

    def warning_threshold(self, task_count: int) -> int:
        return self.safe_threshold(task_count) - WARNING_BAND

    def task_count(self) -> int:
        return len(self.catalog.mandatory_tasks())

    # ──── Points ──────────────────────────────────────────────────────────────
    def total_points(self) -> int:
        return self.catalog.total_mandatory_points()

    def earned_points(self, completions: Dict[str, TaskCompletion]) -> int:
        return sum(
            t.weight for t in self.catalog.mandatory_tasks()
            if self._done(completions, t.id)
        )

    def bonus_points(self, completions: Dict[str, TaskCompletion]) -> int:
        """Optional tasks are tracked separately and never affect the verdict."""
        return sum(
            t.weight for t in self.catalog.optional_tasks()
            if self._done(completions, t.id)
        )

    def completion_percentage(self, earned: int, total: int) -> int:
        if total <= 0:
            return 0
        return min(100, max(0, round_half_up(earned / total * 100)))

    def critical_penalty(self, completions: Dict[str, TaskCompletion]) -> float:
        missed = sum(
            1 for t in self.catalog.mandatory_tasks()
            if t.is_critical() and not self._done(completions, t.id)
        )
        return missed * CRITICAL_MISS_PENALTY

    # ──── Classification ──────────────────────────────────────────────────────
    def day_status(self, percentage: int, task_count: int, completions: Dict[str, TaskCompletion]) -> DayStatus:
        adjusted = percentage - self.critical_penalty(completions)
        if adjusted >= self.safe_threshold(task_count):
            return DayStatus.SAFE
        if adjusted >= self.warning_threshold(task_count):
            return DayStatus.WARNING
        return DayStatus.FAILURE

    def category_breakdown(self, completions: Dict[str, TaskCompletion]) -> List[CategoryBreakdown]:
        stats = self.catalog.category_stats(completions)
        return [
            CategoryBreakdown(category=category, **data)
            for category, data in stats.items()
            if category != UPGRADE_CATEGORY
        ]

    def weakest_category(self, completions: Dict[str, TaskCompletion]) -> Optional[TaskCategory]:
        """
        Lowest completed/total ratio among mandatory categories.
        Ties go to the first category in catalog order; None when nothing is below 100%.
        """
        weakest, lowest = None, 100.0
        for row in self.category_breakdown(completions):
            if row.total == 0:
                continue
            rate = row.completion_rate()
            if rate < lowest:
                weakest, lowest = row.category, rate
        return weakest

    # ──── Records ─────────────────────────────────────────────────────────────
    def update_record_scores(self, record: DailyRecord) -> DailyRecord:
        """
        Recompute denormalized fields from the completions.
        Status stays `pending` until the day has been finalized.
        """
        total = self.total_points()
        earned = self.earned_points(record.tasks)
        percentage = self.completion_percentage(earned, total)
        status = self.day_status(percentage, self.task_count(), record.tasks)
        return replace(
            record,
            total_points=total,
            earned_points=earned,
            bonus_points=self.bonus_points(record.tasks),
            completion_percentage=percentage,
            status=status if record.is_finalized() else DayStatus.PENDING,
        )

    def apply_completion(
        self,
        record: DailyRecord,
        task_id: str,
        completed: bool,
        value: Optional[float],
        now: datetime,
        notes: Optional[str] = None,
    ) -> Tuple[DailyRecord, ValidationResult]:
        if record.is_finalized():
            raise RecordLocked(f"Day {record.date.isoformat()} is already finalized")
        task = self.catalog.require(task_id)
        if completed:
            result = self.catalog.validate_completion_value(task, value)
            if not result.valid:
                return record, result

        tasks = dict(record.tasks)
        completion = replace(tasks.get(task_id) or TaskCompletion(task_id=task_id))
        completion.mark(completed, value, now)
        if notes is not None:
            completion.notes = notes
        tasks[task_id] = completion
        rescored = self.update_record_scores(replace(record, tasks=tasks, updated_at=now))
        return rescored, ValidationResult.ok()

    def finalize_day(self, record: DailyRecord, now: datetime) -> DailyRecord:
        """Commit the computed status exactly once; later calls are no-ops."""
        if record.is_finalized():
            return record
        return self.update_record_scores(
            replace(record, day_ended_at=now, verdict_generated_at=now, updated_at=now)
        )

    def is_day_complete(self, now: datetime, day_end_hour: int = 23) -> bool:
        return now.hour >= day_end_hour

    # ──── Verdict ─────────────────────────────────────────────────────────────
    def generate_verdict(self, record: DailyRecord) -> DailyVerdict:
        total = self.total_points()
        earned = self.earned_points(record.tasks)
        percentage = self.completion_percentage(earned, total)
        task_count = self.task_count()
        status = self.day_status(percentage, task_count, record.tasks)
        weakest = self.weakest_category(record.tasks)
        return DailyVerdict(
            date=record.date,
            status=status,
            score=percentage,
            threshold=self.safe_threshold(task_count),
            message=self._verdict_message(status, percentage, weakest),
            breakdown=self.category_breakdown(record.tasks),
            weakest_category=weakest,
        )

    def _verdict_message(self, status: DayStatus, percentage: int, weakest: Optional[TaskCategory]) -> str:
        if status == DayStatus.SAFE:
            if percentage >= 90:
                return "Exceptional discipline. You have earned this day."
            if percentage >= 80:
                return "Strong performance. Maintain this standard."
            return "Day passed. Safe, but room for improvement."
        if status == DayStatus.WARNING:
            area = category_name(weakest) if weakest else "multiple areas"
            return (
                f"Warning zone. Focus needed on {area}. "
                "No penalty today, but consecutive warnings become failures."
            )
        if status == DayStatus.FAILURE:
            return "Day failed. Penalty will be assigned. Reflect on what went wrong and commit to tomorrow."
        return "Day pending evaluation."

    @staticmethod
    def _done(completions: Dict[str, TaskCompletion], task_id: str) -> bool:
        completion = completions.get(task_id)
        return bool(completion and completion.completed)
