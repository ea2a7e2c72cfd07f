"""
Analytics Aggregator — pure reducers over finalized daily records.
Category of a task always comes from the catalog, never from its id.
"""
import calendar
import random
from collections import defaultdict
from datetime import date, timedelta
from typing import Dict, List, Optional, Sequence, Tuple

from discipline.domain.models.analytics import (
    AnalyticsSummary, CategoryStats, ComparativeAnalytics, ComplianceTrend, HeatmapCell,
    MonthComparison, MonthlyReport, StatusCounts, TaskMissCount, WeeklyReport
)
from discipline.domain.models.record import DailyRecord, DayStatus
from discipline.domain.models.task import TaskCategory
from discipline.domain.services.scoring_engine import round_half_up
from discipline.domain.services.task_catalog import (
    DEFAULT_CATALOG, UPGRADE_CATEGORY, TaskCatalog, category_name
)

TREND_DELTA = 5
TREND_MIN_RECORDS = 7
MISSED_TASKS_LIMIT = 5
DAY_NAMES = list(calendar.day_name)  # Monday first, matches date.weekday()

IMPROVEMENT_SUGGESTIONS: Dict[TaskCategory, List[str]] = {
    TaskCategory.DEEN: [
        "Set phone alarms 15 minutes before each prayer time",
        "Keep prayer mat in visible location as reminder",
        "Partner with someone to check prayer accountability",
    ],
    TaskCategory.HEALTH: [
        "Schedule workouts at fixed times each day",
        "Prepare workout clothes the night before",
        "Start with shorter workouts and build up",
    ],
    TaskCategory.SLEEP: [
        'Set a "wind down" alarm 1 hour before sleep target',
        "Move phone charger outside bedroom",
        "Use blue light filter after sunset",
    ],
    TaskCategory.NUTRITION: [
        "Meal prep on weekends for the week",
        "Keep water bottle visible at all times",
        "Remove junk food from home environment",
    ],
    TaskCategory.PRODUCTIVITY: [
        "Write top 3 tasks the night before",
        "Block deep work time in calendar",
        "Use website blockers during focus hours",
    ],
    TaskCategory.MENTAL: [
        "Set fixed times for journaling (morning/evening)",
        "Use gratitude prompts if stuck",
        "Keep journal by bedside table",
    ],
    TaskCategory.DIGITAL: [
        "Enable screen time limits on devices",
        "Delete social media apps, use only browser",
        "Charge phone in another room overnight",
    ],
}


def _mean(values: Sequence[float]) -> float:
    return sum(values) / len(values) if values else 0.0


class AnalyticsAggregator:

    def __init__(self, catalog: TaskCatalog = DEFAULT_CATALOG, rng: Optional[random.Random] = None):
        self.catalog = catalog
        self.rng = rng or random.Random()

    # ──── Reducers ────────────────────────────────────────────────────────────
    @staticmethod
    def average_score(records: Sequence[DailyRecord]) -> int:
        if not records:
            return 0
        return round_half_up(_mean([r.completion_percentage for r in records]))

    @staticmethod
    def count_statuses(records: Sequence[DailyRecord]) -> StatusCounts:
        counts = StatusCounts()
        for record in records:
            if record.status == DayStatus.SAFE:
                counts.safe += 1
            elif record.status == DayStatus.WARNING:
                counts.warning += 1
            elif record.status == DayStatus.FAILURE:
                counts.failure += 1
        return counts

    def category_breakdown(self, records: Sequence[DailyRecord]) -> Dict[TaskCategory, CategoryStats]:
        """Mandatory tasks only; the upgrade category is left out."""
        breakdown = {c: CategoryStats() for c in TaskCategory if c != UPGRADE_CATEGORY}
        points: Dict[TaskCategory, int] = defaultdict(int)
        for record in records:
            for task_id, completion in record.tasks.items():
                task = self.catalog.get(task_id)
                if task is None or task.is_optional or task.category not in breakdown:
                    continue
                stats = breakdown[task.category]
                stats.total_tasks += 1
                if completion.completed:
                    stats.completed_tasks += 1
                    points[task.category] += task.weight

        for category, stats in breakdown.items():
            if stats.total_tasks:
                stats.completion_rate = round_half_up(stats.completed_tasks / stats.total_tasks * 100)
                stats.average_points = round_half_up(points[category] / len(records))
        return breakdown

    @staticmethod
    def weakest_and_strongest(
        breakdown: Dict[TaskCategory, CategoryStats]
    ) -> Tuple[Optional[TaskCategory], Optional[TaskCategory]]:
        ranked = sorted(
            ((c, s) for c, s in breakdown.items() if c != UPGRADE_CATEGORY and s.total_tasks),
            key=lambda item: item[1].completion_rate,
        )
        if not ranked:
            return None, None
        return ranked[0][0], ranked[-1][0]

    def most_missed_tasks(self, records: Sequence[DailyRecord], limit: int = MISSED_TASKS_LIMIT) -> List[TaskMissCount]:
        misses: Dict[str, int] = defaultdict(int)
        for record in records:
            for task_id, completion in record.tasks.items():
                task = self.catalog.get(task_id)
                if task is not None and task.is_mandatory() and not completion.completed:
                    misses[task_id] += 1

        order = {t.id: i for i, t in enumerate(self.catalog)}
        ranked = sorted(misses.items(), key=lambda item: (-item[1], order[item[0]]))
        result = []
        for task_id, count in ranked[:limit]:
            task = self.catalog.require(task_id)
            result.append(TaskMissCount(task_id=task_id, task_name=task.name, miss_count=count, category=task.category))
        return result

    @staticmethod
    def compliance_trend(records: Sequence[DailyRecord]) -> ComplianceTrend:
        if len(records) < TREND_MIN_RECORDS:
            return ComplianceTrend.STABLE
        ordered = sorted(records, key=lambda r: r.date)
        midpoint = len(ordered) // 2
        first = _mean([r.completion_percentage for r in ordered[:midpoint]])
        second = _mean([r.completion_percentage for r in ordered[midpoint:]])
        difference = second - first
        if difference > TREND_DELTA:
            return ComplianceTrend.IMPROVING
        if difference < -TREND_DELTA:
            return ComplianceTrend.DECLINING
        return ComplianceTrend.STABLE

    @staticmethod
    def day_of_week_performance(records: Sequence[DailyRecord]) -> Tuple[Optional[str], Optional[str]]:
        scores: Dict[int, List[int]] = defaultdict(list)
        for record in records:
            scores[record.date.weekday()].append(record.completion_percentage)
        if not scores:
            return None, None
        averages = [(day, _mean(values)) for day, values in sorted(scores.items())]
        best = max(averages, key=lambda item: item[1])[0]
        worst = min(averages, key=lambda item: item[1])[0]
        return DAY_NAMES[best], DAY_NAMES[worst]

    def summarize(self, records: Sequence[DailyRecord]) -> AnalyticsSummary:
        breakdown = self.category_breakdown(records)
        weakest, strongest = self.weakest_and_strongest(breakdown)
        best_day, worst_day = self.day_of_week_performance(records)
        return AnalyticsSummary(
            days=len(records),
            average_score=self.average_score(records),
            status_counts=self.count_statuses(records),
            category_breakdown=breakdown,
            weakest_category=weakest,
            strongest_category=strongest,
            missed_tasks=self.most_missed_tasks(records),
            trend=self.compliance_trend(records),
            best_day_of_week=best_day,
            worst_day_of_week=worst_day,
        )

    # ──── Heatmap ─────────────────────────────────────────────────────────────
    @staticmethod
    def heatmap(records: Sequence[DailyRecord], end: date, days: int = 90) -> List[HeatmapCell]:
        """One cell per calendar day in the `days`-long window ending at `end`."""
        by_date = {r.date: r for r in records}
        cells = []
        for offset in range(days - 1, -1, -1):
            day = end - timedelta(days=offset)
            record = by_date.get(day)
            cells.append(HeatmapCell(
                date=day,
                score=record.completion_percentage if record else 0,
                status=record.status if record else DayStatus.PENDING,
            ))
        return cells

    @staticmethod
    def heatmap_color(score: int, status: DayStatus) -> str:
        if status == DayStatus.PENDING:
            return "#1f1f23"
        if score >= 80:
            return "#22c55e"
        if score >= 65:
            return "#4ade80"
        if score >= 50:
            return "#f59e0b"
        if score >= 35:
            return "#ef4444"
        return "#991b1b"

    # ──── Reports ─────────────────────────────────────────────────────────────
    def weekly_report(self, records: Sequence[DailyRecord], week_of: date) -> WeeklyReport:
        week_start = week_of - timedelta(days=week_of.weekday())
        week_end = week_start + timedelta(days=6)
        week_records = [r for r in records if week_start <= r.date <= week_end]
        summary = self.summarize(week_records)
        iso_year, iso_week, _ = week_start.isocalendar()
        return WeeklyReport(
            id=f"{iso_year}-W{iso_week:02d}",
            week_start=week_start,
            week_end=week_end,
            summary=summary,
            streak_maintained=summary.status_counts.failure == 0,
        )

    def monthly_report(
        self,
        records: Sequence[DailyRecord],
        month_of: date,
        previous_month_records: Sequence[DailyRecord] = (),
    ) -> MonthlyReport:
        month_records = [
            r for r in records
            if r.date.year == month_of.year and r.date.month == month_of.month
        ]
        summary = self.summarize(month_records)
        weeks = max(1, -(-len(month_records) // 7))
        failure_frequency = round(summary.status_counts.failure / weeks, 1)

        vs_last_month = None
        if previous_month_records:
            previous_avg = _mean([r.completion_percentage for r in previous_month_records])
            vs_last_month = MonthComparison(score_diff=round_half_up(summary.average_score - previous_avg))

        focus = summary.weakest_category
        return MonthlyReport(
            id=month_of.strftime("%Y-%m"),
            month=month_of.strftime("%B %Y"),
            summary=summary,
            failure_frequency=failure_frequency,
            focus_area=focus,
            enforced_suggestion=self.improvement_suggestion(focus, summary.category_breakdown) if focus else None,
            vs_last_month=vs_last_month,
        )

    def improvement_suggestion(self, category: TaskCategory, breakdown: Dict[TaskCategory, CategoryStats]) -> str:
        suggestions = IMPROVEMENT_SUGGESTIONS.get(category) or IMPROVEMENT_SUGGESTIONS[TaskCategory.PRODUCTIVITY]
        rate = breakdown[category].completion_rate if category in breakdown else 0
        return (
            f"Focus Area: {category_name(category)} ({rate}% completion). "
            f"Enforced Action: {self.rng.choice(suggestions)}"
        )

    # ──── Couples ─────────────────────────────────────────────────────────────
    def compare(self, user_records: Sequence[DailyRecord], partner_records: Sequence[DailyRecord]) -> ComparativeAnalytics:
        user_avg = self.average_score(user_records)
        partner_avg = self.average_score(partner_records)
        if user_avg > partner_avg:
            leader = "user"
        elif partner_avg > user_avg:
            leader = "partner"
        else:
            leader = "tie"

        user_status = {r.date: r.status for r in user_records}
        shared_safe = shared_failure = 0
        shared_dates = []
        for record in sorted(partner_records, key=lambda r: r.date):
            mine = user_status.get(record.date)
            if mine is None:
                continue
            shared_dates.append(record.date)
            if mine == DayStatus.SAFE and record.status == DayStatus.SAFE:
                shared_safe += 1
            if mine == DayStatus.FAILURE and record.status == DayStatus.FAILURE:
                shared_failure += 1

        return ComparativeAnalytics(
            user_average=user_avg,
            partner_average=partner_avg,
            difference=abs(user_avg - partner_avg),
            leader=leader,
            shared_safe_days=shared_safe,
            shared_failure_days=shared_failure,
            dates_compared=shared_dates,
        )
