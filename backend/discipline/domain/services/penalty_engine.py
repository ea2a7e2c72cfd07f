"""
Penalty Engine — selection and bookkeeping of penalties for failed days.
Randomness and "today" are injected so every decision is reproducible.
"""
import random
from datetime import date, datetime
from typing import Dict, List, Optional, Sequence

from discipline.domain.exceptions import InvariantViolation, PreconditionFailed
from discipline.domain.models.penalty import (
    Penalty, PenaltyDefinition, PenaltySeverity, PenaltyStatus, PenaltyType
)
from discipline.domain.models.record import DailyRecord, DayStatus
from discipline.domain.models.task import TaskCategory
from discipline.domain.services.scoring_engine import ScoringEngine

MAJOR_FAILURE_BELOW = 35          # completion % under which a failure is major
ANTI_REPEAT_WINDOW = 3            # most recent penalties whose types are avoided
ESCALATION_WINDOW_DAYS = 7
ESCALATION_PENALTY_COUNT = 3

PT = PenaltyType
S = PenaltySeverity

PENALTY_DEFINITIONS: List[PenaltyDefinition] = [
    # minor
    PenaltyDefinition(PT.EXTRA_CARDIO, S.MINOR, "Extra Cardio",
                      "30 minutes of additional cardio exercise", "Same day or next morning", "🏃"),
    PenaltyDefinition(PT.COLD_SHOWER, S.MINOR, "Cold Shower",
                      "3-minute cold shower (no warm water)", "Next morning", "🚿"),
    PenaltyDefinition(PT.ENTERTAINMENT_RESTRICTION, S.MINOR, "Entertainment Restriction",
                      "No entertainment (TV, games, streaming) for 24 hours", "24 hours", "📺"),
    PenaltyDefinition(PT.SOCIAL_MEDIA_LOCKOUT, S.MINOR, "Social Media Lockout",
                      "No social media access for 24 hours", "24 hours", "📱"),
    # major
    PenaltyDefinition(PT.FULL_ENTERTAINMENT_BAN, S.MAJOR, "Full Entertainment Ban",
                      "Complete ban on all entertainment for 48 hours", "48 hours", "🚫"),
    PenaltyDefinition(PT.EXTRA_WORKOUT, S.MAJOR, "Extra Full Workout",
                      "Additional full workout session (not just cardio)", "Within 24 hours", "💪"),
    PenaltyDefinition(PT.CHARITY_DONATION, S.MAJOR, "Mandatory Charity",
                      "Donate predetermined amount to charity", "Same day", "💝"),
    PenaltyDefinition(PT.EARLIER_WAKEUP, S.MAJOR, "Earlier Wake-up",
                      "Wake up 1 hour earlier than usual for 3 days", "3 days", "⏰"),
]

# Weakest category -> penalty types that address it, in order of preference
CATEGORY_PREFERENCES: Dict[TaskCategory, List[PenaltyType]] = {
    TaskCategory.HEALTH: [PT.EXTRA_CARDIO, PT.EXTRA_WORKOUT, PT.EARLIER_WAKEUP],
    TaskCategory.SLEEP: [PT.EXTRA_CARDIO, PT.EXTRA_WORKOUT, PT.EARLIER_WAKEUP],
    TaskCategory.DIGITAL: [PT.SOCIAL_MEDIA_LOCKOUT, PT.ENTERTAINMENT_RESTRICTION],
    TaskCategory.DEEN: [PT.CHARITY_DONATION],
}


class PenaltyEngine:

    def __init__(
        self,
        scoring: Optional[ScoringEngine] = None,
        rng: Optional[random.Random] = None,
        definitions: Sequence[PenaltyDefinition] = PENALTY_DEFINITIONS,
        escalation_window_days: int = ESCALATION_WINDOW_DAYS,
        escalation_penalty_count: int = ESCALATION_PENALTY_COUNT,
    ):
        self.scoring = scoring or ScoringEngine()
        self.rng = rng or random.Random()
        self.definitions = list(definitions)
        self.escalation_window_days = escalation_window_days
        self.escalation_penalty_count = escalation_penalty_count

    # ──── Definitions ─────────────────────────────────────────────────────────
    def penalties_by_severity(self, severity: PenaltySeverity) -> List[PenaltyDefinition]:
        return [d for d in self.definitions if d.severity == severity]

    def definition_for(self, penalty_type: PenaltyType) -> Optional[PenaltyDefinition]:
        return next((d for d in self.definitions if d.type == penalty_type), None)

    def suggested_alternatives(self, penalty: Penalty) -> List[PenaltyDefinition]:
        return [
            d for d in self.definitions
            if d.severity == penalty.severity and d.type != penalty.type
        ]

    @staticmethod
    def severity_for(completion_percentage: int) -> PenaltySeverity:
        return S.MAJOR if completion_percentage < MAJOR_FAILURE_BELOW else S.MINOR

    # ──── Selection ───────────────────────────────────────────────────────────
    def select_penalty(
        self,
        severity: PenaltySeverity,
        record: DailyRecord,
        recent_penalties: Sequence[Penalty] = (),
    ) -> PenaltyDefinition:
        """
        `recent_penalties` must be ordered most recent first; the types of the
        first three are avoided unless that empties the pool.
        """
        available = self.penalties_by_severity(severity)
        if not available:
            raise InvariantViolation(f"No penalty definitions for severity '{severity.value}'")

        recent_types = {p.type for p in list(recent_penalties)[:ANTI_REPEAT_WINDOW]}
        pool = [d for d in available if d.type not in recent_types] or available

        weakest = self.scoring.weakest_category(record.tasks)
        preferred = CATEGORY_PREFERENCES.get(weakest) if weakest else None
        if preferred is not None:
            match = next((d for d in pool if d.type in preferred), None)
            return match or pool[0]
        return self.rng.choice(pool)

    def build_penalty(
        self,
        user_id: str,
        record: DailyRecord,
        recent_penalties: Sequence[Penalty],
        now: datetime,
    ) -> Penalty:
        if record.status != DayStatus.FAILURE:
            raise PreconditionFailed(
                f"Penalties are only assigned to failed days, {record.date} is '{record.status.value}'"
            )
        severity = self.severity_for(record.completion_percentage)
        definition = self.select_penalty(severity, record, recent_penalties)
        return Penalty(
            id=None,
            user_id=user_id,
            date=record.date,
            type=definition.type,
            severity=severity,
            description=definition.description,
            status=PenaltyStatus.PENDING,
            created_at=now,
        )

    def assign_penalty(self, repository, user_id: str, record: DailyRecord,
                       recent_penalties: Sequence[Penalty], now: datetime) -> Penalty:
        """Build a pending penalty and persist it through the repository."""
        penalty = self.build_penalty(user_id, record, recent_penalties, now)
        penalty.id = repository.create_penalty(user_id, penalty)
        return penalty

    # ──── History signals ─────────────────────────────────────────────────────
    def escalation_signal(self, penalties: Sequence[Penalty], today: date) -> bool:
        """
        True when enough penalties landed in the trailing window.
        Only a signal: severity is never changed here.
        """
        recent = [
            p for p in penalties
            if 0 <= (today - p.date).days <= self.escalation_window_days
        ]
        return len(recent) >= self.escalation_penalty_count

    @staticmethod
    def penalty_streak(penalties: Sequence[Penalty]) -> int:
        """Consecutive calendar days with a penalty, counted back from the most recent one."""
        if not penalties:
            return 0
        ordered = sorted(penalties, key=lambda p: p.date, reverse=True)
        streak = 1
        for previous, current in zip(ordered, ordered[1:]):
            if (previous.date - current.date).days != 1:
                break
            streak += 1
        return streak

    @staticmethod
    def can_partner_edit(penalty: Penalty) -> bool:
        return penalty.can_partner_edit()
