"""
Day-end orchestration.

Glues the pure engines to the repository: finalize the record, assign at most
one penalty per failed date, fold the streak, hand out milestone rewards.
Ending the same date twice has no further side effects.
"""
from dataclasses import dataclass, replace
from datetime import date, datetime
from typing import List, Optional, Tuple

from discipline.core.logging import get_logger
from discipline.domain.exceptions import NotFound, OutOfOrderDayEnd, PreconditionFailed
from discipline.domain.models.penalty import Penalty
from discipline.domain.models.record import DailyRecord, DailyVerdict, DayStatus
from discipline.domain.models.reward import Reward, StreakData
from discipline.domain.models.task import ValidationResult
from discipline.domain.repository import Repository
from discipline.domain.services.penalty_engine import ANTI_REPEAT_WINDOW, PenaltyEngine
from discipline.domain.services.scoring_engine import ScoringEngine
from discipline.domain.services.streak_engine import StreakEngine

logger = get_logger(__name__)


@dataclass
class DayEndOutcome:
    record: DailyRecord
    verdict: DailyVerdict
    streak: StreakData
    penalty: Optional[Penalty] = None
    milestone: Optional[int] = None
    reward: Optional[Reward] = None
    escalation: bool = False
    already_processed: bool = False


class DayEndService:

    def __init__(
        self,
        repository: Repository,
        scoring: Optional[ScoringEngine] = None,
        penalties: Optional[PenaltyEngine] = None,
        streaks: Optional[StreakEngine] = None,
        day_end_hour: int = 23,
    ):
        self.repository = repository
        self.scoring = scoring or ScoringEngine()
        self.penalties = penalties or PenaltyEngine(scoring=self.scoring)
        self.streaks = streaks or StreakEngine()
        self.day_end_hour = day_end_hour

    # ──── Records ─────────────────────────────────────────────────────────────
    def get_or_create_record(self, user_id: str, day: date, now: datetime) -> DailyRecord:
        self.repository.require_user(user_id)
        record = self.repository.get_daily_record(user_id, day)
        if record is None:
            empty = self.scoring.catalog.create_empty_daily_record(user_id, day, now)
            record = self.scoring.update_record_scores(empty)
            self.repository.upsert_daily_record(user_id, day, record)
        return record

    def record_completion(
        self,
        user_id: str,
        day: date,
        task_id: str,
        completed: bool,
        value: Optional[float],
        now: datetime,
        notes: Optional[str] = None,
    ) -> Tuple[DailyRecord, ValidationResult]:
        record = self.get_or_create_record(user_id, day, now)
        updated, result = self.scoring.apply_completion(record, task_id, completed, value, now, notes)
        if result.valid:
            self.repository.upsert_daily_record(user_id, day, updated)
        return updated, result

    def verdict(self, user_id: str, day: date, now: datetime) -> DailyVerdict:
        record = self.get_or_create_record(user_id, day, now)
        penalty = self._stored_penalty(user_id, record)
        reward = self._stored_reward(user_id, record)
        return self._verdict(record, penalty, reward)

    # ──── Day end ─────────────────────────────────────────────────────────────
    def end_day(self, user_id: str, day: date, now: datetime) -> DayEndOutcome:
        profile = self.repository.require_user(user_id)
        self._check_day_over(day, now)
        record = self.get_or_create_record(user_id, day, now)

        if record.is_finalized():
            return self._replay_outcome(user_id, record, profile.streak, now)

        finalized = self.scoring.finalize_day(record, now)
        logger.info(
            "Day finalized",
            user_id=user_id,
            date=day.isoformat(),
            status=finalized.status.value,
            score=finalized.completion_percentage,
        )

        # Fold before any write so a broken streak contract leaves no partial state
        update = None
        later = self._latest_finalized_after(user_id, day)
        if later is not None:
            logger.warning(
                "Out of order day end, streak will be rebuilt",
                user_id=user_id,
                date=day.isoformat(),
                later_date=later.isoformat(),
            )
        else:
            try:
                update = self.streaks.process_day_end(profile.streak, finalized.status, day)
            except OutOfOrderDayEnd:
                logger.warning(
                    "Out of order day end, streak will be rebuilt",
                    user_id=user_id,
                    date=day.isoformat(),
                    last_safe_date=str(profile.streak.last_safe_date),
                )

        penalty = self._assign_penalty(user_id, finalized, now)
        if penalty is not None:
            finalized = replace(finalized, penalty_assigned=penalty.id)

        reward, milestone = None, None
        if update is not None:
            self.repository.set_streak(user_id, update.new_streak)
            logger.info(
                "Streak updated",
                user_id=user_id,
                current=update.new_streak.current,
                longest=update.new_streak.longest,
            )
            milestone = update.milestone
            if milestone is not None:
                logger.info("Milestone reached", user_id=user_id, milestone=milestone)
                reward = self._assign_reward(user_id, milestone, now)
                if reward is not None:
                    finalized = replace(finalized, reward_earned=reward.id)

        self.repository.upsert_daily_record(user_id, day, finalized)

        streak = update.new_streak if update is not None else self.rebuild_streak(user_id)
        return DayEndOutcome(
            record=finalized,
            verdict=self._verdict(finalized, penalty, reward),
            streak=streak,
            penalty=penalty,
            milestone=milestone,
            reward=reward,
            escalation=self.escalation(user_id, day),
        )

    def _check_day_over(self, day: date, now: datetime):
        today = now.date()
        if day > today:
            raise PreconditionFailed(f"Day {day} has not started yet")
        if day == today and not self.scoring.is_day_complete(now, self.day_end_hour):
            raise PreconditionFailed(f"Day {day} can only be ended after {self.day_end_hour}:00")

    def _latest_finalized_after(self, user_id: str, day: date) -> Optional[date]:
        later = [
            r.date for r in self.repository.get_all_records(user_id)
            if r.date > day and r.is_finalized()
        ]
        return max(later) if later else None

    def _assign_penalty(self, user_id: str, record: DailyRecord, now: datetime) -> Optional[Penalty]:
        if record.status != DayStatus.FAILURE:
            return None
        existing = self.repository.get_penalty_for_date(user_id, record.date)
        if existing is not None:
            # left behind by an interrupted end_day; link it instead of assigning another
            logger.info("Penalty relinked", user_id=user_id, date=record.date.isoformat(), penalty_id=existing.id)
            return existing
        recent = self.repository.get_penalties(user_id, limit=ANTI_REPEAT_WINDOW)
        penalty = self.penalties.assign_penalty(self.repository, user_id, record, recent, now)
        logger.info(
            "Penalty assigned",
            user_id=user_id,
            date=record.date.isoformat(),
            penalty_id=penalty.id,
            type=penalty.type.value,
            severity=penalty.severity.value,
        )
        return penalty

    def _assign_reward(self, user_id: str, milestone: int, now: datetime) -> Optional[Reward]:
        reward = self.streaks.build_reward(user_id, milestone, now)
        if reward is None:
            return None
        reward.id = self.repository.create_reward(user_id, reward)
        logger.info("Reward assigned", user_id=user_id, reward_id=reward.id, type=reward.type.value)
        return reward

    def _replay_outcome(self, user_id: str, record: DailyRecord, streak: StreakData, now: datetime) -> DayEndOutcome:
        penalty = self._stored_penalty(user_id, record)
        reward = self._stored_reward(user_id, record)
        return DayEndOutcome(
            record=record,
            verdict=self._verdict(record, penalty, reward),
            streak=streak,
            penalty=penalty,
            reward=reward,
            escalation=self.escalation(user_id, record.date),
            already_processed=True,
        )

    def _verdict(self, record: DailyRecord, penalty: Optional[Penalty], reward: Optional[Reward]) -> DailyVerdict:
        verdict = self.scoring.generate_verdict(record)
        if penalty is not None:
            verdict.penalty_type = penalty.type.value
        if reward is not None:
            verdict.reward_type = reward.type.value
        return verdict

    def _stored_penalty(self, user_id: str, record: DailyRecord) -> Optional[Penalty]:
        if record.penalty_assigned is None:
            return None
        return self.repository.get_penalty(user_id, record.penalty_assigned)

    def _stored_reward(self, user_id: str, record: DailyRecord) -> Optional[Reward]:
        if record.reward_earned is None:
            return None
        return self.repository.get_reward(user_id, record.reward_earned)

    # ──── Streak ──────────────────────────────────────────────────────────────
    def rebuild_streak(self, user_id: str) -> StreakData:
        self.repository.require_user(user_id)
        finalized = [r for r in self.repository.get_all_records(user_id) if r.is_finalized()]
        streak = self.streaks.rebuild_streak(finalized)
        self.repository.set_streak(user_id, streak)
        logger.info(
            "Streak rebuilt",
            user_id=user_id,
            records=len(finalized),
            current=streak.current,
            longest=streak.longest,
        )
        return streak

    # ──── Penalties ───────────────────────────────────────────────────────────
    def pending_penalties(self, user_id: str) -> List[Penalty]:
        self.repository.require_user(user_id)
        return self.repository.get_pending_penalties(user_id)

    def penalty_history(self, user_id: str, limit: Optional[int] = None) -> List[Penalty]:
        self.repository.require_user(user_id)
        return self.repository.get_penalties(user_id, limit=limit)

    def escalation(self, user_id: str, today: date) -> bool:
        return self.penalties.escalation_signal(self.repository.get_penalties(user_id), today)

    def complete_penalty(self, user_id: str, penalty_id: str, now: datetime) -> Penalty:
        penalty = self._require_penalty(user_id, penalty_id)
        penalty.complete(now)
        self.repository.update_penalty(penalty)
        logger.info("Penalty completed", user_id=user_id, penalty_id=penalty_id)
        return penalty

    def waive_penalty(self, user_id: str, penalty_id: str, now: datetime, reason: Optional[str] = None) -> Penalty:
        penalty = self._require_penalty(user_id, penalty_id)
        penalty.waive(now, reason)
        self.repository.update_penalty(penalty)
        logger.info("Penalty waived", user_id=user_id, penalty_id=penalty_id, reason=reason)
        return penalty

    def _require_penalty(self, user_id: str, penalty_id: str) -> Penalty:
        penalty = self.repository.get_penalty(user_id, penalty_id)
        if penalty is None:
            raise NotFound(f"Penalty {penalty_id} not found")
        return penalty

    # ──── Rewards ─────────────────────────────────────────────────────────────
    def claimable_rewards(self, user_id: str, now: datetime) -> List[Reward]:
        self.repository.require_user(user_id)
        return self.repository.get_claimable_rewards(user_id, now)

    def reward_history(self, user_id: str) -> List[Reward]:
        self.repository.require_user(user_id)
        return self.repository.get_rewards(user_id)

    def claim_reward(self, user_id: str, reward_id: str, now: datetime) -> Reward:
        reward = self.repository.claim_reward(user_id, reward_id, now)
        logger.info("Reward claimed", user_id=user_id, reward_id=reward_id)
        return reward
