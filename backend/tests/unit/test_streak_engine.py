"""
Unit tests for the streak fold, milestones and reward lifecycle.
"""
import random
import pytest
from datetime import date, datetime, timedelta

from discipline.domain.exceptions import (
    InvalidTransition, InvariantViolation, OutOfOrderDayEnd, PreconditionFailed
)
from discipline.domain.models.record import DayStatus
from discipline.domain.models.reward import RewardStatus, RewardType, StreakData
from discipline.domain.services.streak_engine import STREAK_MILESTONES, StreakEngine

DAY = date(2026, 3, 10)
NOW = datetime(2026, 3, 10, 23, 30)


def days_before(n):
    return DAY - timedelta(days=n)


# ──── Fold ────────────────────────────────────────────────────────────────────
class TestStreakFold:

    def setup_method(self):
        self.engine = StreakEngine(rng=random.Random(5))

    def test_safe_day_extends(self):
        update = self.engine.process_day_end(StreakData(1, 4, days_before(1)), DayStatus.SAFE, DAY)
        assert update.new_streak == StreakData(current=2, longest=4, last_safe_date=DAY)
        assert update.milestone is None

    def test_safe_day_raises_longest(self):
        update = self.engine.process_day_end(StreakData(4, 4, days_before(1)), DayStatus.SAFE, DAY)
        assert update.new_streak.longest == 5

    def test_failure_resets_current_only(self):
        update = self.engine.process_day_end(StreakData(6, 9, days_before(1)), DayStatus.FAILURE, DAY)
        assert update.new_streak == StreakData(current=0, longest=9, last_safe_date=None)

    def test_warning_is_neutral(self):
        streak = StreakData(2, 2, days_before(1))
        update = self.engine.process_day_end(streak, DayStatus.WARNING, DAY)
        assert update.new_streak == streak

    def test_pending_day_rejected(self):
        with pytest.raises(PreconditionFailed):
            self.engine.process_day_end(StreakData(), DayStatus.PENDING, DAY)

    def test_same_safe_day_twice_is_noop(self):
        streak = StreakData(3, 3, DAY)
        update = self.engine.process_day_end(streak, DayStatus.SAFE, DAY)
        assert update.new_streak == streak
        assert update.milestone is None

    def test_older_day_out_of_order(self):
        with pytest.raises(OutOfOrderDayEnd):
            self.engine.process_day_end(StreakData(2, 2, DAY), DayStatus.FAILURE, days_before(1))

    def test_broken_invariants_rejected(self):
        with pytest.raises(InvariantViolation):
            self.engine.process_day_end(StreakData(current=5, longest=2), DayStatus.SAFE, DAY)

    def test_third_safe_day_earns_minor_reward(self):
        update = self.engine.process_day_end(StreakData(2, 2, days_before(1)), DayStatus.SAFE, DAY)
        assert update.new_streak.current == 3
        assert update.milestone == 3
        assert update.reward.type == RewardType.MINOR

    def test_milestone_without_reward_definition(self):
        update = self.engine.process_day_end(StreakData(13, 13, days_before(1)), DayStatus.SAFE, DAY)
        assert update.milestone == 14
        assert update.reward is None


# ──── Derivation ──────────────────────────────────────────────────────────────
class TestStreakDerivation:

    def records(self, make_finalized, *statuses):
        """Statuses listed oldest first, the last one lands on DAY."""
        count = len(statuses)
        return [make_finalized(days_before(count - 1 - i), s) for i, s in enumerate(statuses)]

    def test_history_skips_warnings(self, make_finalized):
        records = self.records(make_finalized, DayStatus.SAFE, DayStatus.WARNING, DayStatus.SAFE)
        assert StreakEngine.streak_from_history(records) == 2

    def test_history_stops_at_failure(self, make_finalized):
        records = self.records(make_finalized, DayStatus.SAFE, DayStatus.FAILURE, DayStatus.SAFE)
        assert StreakEngine.streak_from_history(records) == 1

    def test_empty_history_keeps_prior(self):
        assert StreakEngine.streak_from_history([], prior_current=4) == 4

    def test_rebuild_replays_in_date_order(self, make_finalized):
        statuses = [DayStatus.SAFE, DayStatus.SAFE, DayStatus.FAILURE,
                    DayStatus.SAFE, DayStatus.WARNING, DayStatus.SAFE, DayStatus.SAFE]
        records = self.records(make_finalized, *statuses)
        rebuilt = StreakEngine.rebuild_streak(list(reversed(records)))
        assert rebuilt == StreakData(current=3, longest=3, last_safe_date=DAY)

    def test_rebuild_after_failure(self, make_finalized):
        records = self.records(make_finalized, DayStatus.SAFE, DayStatus.SAFE, DayStatus.FAILURE)
        assert StreakEngine.rebuild_streak(records) == StreakData(current=0, longest=2, last_safe_date=None)

    def test_rebuild_matches_fold(self, make_finalized):
        statuses = [DayStatus.SAFE, DayStatus.WARNING, DayStatus.SAFE, DayStatus.FAILURE, DayStatus.SAFE]
        records = self.records(make_finalized, *statuses)
        engine = StreakEngine()
        streak = StreakData()
        for record in records:
            streak = engine.process_day_end(streak, record.status, record.date).new_streak
        assert StreakEngine.rebuild_streak(records) == streak


# ──── Milestones ──────────────────────────────────────────────────────────────
class TestMilestones:

    def setup_method(self):
        self.engine = StreakEngine(rng=random.Random(5))

    def test_only_exact_values_are_milestones(self):
        assert [n for n in range(0, 400) if StreakEngine.check_milestone(n)] == STREAK_MILESTONES

    def test_next_milestone(self):
        assert StreakEngine.next_milestone(0) == 3
        assert StreakEngine.next_milestone(3) == 7
        assert StreakEngine.next_milestone(400) == 365

    @pytest.mark.parametrize("current,nxt,previous,progress", [
        (0, 3, 0, 0.0),
        (5, 7, 3, 50.0),
        (365, 365, 180, 100.0),
        (400, 365, 365, 100.0),
    ])
    def test_progress(self, current, nxt, previous, progress):
        result = self.engine.milestone_progress(current)
        assert (result.next, result.previous_milestone, result.progress) == (nxt, previous, progress)

    def test_reward_type_for_streak(self):
        assert StreakEngine.reward_type_for_streak(2) is None
        assert StreakEngine.reward_type_for_streak(3) == RewardType.MINOR
        assert StreakEngine.reward_type_for_streak(10) == RewardType.MEDIUM
        assert StreakEngine.reward_type_for_streak(45) == RewardType.MAJOR

    def test_all_earned_rewards(self):
        assert [r.streak_required for r in StreakEngine.all_earned_rewards(7)] == [3, 7]

    def test_suggestion_comes_from_list(self):
        suggestion = self.engine.suggest_reward(RewardType.MEDIUM)
        assert suggestion in StreakEngine.reward_suggestions(RewardType.MEDIUM)

    def test_status_messages(self):
        assert StreakEngine.streak_status_message(0).startswith("Start your streak")
        assert StreakEngine.streak_status_message(1) == "2 more day(s) until your first reward."
        assert StreakEngine.streak_status_message(100).startswith("Legendary")


# ──── Rewards ─────────────────────────────────────────────────────────────────
class TestRewards:

    def test_build_reward_expires_after_a_week(self):
        reward = StreakEngine().build_reward("u1", 3, NOW)
        assert reward.type == RewardType.MINOR
        assert reward.status == RewardStatus.CLAIMABLE
        assert reward.expires_at == NOW + timedelta(days=7)
        assert reward.milestone == 3

    def test_custom_expiry(self):
        reward = StreakEngine(reward_expiry_days=2).build_reward("u1", 7, NOW)
        assert reward.type == RewardType.MEDIUM
        assert reward.expires_at == NOW + timedelta(days=2)

    def test_no_reward_for_plain_milestone(self):
        assert StreakEngine().build_reward("u1", 14, NOW) is None

    def test_claim(self):
        reward = StreakEngine().build_reward("u1", 3, NOW)
        reward.claim(NOW + timedelta(days=1))
        assert reward.status == RewardStatus.CLAIMED
        with pytest.raises(InvalidTransition):
            reward.claim(NOW + timedelta(days=2))

    def test_expiry_is_derived(self):
        reward = StreakEngine().build_reward("u1", 3, NOW)
        later = NOW + timedelta(days=8)
        assert reward.is_expired(later)
        assert not reward.is_claimable(later)
        assert reward.status == RewardStatus.CLAIMABLE
        with pytest.raises(InvalidTransition):
            reward.claim(later)

    def test_claim_on_expiry_instant_allowed(self):
        reward = StreakEngine().build_reward("u1", 3, NOW)
        reward.claim(reward.expires_at)
        assert reward.status == RewardStatus.CLAIMED


# ──── Streak data ─────────────────────────────────────────────────────────────
class TestStreakData:

    def test_defaults_are_valid(self):
        assert StreakData().check_invariants() == StreakData()

    def test_negative_rejected(self):
        with pytest.raises(InvariantViolation):
            StreakData(current=-1, longest=0).check_invariants()

    def test_extended_and_broken(self):
        streak = StreakData().extended(DAY).extended(DAY + timedelta(days=1))
        assert streak == StreakData(2, 2, DAY + timedelta(days=1))
        assert streak.broken() == StreakData(0, 2, None)
