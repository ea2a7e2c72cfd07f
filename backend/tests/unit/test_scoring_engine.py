"""
Unit tests for the scoring engine: thresholds, points, classification, verdicts.
"""
import pytest
from dataclasses import replace
from datetime import date, datetime

from discipline.domain.exceptions import InvariantViolation, RecordLocked
from discipline.domain.models.record import DayStatus
from discipline.domain.models.task import TaskCategory, TaskCompletion
from discipline.domain.services.penalty_engine import PenaltyEngine
from discipline.domain.models.penalty import PenaltySeverity
from discipline.domain.services.scoring_engine import ScoringEngine, round_half_up
from discipline.domain.services.task_catalog import DEFAULT_CATALOG

DAY = date(2026, 3, 10)
MORNING = datetime(2026, 3, 10, 9, 0)


def completions(done, catalog=DEFAULT_CATALOG):
    done = set(done)
    return {t.id: TaskCompletion(task_id=t.id, completed=t.id in done) for t in catalog}


# ──── Thresholds ──────────────────────────────────────────────────────────────
class TestThresholds:

    def setup_method(self):
        self.engine = ScoringEngine()

    def test_small_catalogs_use_base_threshold(self):
        assert self.engine.safe_threshold(10) == 65
        assert self.engine.safe_threshold(20) == 65

    def test_default_catalog_thresholds(self):
        assert self.engine.safe_threshold(24) == 63
        assert self.engine.warning_threshold(24) == 48

    def test_threshold_never_below_floor(self):
        assert self.engine.safe_threshold(40) == 55
        assert self.engine.safe_threshold(500) == 55

    def test_threshold_non_increasing(self):
        values = [self.engine.safe_threshold(n) for n in range(0, 80)]
        assert all(a >= b for a, b in zip(values, values[1:]))
        assert min(values) >= 55

    def test_warning_band_is_fifteen(self):
        for n in (5, 24, 26, 60):
            assert self.engine.safe_threshold(n) - self.engine.warning_threshold(n) == 15

    def test_round_half_up(self):
        assert round_half_up(62.5) == 63
        assert round_half_up(72.4) == 72
        assert round_half_up(0.5) == 1


# ──── Points & percentage ─────────────────────────────────────────────────────
class TestPoints:

    def setup_method(self):
        self.engine = ScoringEngine()

    def test_nothing_done(self):
        c = completions([])
        assert self.engine.earned_points(c) == 0
        assert self.engine.completion_percentage(0, 211) == 0

    def test_everything_mandatory_done(self, all_mandatory):
        c = completions(all_mandatory)
        assert self.engine.earned_points(c) == 211
        assert self.engine.completion_percentage(211, 211) == 100

    def test_optional_tasks_only_give_bonus(self):
        c = completions(["quran", "dhikr", "social_media_fast"])
        assert self.engine.earned_points(c) == 0
        assert self.engine.bonus_points(c) == 8 + 6 + 6

    def test_percentage_clamped_and_zero_total(self):
        assert self.engine.completion_percentage(10, 0) == 0
        assert self.engine.completion_percentage(300, 211) == 100
        assert self.engine.completion_percentage(1, 8) == 13

    def test_critical_penalty_counts_missed_criticals(self):
        assert self.engine.critical_penalty(completions([])) == pytest.approx(6 * 1.2)
        c = completions(["fajr", "zuhr", "asr", "maghrib", "isha"])
        assert self.engine.critical_penalty(c) == pytest.approx(1.2)


# ──── Classification ──────────────────────────────────────────────────────────
class TestClassification:

    def setup_method(self):
        self.engine = ScoringEngine()

    def test_exact_threshold_with_all_criticals_is_safe(self, all_mandatory):
        assert self.engine.day_status(63, 24, completions(all_mandatory)) == DayStatus.SAFE

    def test_exact_threshold_with_missed_critical_is_not_safe(self, all_mandatory):
        done = [t for t in all_mandatory if t != "fajr"]
        assert self.engine.day_status(63, 24, completions(done)) == DayStatus.WARNING

    def test_failure_below_warning(self):
        assert self.engine.day_status(40, 24, completions([])) == DayStatus.FAILURE

    def test_scenario_safe_with_no_critical_missed(self, scenario_catalog):
        engine = ScoringEngine(scenario_catalog)
        done = ["fajr", "isha"] + [f"health_{i}" for i in range(10)] + [f"focus_{i}" for i in range(6)]
        c = completions(done, scenario_catalog)

        assert engine.total_points() == 234
        assert engine.task_count() == 26
        assert engine.safe_threshold(26) == 62
        assert engine.warning_threshold(26) == 47
        assert engine.earned_points(c) == 170
        assert engine.completion_percentage(170, 234) == 73
        assert engine.day_status(73, 26, c) == DayStatus.SAFE

    def test_scenario_safe_with_two_criticals_missed(self, scenario_catalog):
        engine = ScoringEngine(scenario_catalog)
        done = [f"health_{i}" for i in range(9)] + [f"focus_{i}" for i in range(10)]
        c = completions(done, scenario_catalog)

        assert engine.earned_points(c) == 170
        assert engine.critical_penalty(c) == pytest.approx(2.4)
        assert engine.day_status(73, 26, c) == DayStatus.SAFE

    def test_scenario_failure_is_major(self, scenario_catalog):
        engine = ScoringEngine(scenario_catalog)
        c = completions([f"health_{i}" for i in range(4)], scenario_catalog)

        pct = engine.completion_percentage(engine.earned_points(c), engine.total_points())
        assert pct == 17
        assert engine.day_status(pct, 26, c) == DayStatus.FAILURE
        assert PenaltyEngine.severity_for(pct) == PenaltySeverity.MAJOR


# ──── Record lifecycle ────────────────────────────────────────────────────────
class TestRecordLifecycle:

    def setup_method(self):
        self.engine = ScoringEngine()

    def make_record(self):
        return self.engine.update_record_scores(
            DEFAULT_CATALOG.create_empty_daily_record("u1", DAY, MORNING)
        )

    def test_status_pending_until_finalized(self, all_mandatory):
        record = self.make_record()
        record = replace(record, tasks=completions(all_mandatory))
        scored = self.engine.update_record_scores(record)
        assert scored.completion_percentage == 100
        assert scored.status == DayStatus.PENDING

    def test_update_scores_is_idempotent(self):
        record = self.make_record()
        once = self.engine.update_record_scores(record)
        assert self.engine.update_record_scores(once) == once

    def test_apply_completion_marks_task(self):
        record, result = self.engine.apply_completion(self.make_record(), "fajr", True, None, MORNING)
        assert result.valid
        assert record.tasks["fajr"].completed
        assert record.tasks["fajr"].completed_at == MORNING
        assert record.earned_points == 15
        assert record.completion_percentage == 7

    def test_apply_completion_does_not_mutate_input(self):
        original = self.make_record()
        self.engine.apply_completion(original, "fajr", True, None, MORNING)
        assert not original.tasks["fajr"].completed

    def test_uncheck_clears_completed_at(self):
        record, _ = self.engine.apply_completion(self.make_record(), "fajr", True, None, MORNING)
        record, _ = self.engine.apply_completion(record, "fajr", False, None, MORNING)
        assert not record.tasks["fajr"].completed
        assert record.tasks["fajr"].completed_at is None
        assert record.earned_points == 0

    def test_invalid_value_leaves_record_unchanged(self):
        original = self.make_record()
        record, result = self.engine.apply_completion(original, "steps", True, 5000, MORNING)
        assert not result.valid
        assert result.reason == "Need at least 10000 steps"
        assert record is original

    def test_notes_are_kept(self):
        record, _ = self.engine.apply_completion(self.make_record(), "journaling", True, None, MORNING, notes="calm day")
        assert record.tasks["journaling"].notes == "calm day"

    def test_unknown_task_is_programming_error(self):
        with pytest.raises(InvariantViolation):
            self.engine.apply_completion(self.make_record(), "nope", True, None, MORNING)

    def test_finalize_commits_status_once(self):
        evening = datetime(2026, 3, 10, 23, 0)
        finalized = self.engine.finalize_day(self.make_record(), evening)
        assert finalized.status == DayStatus.FAILURE
        assert finalized.day_ended_at == evening
        assert self.engine.finalize_day(finalized, datetime(2026, 3, 11, 1, 0)) is finalized

    def test_finalized_record_is_locked(self):
        finalized = self.engine.finalize_day(self.make_record(), datetime(2026, 3, 10, 23, 0))
        with pytest.raises(RecordLocked):
            self.engine.apply_completion(finalized, "fajr", True, None, datetime(2026, 3, 10, 23, 5))

    def test_day_complete_hour(self):
        assert not self.engine.is_day_complete(datetime(2026, 3, 10, 22, 59))
        assert self.engine.is_day_complete(datetime(2026, 3, 10, 23, 0))


# ──── Verdict ─────────────────────────────────────────────────────────────────
class TestVerdict:

    def setup_method(self):
        self.engine = ScoringEngine()

    def test_perfect_day(self, make_record, all_mandatory):
        verdict = self.engine.generate_verdict(make_record(DAY, all_mandatory))
        assert verdict.status == DayStatus.SAFE
        assert verdict.score == 100
        assert verdict.threshold == 63
        assert verdict.weakest_category is None
        assert verdict.message.startswith("Exceptional discipline")
        assert verdict.penalty_type is None

    def test_breakdown_excludes_upgrade_category(self, make_record):
        verdict = self.engine.generate_verdict(make_record(DAY))
        categories = [row.category for row in verdict.breakdown]
        assert TaskCategory.DEEN_UPGRADE not in categories
        assert categories[0] == TaskCategory.DEEN
        assert sum(row.max_points for row in verdict.breakdown) == 211

    def test_weakest_category(self, make_record, all_mandatory):
        sleep = {"sleep_time", "sleep_duration", "no_phone_before_bed"}
        record = make_record(DAY, [t for t in all_mandatory if t not in sleep])
        assert self.engine.weakest_category(record.tasks) == TaskCategory.SLEEP

    def test_weakest_tie_goes_to_catalog_order(self, make_record):
        assert self.engine.weakest_category(make_record(DAY).tasks) == TaskCategory.DEEN

    def test_warning_message_names_weakest_area(self, make_record, all_mandatory):
        missing = {"workout", "steps", "mobility", "sleep_time", "sleep_duration", "no_phone_before_bed",
                   "calories_logged", "calories_target", "no_junk", "water"}
        record = make_record(DAY, [t for t in all_mandatory if t not in missing])
        verdict = self.engine.generate_verdict(record)
        assert verdict.status == DayStatus.WARNING
        assert "Health & Fitness" in verdict.message

    def test_failure_message(self, make_record):
        verdict = self.engine.generate_verdict(make_record(DAY))
        assert verdict.status == DayStatus.FAILURE
        assert verdict.message.startswith("Day failed")
