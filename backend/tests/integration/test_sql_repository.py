"""
SqlRepository against a throwaway in-memory SQLite database.
"""
import pytest
from sqlalchemy import create_engine
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from datetime import date, datetime, timedelta

from discipline.domain.exceptions import NotFound, PenaltyEditRejected
from discipline.domain.models.circle import CouplesCircle
from discipline.domain.models.penalty import (
    EditedBy, Penalty, PenaltySeverity, PenaltyStatus, PenaltyType
)
from discipline.domain.models.record import DayStatus
from discipline.domain.models.reward import Reward, RewardStatus, RewardType, StreakData
from discipline.domain.models.user import UserProfile
from discipline.domain.services.penalty_engine import PenaltyEngine
from discipline.domain.services.scoring_engine import ScoringEngine
from discipline.domain.services.task_catalog import DEFAULT_CATALOG
from discipline.infrastructure.database.session import Base
from discipline.infrastructure.database import models  # noqa: F401
from discipline.infrastructure.repositories.sql_repository import SqlRepository

DAY = date(2026, 3, 10)
NOW = datetime(2026, 3, 10, 23, 30)


@pytest.fixture
def sql_repo():
    engine = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
    Base.metadata.create_all(bind=engine)
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    try:
        yield SqlRepository(session)
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def sql_user(sql_repo):
    return sql_repo.create_user(UserProfile(id=None, email="amina@example.com", display_name="Amina"))


def make_penalty(user_id, day=DAY, penalty_type=PenaltyType.EXTRA_CARDIO):
    return Penalty(
        id=None, user_id=user_id, date=day, type=penalty_type,
        severity=PenaltySeverity.MINOR, description="30 minutes of additional cardio exercise", created_at=NOW,
    )


# ──── Users ───────────────────────────────────────────────────────────────────
class TestUsers:

    def test_create_and_read(self, sql_repo, sql_user):
        profile = sql_repo.get_user(sql_user)
        assert profile.email == "amina@example.com"
        assert profile.streak == StreakData()
        assert sql_repo.get_user_by_email("amina@example.com").id == sql_user

    def test_streak_round_trip(self, sql_repo, sql_user):
        sql_repo.set_streak(sql_user, StreakData(current=4, longest=9, last_safe_date=DAY))
        assert sql_repo.get_streak(sql_user) == StreakData(4, 9, DAY)

    def test_require_unknown(self, sql_repo):
        with pytest.raises(NotFound):
            sql_repo.require_user("ghost")


# ──── Records ─────────────────────────────────────────────────────────────────
class TestRecords:

    def test_upsert_round_trip(self, sql_repo, sql_user):
        scoring = ScoringEngine()
        record = scoring.update_record_scores(DEFAULT_CATALOG.create_empty_daily_record(sql_user, DAY, NOW))
        record, _ = scoring.apply_completion(record, "steps", True, 12000, NOW, notes="long walk")
        sql_repo.upsert_daily_record(sql_user, DAY, record)

        stored = sql_repo.get_daily_record(sql_user, DAY)
        assert stored.tasks["steps"].value == 12000
        assert stored.tasks["steps"].completed_at == NOW
        assert stored.tasks["steps"].notes == "long walk"
        assert stored.earned_points == 8
        assert stored.status == DayStatus.PENDING

    def test_upsert_overwrites(self, sql_repo, sql_user):
        scoring = ScoringEngine()
        record = scoring.update_record_scores(DEFAULT_CATALOG.create_empty_daily_record(sql_user, DAY, NOW))
        sql_repo.upsert_daily_record(sql_user, DAY, record)
        sql_repo.upsert_daily_record(sql_user, DAY, scoring.finalize_day(record, NOW))

        stored = sql_repo.get_daily_record(sql_user, DAY)
        assert stored.status == DayStatus.FAILURE
        assert stored.day_ended_at == NOW
        assert len(sql_repo.get_all_records(sql_user)) == 1

    def test_range_is_inclusive_and_ordered(self, sql_repo, sql_user):
        for offset in (3, 0, 1, 2):
            day = DAY - timedelta(days=offset)
            sql_repo.upsert_daily_record(sql_user, day, DEFAULT_CATALOG.create_empty_daily_record(sql_user, day, NOW))
        records = sql_repo.get_records_in_range(sql_user, DAY - timedelta(days=2), DAY)
        assert [r.date for r in records] == [DAY - timedelta(days=2), DAY - timedelta(days=1), DAY]


# ──── Penalties ───────────────────────────────────────────────────────────────
class TestPenalties:

    def test_most_recent_first(self, sql_repo, sql_user):
        for offset in (2, 0, 1):
            sql_repo.create_penalty(sql_user, make_penalty(sql_user, DAY - timedelta(days=offset)))
        penalties = sql_repo.get_penalties(sql_user, limit=2)
        assert [p.date for p in penalties] == [DAY, DAY - timedelta(days=1)]

    def test_lookup_scoped_to_user(self, sql_repo, sql_user):
        other = sql_repo.create_user(UserProfile(id=None, email="x@example.com", display_name="X"))
        penalty_id = sql_repo.create_penalty(sql_user, make_penalty(sql_user))
        assert sql_repo.get_penalty(sql_user, penalty_id) is not None
        assert sql_repo.get_penalty(other, penalty_id) is None
        assert sql_repo.get_penalty_for_date(sql_user, DAY).id == penalty_id

    def test_status_update(self, sql_repo, sql_user):
        penalty_id = sql_repo.create_penalty(sql_user, make_penalty(sql_user))
        sql_repo.update_penalty_status(sql_user, penalty_id, PenaltyStatus.COMPLETED, NOW)
        assert sql_repo.get_penalty(sql_user, penalty_id).status == PenaltyStatus.COMPLETED
        assert not sql_repo.has_pending_penalties(sql_user)

    def test_one_penalty_per_date(self, sql_repo, sql_user):
        sql_repo.create_penalty(sql_user, make_penalty(sql_user))
        with pytest.raises(IntegrityError):
            sql_repo.create_penalty(sql_user, make_penalty(sql_user, penalty_type=PenaltyType.COLD_SHOWER))

    def test_partner_edit_guard(self, sql_repo, sql_user):
        penalty_id = sql_repo.create_penalty(sql_user, make_penalty(sql_user))
        engine = PenaltyEngine()
        first = sql_repo.get_penalty(sql_user, penalty_id)
        second = sql_repo.get_penalty(sql_user, penalty_id)

        first.apply_partner_edit(engine.definition_for(PenaltyType.COLD_SHOWER), NOW)
        sql_repo.save_partner_edit(first)
        second.apply_partner_edit(engine.definition_for(PenaltyType.SOCIAL_MEDIA_LOCKOUT), NOW)
        with pytest.raises(PenaltyEditRejected):
            sql_repo.save_partner_edit(second)

        stored = sql_repo.get_penalty(sql_user, penalty_id)
        assert stored.type == PenaltyType.COLD_SHOWER
        assert stored.original_type == PenaltyType.EXTRA_CARDIO
        assert stored.edited_by == EditedBy.PARTNER


# ──── Rewards ─────────────────────────────────────────────────────────────────
class TestRewards:

    def make_reward(self, user_id, created_at):
        return Reward(
            id=None, user_id=user_id, type=RewardType.MINOR, milestone=3, name="3-Day Streak Reward",
            description="", expires_at=created_at + timedelta(days=7), created_at=created_at,
        )

    def test_claim_and_order(self, sql_repo, sql_user):
        older = sql_repo.create_reward(sql_user, self.make_reward(sql_user, NOW - timedelta(days=10)))
        newer = sql_repo.create_reward(sql_user, self.make_reward(sql_user, NOW))

        assert [r.id for r in sql_repo.get_rewards(sql_user)] == [newer, older]
        assert [r.id for r in sql_repo.get_claimable_rewards(sql_user, NOW)] == [newer]

        sql_repo.claim_reward(sql_user, newer, NOW)
        assert sql_repo.get_reward(sql_user, newer).status == RewardStatus.CLAIMED


# ──── Circles ─────────────────────────────────────────────────────────────────
class TestCircles:

    def test_round_trip_and_delete(self, sql_repo, sql_user):
        circle = CouplesCircle(id=None, invite_code="ABC123", created_by=sql_user, members=[sql_user])
        circle_id = sql_repo.create_circle(circle)
        profile = sql_repo.get_user(sql_user)
        profile.couples_circle_id = circle_id
        sql_repo.update_user(profile)

        stored = sql_repo.get_circle_by_invite_code("ABC123")
        stored.add_challenge("Walk")
        stored.shared_streak = 2
        sql_repo.update_circle(stored)
        reread = sql_repo.get_circle(circle_id)
        assert reread.mutual_challenges[0].name == "Walk"
        assert reread.shared_streak == 2

        sql_repo.delete_circle(circle_id)
        assert sql_repo.get_circle(circle_id) is None
        assert sql_repo.get_user(sql_user).couples_circle_id is None
