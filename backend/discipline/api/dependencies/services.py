import random
from datetime import datetime
from fastapi import Depends
from sqlalchemy.orm import Session

from discipline.core.config import settings
from discipline.domain.repository import Repository
from discipline.domain.services.analytics_aggregator import AnalyticsAggregator
from discipline.domain.services.circle_service import CircleService
from discipline.domain.services.day_end_service import DayEndService
from discipline.domain.services.penalty_engine import PenaltyEngine
from discipline.domain.services.scoring_engine import ScoringEngine
from discipline.domain.services.streak_engine import StreakEngine
from discipline.infrastructure.database.session import get_db
from discipline.infrastructure.repositories.sql_repository import SqlRepository

# One random source per process; seeded when PENALTY_RANDOM_SEED is set
rng = random.Random(settings.PENALTY_RANDOM_SEED)


def get_now() -> datetime:
    return datetime.utcnow()


def get_repository(db: Session = Depends(get_db)) -> Repository:
    return SqlRepository(db)


def get_scoring_engine() -> ScoringEngine:
    return ScoringEngine()


def get_penalty_engine(scoring: ScoringEngine = Depends(get_scoring_engine)) -> PenaltyEngine:
    return PenaltyEngine(
        scoring=scoring,
        rng=rng,
        escalation_window_days=settings.ESCALATION_WINDOW_DAYS,
        escalation_penalty_count=settings.ESCALATION_PENALTY_COUNT,
    )


def get_streak_engine() -> StreakEngine:
    return StreakEngine(rng=rng, reward_expiry_days=settings.REWARD_EXPIRY_DAYS)


def get_analytics() -> AnalyticsAggregator:
    return AnalyticsAggregator(rng=rng)


def get_day_end_service(
    repository: Repository = Depends(get_repository),
    scoring: ScoringEngine = Depends(get_scoring_engine),
    penalties: PenaltyEngine = Depends(get_penalty_engine),
    streaks: StreakEngine = Depends(get_streak_engine),
) -> DayEndService:
    return DayEndService(repository, scoring, penalties, streaks, day_end_hour=settings.DAY_END_HOUR)


def get_circle_service(
    repository: Repository = Depends(get_repository),
    penalties: PenaltyEngine = Depends(get_penalty_engine),
) -> CircleService:
    return CircleService(repository, penalties=penalties)
