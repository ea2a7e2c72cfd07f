from sqlalchemy.orm import Session

from discipline.domain.repository import Repository
from discipline.infrastructure.repositories.circle_repository import CircleRepository
from discipline.infrastructure.repositories.penalty_repository import PenaltyRepository
from discipline.infrastructure.repositories.record_repository import RecordRepository
from discipline.infrastructure.repositories.reward_repository import RewardRepository
from discipline.infrastructure.repositories.user_repository import UserRepository


class SqlRepository(
    UserRepository,
    RecordRepository,
    PenaltyRepository,
    RewardRepository,
    CircleRepository,
    Repository,
):
    """The full repository contract over one SQLAlchemy session."""

    def __init__(self, db: Session):
        self.db = db
