from sqlalchemy.orm import Session
from typing import Optional, List

from discipline.domain.exceptions import NotFound
from discipline.domain.models.reward import Reward, RewardStatus, RewardType
from discipline.infrastructure.database.models import RewardORM


def to_reward(row: RewardORM) -> Reward:
    return Reward(
        id=row.id,
        user_id=row.user_id,
        type=RewardType(row.type),
        milestone=row.milestone,
        name=row.name,
        description=row.description or "",
        expires_at=row.expires_at,
        status=RewardStatus(row.status or "claimable"),
        claimed_at=row.claimed_at,
        created_at=row.created_at,
    )


class RewardRepository:
    def __init__(self, db: Session):
        self.db = db

    def create_reward(self, user_id: str, reward: Reward) -> str:
        row = RewardORM(
            user_id=user_id,
            type=reward.type.value,
            milestone=reward.milestone,
            name=reward.name,
            description=reward.description,
            status=reward.status.value,
            expires_at=reward.expires_at,
            claimed_at=reward.claimed_at,
            created_at=reward.created_at,
        )
        self.db.add(row)
        self.db.commit()
        self.db.refresh(row)
        return row.id

    def get_reward(self, user_id: str, reward_id: str) -> Optional[Reward]:
        row = self.db.query(RewardORM).filter(
            RewardORM.id == reward_id, RewardORM.user_id == user_id
        ).first()
        return to_reward(row) if row else None

    def get_rewards(self, user_id: str) -> List[Reward]:
        rows = self.db.query(RewardORM).filter(
            RewardORM.user_id == user_id
        ).order_by(RewardORM.created_at.desc()).all()
        return [to_reward(r) for r in rows]

    def update_reward(self, reward: Reward):
        row = self.db.query(RewardORM).filter(RewardORM.id == reward.id).first()
        if not row:
            raise NotFound(f"Reward {reward.id} not found")
        row.status = reward.status.value
        row.claimed_at = reward.claimed_at
        self.db.commit()
