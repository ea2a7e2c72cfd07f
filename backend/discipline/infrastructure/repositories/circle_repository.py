from sqlalchemy.orm import Session
from typing import Optional

from discipline.domain.exceptions import NotFound
from discipline.domain.models.circle import CouplesCircle, MutualChallenge
from discipline.infrastructure.database.models import CouplesCircleORM, UserORM


def to_circle(row: CouplesCircleORM) -> CouplesCircle:
    return CouplesCircle(
        id=row.id,
        invite_code=row.invite_code,
        created_by=row.created_by,
        members=list(row.members or []),
        name=row.name,
        shared_streak=row.shared_streak or 0,
        mutual_challenges=[MutualChallenge(**c) for c in (row.mutual_challenges or [])],
        created_at=row.created_at,
    )


def _dump_challenges(circle: CouplesCircle):
    return [{"id": c.id, "name": c.name, "completed": c.completed} for c in circle.mutual_challenges]


class CircleRepository:
    def __init__(self, db: Session):
        self.db = db

    def _get_circle_orm(self, circle_id: str) -> Optional[CouplesCircleORM]:
        return self.db.query(CouplesCircleORM).filter(CouplesCircleORM.id == circle_id).first()

    def create_circle(self, circle: CouplesCircle) -> str:
        row = CouplesCircleORM(
            invite_code=circle.invite_code,
            created_by=circle.created_by,
            name=circle.name,
            shared_streak=circle.shared_streak,
            members=list(circle.members),
            mutual_challenges=_dump_challenges(circle),
            created_at=circle.created_at,
        )
        self.db.add(row)
        self.db.commit()
        self.db.refresh(row)
        return row.id

    def get_circle(self, circle_id: str) -> Optional[CouplesCircle]:
        row = self._get_circle_orm(circle_id)
        return to_circle(row) if row else None

    def get_circle_by_invite_code(self, invite_code: str) -> Optional[CouplesCircle]:
        row = self.db.query(CouplesCircleORM).filter(CouplesCircleORM.invite_code == invite_code).first()
        return to_circle(row) if row else None

    def update_circle(self, circle: CouplesCircle):
        row = self._get_circle_orm(circle.id)
        if not row:
            raise NotFound(f"Circle {circle.id} not found")
        # fresh containers so the JSON columns are flagged dirty
        row.name = circle.name
        row.shared_streak = circle.shared_streak
        row.members = list(circle.members)
        row.mutual_challenges = _dump_challenges(circle)
        self.db.commit()

    def delete_circle(self, circle_id: str):
        self.db.query(UserORM).filter(UserORM.couples_circle_id == circle_id).update(
            {UserORM.couples_circle_id: None}, synchronize_session=False
        )
        row = self._get_circle_orm(circle_id)
        if row:
            self.db.delete(row)
        self.db.commit()
