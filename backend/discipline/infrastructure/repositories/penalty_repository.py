from sqlalchemy.orm import Session
from typing import Optional, List
from datetime import date

from discipline.domain.exceptions import NotFound, PenaltyEditRejected
from discipline.domain.models.penalty import (
    EditedBy, Penalty, PenaltySeverity, PenaltyStatus, PenaltyType
)
from discipline.infrastructure.database.models import PenaltyORM


def to_penalty(row: PenaltyORM) -> Penalty:
    return Penalty(
        id=row.id,
        user_id=row.user_id,
        date=row.penalty_date,
        type=PenaltyType(row.type),
        severity=PenaltySeverity(row.severity),
        description=row.description,
        status=PenaltyStatus(row.status or "pending"),
        completed_at=row.completed_at,
        waived_at=row.waived_at,
        waived_reason=row.waived_reason,
        edited_by=EditedBy(row.edited_by) if row.edited_by else None,
        edited_at=row.edited_at,
        original_type=PenaltyType(row.original_type) if row.original_type else None,
        original_description=row.original_description,
        created_at=row.created_at,
    )


def _apply(row: PenaltyORM, penalty: Penalty):
    row.type = penalty.type.value
    row.description = penalty.description
    row.status = penalty.status.value
    row.completed_at = penalty.completed_at
    row.waived_at = penalty.waived_at
    row.waived_reason = penalty.waived_reason
    row.edited_by = penalty.edited_by.value if penalty.edited_by else None
    row.edited_at = penalty.edited_at
    row.original_type = penalty.original_type.value if penalty.original_type else None
    row.original_description = penalty.original_description


class PenaltyRepository:
    def __init__(self, db: Session):
        self.db = db

    def _get_penalty_orm(self, penalty_id: str) -> Optional[PenaltyORM]:
        return self.db.query(PenaltyORM).filter(PenaltyORM.id == penalty_id).first()

    def create_penalty(self, user_id: str, penalty: Penalty) -> str:
        row = PenaltyORM(
            user_id=user_id,
            penalty_date=penalty.date,
            severity=penalty.severity.value,
            created_at=penalty.created_at,
        )
        _apply(row, penalty)
        self.db.add(row)
        self.db.commit()
        self.db.refresh(row)
        return row.id

    def get_penalty(self, user_id: str, penalty_id: str) -> Optional[Penalty]:
        row = self.db.query(PenaltyORM).filter(
            PenaltyORM.id == penalty_id, PenaltyORM.user_id == user_id
        ).first()
        return to_penalty(row) if row else None

    def get_penalties(self, user_id: str, limit: Optional[int] = None) -> List[Penalty]:
        q = self.db.query(PenaltyORM).filter(PenaltyORM.user_id == user_id).order_by(
            PenaltyORM.penalty_date.desc(), PenaltyORM.created_at.desc()
        )
        if limit is not None:
            q = q.limit(limit)
        return [to_penalty(r) for r in q.all()]

    def get_penalty_for_date(self, user_id: str, day: date) -> Optional[Penalty]:
        row = self.db.query(PenaltyORM).filter(
            PenaltyORM.user_id == user_id, PenaltyORM.penalty_date == day
        ).first()
        return to_penalty(row) if row else None

    def update_penalty(self, penalty: Penalty):
        row = self._get_penalty_orm(penalty.id)
        if not row:
            raise NotFound(f"Penalty {penalty.id} not found")
        _apply(row, penalty)
        self.db.commit()

    def save_partner_edit(self, penalty: Penalty):
        row = self._get_penalty_orm(penalty.id)
        if not row:
            raise NotFound(f"Penalty {penalty.id} not found")
        # guard against a concurrent edit that landed after our read
        if row.edited_by == EditedBy.PARTNER.value:
            raise PenaltyEditRejected("Penalty was already edited by partner")
        _apply(row, penalty)
        self.db.commit()
