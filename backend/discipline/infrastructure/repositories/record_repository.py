from sqlalchemy.orm import Session
from typing import Optional, List, Dict, Any
from datetime import date, datetime

from discipline.domain.models.record import DailyRecord, DayStatus
from discipline.domain.models.task import TaskCompletion
from discipline.infrastructure.database.models import DailyRecordORM


def _dt(value: Optional[str]) -> Optional[datetime]:
    return datetime.fromisoformat(value) if value else None


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def dump_tasks(tasks: Dict[str, TaskCompletion]) -> Dict[str, Dict[str, Any]]:
    return {
        task_id: {
            "completed": c.completed,
            "value": c.value,
            "completed_at": _iso(c.completed_at),
            "notes": c.notes,
            "updated_at": _iso(c.updated_at),
        }
        for task_id, c in tasks.items()
    }


def load_tasks(raw: Optional[Dict[str, Dict[str, Any]]]) -> Dict[str, TaskCompletion]:
    return {
        task_id: TaskCompletion(
            task_id=task_id,
            completed=bool(data.get("completed")),
            value=data.get("value"),
            completed_at=_dt(data.get("completed_at")),
            notes=data.get("notes"),
            updated_at=_dt(data.get("updated_at")),
        )
        for task_id, data in (raw or {}).items()
    }


def to_record(row: DailyRecordORM) -> DailyRecord:
    return DailyRecord(
        user_id=row.user_id,
        date=row.record_date,
        tasks=load_tasks(row.tasks),
        total_points=row.total_points or 0,
        earned_points=row.earned_points or 0,
        bonus_points=row.bonus_points or 0,
        completion_percentage=row.completion_percentage or 0,
        status=DayStatus(row.status or "pending"),
        day_ended_at=row.day_ended_at,
        verdict_generated_at=row.verdict_generated_at,
        penalty_assigned=row.penalty_assigned,
        reward_earned=row.reward_earned,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


class RecordRepository:
    def __init__(self, db: Session):
        self.db = db

    def _get_record_orm(self, user_id: str, day: date) -> Optional[DailyRecordORM]:
        return self.db.query(DailyRecordORM).filter(
            DailyRecordORM.user_id == user_id,
            DailyRecordORM.record_date == day,
        ).first()

    def get_daily_record(self, user_id: str, day: date) -> Optional[DailyRecord]:
        row = self._get_record_orm(user_id, day)
        return to_record(row) if row else None

    def upsert_daily_record(self, user_id: str, day: date, record: DailyRecord):
        data = dict(
            tasks=dump_tasks(record.tasks),
            total_points=record.total_points,
            earned_points=record.earned_points,
            bonus_points=record.bonus_points,
            completion_percentage=record.completion_percentage,
            status=record.status.value,
            day_ended_at=record.day_ended_at,
            verdict_generated_at=record.verdict_generated_at,
            penalty_assigned=record.penalty_assigned,
            reward_earned=record.reward_earned,
            updated_at=record.updated_at,
        )
        existing = self._get_record_orm(user_id, day)
        if existing:
            for k, v in data.items():
                setattr(existing, k, v)
        else:
            self.db.add(DailyRecordORM(user_id=user_id, record_date=day, created_at=record.created_at, **data))
        self.db.commit()

    def get_records_in_range(self, user_id: str, start: date, end: date) -> List[DailyRecord]:
        rows = self.db.query(DailyRecordORM).filter(
            DailyRecordORM.user_id == user_id,
            DailyRecordORM.record_date >= start,
            DailyRecordORM.record_date <= end,
        ).order_by(DailyRecordORM.record_date).all()
        return [to_record(r) for r in rows]

    def get_all_records(self, user_id: str) -> List[DailyRecord]:
        rows = self.db.query(DailyRecordORM).filter(
            DailyRecordORM.user_id == user_id
        ).order_by(DailyRecordORM.record_date).all()
        return [to_record(r) for r in rows]
