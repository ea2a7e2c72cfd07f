import uuid
from sqlalchemy import (
    Column, Integer, String, DateTime, Date, Text, ForeignKey, Enum as SAEnum, JSON, UniqueConstraint
)
from sqlalchemy.orm import relationship
from datetime import datetime

from discipline.domain.models.penalty import PenaltyType
from discipline.infrastructure.database.session import Base


def _uuid() -> str:
    return uuid.uuid4().hex


class UserORM(Base):
    __tablename__ = "users"

    id = Column(String(32), primary_key=True, default=_uuid)
    email = Column(String(255), unique=True, index=True, nullable=False)
    display_name = Column(String(100), nullable=False)
    timezone = Column(String(64), default="UTC")
    # streak is embedded in the profile row
    current_streak = Column(Integer, default=0, nullable=False)
    longest_streak = Column(Integer, default=0, nullable=False)
    last_safe_date = Column(Date, nullable=True)
    couples_circle_id = Column(String(32), ForeignKey("couples_circles.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    records = relationship("DailyRecordORM", back_populates="user", cascade="all, delete-orphan")
    penalties = relationship("PenaltyORM", back_populates="user", cascade="all, delete-orphan")
    rewards = relationship("RewardORM", back_populates="user", cascade="all, delete-orphan")


class DailyRecordORM(Base):
    __tablename__ = "daily_records"
    __table_args__ = (UniqueConstraint("user_id", "record_date", name="uq_daily_record_user_date"),)

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(32), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    record_date = Column(Date, nullable=False)
    tasks = Column(JSON, nullable=False, default=dict)   # task_id -> completion
    total_points = Column(Integer, default=0)
    earned_points = Column(Integer, default=0)
    bonus_points = Column(Integer, default=0)
    completion_percentage = Column(Integer, default=0)
    status = Column(SAEnum("pending", "safe", "warning", "failure", name="day_status"), default="pending")
    day_ended_at = Column(DateTime)
    verdict_generated_at = Column(DateTime)
    penalty_assigned = Column(String(32))
    reward_earned = Column(String(32))
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime)

    user = relationship("UserORM", back_populates="records")


class PenaltyORM(Base):
    __tablename__ = "penalties"
    __table_args__ = (UniqueConstraint("user_id", "penalty_date", name="uq_penalty_user_date"),)

    id = Column(String(32), primary_key=True, default=_uuid)
    user_id = Column(String(32), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    penalty_date = Column(Date, nullable=False)
    type = Column(SAEnum(*[t.value for t in PenaltyType], name="penalty_type"), nullable=False)
    severity = Column(SAEnum("minor", "major", name="penalty_severity"), nullable=False)
    description = Column(Text, nullable=False)
    status = Column(SAEnum("pending", "completed", "waived", name="penalty_status"), default="pending")
    completed_at = Column(DateTime)
    waived_at = Column(DateTime)
    waived_reason = Column(Text)
    edited_by = Column(SAEnum("self", "partner", name="penalty_edited_by"), nullable=True)
    edited_at = Column(DateTime)
    original_type = Column(String(50))
    original_description = Column(Text)
    created_at = Column(DateTime, default=datetime.utcnow)

    user = relationship("UserORM", back_populates="penalties")


class RewardORM(Base):
    __tablename__ = "rewards"

    id = Column(String(32), primary_key=True, default=_uuid)
    user_id = Column(String(32), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    type = Column(SAEnum("minor", "medium", "major", name="reward_type"), nullable=False)
    milestone = Column(Integer, nullable=False)
    name = Column(String(255), nullable=False)
    description = Column(Text)
    # "expired" is derived from expires_at on read and never written
    status = Column(SAEnum("claimable", "claimed", "expired", name="reward_status"), default="claimable")
    expires_at = Column(DateTime, nullable=False)
    claimed_at = Column(DateTime)
    created_at = Column(DateTime, default=datetime.utcnow)

    user = relationship("UserORM", back_populates="rewards")


class CouplesCircleORM(Base):
    __tablename__ = "couples_circles"

    id = Column(String(32), primary_key=True, default=_uuid)
    invite_code = Column(String(6), unique=True, index=True, nullable=False)
    created_by = Column(String(32), nullable=False)
    name = Column(String(100))
    shared_streak = Column(Integer, default=0)
    members = Column(JSON, nullable=False, default=list)
    mutual_challenges = Column(JSON, nullable=False, default=list)
    created_at = Column(DateTime, default=datetime.utcnow)
