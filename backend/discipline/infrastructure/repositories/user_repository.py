from sqlalchemy.orm import Session
from typing import Optional
from datetime import datetime

from discipline.domain.exceptions import NotFound
from discipline.domain.models.reward import StreakData
from discipline.domain.models.user import UserProfile
from discipline.infrastructure.database.models import UserORM


def to_profile(user: UserORM) -> UserProfile:
    return UserProfile(
        id=user.id,
        email=user.email,
        display_name=user.display_name,
        streak=StreakData(
            current=user.current_streak or 0,
            longest=user.longest_streak or 0,
            last_safe_date=user.last_safe_date,
        ),
        couples_circle_id=user.couples_circle_id,
        timezone=user.timezone or "UTC",
        created_at=user.created_at,
        updated_at=user.updated_at,
    )


class UserRepository:
    def __init__(self, db: Session):
        self.db = db

    def _get_user_orm(self, user_id: str) -> Optional[UserORM]:
        return self.db.query(UserORM).filter(UserORM.id == user_id).first()

    def get_user(self, user_id: str) -> Optional[UserProfile]:
        user = self._get_user_orm(user_id)
        return to_profile(user) if user else None

    def get_user_by_email(self, email: str) -> Optional[UserProfile]:
        user = self.db.query(UserORM).filter(UserORM.email == email).first()
        return to_profile(user) if user else None

    def create_user(self, profile: UserProfile) -> str:
        user = UserORM(
            email=profile.email,
            display_name=profile.display_name,
            timezone=profile.timezone,
            current_streak=profile.streak.current,
            longest_streak=profile.streak.longest,
            last_safe_date=profile.streak.last_safe_date,
            couples_circle_id=profile.couples_circle_id,
        )
        if profile.id:
            user.id = profile.id
        self.db.add(user)
        self.db.commit()
        self.db.refresh(user)
        return user.id

    def update_user(self, profile: UserProfile):
        user = self._get_user_orm(profile.id)
        if not user:
            raise NotFound(f"User {profile.id} not found")
        user.display_name = profile.display_name
        user.timezone = profile.timezone
        user.current_streak = profile.streak.current
        user.longest_streak = profile.streak.longest
        user.last_safe_date = profile.streak.last_safe_date
        user.couples_circle_id = profile.couples_circle_id
        user.updated_at = datetime.utcnow()
        self.db.commit()
