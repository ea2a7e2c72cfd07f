from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from discipline.domain.models.reward import StreakData


@dataclass
class UserProfile:
    id: Optional[str]
    email: str
    display_name: str
    streak: StreakData = field(default_factory=StreakData)
    couples_circle_id: Optional[str] = None
    timezone: str = "UTC"
    created_at: datetime = field(default_factory=datetime.utcnow)
    updated_at: datetime = field(default_factory=datetime.utcnow)

    def in_circle(self) -> bool:
        return self.couples_circle_id is not None
