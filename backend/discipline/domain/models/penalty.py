from dataclasses import dataclass, field
from datetime import datetime, date
from typing import Optional
from enum import Enum

from discipline.domain.exceptions import InvalidTransition, PenaltyEditRejected


class PenaltySeverity(str, Enum):
    MINOR = "minor"
    MAJOR = "major"


class PenaltyType(str, Enum):
    EXTRA_CARDIO = "extra_cardio"
    COLD_SHOWER = "cold_shower"
    ENTERTAINMENT_RESTRICTION = "entertainment_restriction"
    SOCIAL_MEDIA_LOCKOUT = "social_media_lockout"
    FULL_ENTERTAINMENT_BAN = "full_entertainment_ban"
    EXTRA_WORKOUT = "extra_workout"
    CHARITY_DONATION = "charity_donation"
    EARLIER_WAKEUP = "earlier_wakeup"


class PenaltyStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    WAIVED = "waived"


class EditedBy(str, Enum):
    SELF = "self"
    PARTNER = "partner"


@dataclass(frozen=True)
class PenaltyDefinition:
    type: PenaltyType
    severity: PenaltySeverity
    name: str
    description: str
    duration: str
    icon: str = ""


@dataclass
class Penalty:
    id: Optional[str]
    user_id: str
    date: date                      # the failed day
    type: PenaltyType
    severity: PenaltySeverity
    description: str
    status: PenaltyStatus = PenaltyStatus.PENDING
    completed_at: Optional[datetime] = None
    waived_at: Optional[datetime] = None
    waived_reason: Optional[str] = None
    edited_by: Optional[EditedBy] = None
    edited_at: Optional[datetime] = None
    original_type: Optional[PenaltyType] = None
    original_description: Optional[str] = None
    created_at: datetime = field(default_factory=datetime.utcnow)

    # ──── Business Rules ────────────────────────────────────────────
    def is_pending(self) -> bool:
        return self.status == PenaltyStatus.PENDING

    def can_partner_edit(self) -> bool:
        if self.edited_by == EditedBy.PARTNER:
            return False
        return self.is_pending()

    def complete(self, now: datetime):
        if not self.is_pending():
            raise InvalidTransition(f"Cannot complete penalty in '{self.status.value}' state")
        self.status = PenaltyStatus.COMPLETED
        self.completed_at = now

    def waive(self, now: datetime, reason: Optional[str] = None):
        if not self.is_pending():
            raise InvalidTransition(f"Cannot waive penalty in '{self.status.value}' state")
        self.status = PenaltyStatus.WAIVED
        self.waived_at = now
        self.waived_reason = reason

    def apply_partner_edit(self, definition: PenaltyDefinition, now: datetime, description: Optional[str] = None):
        if not self.can_partner_edit():
            raise PenaltyEditRejected("Penalty can no longer be edited by partner")
        if definition.severity != self.severity:
            raise PenaltyEditRejected(
                f"Replacement must keep '{self.severity.value}' severity, got '{definition.severity.value}'"
            )
        self.original_type = self.type
        self.original_description = self.description
        self.type = definition.type
        self.description = description or definition.description
        self.edited_by = EditedBy.PARTNER
        self.edited_at = now
