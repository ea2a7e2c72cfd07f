import random
from datetime import date, datetime, timedelta
from typing import Optional

from discipline.core.logging import get_logger
from discipline.domain.exceptions import (
    AlreadyInCircle, InvalidInviteCode, InvariantViolation, NotFound, NotInCircle, PenaltyEditRejected
)
from discipline.domain.models.circle import (
    CouplesCircle, MutualChallenge, PartnerProgress, generate_invite_code, normalize_invite_code
)
from discipline.domain.models.penalty import Penalty, PenaltyType
from discipline.domain.models.record import DayStatus
from discipline.domain.repository import Repository
from discipline.domain.services.analytics_aggregator import AnalyticsAggregator
from discipline.domain.services.penalty_engine import PenaltyEngine
from discipline.domain.services.task_catalog import DEFAULT_CATALOG, TaskCatalog

logger = get_logger(__name__)

INVITE_CODE_ATTEMPTS = 10
PARTNER_AVERAGE_DAYS = 7
SHARED_STREAK_LOOKBACK_DAYS = 365


class CircleService:
    """Two-member accountability circles joined through a 6-character invite code."""

    def __init__(
        self,
        repository: Repository,
        penalties: Optional[PenaltyEngine] = None,
        catalog: TaskCatalog = DEFAULT_CATALOG,
        rng: Optional[random.Random] = None,
    ):
        self.repository = repository
        self.penalties = penalties or PenaltyEngine()
        self.catalog = catalog
        self.rng = rng

    # ──── Membership ──────────────────────────────────────────────────────────
    def create_circle(self, user_id: str, name: Optional[str] = None) -> CouplesCircle:
        profile = self.repository.require_user(user_id)
        if profile.in_circle():
            raise AlreadyInCircle()

        circle = CouplesCircle(
            id=None,
            invite_code=self._unused_invite_code(),
            created_by=user_id,
            members=[user_id],
            name=name,
        )
        circle.id = self.repository.create_circle(circle)
        profile.couples_circle_id = circle.id
        self.repository.update_user(profile)
        logger.info("Circle created", user_id=user_id, circle_id=circle.id)
        return circle

    def _unused_invite_code(self) -> str:
        for _ in range(INVITE_CODE_ATTEMPTS):
            code = generate_invite_code(self.rng)
            if self.repository.get_circle_by_invite_code(code) is None:
                return code
        raise InvariantViolation("Could not generate an unused invite code")

    def join_circle(self, user_id: str, invite_code: str) -> CouplesCircle:
        profile = self.repository.require_user(user_id)
        circle = self.repository.get_circle_by_invite_code(normalize_invite_code(invite_code))
        if circle is None:
            raise InvalidInviteCode()
        if profile.in_circle() and profile.couples_circle_id != circle.id:
            raise AlreadyInCircle()

        circle.join(user_id)
        self.repository.update_circle(circle)
        profile.couples_circle_id = circle.id
        self.repository.update_user(profile)
        logger.info("Circle joined", user_id=user_id, circle_id=circle.id)
        return circle

    def leave_circle(self, user_id: str):
        profile = self.repository.require_user(user_id)
        circle = self._circle_of(profile.couples_circle_id)
        circle.leave(user_id)

        profile.couples_circle_id = None
        self.repository.update_user(profile)
        if circle.is_empty():
            self.repository.delete_circle(circle.id)
        else:
            self.repository.update_circle(circle)
        logger.info("Circle left", user_id=user_id, circle_id=circle.id, deleted=circle.is_empty())

    def get_circle(self, user_id: str) -> CouplesCircle:
        profile = self.repository.require_user(user_id)
        return self._circle_of(profile.couples_circle_id)

    def partner_id(self, user_id: str) -> Optional[str]:
        return self.get_circle(user_id).partner_of(user_id)

    def _circle_of(self, circle_id: Optional[str]) -> CouplesCircle:
        if circle_id is None:
            raise NotInCircle()
        circle = self.repository.get_circle(circle_id)
        if circle is None:
            raise NotInCircle()
        return circle

    # ──── Partner ─────────────────────────────────────────────────────────────
    def partner_progress(self, user_id: str, today: date) -> Optional[PartnerProgress]:
        """None while the circle is waiting for a second member."""
        partner_id = self.partner_id(user_id)
        if partner_id is None:
            return None
        partner = self.repository.require_user(partner_id)

        record = self.repository.get_daily_record(partner_id, today)
        week = self.repository.get_records_in_range(
            partner_id, today - timedelta(days=PARTNER_AVERAGE_DAYS - 1), today
        )
        mandatory = self.catalog.mandatory_tasks()
        done = sum(1 for t in mandatory if record is not None and record.is_completed(t.id))
        return PartnerProgress(
            partner_id=partner_id,
            display_name=partner.display_name,
            today_score=record.completion_percentage if record else 0,
            today_status=record.status if record else DayStatus.PENDING,
            current_streak=partner.streak.current,
            longest_streak=partner.streak.longest,
            weekly_average=AnalyticsAggregator.average_score(week),
            tasks_completed=done,
            total_tasks=len(mandatory),
        )

    def refresh_shared_streak(self, user_id: str, today: date) -> int:
        """
        Consecutive days, counted back from the latest day both partners
        finalized, on which both were safe. A warning from either side
        is neutral; a failure or a day only one of them finalized ends it.
        """
        circle = self.get_circle(user_id)
        partner_id = circle.partner_of(user_id)
        if partner_id is None:
            return circle.shared_streak

        start = today - timedelta(days=SHARED_STREAK_LOOKBACK_DAYS)
        mine = self._finalized_statuses(user_id, start, today)
        theirs = self._finalized_statuses(partner_id, start, today)

        streak, previous = 0, None
        for day in sorted(set(mine) & set(theirs), reverse=True):
            if previous is not None and (previous - day).days != 1:
                break
            previous = day
            pair = (mine[day], theirs[day])
            if DayStatus.FAILURE in pair:
                break
            if pair == (DayStatus.SAFE, DayStatus.SAFE):
                streak += 1

        if streak != circle.shared_streak:
            circle.shared_streak = streak
            self.repository.update_circle(circle)
            logger.info("Shared streak updated", circle_id=circle.id, shared_streak=streak)
        return streak

    def _finalized_statuses(self, user_id: str, start: date, end: date):
        return {
            r.date: r.status
            for r in self.repository.get_records_in_range(user_id, start, end)
            if r.is_finalized()
        }

    def edit_partner_penalty(
        self,
        editor_id: str,
        penalty_id: str,
        new_type: PenaltyType,
        now: datetime,
        description: Optional[str] = None,
    ) -> Penalty:
        partner_id = self.partner_id(editor_id)
        if partner_id is None:
            raise PenaltyEditRejected("Circle has no partner yet")

        penalty = self.repository.get_penalty(partner_id, penalty_id)
        if penalty is None:
            raise NotFound(f"Penalty {penalty_id} not found")
        definition = self.penalties.definition_for(new_type)
        if definition is None:
            raise PenaltyEditRejected(f"Unknown penalty type '{new_type.value}'")

        penalty.apply_partner_edit(definition, now, description)
        self.repository.save_partner_edit(penalty)
        logger.info(
            "Partner edit applied",
            editor_id=editor_id,
            partner_id=partner_id,
            penalty_id=penalty_id,
            original_type=penalty.original_type.value,
            new_type=penalty.type.value,
        )
        return penalty

    # ──── Mutual challenges ───────────────────────────────────────────────────
    def add_challenge(self, user_id: str, name: str) -> MutualChallenge:
        circle = self.get_circle(user_id)
        challenge = circle.add_challenge(name)
        self.repository.update_circle(circle)
        logger.info("Challenge added", circle_id=circle.id, challenge_id=challenge.id)
        return challenge

    def complete_challenge(self, user_id: str, challenge_id: str) -> MutualChallenge:
        circle = self.get_circle(user_id)
        challenge = circle.complete_challenge(challenge_id)
        self.repository.update_circle(circle)
        logger.info("Challenge completed", circle_id=circle.id, challenge_id=challenge.id)
        return challenge
