"""
Shared fixtures. Engines are tested without any database; services run
against the in-memory repository; API tests build their own SQLite engine.
"""
import os

# must be set before discipline.core.config is imported anywhere
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

# the API tests use @discipline.test addresses; email-validator's documented
# switch for test suites lets the reserved "test" domain through
import email_validator

email_validator.TEST_ENVIRONMENT = True

import random
from datetime import date, datetime, time
from typing import Iterable, Optional

import pytest

from discipline.domain.models.record import DailyRecord, DayStatus
from discipline.domain.models.task import TaskCategory, TaskCompletion, TaskDefinition, TaskPriority
from discipline.domain.models.user import UserProfile
from discipline.domain.services.scoring_engine import ScoringEngine
from discipline.domain.services.task_catalog import DEFAULT_CATALOG, TaskCatalog
from discipline.infrastructure.repositories.memory_repository import InMemoryRepository

TODAY = date(2026, 3, 10)                    # a Tuesday
NOW = datetime(2026, 3, 10, 23, 30)          # past the default day-end hour


@pytest.fixture
def today() -> date:
    return TODAY


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def rng() -> random.Random:
    return random.Random(42)


@pytest.fixture
def repo() -> InMemoryRepository:
    return InMemoryRepository()


@pytest.fixture
def user_id(repo) -> str:
    return repo.create_user(UserProfile(id=None, email="amina@example.com", display_name="Amina"))


@pytest.fixture
def partner_id(repo) -> str:
    return repo.create_user(UserProfile(id=None, email="yusuf@example.com", display_name="Yusuf"))


@pytest.fixture
def scenario_catalog() -> TaskCatalog:
    """26 mandatory tasks worth 234 points; fajr and isha are the only critical ones."""
    tasks = [
        TaskDefinition("fajr", TaskCategory.DEEN, "Fajr Prayer", "", 11, TaskPriority.CRITICAL),
        TaskDefinition("isha", TaskCategory.DEEN, "Isha Prayer", "", 11, TaskPriority.CRITICAL),
    ]
    tasks += [
        TaskDefinition(f"health_{i}", TaskCategory.HEALTH, f"Health {i}", "", 10, TaskPriority.HIGH)
        for i in range(10)
    ]
    tasks += [
        TaskDefinition(f"focus_{i}", TaskCategory.PRODUCTIVITY, f"Focus {i}", "", 8, TaskPriority.MEDIUM)
        for i in range(14)
    ]
    return TaskCatalog(tasks)


@pytest.fixture
def make_record():
    """
    Build a DailyRecord scored by the engine. `done` lists the completed
    task ids; `finalized=True` commits the computed status.
    """
    def _make(
        day: date,
        done: Iterable[str] = (),
        finalized: bool = True,
        catalog: TaskCatalog = DEFAULT_CATALOG,
        user_id: str = "u1",
    ) -> DailyRecord:
        done = set(done)
        scoring = ScoringEngine(catalog)
        tasks = {
            t.id: TaskCompletion(task_id=t.id, completed=t.id in done)
            for t in catalog
        }
        record = scoring.update_record_scores(DailyRecord(user_id=user_id, date=day, tasks=tasks))
        if finalized:
            record = scoring.finalize_day(record, datetime.combine(day, time(23, 30)))
        return record
    return _make


@pytest.fixture
def make_finalized():
    """A finalized record with a fixed score and status, all tasks left undone."""
    def _make(day: date, status: DayStatus, score: int = 0, user_id: str = "u1",
              done: Optional[Iterable[str]] = None) -> DailyRecord:
        done = set(done or ())
        return DailyRecord(
            user_id=user_id,
            date=day,
            tasks={t.id: TaskCompletion(task_id=t.id, completed=t.id in done) for t in DEFAULT_CATALOG},
            total_points=DEFAULT_CATALOG.total_mandatory_points(),
            completion_percentage=score,
            status=status,
            day_ended_at=datetime.combine(day, time(23, 30)),
        )
    return _make


MANDATORY_IDS = [t.id for t in DEFAULT_CATALOG.mandatory_tasks()]


@pytest.fixture
def all_mandatory():
    return list(MANDATORY_IDS)
