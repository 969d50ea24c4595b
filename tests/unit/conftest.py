"""Pytest configuration and fixtures for unit tests."""

from datetime import UTC, datetime, timedelta
from itertools import count

import pytest

from fairshare.core.config import settings
from fairshare.domain.member import Member
from fairshare.domain.task import Task, TaskCategory, TaskStatus
from tests.unit.mocks import InMemoryDBClient


NOW = datetime(2026, 3, 16, 12, 0, 0, tzinfo=UTC)
SPACE_ID = "space_1"


@pytest.fixture
def now() -> datetime:
    """Fixed reference time for time-dependent calculations."""
    return NOW


@pytest.fixture
def make_task():
    """Factory for tasks with sensible defaults.

    `days_ago` sets created_at relative to the fixed reference time.
    """
    ids = count(1)

    def _make_task(
        *,
        difficulty: int = 5,
        category: TaskCategory = TaskCategory.OTHER,
        status: TaskStatus = TaskStatus.TODO,
        assigned_to: str | None = None,
        days_ago: float = 0,
        due_in_hours: float | None = None,
        space_id: str = SPACE_ID,
        task_id: str | None = None,
    ) -> Task:
        number = next(ids)
        return Task(
            id=task_id or f"t{number}",
            space_id=space_id,
            title=f"Task {number}",
            category=category,
            difficulty=difficulty,
            status=status,
            assigned_to=assigned_to,
            created_at=NOW - timedelta(days=days_ago),
            due_date=NOW + timedelta(hours=due_in_hours) if due_in_hours is not None else None,
        )

    return _make_task


@pytest.fixture
def make_done(make_task):
    """Factory for completed tasks assigned to a member."""

    def _make_done(member_id: str, **kwargs) -> Task:
        return make_task(status=TaskStatus.DONE, assigned_to=member_id, **kwargs)

    return _make_done


@pytest.fixture
def members() -> list[Member]:
    """Three-member household."""
    return [
        Member(user_id="alice", space_id=SPACE_ID, display_name="Alice"),
        Member(user_id="bob", space_id=SPACE_ID, display_name="Bob"),
        Member(user_id="carol", space_id=SPACE_ID, display_name="Carol"),
    ]


@pytest.fixture
def in_memory_db():
    """Provides a fresh InMemoryDBClient for each test."""
    return InMemoryDBClient()


@pytest.fixture
def patched_db(monkeypatch, in_memory_db):
    """Patches fairshare.core.db_client functions to use InMemoryDBClient."""
    monkeypatch.setattr("fairshare.core.db_client.create_record", in_memory_db.create_record)
    monkeypatch.setattr("fairshare.core.db_client.get_record", in_memory_db.get_record)
    monkeypatch.setattr("fairshare.core.db_client.update_record", in_memory_db.update_record)
    monkeypatch.setattr("fairshare.core.db_client.list_records", in_memory_db.list_records)
    monkeypatch.setattr("fairshare.core.db_client.get_first_record", in_memory_db.get_first_record)
    return in_memory_db


@pytest.fixture
def policy(monkeypatch):
    """Override insight policy thresholds on the global settings for one test."""

    def _override(**values) -> None:
        for name, value in values.items():
            monkeypatch.setattr(settings, name, value)

    return _override
