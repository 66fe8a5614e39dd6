"""
Pytest configuration and fixtures for the callback engine tests.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator, Collection, Sequence
from dataclasses import replace
from datetime import datetime, timedelta, timezone
from typing import Any
from uuid import UUID, uuid4

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import callback_engine.history.models  # noqa: F401
from callback_engine.engine import CallbackEngine
from callback_engine.history.records import (
    AttemptCreate,
    AttemptRecord,
    CallbackCompletion,
    CallbackCreate,
    CallbackRecord,
    CallbackStatus,
    ContactRecord,
)
from callback_engine.outcomes.taxonomy import CallOutcome
from callback_engine.prediction.config import EngineConfig
from callback_engine.shared.clock import ensure_utc
from callback_engine.shared.database import Base
from callback_engine.shared.exceptions import ConflictError, NotFoundError, StorageError

# Monday 2024-03-04 09:00 in America/Los_Angeles (PST, UTC-8).
MONDAY_9AM_PACIFIC = datetime(2024, 3, 4, 17, 0, tzinfo=timezone.utc)


class FixedClock:
    """Callable clock frozen at `now` until advanced."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, delta: timedelta) -> None:
        self.now = self.now + delta


class InMemoryHistoryRepository:
    """Dict-backed history repository honouring the storage contract."""

    def __init__(self) -> None:
        self.contacts: dict[UUID, ContactRecord] = {}
        self.attempts: list[AttemptRecord] = []
        self.callbacks: dict[UUID, CallbackRecord] = {}
        self.fail_writes = False

    def add_contact(self, **custom_fields: Any) -> ContactRecord:
        contact = ContactRecord(
            id=uuid4(),
            phone_number="+15555550100",
            name="Test Contact",
            custom_fields=custom_fields,
        )
        self.contacts[contact.id] = contact
        return contact

    def _check_writable(self) -> None:
        if self.fail_writes:
            raise StorageError("History store write failed: simulated")

    async def insert_attempt(self, attempt: AttemptCreate) -> AttemptRecord:
        self._check_writable()
        record = AttemptRecord(
            id=uuid4(),
            contact_id=attempt.contact_id,
            attempted_at=ensure_utc(attempt.attempted_at),
            outcome=attempt.outcome,
            weekday=attempt.weekday,
            hour_of_day=attempt.hour_of_day,
            duration=attempt.duration,
            attempt_number=attempt.attempt_number,
            notes=attempt.notes,
            created_at=ensure_utc(attempt.attempted_at),
        )
        self.attempts.append(record)
        return record

    async def query_attempts(self, contact_id: UUID) -> Sequence[AttemptRecord]:
        rows = [a for a in self.attempts if a.contact_id == contact_id]
        return sorted(rows, key=lambda a: a.attempted_at, reverse=True)

    async def query_attempts_in_window(
        self,
        contact_id: UUID | None = None,
        outcomes: Collection[CallOutcome] | None = None,
        since: datetime | None = None,
        until: datetime | None = None,
    ) -> Sequence[AttemptRecord]:
        rows = []
        for attempt in self.attempts:
            if contact_id is not None and attempt.contact_id != contact_id:
                continue
            if outcomes is not None and attempt.outcome not in outcomes:
                continue
            if since is not None and attempt.attempted_at < since:
                continue
            if until is not None and attempt.attempted_at >= until:
                continue
            rows.append(attempt)
        return sorted(rows, key=lambda a: a.attempted_at)

    async def insert_scheduled_callback(self, callback: CallbackCreate) -> CallbackRecord:
        self._check_writable()
        record = CallbackRecord(
            id=uuid4(),
            contact_id=callback.contact_id,
            scheduled_time=ensure_utc(callback.scheduled_time),
            predicted_score=callback.predicted_score,
            confidence=callback.confidence,
            status=CallbackStatus.SCHEDULED,
            attempt_type=callback.attempt_type,
        )
        self.callbacks[record.id] = record
        return record

    async def get_scheduled_callback(self, callback_id: UUID) -> CallbackRecord:
        try:
            return self.callbacks[callback_id]
        except KeyError:
            raise NotFoundError(f"Scheduled callback not found: {callback_id}") from None

    async def update_scheduled_callback(
        self,
        callback_id: UUID,
        completion: CallbackCompletion,
    ) -> CallbackRecord:
        self._check_writable()
        current = await self.get_scheduled_callback(callback_id)
        if current.status is not CallbackStatus.SCHEDULED:
            raise ConflictError(f"Scheduled callback already completed: {callback_id}")
        updated = replace(
            current,
            status=CallbackStatus.COMPLETED,
            actual_outcome=completion.actual_outcome,
            actual_score=completion.actual_score,
            prediction_accuracy=completion.prediction_accuracy,
            completed_at=completion.completed_at,
        )
        self.callbacks[callback_id] = updated
        return updated

    async def get_contact(self, contact_id: UUID) -> ContactRecord:
        try:
            return self.contacts[contact_id]
        except KeyError:
            raise NotFoundError(f"Contact not found: {contact_id}") from None

    async def list_due_callbacks(
        self,
        now: datetime,
        limit: int = 100,
    ) -> Sequence[CallbackRecord]:
        due = [
            cb
            for cb in self.callbacks.values()
            if cb.status is CallbackStatus.SCHEDULED and cb.scheduled_time <= now
        ]
        return sorted(due, key=lambda cb: cb.scheduled_time)[:limit]

    async def query_callbacks(
        self,
        contact_id: UUID | None = None,
        status: CallbackStatus | None = None,
        since: datetime | None = None,
    ) -> Sequence[CallbackRecord]:
        rows = [
            cb
            for cb in self.callbacks.values()
            if (contact_id is None or cb.contact_id == contact_id)
            and (status is None or cb.status is status)
            and (since is None or cb.scheduled_time >= since)
        ]
        return sorted(rows, key=lambda cb: cb.scheduled_time)


def attempt_at(
    contact_id: UUID,
    outcome: CallOutcome,
    when: datetime,
    config: EngineConfig | None = None,
) -> AttemptCreate:
    """AttemptCreate with weekday/hour derived in the business timezone."""
    local = (config or EngineConfig()).business_hours.localize(when)
    return AttemptCreate(
        contact_id=contact_id,
        attempted_at=when,
        outcome=outcome,
        weekday=local.weekday(),
        hour_of_day=local.hour,
    )


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(MONDAY_9AM_PACIFIC)


@pytest.fixture
def engine_config() -> EngineConfig:
    return EngineConfig()


@pytest.fixture
def repository() -> InMemoryHistoryRepository:
    return InMemoryHistoryRepository()


@pytest.fixture
def contact(repository: InMemoryHistoryRepository) -> ContactRecord:
    return repository.add_contact()


@pytest.fixture
def engine(
    repository: InMemoryHistoryRepository,
    engine_config: EngineConfig,
    clock: FixedClock,
) -> CallbackEngine:
    return CallbackEngine(repository, config=engine_config, clock=clock)


@pytest_asyncio.fixture
async def db_engine() -> AsyncGenerator[Any, None]:
    """Create test database engine."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(db_engine: Any) -> AsyncGenerator[AsyncSession, None]:
    """Create test database session."""
    session_factory = async_sessionmaker(
        bind=db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with session_factory() as session:
        yield session
