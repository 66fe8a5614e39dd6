"""
History repository: the storage contract the engine depends on.

ContactAttempt rows are append-only. ScheduledCallback rows are inserted
once and updated exactly once, by the scheduled -> completed transition.
"""

from collections.abc import Collection
from datetime import datetime
from typing import Any, Protocol, Sequence
from uuid import UUID

from sqlalchemy import Select, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from callback_engine.contacts.models import Contact
from callback_engine.history.models import ContactAttempt, ScheduledCallback
from callback_engine.history.records import (
    AttemptCreate,
    AttemptRecord,
    CallbackCompletion,
    CallbackCreate,
    CallbackRecord,
    CallbackStatus,
    Confidence,
    ContactRecord,
)
from callback_engine.outcomes.taxonomy import CallOutcome
from callback_engine.shared.clock import ensure_utc
from callback_engine.shared.exceptions import ConflictError, NotFoundError, StorageError
from callback_engine.shared.logging import get_logger

logger = get_logger(__name__)


class HistoryRepositoryProtocol(Protocol):
    """Protocol for history repository operations."""

    async def insert_attempt(self, attempt: AttemptCreate) -> AttemptRecord:
        """Append one contact attempt to the log."""
        ...

    async def query_attempts(self, contact_id: UUID) -> Sequence[AttemptRecord]:
        """All attempts for a contact, newest first."""
        ...

    async def query_attempts_in_window(
        self,
        contact_id: UUID | None = None,
        outcomes: Collection[CallOutcome] | None = None,
        since: datetime | None = None,
        until: datetime | None = None,
    ) -> Sequence[AttemptRecord]:
        """Attempts matching the filters; contact_id=None spans every contact."""
        ...

    async def insert_scheduled_callback(self, callback: CallbackCreate) -> CallbackRecord:
        """Persist a new callback with status=scheduled."""
        ...

    async def get_scheduled_callback(self, callback_id: UUID) -> CallbackRecord:
        """Get a callback or raise NotFoundError."""
        ...

    async def update_scheduled_callback(
        self,
        callback_id: UUID,
        completion: CallbackCompletion,
    ) -> CallbackRecord:
        """Complete a callback that is still scheduled, else ConflictError."""
        ...

    async def get_contact(self, contact_id: UUID) -> ContactRecord:
        """Get a contact or raise NotFoundError."""
        ...

    async def list_due_callbacks(
        self,
        now: datetime,
        limit: int = 100,
    ) -> Sequence[CallbackRecord]:
        """Scheduled callbacks whose time has come, oldest first."""
        ...

    async def query_callbacks(
        self,
        contact_id: UUID | None = None,
        status: CallbackStatus | None = None,
        since: datetime | None = None,
    ) -> Sequence[CallbackRecord]:
        """Callbacks matching the filters, by scheduled time."""
        ...


def contact_record(row: Contact) -> ContactRecord:
    return ContactRecord(
        id=row.id,
        phone_number=row.phone_number,
        name=row.name,
        email=row.email,
        custom_fields=dict(row.custom_fields or {}),
    )


def attempt_record(row: ContactAttempt) -> AttemptRecord:
    return AttemptRecord(
        id=row.id,
        contact_id=row.contact_id,
        attempted_at=ensure_utc(row.attempted_at),
        outcome=CallOutcome(row.outcome),
        weekday=row.weekday,
        hour_of_day=row.hour_of_day,
        duration=row.duration,
        attempt_number=row.attempt_number,
        notes=row.notes,
        created_at=ensure_utc(row.created_at) if row.created_at else None,
    )


def callback_record(row: ScheduledCallback) -> CallbackRecord:
    return CallbackRecord(
        id=row.id,
        contact_id=row.contact_id,
        scheduled_time=ensure_utc(row.scheduled_time),
        predicted_score=row.predicted_score,
        confidence=Confidence(row.confidence),
        status=CallbackStatus(row.status),
        attempt_type=row.attempt_type,
        actual_outcome=CallOutcome(row.actual_outcome) if row.actual_outcome else None,
        actual_score=row.actual_score,
        prediction_accuracy=row.prediction_accuracy,
        created_at=ensure_utc(row.created_at) if row.created_at else None,
        completed_at=ensure_utc(row.completed_at) if row.completed_at else None,
    )


class SQLAlchemyHistoryRepository:
    """History repository backed by an async SQLAlchemy session.

    The repository flushes but never commits; the session owner decides the
    transaction boundary.
    """

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository with database session.

        Args:
            session: Async database session.
        """
        self._session = session

    async def insert_attempt(self, attempt: AttemptCreate) -> AttemptRecord:
        """Append one contact attempt.

        Args:
            attempt: Attempt to persist, weekday/hour already derived.

        Returns:
            The stored attempt with its id.

        Raises:
            StorageError: If the write fails.
        """
        row = ContactAttempt(
            contact_id=attempt.contact_id,
            attempted_at=ensure_utc(attempt.attempted_at),
            outcome=attempt.outcome,
            duration=attempt.duration,
            weekday=attempt.weekday,
            hour_of_day=attempt.hour_of_day,
            attempt_number=attempt.attempt_number,
            notes=attempt.notes,
        )
        await self._persist(row, operation="insert_attempt")
        return attempt_record(row)

    async def query_attempts(self, contact_id: UUID) -> Sequence[AttemptRecord]:
        stmt = (
            select(ContactAttempt)
            .where(ContactAttempt.contact_id == contact_id)
            .order_by(ContactAttempt.attempted_at.desc(), ContactAttempt.created_at.desc())
        )
        rows = await self._scalars(stmt, operation="query_attempts")
        return [attempt_record(r) for r in rows]

    async def query_attempts_in_window(
        self,
        contact_id: UUID | None = None,
        outcomes: Collection[CallOutcome] | None = None,
        since: datetime | None = None,
        until: datetime | None = None,
    ) -> Sequence[AttemptRecord]:
        """Attempts matching the filters.

        Args:
            contact_id: Restrict to one contact; None spans every contact.
            outcomes: Restrict to these outcome kinds.
            since: Inclusive lower bound on attempted_at.
            until: Exclusive upper bound on attempted_at.

        Returns:
            Matching attempts, oldest first.
        """
        stmt = select(ContactAttempt)
        if contact_id is not None:
            stmt = stmt.where(ContactAttempt.contact_id == contact_id)
        if outcomes is not None:
            stmt = stmt.where(ContactAttempt.outcome.in_(list(outcomes)))
        if since is not None:
            stmt = stmt.where(ContactAttempt.attempted_at >= ensure_utc(since))
        if until is not None:
            stmt = stmt.where(ContactAttempt.attempted_at < ensure_utc(until))
        stmt = stmt.order_by(ContactAttempt.attempted_at.asc())

        rows = await self._scalars(stmt, operation="query_attempts_in_window")
        return [attempt_record(r) for r in rows]

    async def insert_scheduled_callback(self, callback: CallbackCreate) -> CallbackRecord:
        row = ScheduledCallback(
            contact_id=callback.contact_id,
            scheduled_time=ensure_utc(callback.scheduled_time),
            predicted_score=callback.predicted_score,
            confidence=callback.confidence,
            status=CallbackStatus.SCHEDULED,
            attempt_type=callback.attempt_type,
        )
        await self._persist(row, operation="insert_scheduled_callback")
        return callback_record(row)

    async def get_scheduled_callback(self, callback_id: UUID) -> CallbackRecord:
        row = await self._get_callback_row(callback_id)
        if row is None:
            raise NotFoundError(
                f"Scheduled callback not found: {callback_id}",
                details={"callback_id": str(callback_id)},
            )
        return callback_record(row)

    async def update_scheduled_callback(
        self,
        callback_id: UUID,
        completion: CallbackCompletion,
    ) -> CallbackRecord:
        """Apply the scheduled -> completed transition.

        The UPDATE only matches a row whose status is still `scheduled`, so
        two racing reconciliations cannot both succeed.

        Args:
            callback_id: Scheduled callback UUID.
            completion: Realized outcome and accuracy.

        Returns:
            The completed callback.

        Raises:
            NotFoundError: If no such callback exists.
            ConflictError: If the callback was already completed.
            StorageError: If the write fails.
        """
        stmt = (
            update(ScheduledCallback)
            .where(
                ScheduledCallback.id == callback_id,
                ScheduledCallback.status == CallbackStatus.SCHEDULED,
            )
            .values(
                status=CallbackStatus.COMPLETED,
                actual_outcome=completion.actual_outcome,
                actual_score=completion.actual_score,
                prediction_accuracy=completion.prediction_accuracy,
                completed_at=ensure_utc(completion.completed_at),
            )
            .execution_options(synchronize_session=False)
        )
        result = await self._execute(stmt, operation="update_scheduled_callback")
        if result.rowcount == 0:
            existing = await self.get_scheduled_callback(callback_id)
            raise ConflictError(
                f"Scheduled callback already {existing.status.value}: {callback_id}",
                details={"callback_id": str(callback_id), "status": existing.status.value},
            )
        return await self.get_scheduled_callback(callback_id)

    async def get_contact(self, contact_id: UUID) -> ContactRecord:
        stmt = select(Contact).where(Contact.id == contact_id)
        rows = await self._scalars(stmt, operation="get_contact")
        if not rows:
            raise NotFoundError(
                f"Contact not found: {contact_id}",
                details={"contact_id": str(contact_id)},
            )
        return contact_record(rows[0])

    async def list_due_callbacks(
        self,
        now: datetime,
        limit: int = 100,
    ) -> Sequence[CallbackRecord]:
        stmt = (
            select(ScheduledCallback)
            .where(
                ScheduledCallback.status == CallbackStatus.SCHEDULED,
                ScheduledCallback.scheduled_time <= ensure_utc(now),
            )
            .order_by(ScheduledCallback.scheduled_time.asc())
            .limit(limit)
        )
        rows = await self._scalars(stmt, operation="list_due_callbacks")
        return [callback_record(r) for r in rows]

    async def query_callbacks(
        self,
        contact_id: UUID | None = None,
        status: CallbackStatus | None = None,
        since: datetime | None = None,
    ) -> Sequence[CallbackRecord]:
        stmt = select(ScheduledCallback)
        if contact_id is not None:
            stmt = stmt.where(ScheduledCallback.contact_id == contact_id)
        if status is not None:
            stmt = stmt.where(ScheduledCallback.status == status)
        if since is not None:
            stmt = stmt.where(ScheduledCallback.scheduled_time >= ensure_utc(since))
        stmt = stmt.order_by(ScheduledCallback.scheduled_time.asc())

        rows = await self._scalars(stmt, operation="query_callbacks")
        return [callback_record(r) for r in rows]

    async def _get_callback_row(self, callback_id: UUID) -> ScheduledCallback | None:
        stmt = (
            select(ScheduledCallback)
            .where(ScheduledCallback.id == callback_id)
            .execution_options(populate_existing=True)
        )
        rows = await self._scalars(stmt, operation="get_scheduled_callback")
        return rows[0] if rows else None

    async def _persist(self, row: Any, *, operation: str) -> None:
        try:
            self._session.add(row)
            await self._session.flush()
            await self._session.refresh(row)
        except SQLAlchemyError as exc:
            self._log_failure(operation, exc)
            raise StorageError(f"History store write failed: {operation}") from exc

    async def _execute(self, stmt: Any, *, operation: str) -> Any:
        try:
            return await self._session.execute(stmt)
        except SQLAlchemyError as exc:
            self._log_failure(operation, exc)
            raise StorageError(f"History store write failed: {operation}") from exc

    async def _scalars(self, stmt: Select[Any], *, operation: str) -> list[Any]:
        try:
            result = await self._session.execute(stmt)
        except SQLAlchemyError as exc:
            self._log_failure(operation, exc)
            raise StorageError(f"History store read failed: {operation}") from exc
        return list(result.scalars().all())

    @staticmethod
    def _log_failure(operation: str, exc: Exception) -> None:
        logger.error(
            "History store operation failed",
            extra={"operation": operation, "error": str(exc)},
        )
