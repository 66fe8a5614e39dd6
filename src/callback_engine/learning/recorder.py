"""
Outcome recorder and learner.

record_attempt() is the only code path that appends to the contact-attempt
log. process_for_callbacks() records and then, for retry-eligible outcomes
only, schedules follow-up callbacks. reconcile() closes a scheduled
callback with what actually happened and measures how good the prediction
was; the measurement feeds offline tuning, nothing here adjusts weights.
"""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from callback_engine.history.records import (
    AttemptCreate,
    AttemptRecord,
    CallbackCompletion,
    CallbackStatus,
)
from callback_engine.history.repository import HistoryRepositoryProtocol
from callback_engine.learning.models import (
    AttemptMetadata,
    ProcessingResult,
    ReconciliationResult,
)
from callback_engine.outcomes.taxonomy import CallOutcome, parse_outcome
from callback_engine.prediction.config import EngineConfig
from callback_engine.scheduling.service import CallbackScheduler
from callback_engine.shared.clock import Clock, ensure_utc, utc_now
from callback_engine.shared.exceptions import ConflictError, ValidationError
from callback_engine.shared.logging import get_logger

logger = get_logger(__name__)


def prediction_accuracy(predicted_score: float, actual_score: float) -> float:
    return 100.0 - abs(predicted_score - actual_score)


class OutcomeRecorder:
    """Records attempts, triggers retries and reconciles callbacks."""

    def __init__(
        self,
        repository: HistoryRepositoryProtocol,
        scheduler: CallbackScheduler,
        config: EngineConfig,
        clock: Clock = utc_now,
    ) -> None:
        self._repository = repository
        self._scheduler = scheduler
        self._config = config
        self._clock = clock

    async def record_attempt(
        self,
        contact_id: UUID,
        outcome: CallOutcome | str,
        attempted_at: datetime | None = None,
        duration: int = 0,
        attempt_number: int | None = None,
        notes: str | None = None,
    ) -> AttemptRecord:
        """Append one attempt to the log.

        weekday and hour_of_day are derived from attempted_at in the business
        timezone so that they line up with the hours the scorer ranks.

        Raises:
            ValidationError: On an unknown outcome, negative duration or a
                non-positive attempt number.
            NotFoundError: If the contact does not exist.
            StorageError: If the write fails.
        """
        kind = parse_outcome(outcome)
        if duration < 0:
            raise ValidationError("duration must be >= 0", details={"duration": duration})
        if attempt_number is not None and attempt_number < 1:
            raise ValidationError(
                "attempt_number must be >= 1",
                details={"attempt_number": attempt_number},
            )

        await self._repository.get_contact(contact_id)

        when = ensure_utc(attempted_at or self._clock())
        local = self._config.business_hours.localize(when)
        record = await self._repository.insert_attempt(
            AttemptCreate(
                contact_id=contact_id,
                attempted_at=when,
                outcome=kind,
                weekday=local.weekday(),
                hour_of_day=local.hour,
                duration=duration,
                attempt_number=attempt_number,
                notes=notes,
            )
        )
        logger.info(
            "Contact attempt recorded",
            extra={
                "contact_id": str(contact_id),
                "attempt_id": str(record.id),
                "outcome": kind.value,
                "hour_of_day": record.hour_of_day,
                "weekday": record.weekday,
            },
        )
        return record

    async def process_for_callbacks(
        self,
        contact_id: UUID,
        outcome: CallOutcome | str,
        metadata: AttemptMetadata | None = None,
        max_per_day: int | None = None,
        horizon_days: int | None = None,
    ) -> ProcessingResult:
        """Record the attempt, then schedule retries if the outcome allows it."""
        kind = parse_outcome(outcome)
        meta = metadata or AttemptMetadata()
        attempt = await self.record_attempt(
            contact_id,
            kind,
            attempted_at=meta.attempted_at,
            duration=meta.duration,
            attempt_number=meta.attempt_number,
            notes=meta.notes,
        )

        if not self._config.taxonomy.is_retry_eligible(kind):
            logger.info(
                "Outcome not retry-eligible, no callbacks scheduled",
                extra={"contact_id": str(contact_id), "outcome": kind.value},
            )
            return ProcessingResult(attempt=attempt, retry_eligible=False)

        result = await self._scheduler.schedule(
            contact_id,
            max_per_day=max_per_day,
            horizon_days=horizon_days,
        )
        return ProcessingResult(
            attempt=attempt,
            callbacks=list(result.callbacks),
            retry_eligible=True,
        )

    async def reconcile(
        self,
        callback_id: UUID,
        actual_outcome: CallOutcome | str,
    ) -> ReconciliationResult:
        """Complete a scheduled callback with its realized outcome.

        Raises:
            ValidationError: On an unknown outcome.
            NotFoundError: If the callback does not exist.
            ConflictError: If the callback was already completed.
            StorageError: If the write fails.
        """
        kind = parse_outcome(actual_outcome)
        existing = await self._repository.get_scheduled_callback(callback_id)
        if existing.status is not CallbackStatus.SCHEDULED:
            logger.warning(
                "Reconcile on completed callback",
                extra={"callback_id": str(callback_id), "status": existing.status.value},
            )
            raise ConflictError(
                f"Scheduled callback already {existing.status.value}: {callback_id}",
                details={"callback_id": str(callback_id), "status": existing.status.value},
            )

        actual = self._config.taxonomy.actual_score(kind)
        accuracy = prediction_accuracy(existing.predicted_score, actual)
        try:
            completed = await self._repository.update_scheduled_callback(
                callback_id,
                CallbackCompletion(
                    actual_outcome=kind,
                    actual_score=actual,
                    prediction_accuracy=accuracy,
                    completed_at=ensure_utc(self._clock()),
                ),
            )
        except ConflictError:
            logger.warning(
                "Concurrent reconcile lost the race",
                extra={"callback_id": str(callback_id)},
            )
            raise

        logger.info(
            "Callback reconciled",
            extra={
                "callback_id": str(callback_id),
                "actual_outcome": kind.value,
                "predicted_score": existing.predicted_score,
                "actual_score": actual,
                "prediction_accuracy": accuracy,
            },
        )
        return ReconciliationResult(
            callback=completed,
            actual_score=actual,
            prediction_accuracy=accuracy,
        )
