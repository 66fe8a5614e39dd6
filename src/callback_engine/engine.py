"""
CallbackEngine: the operations the webhook layer calls.

The engine wires the components around one history repository. It holds no
state between calls; build one per request/session.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
from uuid import UUID

from callback_engine.contacts.segments import KeywordSegmentClassifier, SegmentClassifier
from callback_engine.history.records import CallbackRecord, CallbackStatus
from callback_engine.history.repository import HistoryRepositoryProtocol
from callback_engine.learning.models import (
    AttemptMetadata,
    ProcessingResult,
    ReconciliationResult,
)
from callback_engine.learning.recorder import OutcomeRecorder
from callback_engine.learning.report import AccuracyReport, summarize_accuracy
from callback_engine.outcomes.taxonomy import CallOutcome
from callback_engine.prediction.config import EngineConfig
from callback_engine.prediction.models import DayPrediction
from callback_engine.prediction.patterns import PatternAnalyzer
from callback_engine.prediction.predictor import OptimalTimePredictor
from callback_engine.prediction.scorer import TimeSlotScorer
from callback_engine.scheduling.service import CallbackScheduler
from callback_engine.shared.clock import Clock, ensure_utc, utc_now


class CallbackEngine:
    def __init__(
        self,
        repository: HistoryRepositoryProtocol,
        config: EngineConfig | None = None,
        classifier: SegmentClassifier | None = None,
        clock: Clock = utc_now,
    ) -> None:
        self._repository = repository
        self._config = config or EngineConfig()
        self._clock = clock

        self.analyzer = PatternAnalyzer(
            repository,
            self._config.taxonomy,
            lookback=self._config.pattern_lookback,
            clock=clock,
        )
        self.scorer = TimeSlotScorer(
            repository,
            self._config,
            analyzer=self.analyzer,
            classifier=classifier or KeywordSegmentClassifier(),
            clock=clock,
        )
        self.predictor = OptimalTimePredictor(self.scorer, self._config, clock=clock)
        self.scheduler = CallbackScheduler(repository, self.predictor, self._config)
        self.recorder = OutcomeRecorder(repository, self.scheduler, self._config, clock=clock)

    @property
    def config(self) -> EngineConfig:
        return self._config

    async def record_and_maybe_schedule(
        self,
        contact_id: UUID,
        outcome: CallOutcome | str,
        metadata: AttemptMetadata | None = None,
    ) -> ProcessingResult:
        return await self.recorder.process_for_callbacks(contact_id, outcome, metadata)

    async def predict(
        self,
        contact_id: UUID,
        horizon_days: int | None = None,
    ) -> list[DayPrediction]:
        return await self.predictor.predict(contact_id, horizon_days)

    async def reconcile(
        self,
        callback_id: UUID,
        actual_outcome: CallOutcome | str,
    ) -> ReconciliationResult:
        return await self.recorder.reconcile(callback_id, actual_outcome)

    async def due_callbacks(
        self,
        now: datetime | None = None,
        limit: int = 100,
    ) -> Sequence[CallbackRecord]:
        """Scheduled callbacks an external dispatcher should place now."""
        return await self._repository.list_due_callbacks(
            ensure_utc(now or self._clock()),
            limit=limit,
        )

    async def accuracy_report(self, since: datetime | None = None) -> AccuracyReport:
        callbacks = await self._repository.query_callbacks(
            status=CallbackStatus.COMPLETED,
            since=since,
        )
        return summarize_accuracy(callbacks)


def build_engine(
    repository: HistoryRepositoryProtocol,
    config: EngineConfig | None = None,
    clock: Clock = utc_now,
) -> CallbackEngine:
    return CallbackEngine(repository, config=config, clock=clock)
