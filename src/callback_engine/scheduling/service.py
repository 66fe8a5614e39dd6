from __future__ import annotations

from typing import List
from uuid import UUID

from callback_engine.history.records import CallbackCreate, CallbackRecord
from callback_engine.history.repository import HistoryRepositoryProtocol
from callback_engine.prediction.config import EngineConfig
from callback_engine.prediction.models import SlotPrediction
from callback_engine.prediction.predictor import OptimalTimePredictor
from callback_engine.scheduling.models import SchedulingResult
from callback_engine.shared.exceptions import ValidationError
from callback_engine.shared.logging import get_logger

logger = get_logger(__name__)


class CallbackScheduler:
    """Turns a contact's best predicted slots into persisted callbacks."""

    def __init__(
        self,
        repository: HistoryRepositoryProtocol,
        predictor: OptimalTimePredictor,
        config: EngineConfig,
    ) -> None:
        self._repository = repository
        self._predictor = predictor
        self._config = config

    async def schedule(
        self,
        contact_id: UUID,
        max_per_day: int | None = None,
        horizon_days: int | None = None,
    ) -> SchedulingResult:
        """Persist up to `max_per_day` callbacks for each day of the horizon.

        Only a day's top slots are considered, best first. Slots scoring
        below the minimum floor are dropped, so a day may get fewer
        callbacks or none.

        Raises:
            ValidationError: If max_per_day < 1 or the horizon is out of range.
            NotFoundError: If the contact does not exist.
            StorageError: If persisting a callback fails.
        """
        per_day = self._config.max_callbacks_per_day if max_per_day is None else max_per_day
        if per_day < 1:
            raise ValidationError(
                "max_per_day must be >= 1",
                details={"max_per_day": per_day},
            )
        horizon = self._predictor.resolve_horizon(
            horizon_days, self._config.default_schedule_horizon_days
        )

        created: List[CallbackRecord] = []
        dropped = 0
        async for day in self._predictor.iter_predictions(contact_id, horizon):
            for slot in day.top_slots[:per_day]:
                if not self._is_schedulable(slot):
                    dropped += 1
                    logger.debug(
                        "Candidate dropped below score floor",
                        extra={
                            "contact_id": str(contact_id),
                            "slot_time": slot.time.isoformat(),
                            "score": slot.score,
                        },
                    )
                    continue
                created.append(await self._persist(contact_id, slot))

        logger.info(
            "Callbacks scheduled",
            extra={
                "contact_id": str(contact_id),
                "scheduled": len(created),
                "dropped": dropped,
                "horizon_days": horizon,
            },
        )
        return SchedulingResult(
            contact_id=contact_id,
            callbacks=created,
            dropped_below_floor=dropped,
        )

    def _is_schedulable(self, slot: SlotPrediction) -> bool:
        return (
            slot.score >= self._config.min_predicted_score
            and self._config.business_hours.contains(slot.time)
        )

    async def _persist(self, contact_id: UUID, slot: SlotPrediction) -> CallbackRecord:
        return await self._repository.insert_scheduled_callback(
            CallbackCreate(
                contact_id=contact_id,
                scheduled_time=slot.time,
                predicted_score=slot.score,
                confidence=slot.confidence,
            )
        )
