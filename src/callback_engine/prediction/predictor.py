"""
Optimal-time predictor.

Walks the horizon day by day in the business timezone, scores each whole
business hour still ahead of now and ranks the day's candidates.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from datetime import date, datetime, time, timedelta
from uuid import UUID

from callback_engine.history.records import confidence_for_score
from callback_engine.prediction.config import EngineConfig
from callback_engine.prediction.models import DayPrediction, SlotPrediction
from callback_engine.prediction.scorer import ScoringContext, TimeSlotScorer
from callback_engine.shared.clock import Clock, ensure_utc, utc_now
from callback_engine.shared.exceptions import ValidationError
from callback_engine.shared.logging import get_logger

logger = get_logger(__name__)


def format_display_time(local: datetime) -> str:
    """12-hour clock label, e.g. "9:00 AM"."""
    return local.strftime("%I:%M %p").lstrip("0")


class OptimalTimePredictor:
    """Produces ranked per-day slot bundles for a contact."""

    def __init__(
        self,
        scorer: TimeSlotScorer,
        config: EngineConfig,
        clock: Clock = utc_now,
    ) -> None:
        self._scorer = scorer
        self._config = config
        self._clock = clock

    def resolve_horizon(self, horizon_days: int | None, default: int) -> int:
        horizon = default if horizon_days is None else horizon_days
        if not 1 <= horizon <= self._config.max_horizon_days:
            raise ValidationError(
                f"horizon_days must be between 1 and {self._config.max_horizon_days}",
                details={"horizon_days": horizon},
            )
        return horizon

    async def iter_predictions(
        self,
        contact_id: UUID,
        horizon_days: int | None = None,
    ) -> AsyncIterator[DayPrediction]:
        """Yield one DayPrediction per day with at least one candidate.

        History is read once, before the first day is yielded. Calling the
        method again starts a fresh run against current history.

        Raises:
            ValidationError: If horizon_days is outside [1, max_horizon_days].
            NotFoundError: If the contact does not exist.
        """
        horizon = self.resolve_horizon(
            horizon_days, self._config.default_prediction_horizon_days
        )
        now = ensure_utc(self._clock())
        context = await self._scorer.build_context(contact_id, now)

        hours = self._config.business_hours
        local_now = hours.localize(now)

        for offset in range(horizon):
            if offset == 0 and local_now.hour >= hours.end_hour:
                continue
            day = local_now.date() + timedelta(days=offset)
            slots = self._score_day(context, day, local_now)
            if not slots:
                continue
            yield DayPrediction(
                date=day,
                top_slots=tuple(slots[: self._config.top_slots_per_day]),
                all_slots=tuple(slots),
            )

    def _score_day(
        self,
        context: ScoringContext,
        day: date,
        local_now: datetime,
    ) -> list[SlotPrediction]:
        tz = self._config.business_hours.tz
        slots: list[SlotPrediction] = []
        for hour in self._config.business_hours.hours:
            local = datetime.combine(day, time(hour), tzinfo=tz)
            if local <= local_now:
                continue
            score = self._scorer.score_slot(context, local)
            slots.append(
                SlotPrediction(
                    time=ensure_utc(local),
                    hour=hour,
                    weekday=local.weekday(),
                    score=score,
                    confidence=confidence_for_score(score),
                    display_time=format_display_time(local),
                )
            )
        # sorted() is stable: equal scores keep earliest-first order.
        return sorted(slots, key=lambda s: s.score, reverse=True)

    async def predict(
        self,
        contact_id: UUID,
        horizon_days: int | None = None,
    ) -> list[DayPrediction]:
        days = [day async for day in self.iter_predictions(contact_id, horizon_days)]
        logger.info(
            "Predictions computed",
            extra={"contact_id": str(contact_id), "days": len(days)},
        )
        return days
