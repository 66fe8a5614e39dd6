"""
Prediction results.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime

from callback_engine.history.records import Confidence


@dataclass(frozen=True)
class SlotPrediction:
    """One scored candidate hour.

    `time` is an aware UTC datetime; `hour`, `weekday` and `display_time`
    are expressed in the business timezone.
    """

    time: datetime
    hour: int
    weekday: int
    score: float
    confidence: Confidence
    display_time: str


@dataclass(frozen=True)
class DayPrediction:
    date: date
    top_slots: tuple[SlotPrediction, ...] = field(default_factory=tuple)
    all_slots: tuple[SlotPrediction, ...] = field(default_factory=tuple)
