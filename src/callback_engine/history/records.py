"""
Plain records exchanged with the history repository.

The engine never holds ORM instances: repositories hand back these frozen
snapshots, which keeps the scoring code independent from the store.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Mapping
from uuid import UUID

from callback_engine.outcomes.taxonomy import CallOutcome


class CallbackStatus(str, Enum):
    """Lifecycle of a scheduled callback: scheduled -> completed, once."""

    SCHEDULED = "scheduled"
    COMPLETED = "completed"


class Confidence(str, Enum):
    VERY_LOW = "very_low"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


def confidence_for_score(score: float) -> Confidence:
    """Confidence band of a 0-100 predicted score."""
    if score >= 80:
        return Confidence.HIGH
    if score >= 60:
        return Confidence.MEDIUM
    if score >= 40:
        return Confidence.LOW
    return Confidence.VERY_LOW


@dataclass(frozen=True)
class ContactRecord:
    id: UUID
    phone_number: str
    name: str | None = None
    email: str | None = None
    custom_fields: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class AttemptCreate:
    """Attempt to append; weekday/hour are derived by the recorder."""

    contact_id: UUID
    attempted_at: datetime
    outcome: CallOutcome
    weekday: int
    hour_of_day: int
    duration: int = 0
    attempt_number: int | None = None
    notes: str | None = None


@dataclass(frozen=True)
class AttemptRecord:
    id: UUID
    contact_id: UUID
    attempted_at: datetime
    outcome: CallOutcome
    weekday: int
    hour_of_day: int
    duration: int = 0
    attempt_number: int | None = None
    notes: str | None = None
    created_at: datetime | None = None


@dataclass(frozen=True)
class CallbackCreate:
    contact_id: UUID
    scheduled_time: datetime
    predicted_score: float
    confidence: Confidence
    attempt_type: str = "ai_predicted"


@dataclass(frozen=True)
class CallbackCompletion:
    """Fields written by the one-time scheduled -> completed transition."""

    actual_outcome: CallOutcome
    actual_score: float
    prediction_accuracy: float
    completed_at: datetime


@dataclass(frozen=True)
class CallbackRecord:
    id: UUID
    contact_id: UUID
    scheduled_time: datetime
    predicted_score: float
    confidence: Confidence
    status: CallbackStatus
    attempt_type: str = "ai_predicted"
    actual_outcome: CallOutcome | None = None
    actual_score: float | None = None
    prediction_accuracy: float | None = None
    created_at: datetime | None = None
    completed_at: datetime | None = None
