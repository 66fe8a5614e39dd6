"""
Pydantic schemas for the callback HTTP adapter.
"""

from datetime import date, datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from callback_engine.history.records import CallbackStatus, Confidence
from callback_engine.outcomes.taxonomy import CallOutcome


class AttemptRequest(BaseModel):
    """Schema for recording a contact attempt."""

    contact_id: UUID
    outcome: str = Field(
        ...,
        max_length=32,
        description="Outcome kind, e.g. no_answer or voicemail",
    )
    attempted_at: datetime | None = Field(
        default=None,
        description="When the attempt happened (defaults to now)",
    )
    duration: int = Field(default=0, description="Call duration in seconds")
    attempt_number: int | None = Field(default=None)
    notes: str | None = Field(default=None, max_length=2000)


class CallEndedRequest(BaseModel):
    """Schema for an end-of-call event carrying a free-text summary."""

    contact_id: UUID
    summary: str | None = Field(
        default=None,
        max_length=8000,
        description="Voice provider's end-of-call summary",
    )
    attempted_at: datetime | None = None
    duration: int = Field(default=0)


class AttemptResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    contact_id: UUID
    attempted_at: datetime
    outcome: CallOutcome
    weekday: int
    hour_of_day: int
    duration: int
    attempt_number: int | None
    notes: str | None


class CallbackResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    contact_id: UUID
    scheduled_time: datetime
    predicted_score: float
    confidence: Confidence
    status: CallbackStatus
    attempt_type: str
    actual_outcome: CallOutcome | None = None
    actual_score: float | None = None
    prediction_accuracy: float | None = None
    completed_at: datetime | None = None


class ProcessingResponse(BaseModel):
    """Result of recording an attempt and, when eligible, scheduling retries."""

    attempt: AttemptResponse
    retry_eligible: bool
    callbacks: list[CallbackResponse]
    total_scheduled: int


class SlotResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    time: datetime
    hour: int
    weekday: int
    score: float = Field(..., ge=0.0, le=100.0)
    confidence: Confidence
    display_time: str


class DayPredictionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    date: date
    top_slots: list[SlotResponse]
    all_slots: list[SlotResponse]


class PredictionResponse(BaseModel):
    contact_id: UUID
    horizon_days: int
    days: list[DayPredictionResponse]


class ReconcileRequest(BaseModel):
    actual_outcome: str = Field(..., max_length=32)


class ReconcileResponse(BaseModel):
    callback: CallbackResponse
    actual_score: float
    prediction_accuracy: float


class DueCallbacksResponse(BaseModel):
    items: list[CallbackResponse]
    total: int


class ConfidenceAccuracyResponse(BaseModel):
    count: int
    mean_accuracy: float


class AccuracyReportResponse(BaseModel):
    """Accuracy of reconciled predictions, for offline tuning."""

    completed: int
    mean_accuracy: float | None
    mean_absolute_error: float | None
    by_confidence: dict[Confidence, ConfidenceAccuracyResponse]
