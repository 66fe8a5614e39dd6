"""
API router for callback prediction, scheduling and reconciliation.

Thin adapter: every handler delegates to CallbackEngine. Domain errors are
mapped to status codes by the application's exception handlers.
"""

from datetime import datetime
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from callback_engine.api.dependencies import get_callback_engine
from callback_engine.api.schemas import (
    AccuracyReportResponse,
    AttemptRequest,
    AttemptResponse,
    CallbackResponse,
    CallEndedRequest,
    ConfidenceAccuracyResponse,
    DayPredictionResponse,
    DueCallbacksResponse,
    PredictionResponse,
    ProcessingResponse,
    ReconcileRequest,
    ReconcileResponse,
)
from callback_engine.engine import CallbackEngine
from callback_engine.learning.models import AttemptMetadata, ProcessingResult
from callback_engine.outcomes.classifier import classify_call_summary
from callback_engine.shared.database import get_db_session
from callback_engine.shared.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/api/callbacks", tags=["callbacks"])

EngineDep = Annotated[CallbackEngine, Depends(get_callback_engine)]
SessionDep = Annotated[AsyncSession, Depends(get_db_session)]


def _processing_response(result: ProcessingResult) -> ProcessingResponse:
    return ProcessingResponse(
        attempt=AttemptResponse.model_validate(result.attempt),
        retry_eligible=result.retry_eligible,
        callbacks=[CallbackResponse.model_validate(cb) for cb in result.callbacks],
        total_scheduled=result.total_scheduled,
    )


@router.post(
    "/attempts",
    response_model=ProcessingResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Record a contact attempt",
    description="Append the attempt to the history log and, for retry-eligible "
    "outcomes, schedule follow-up callbacks at the best predicted times.",
)
async def record_attempt(
    request: AttemptRequest,
    engine: EngineDep,
    session: SessionDep,
) -> ProcessingResponse:
    result = await engine.record_and_maybe_schedule(
        request.contact_id,
        request.outcome,
        AttemptMetadata(
            attempted_at=request.attempted_at,
            duration=request.duration,
            attempt_number=request.attempt_number,
            notes=request.notes,
        ),
    )
    await session.commit()
    return _processing_response(result)


@router.post(
    "/call-ended",
    response_model=ProcessingResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Record an ended call from its summary",
)
async def call_ended(
    request: CallEndedRequest,
    engine: EngineDep,
    session: SessionDep,
) -> ProcessingResponse:
    """Classify the end-of-call summary into an outcome, then record it."""
    outcome = classify_call_summary(request.summary)
    logger.info(
        "Call summary classified",
        extra={"contact_id": str(request.contact_id), "outcome": outcome.value},
    )
    result = await engine.record_and_maybe_schedule(
        request.contact_id,
        outcome,
        AttemptMetadata(
            attempted_at=request.attempted_at,
            duration=request.duration,
            notes=request.summary,
        ),
    )
    await session.commit()
    return _processing_response(result)


@router.get(
    "/contacts/{contact_id}/predictions",
    response_model=PredictionResponse,
    summary="Predict the best contact times",
)
async def get_predictions(
    contact_id: UUID,
    engine: EngineDep,
    horizon_days: Annotated[
        int | None,
        Query(description="Days to look ahead (defaults to the configured horizon)"),
    ] = None,
) -> PredictionResponse:
    days = await engine.predict(contact_id, horizon_days)
    return PredictionResponse(
        contact_id=contact_id,
        horizon_days=horizon_days or engine.config.default_prediction_horizon_days,
        days=[DayPredictionResponse.model_validate(day) for day in days],
    )


@router.post(
    "/{callback_id}/reconcile",
    response_model=ReconcileResponse,
    summary="Reconcile a scheduled callback with its actual outcome",
)
async def reconcile_callback(
    callback_id: UUID,
    request: ReconcileRequest,
    engine: EngineDep,
    session: SessionDep,
) -> ReconcileResponse:
    result = await engine.reconcile(callback_id, request.actual_outcome)
    await session.commit()
    return ReconcileResponse(
        callback=CallbackResponse.model_validate(result.callback),
        actual_score=result.actual_score,
        prediction_accuracy=result.prediction_accuracy,
    )


@router.get(
    "/due",
    response_model=DueCallbacksResponse,
    summary="List scheduled callbacks that are due",
)
async def list_due_callbacks(
    engine: EngineDep,
    limit: Annotated[int, Query(ge=1, le=500, description="Maximum rows")] = 100,
) -> DueCallbacksResponse:
    callbacks = await engine.due_callbacks(limit=limit)
    return DueCallbacksResponse(
        items=[CallbackResponse.model_validate(cb) for cb in callbacks],
        total=len(callbacks),
    )


@router.get(
    "/accuracy",
    response_model=AccuracyReportResponse,
    summary="Prediction accuracy of reconciled callbacks",
)
async def get_accuracy_report(
    engine: EngineDep,
    since: Annotated[
        datetime | None,
        Query(description="Only callbacks scheduled at or after this time"),
    ] = None,
) -> AccuracyReportResponse:
    report = await engine.accuracy_report(since=since)
    return AccuracyReportResponse(
        completed=report.completed,
        mean_accuracy=report.mean_accuracy,
        mean_absolute_error=report.mean_absolute_error,
        by_confidence={
            level: ConfidenceAccuracyResponse(count=stats.count, mean_accuracy=stats.mean_accuracy)
            for level, stats in report.by_confidence.items()
        },
    )
