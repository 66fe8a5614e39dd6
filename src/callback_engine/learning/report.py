"""
Prediction accuracy report over reconciled callbacks.

Read-only: the numbers are meant for whoever tunes the outcome weights and
scoring constants offline.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Dict, Optional

from callback_engine.history.records import CallbackRecord, CallbackStatus, Confidence


@dataclass(frozen=True)
class ConfidenceAccuracy:
    count: int
    mean_accuracy: float


@dataclass(frozen=True)
class AccuracyReport:
    completed: int = 0
    mean_accuracy: Optional[float] = None
    mean_absolute_error: Optional[float] = None
    by_confidence: Dict[Confidence, ConfidenceAccuracy] = field(default_factory=dict)


def _mean(values: list[float]) -> float:
    return sum(values) / len(values)


def summarize_accuracy(callbacks: Iterable[CallbackRecord]) -> AccuracyReport:
    """Aggregate accuracy of completed callbacks; others are ignored."""
    reconciled = [
        cb
        for cb in callbacks
        if cb.status is CallbackStatus.COMPLETED
        and cb.prediction_accuracy is not None
        and cb.actual_score is not None
    ]
    if not reconciled:
        return AccuracyReport()

    grouped: Dict[Confidence, list[float]] = {}
    for cb in reconciled:
        grouped.setdefault(cb.confidence, []).append(cb.prediction_accuracy)

    return AccuracyReport(
        completed=len(reconciled),
        mean_accuracy=_mean([cb.prediction_accuracy for cb in reconciled]),
        mean_absolute_error=_mean(
            [abs(cb.predicted_score - cb.actual_score) for cb in reconciled]
        ),
        by_confidence={
            level: ConfidenceAccuracy(count=len(values), mean_accuracy=_mean(values))
            for level, values in grouped.items()
        },
    )
