"""
Outcome recording, retry triggering and prediction reconciliation.
"""

from callback_engine.learning.models import (
    AttemptMetadata,
    ProcessingResult,
    ReconciliationResult,
)
from callback_engine.learning.report import AccuracyReport, summarize_accuracy

__all__ = [
    "AccuracyReport",
    "AttemptMetadata",
    "ProcessingResult",
    "ReconciliationResult",
    "summarize_accuracy",
]
