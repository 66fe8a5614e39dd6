from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from callback_engine.history.records import AttemptRecord, CallbackRecord


@dataclass(frozen=True)
class AttemptMetadata:
    """Optional details about a contact attempt supplied by the caller."""

    attempted_at: Optional[datetime] = None
    duration: int = 0
    attempt_number: Optional[int] = None
    notes: Optional[str] = None


@dataclass(frozen=True)
class ProcessingResult:
    """What happened after an attempt was recorded."""

    attempt: AttemptRecord
    callbacks: List[CallbackRecord] = field(default_factory=list)
    retry_eligible: bool = False

    @property
    def total_scheduled(self) -> int:
        return len(self.callbacks)


@dataclass(frozen=True)
class ReconciliationResult:
    callback: CallbackRecord
    actual_score: float
    prediction_accuracy: float
