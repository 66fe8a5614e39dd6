from __future__ import annotations

from dataclasses import dataclass, field
from typing import List
from uuid import UUID

from callback_engine.history.records import CallbackRecord


@dataclass(frozen=True)
class SchedulingResult:
    """Summary returned after a scheduling run for one contact."""

    contact_id: UUID
    callbacks: List[CallbackRecord] = field(default_factory=list)
    dropped_below_floor: int = 0

    @property
    def total_scheduled(self) -> int:
        return len(self.callbacks)
