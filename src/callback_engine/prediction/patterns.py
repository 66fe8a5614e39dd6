"""
Pattern analyzer: success rates aggregated from the contact-attempt log.

Global patterns cover every contact and act as a weak prior; personal
patterns cover a single contact and only speak for hours where that contact
has history. Both are recomputed from the log on every call.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from uuid import UUID

from callback_engine.history.records import AttemptRecord
from callback_engine.history.repository import HistoryRepositoryProtocol
from callback_engine.outcomes.taxonomy import OutcomeTaxonomy
from callback_engine.shared.clock import Clock, utc_now
from callback_engine.shared.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class RateBucket:
    attempts: int = 0
    successes: int = 0

    @property
    def success_rate(self) -> float:
        if self.attempts == 0:
            return 0.0
        return self.successes / self.attempts


@dataclass(frozen=True)
class GlobalPatterns:
    by_hour: Mapping[int, RateBucket] = field(default_factory=dict)
    by_weekday: Mapping[int, RateBucket] = field(default_factory=dict)

    def hour_rate(self, hour: int) -> float:
        bucket = self.by_hour.get(hour)
        return bucket.success_rate if bucket else 0.0

    def weekday_rate(self, weekday: int) -> float:
        bucket = self.by_weekday.get(weekday)
        return bucket.success_rate if bucket else 0.0


@dataclass(frozen=True)
class PersonalPatterns:
    by_hour: Mapping[int, RateBucket] = field(default_factory=dict)
    total_attempts: int = 0
    successful_contacts: int = 0

    @property
    def has_history(self) -> bool:
        return self.total_attempts > 0

    def hour_rate(self, hour: int) -> float | None:
        """Success rate at `hour`, or None when the contact has no attempt there."""
        bucket = self.by_hour.get(hour)
        if bucket is None or bucket.attempts == 0:
            return None
        return bucket.success_rate


def _bucketize(
    attempts: Iterable[AttemptRecord],
    taxonomy: OutcomeTaxonomy,
    key: str,
) -> dict[int, RateBucket]:
    counts: dict[int, list[int]] = {}
    for attempt in attempts:
        slot = counts.setdefault(getattr(attempt, key), [0, 0])
        slot[0] += 1
        if taxonomy.is_success(attempt.outcome):
            slot[1] += 1
    return {k: RateBucket(attempts=a, successes=s) for k, (a, s) in counts.items()}


def compute_global_patterns(
    attempts: Iterable[AttemptRecord],
    taxonomy: OutcomeTaxonomy,
) -> GlobalPatterns:
    attempts = list(attempts)
    return GlobalPatterns(
        by_hour=_bucketize(attempts, taxonomy, "hour_of_day"),
        by_weekday=_bucketize(attempts, taxonomy, "weekday"),
    )


def compute_personal_patterns(
    attempts: Iterable[AttemptRecord],
    taxonomy: OutcomeTaxonomy,
) -> PersonalPatterns:
    attempts = list(attempts)
    return PersonalPatterns(
        by_hour=_bucketize(attempts, taxonomy, "hour_of_day"),
        total_attempts=len(attempts),
        successful_contacts=sum(1 for a in attempts if taxonomy.is_success(a.outcome)),
    )


class PatternAnalyzer:
    """Aggregates global and per-contact success rates on demand."""

    def __init__(
        self,
        repository: HistoryRepositoryProtocol,
        taxonomy: OutcomeTaxonomy,
        lookback: timedelta | None = None,
        clock: Clock = utc_now,
    ) -> None:
        self._repository = repository
        self._taxonomy = taxonomy
        self._lookback = lookback
        self._clock = clock

    def _since(self) -> datetime | None:
        if self._lookback is None:
            return None
        return self._clock() - self._lookback

    async def global_patterns(self) -> GlobalPatterns:
        attempts = await self._repository.query_attempts_in_window(since=self._since())
        patterns = compute_global_patterns(attempts, self._taxonomy)
        logger.debug(
            "Global patterns computed",
            extra={"attempts": len(attempts), "hours": len(patterns.by_hour)},
        )
        return patterns

    async def personal_patterns(self, contact_id: UUID) -> PersonalPatterns:
        attempts = await self._repository.query_attempts_in_window(
            contact_id=contact_id,
            since=self._since(),
        )
        return compute_personal_patterns(attempts, self._taxonomy)
