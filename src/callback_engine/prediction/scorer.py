"""
Time-slot scorer.

A slot score starts from a base value, collects independent additive
evidence (segment profile, personal history, global history) and is then
scaled down by the two multiplicative penalties: off-hours and recent
attempts. The result is clamped to [0, 100].

Everything that needs the repository is gathered once into a ScoringContext;
score_slot() itself is pure, so a prediction run reads history once and then
scores every candidate against the same snapshot.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from callback_engine.contacts.segments import (
    KeywordSegmentClassifier,
    Segment,
    SegmentClassifier,
    SegmentProfile,
)
from callback_engine.history.repository import HistoryRepositoryProtocol
from callback_engine.prediction.config import EngineConfig
from callback_engine.prediction.patterns import (
    GlobalPatterns,
    PatternAnalyzer,
    PersonalPatterns,
)
from callback_engine.shared.clock import Clock, ensure_utc, utc_now
from callback_engine.shared.logging import get_logger

logger = get_logger(__name__)

WEEKEND_START = 5  # Saturday, with Monday=0


@dataclass(frozen=True)
class ScoringContext:
    """History snapshot used to score every candidate of one contact."""

    contact_id: UUID
    segment: Segment
    profile: SegmentProfile
    personal: PersonalPatterns
    global_patterns: GlobalPatterns
    recent_attempts: int


def clamp_score(value: float) -> float:
    return max(0.0, min(100.0, value))


class TimeSlotScorer:
    """Scores candidate contact times for a contact."""

    def __init__(
        self,
        repository: HistoryRepositoryProtocol,
        config: EngineConfig,
        analyzer: PatternAnalyzer | None = None,
        classifier: SegmentClassifier | None = None,
        clock: Clock = utc_now,
    ) -> None:
        self._repository = repository
        self._config = config
        self._clock = clock
        self._classifier = classifier or KeywordSegmentClassifier()
        self._analyzer = analyzer or PatternAnalyzer(
            repository,
            config.taxonomy,
            lookback=config.pattern_lookback,
            clock=clock,
        )

    @property
    def config(self) -> EngineConfig:
        return self._config

    async def build_context(
        self,
        contact_id: UUID,
        now: datetime | None = None,
    ) -> ScoringContext:
        """Read everything the score depends on.

        Raises:
            NotFoundError: If the contact does not exist.
            StorageError: If the history store fails.
        """
        now = ensure_utc(now or self._clock())
        contact = await self._repository.get_contact(contact_id)
        segment = self._classifier.classify(contact)

        personal = await self._analyzer.personal_patterns(contact_id)
        global_patterns = await self._analyzer.global_patterns()
        window = await self._repository.query_attempts_in_window(
            contact_id=contact_id,
            since=now - self._config.recent_window,
        )
        # An attempt logged at `now` counts; future-dated ones do not.
        recent = [a for a in window if ensure_utc(a.attempted_at) <= now]

        return ScoringContext(
            contact_id=contact_id,
            segment=segment,
            profile=self._config.profile_for(segment),
            personal=personal,
            global_patterns=global_patterns,
            recent_attempts=len(recent),
        )

    def score_slot(self, context: ScoringContext, when: datetime) -> float:
        cfg = self._config
        local = cfg.business_hours.localize(ensure_utc(when))
        hour = local.hour
        weekday = local.weekday()

        score = cfg.base_score

        if hour in context.profile.preferred_hours:
            score += cfg.preferred_hour_bonus
        if hour in context.profile.avoided_hours:
            score -= cfg.avoided_hour_penalty

        if weekday >= WEEKEND_START:
            score *= context.profile.weekend_multiplier

        personal_rate = context.personal.hour_rate(hour)
        if personal_rate is not None:
            score += personal_rate * cfg.personal_history_weight

        score += context.global_patterns.hour_rate(hour) * cfg.global_hour_weight
        score += context.global_patterns.weekday_rate(weekday) * cfg.global_weekday_weight

        if not cfg.business_hours.start_hour <= hour < cfg.business_hours.end_hour:
            score *= cfg.off_hours_multiplier

        if context.recent_attempts:
            score *= (1.0 - cfg.recent_attempt_penalty) ** context.recent_attempts

        return clamp_score(score)

    async def score(self, contact_id: UUID, when: datetime) -> float:
        """Score a single candidate time, reading history for it."""
        context = await self.build_context(contact_id)
        return self.score_slot(context, when)
