"""
Callback engine configuration.

EngineSettings reads the tunables from the environment (prefix CALLBACK_);
EngineConfig is the validated, immutable object the components receive.
The outcome weights and segment profiles are data, not constants, so each
deployment can tune them.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime, timedelta, tzinfo
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from callback_engine.contacts.segments import (
    DEFAULT_SEGMENT_PROFILES,
    Segment,
    SegmentProfile,
)
from callback_engine.outcomes.taxonomy import (
    DEFAULT_OUTCOME_WEIGHTS,
    DEFAULT_RETRY_ELIGIBLE,
    CallOutcome,
    OutcomeTaxonomy,
)
from callback_engine.shared.exceptions import ValidationError


def _default_weights() -> dict[str, int]:
    return {outcome.value: weight for outcome, weight in DEFAULT_OUTCOME_WEIGHTS.items()}


def _default_profiles() -> dict[str, dict[str, object]]:
    return {
        segment.value: {
            "preferred_hours": sorted(profile.preferred_hours),
            "avoided_hours": sorted(profile.avoided_hours),
            "weekend_multiplier": profile.weekend_multiplier,
        }
        for segment, profile in DEFAULT_SEGMENT_PROFILES.items()
    }


def _default_retry_eligible() -> list[str]:
    return sorted(outcome.value for outcome in DEFAULT_RETRY_ELIGIBLE)


class EngineSettings(BaseSettings):
    """Callback engine tunables from environment."""

    model_config = SettingsConfigDict(
        env_prefix="CALLBACK_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Business window, half-open [start, end) in the business timezone
    business_start_hour: int = Field(default=9, ge=0, le=23)
    business_end_hour: int = Field(default=17, ge=1, le=24)
    business_timezone: str = Field(default="America/Los_Angeles")

    # Additive terms
    base_score: float = Field(default=50.0)
    preferred_hour_bonus: float = Field(default=20.0)
    avoided_hour_penalty: float = Field(default=15.0)
    personal_history_weight: float = Field(default=30.0)
    global_hour_weight: float = Field(default=15.0)
    global_weekday_weight: float = Field(default=10.0)

    # Multiplicative penalties (empirical; tune against reconciled outcomes)
    off_hours_multiplier: float = Field(default=0.3, ge=0.0, le=1.0)
    recent_attempt_penalty: float = Field(default=0.2, ge=0.0, le=1.0)
    recent_window_hours: int = Field(default=24, ge=1)

    # Prediction / scheduling
    min_predicted_score: float = Field(default=30.0, ge=0.0, le=100.0)
    top_slots_per_day: int = Field(default=3, ge=1)
    default_prediction_horizon_days: int = Field(default=3, ge=1)
    default_schedule_horizon_days: int = Field(default=7, ge=1)
    max_horizon_days: int = Field(default=14, ge=1)
    max_callbacks_per_day: int = Field(default=2, ge=1)
    pattern_lookback_days: int | None = Field(
        default=None,
        ge=1,
        description="Limit pattern aggregation to recent history; None uses all.",
    )

    # Data tables (JSON in the environment)
    outcome_weights: dict[str, int] = Field(default_factory=_default_weights)
    segment_profiles: dict[str, dict[str, object]] = Field(default_factory=_default_profiles)
    retry_eligible_outcomes: list[str] = Field(default_factory=_default_retry_eligible)


def get_engine_settings() -> EngineSettings:
    return EngineSettings()


@dataclass(frozen=True)
class BusinessHours:
    start_hour: int = 9
    end_hour: int = 17
    timezone_name: str = "America/Los_Angeles"

    def __post_init__(self) -> None:
        if not 0 <= self.start_hour < self.end_hour <= 24:
            raise ValidationError(
                "Business hours must satisfy 0 <= start < end <= 24",
                details={"start_hour": self.start_hour, "end_hour": self.end_hour},
            )
        try:
            ZoneInfo(self.timezone_name)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValidationError(f"Unknown timezone: {self.timezone_name}") from exc

    @property
    def tz(self) -> tzinfo:
        return ZoneInfo(self.timezone_name)

    @property
    def hours(self) -> range:
        return range(self.start_hour, self.end_hour)

    def localize(self, moment: datetime) -> datetime:
        return moment.astimezone(self.tz)

    def contains(self, moment: datetime) -> bool:
        return self.start_hour <= self.localize(moment).hour < self.end_hour


@dataclass(frozen=True)
class EngineConfig:
    """Validated engine parameters shared by every component."""

    business_hours: BusinessHours = field(default_factory=BusinessHours)
    taxonomy: OutcomeTaxonomy = field(default_factory=OutcomeTaxonomy)
    segment_profiles: Mapping[Segment, SegmentProfile] = field(
        default_factory=lambda: dict(DEFAULT_SEGMENT_PROFILES)
    )

    base_score: float = 50.0
    preferred_hour_bonus: float = 20.0
    avoided_hour_penalty: float = 15.0
    personal_history_weight: float = 30.0
    global_hour_weight: float = 15.0
    global_weekday_weight: float = 10.0

    off_hours_multiplier: float = 0.3
    recent_attempt_penalty: float = 0.2
    recent_window: timedelta = timedelta(hours=24)

    min_predicted_score: float = 30.0
    top_slots_per_day: int = 3
    default_prediction_horizon_days: int = 3
    default_schedule_horizon_days: int = 7
    max_horizon_days: int = 14
    max_callbacks_per_day: int = 2
    pattern_lookback: timedelta | None = None

    def __post_init__(self) -> None:
        if not 0.0 <= self.off_hours_multiplier <= 1.0:
            raise ValidationError("off_hours_multiplier must be within [0, 1]")
        if not 0.0 <= self.recent_attempt_penalty <= 1.0:
            raise ValidationError("recent_attempt_penalty must be within [0, 1]")
        if not 0.0 <= self.min_predicted_score <= 100.0:
            raise ValidationError("min_predicted_score must be within [0, 100]")
        if self.top_slots_per_day < 1 or self.max_callbacks_per_day < 1:
            raise ValidationError("Per-day slot counts must be >= 1")
        if self.default_prediction_horizon_days < 1 or self.default_schedule_horizon_days < 1:
            raise ValidationError("Default horizons must be >= 1 day")
        if self.max_horizon_days < max(
            self.default_prediction_horizon_days, self.default_schedule_horizon_days
        ):
            raise ValidationError("max_horizon_days must cover the default horizons")
        if Segment.DEFAULT not in self.segment_profiles:
            raise ValidationError("Segment profiles must include the default segment")

    def profile_for(self, segment: Segment) -> SegmentProfile:
        return self.segment_profiles.get(segment, self.segment_profiles[Segment.DEFAULT])


def config_from_settings(settings: EngineSettings) -> EngineConfig:
    """Build EngineConfig from EngineSettings."""
    try:
        weights = {CallOutcome(k): int(v) for k, v in settings.outcome_weights.items()}
        retry_eligible = [CallOutcome(v) for v in settings.retry_eligible_outcomes]
        profiles = {
            Segment(k): SegmentProfile.from_mapping(v)
            for k, v in settings.segment_profiles.items()
        }
    except ValueError as exc:
        raise ValidationError(f"Invalid callback engine tables: {exc}") from exc

    return EngineConfig(
        business_hours=BusinessHours(
            start_hour=settings.business_start_hour,
            end_hour=settings.business_end_hour,
            timezone_name=settings.business_timezone,
        ),
        taxonomy=OutcomeTaxonomy(weights, retry_eligible),
        segment_profiles=profiles,
        base_score=settings.base_score,
        preferred_hour_bonus=settings.preferred_hour_bonus,
        avoided_hour_penalty=settings.avoided_hour_penalty,
        personal_history_weight=settings.personal_history_weight,
        global_hour_weight=settings.global_hour_weight,
        global_weekday_weight=settings.global_weekday_weight,
        off_hours_multiplier=settings.off_hours_multiplier,
        recent_attempt_penalty=settings.recent_attempt_penalty,
        recent_window=timedelta(hours=settings.recent_window_hours),
        min_predicted_score=settings.min_predicted_score,
        top_slots_per_day=settings.top_slots_per_day,
        default_prediction_horizon_days=settings.default_prediction_horizon_days,
        default_schedule_horizon_days=settings.default_schedule_horizon_days,
        max_horizon_days=settings.max_horizon_days,
        max_callbacks_per_day=settings.max_callbacks_per_day,
        pattern_lookback=(
            timedelta(days=settings.pattern_lookback_days)
            if settings.pattern_lookback_days
            else None
        ),
    )
