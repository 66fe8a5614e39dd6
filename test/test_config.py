"""
Tests for application and engine configuration.
"""

import json
from datetime import datetime, timedelta, timezone

import pytest

from callback_engine.config import Settings, get_settings
from callback_engine.contacts.segments import DEFAULT_SEGMENT_PROFILES, Segment
from callback_engine.outcomes.taxonomy import CallOutcome
from callback_engine.prediction.config import (
    BusinessHours,
    EngineConfig,
    EngineSettings,
    config_from_settings,
)
from callback_engine.shared.exceptions import ValidationError


class TestSettings:
    def test_default_values(self) -> None:
        # Environment variables may override defaults; check the declared ones.
        assert Settings.model_fields["app_env"].default == "dev"
        assert Settings.model_fields["database_url"].default.startswith("postgresql+asyncpg://")

    def test_cors_origins_list(self) -> None:
        settings = Settings(cors_origins="http://a.example.com, http://b.example.com,")

        assert settings.cors_origins_list == ["http://a.example.com", "http://b.example.com"]

    def test_log_levels_are_normalized(self) -> None:
        settings = Settings(log_level=" debug", sqlalchemy_log_level="info")

        assert settings.log_level == "DEBUG"
        assert settings.sqlalchemy_log_level == "INFO"

    def test_get_settings_reads_environment_under_pytest(self, monkeypatch) -> None:
        monkeypatch.setenv("APP_ENV", "qa")

        assert get_settings().app_env == "qa"


class TestEngineSettings:
    def test_defaults_build_default_config(self) -> None:
        config = config_from_settings(EngineSettings(_env_file=None))

        assert config.business_hours == BusinessHours()
        assert config.min_predicted_score == 30.0
        assert config.off_hours_multiplier == 0.3
        assert config.recent_attempt_penalty == 0.2
        assert config.recent_window == timedelta(hours=24)
        assert config.max_callbacks_per_day == 2
        assert config.pattern_lookback is None
        assert config.taxonomy.weight(CallOutcome.APPOINTMENT_BOOKED) == 150
        assert config.segment_profiles[Segment.TRADESPERSON].weekend_multiplier == 0.5

    def test_environment_overrides(self, monkeypatch) -> None:
        monkeypatch.setenv("CALLBACK_BUSINESS_START_HOUR", "8")
        monkeypatch.setenv("CALLBACK_BUSINESS_END_HOUR", "18")
        monkeypatch.setenv("CALLBACK_BUSINESS_TIMEZONE", "America/New_York")
        monkeypatch.setenv("CALLBACK_PATTERN_LOOKBACK_DAYS", "90")
        monkeypatch.setenv("CALLBACK_RETRY_ELIGIBLE_OUTCOMES", json.dumps(["busy"]))

        config = config_from_settings(EngineSettings(_env_file=None))

        assert config.business_hours.hours == range(8, 18)
        assert config.business_hours.timezone_name == "America/New_York"
        assert config.pattern_lookback == timedelta(days=90)
        assert config.taxonomy.retry_eligible == frozenset({CallOutcome.BUSY})

    def test_outcome_weights_from_json(self, monkeypatch) -> None:
        weights = {o.value: 0 for o in CallOutcome}
        weights["voicemail"] = 60
        monkeypatch.setenv("CALLBACK_OUTCOME_WEIGHTS", json.dumps(weights))

        config = config_from_settings(EngineSettings(_env_file=None))

        assert config.taxonomy.weight("voicemail") == 60
        assert not config.taxonomy.is_success("answered")

    def test_unknown_outcome_in_table(self) -> None:
        settings = EngineSettings(_env_file=None, retry_eligible_outcomes=["hung_up"])

        with pytest.raises(ValidationError):
            config_from_settings(settings)

    def test_incomplete_weight_table(self) -> None:
        settings = EngineSettings(_env_file=None, outcome_weights={"answered": 100})

        with pytest.raises(ValidationError):
            config_from_settings(settings)

    def test_inverted_business_hours(self) -> None:
        settings = EngineSettings(_env_file=None, business_start_hour=17, business_end_hour=9)

        with pytest.raises(ValidationError):
            config_from_settings(settings)


class TestEngineConfig:
    def test_unknown_timezone(self) -> None:
        with pytest.raises(ValidationError):
            BusinessHours(timezone_name="Mars/Olympus_Mons")

    @pytest.mark.parametrize(
        "overrides",
        [
            {"off_hours_multiplier": 1.5},
            {"recent_attempt_penalty": -0.1},
            {"min_predicted_score": 120.0},
            {"top_slots_per_day": 0},
            {"max_callbacks_per_day": 0},
            {"max_horizon_days": 5},
            {"default_prediction_horizon_days": 0},
            {"default_schedule_horizon_days": 0},
            {"segment_profiles": {}},
        ],
    )
    def test_invalid_values(self, overrides) -> None:
        with pytest.raises(ValidationError):
            EngineConfig(**overrides)

    def test_profile_for_falls_back_to_default(self) -> None:
        default = DEFAULT_SEGMENT_PROFILES[Segment.DEFAULT]
        config = EngineConfig(segment_profiles={Segment.DEFAULT: default})

        assert config.profile_for(Segment.BUSINESS) == default

    def test_business_hours_contains(self) -> None:
        hours = BusinessHours()

        # 17:00 UTC is 09:00 PST; 01:00 UTC next day is 17:00 PST.
        assert hours.contains(datetime(2024, 3, 4, 17, 0, tzinfo=timezone.utc))
        assert not hours.contains(datetime(2024, 3, 5, 1, 0, tzinfo=timezone.utc))
