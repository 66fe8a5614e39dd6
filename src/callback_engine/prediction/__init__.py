"""
Slot scoring and optimal-time prediction.
"""

from callback_engine.prediction.config import (
    BusinessHours,
    EngineConfig,
    EngineSettings,
    config_from_settings,
    get_engine_settings,
)
from callback_engine.prediction.models import DayPrediction, SlotPrediction

__all__ = [
    "BusinessHours",
    "DayPrediction",
    "EngineConfig",
    "EngineSettings",
    "SlotPrediction",
    "config_from_settings",
    "get_engine_settings",
]
