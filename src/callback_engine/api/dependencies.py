"""
FastAPI dependencies wiring the engine to a request-scoped session.
"""

from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from callback_engine.engine import CallbackEngine, build_engine
from callback_engine.history.repository import SQLAlchemyHistoryRepository
from callback_engine.prediction.config import (
    EngineConfig,
    config_from_settings,
    get_engine_settings,
)
from callback_engine.shared.clock import Clock, utc_now
from callback_engine.shared.database import get_db_session

_engine_config: EngineConfig | None = None


def get_engine_config() -> EngineConfig:
    """Engine configuration, built once from the environment."""
    global _engine_config
    if _engine_config is None:
        _engine_config = config_from_settings(get_engine_settings())
    return _engine_config


def get_clock() -> Clock:
    return utc_now


def get_callback_engine(
    session: Annotated[AsyncSession, Depends(get_db_session)],
    config: Annotated[EngineConfig, Depends(get_engine_config)],
    clock: Annotated[Clock, Depends(get_clock)],
) -> CallbackEngine:
    """Dependency for the callback engine."""
    return build_engine(SQLAlchemyHistoryRepository(session), config=config, clock=clock)
