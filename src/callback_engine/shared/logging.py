"""
JSON logging for the callback engine.

Every record is one JSON object on stdout. Keyword context passed with
`extra={...}` (or through log_with_context) becomes top-level keys, and the
request's correlation id is attached when one is bound.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any

from callback_engine.config import get_settings
from callback_engine.shared.correlation import correlation_id_var

# Attributes every LogRecord carries; anything else came from `extra=`.
_RECORD_ATTRS = frozenset(
    logging.LogRecord("", logging.INFO, "", 0, "", (), None).__dict__
) | {"message", "asctime", "extra_data"}

# Third-party loggers that drown the engine's own events at INFO.
_NOISY_LOGGERS = ("httpx", "httpcore", "python_multipart", "uvicorn.access")
_SQLALCHEMY_LOGGERS = ("sqlalchemy.engine", "sqlalchemy.pool", "sqlalchemy.dialects")


class StructuredFormatter(logging.Formatter):
    """Render a LogRecord as a single JSON line."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        correlation_id = correlation_id_var.get()
        if correlation_id:
            payload["correlation_id"] = correlation_id

        context = getattr(record, "extra_data", None)
        if isinstance(context, dict):
            payload.update(context)

        for key, value in record.__dict__.items():
            if key in _RECORD_ATTRS:
                continue
            # Never let context overwrite the envelope fields.
            payload[f"extra_{key}" if key in payload else key] = value

        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=str)


def _stdout_handler() -> logging.Handler:
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(StructuredFormatter())
    return handler


class _ModuleHandler(logging.StreamHandler):
    """Stdout handler a module logger owns until the root one is installed."""


_root_configured = False


def get_logger(name: str) -> logging.Logger:
    """Logger for an engine module.

    Until setup_logging() installs the root handler, module loggers write
    through their own handler so that import-time and test logs still come
    out as JSON. setup_logging() removes that handler and lets them
    propagate to the root logger.
    """
    logger = logging.getLogger(name)
    if _root_configured:
        return logger
    if not any(isinstance(h, _ModuleHandler) for h in logger.handlers):
        handler = _ModuleHandler(sys.stdout)
        handler.setFormatter(StructuredFormatter())
        logger.addHandler(handler)
        logger.propagate = False
    logger.setLevel(get_settings().log_level.upper())
    return logger


def _release_module_loggers() -> None:
    for logger in list(logging.Logger.manager.loggerDict.values()):
        if not isinstance(logger, logging.Logger):
            continue
        owned = [h for h in logger.handlers if isinstance(h, _ModuleHandler)]
        if not owned:
            continue
        for handler in owned:
            logger.removeHandler(handler)
        logger.propagate = True
        logger.setLevel(logging.NOTSET)


def setup_logging() -> None:
    """Install the JSON handler on the root logger and quiet library noise.

    Module loggers created earlier by get_logger() are switched over to the
    root handler and level.
    """
    global _root_configured
    settings = get_settings()

    root = logging.getLogger()
    root.setLevel(settings.log_level.upper())
    root.handlers = [_stdout_handler()]
    _release_module_loggers()
    _root_configured = True

    for name in _SQLALCHEMY_LOGGERS:
        logging.getLogger(name).setLevel(settings.sqlalchemy_log_level.upper())
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def log_with_context(
    logger: logging.Logger,
    level: int,
    message: str,
    **context: Any,
) -> None:
    """Log `message` with arbitrary keyword context, including reserved names."""
    logger.log(level, message, extra={"extra_data": context})
