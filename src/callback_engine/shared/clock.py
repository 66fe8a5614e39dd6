"""
Clock helpers.

Components receive a `Clock` instead of calling datetime.now() so that tests
can pin time.
"""

from datetime import datetime, timezone
from typing import Callable

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """Return `value` as an aware UTC datetime.

    Naive values are taken to be UTC already (SQLite drops the offset).
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
