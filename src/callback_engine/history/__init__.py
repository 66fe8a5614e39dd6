"""
Contact-attempt log and scheduled-callback store.

NOTE:
Keep this __init__ free of ORM imports; records are enough for the engine.
"""

from callback_engine.history.records import (
    AttemptCreate,
    AttemptRecord,
    CallbackCompletion,
    CallbackCreate,
    CallbackRecord,
    CallbackStatus,
    Confidence,
    ContactRecord,
    confidence_for_score,
)

__all__ = [
    "AttemptCreate",
    "AttemptRecord",
    "CallbackCompletion",
    "CallbackCreate",
    "CallbackRecord",
    "CallbackStatus",
    "Confidence",
    "ContactRecord",
    "confidence_for_score",
]
