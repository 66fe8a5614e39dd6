"""
Shared exceptions.

Every error the engine raises on purpose derives from AppError so the HTTP
adapter can map it to a status code in one place.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional


@dataclass(eq=False)
class AppError(Exception):
    message: str = "Application error"
    details: Optional[dict[str, Any]] = None

    def __str__(self) -> str:
        return self.message


class NotFoundError(AppError):
    """A referenced contact or scheduled callback does not exist."""


class ValidationError(AppError):
    """Caller supplied an input the engine refuses to act on."""


class ConflictError(AppError):
    """A scheduled callback was already completed."""


class StorageError(AppError):
    """The history store failed to read or write."""
