"""
SQLAlchemy models for contact attempts and scheduled callbacks.
"""

from datetime import datetime
from enum import Enum
from uuid import UUID, uuid4

from sqlalchemy import (
    DateTime,
    Enum as SQLEnum,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    Uuid,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column

import callback_engine.contacts.models  # noqa: F401  (registers the contacts table)
from callback_engine.history.records import CallbackStatus, Confidence
from callback_engine.outcomes.taxonomy import CallOutcome
from callback_engine.shared.database import Base


def _values(enum_cls: type[Enum]) -> list[str]:
    return [member.value for member in enum_cls]


def _enum_column(enum_cls: type[Enum], name: str) -> SQLEnum:
    # Plain VARCHAR holding the enum value, no native enum type.
    return SQLEnum(
        enum_cls,
        name=name,
        native_enum=False,
        length=32,
        values_callable=_values,
        validate_strings=True,
    )


class ContactAttempt(Base):
    """Append-only log of real contact attempts; ground truth for learning."""

    __tablename__ = "contact_attempts"

    id: Mapped[UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid4,
    )
    contact_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("contacts.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    attempted_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        index=True,
    )
    outcome: Mapped[CallOutcome] = mapped_column(
        _enum_column(CallOutcome, "call_outcome"),
        nullable=False,
    )
    duration: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
    )
    weekday: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        index=True,
    )
    hour_of_day: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        index=True,
    )
    attempt_number: Mapped[int | None] = mapped_column(
        Integer,
        nullable=True,
    )
    notes: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    def __repr__(self) -> str:
        return (
            f"<ContactAttempt(id={self.id}, contact_id={self.contact_id}, "
            f"outcome={self.outcome})>"
        )


class ScheduledCallback(Base):
    """A recommended future contact time, later reconciled with reality."""

    __tablename__ = "scheduled_callbacks"
    __table_args__ = (
        Index("ix_scheduled_callbacks_status_time", "status", "scheduled_time"),
    )

    id: Mapped[UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid4,
    )
    contact_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("contacts.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    scheduled_time: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )
    predicted_score: Mapped[float] = mapped_column(
        Float,
        nullable=False,
    )
    confidence: Mapped[Confidence] = mapped_column(
        _enum_column(Confidence, "callback_confidence"),
        nullable=False,
    )
    status: Mapped[CallbackStatus] = mapped_column(
        _enum_column(CallbackStatus, "callback_status"),
        nullable=False,
        default=CallbackStatus.SCHEDULED,
    )
    attempt_type: Mapped[str] = mapped_column(
        String(32),
        nullable=False,
        default="ai_predicted",
    )
    actual_outcome: Mapped[CallOutcome | None] = mapped_column(
        _enum_column(CallOutcome, "callback_actual_outcome"),
        nullable=True,
    )
    actual_score: Mapped[float | None] = mapped_column(
        Float,
        nullable=True,
    )
    prediction_accuracy: Mapped[float | None] = mapped_column(
        Float,
        nullable=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
    completed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    def __repr__(self) -> str:
        return (
            f"<ScheduledCallback(id={self.id}, contact_id={self.contact_id}, "
            f"status={self.status})>"
        )
