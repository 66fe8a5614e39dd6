"""
Calling-pattern segments and the strategy that assigns them.

A segment selects a static time-of-day profile for the scorer. The keyword
classifier here is a heuristic; anything implementing SegmentClassifier can
replace it without touching the scorer.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Protocol

from callback_engine.shared.exceptions import ValidationError

if TYPE_CHECKING:
    from callback_engine.history.records import ContactRecord


class Segment(str, Enum):
    RESIDENTIAL = "residential"
    BUSINESS = "business"
    TRADESPERSON = "tradesperson"
    DEFAULT = "default"


@dataclass(frozen=True)
class SegmentProfile:
    """Time-of-day heuristic for one segment."""

    preferred_hours: frozenset[int]
    avoided_hours: frozenset[int]
    weekend_multiplier: float

    def __post_init__(self) -> None:
        for hour in self.preferred_hours | self.avoided_hours:
            if not 0 <= hour <= 23:
                raise ValidationError(f"Segment hour out of range: {hour}")
        if self.weekend_multiplier < 0:
            raise ValidationError("weekend_multiplier must be >= 0")

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "SegmentProfile":
        return cls(
            preferred_hours=frozenset(int(h) for h in data.get("preferred_hours", ())),
            avoided_hours=frozenset(int(h) for h in data.get("avoided_hours", ())),
            weekend_multiplier=float(data.get("weekend_multiplier", 1.0)),
        )


def _profile(preferred: Iterable[int], avoided: Iterable[int], weekend: float) -> SegmentProfile:
    return SegmentProfile(frozenset(preferred), frozenset(avoided), weekend)


DEFAULT_SEGMENT_PROFILES: Mapping[Segment, SegmentProfile] = MappingProxyType(
    {
        # Avoid lunch and dinner; slightly better on weekends.
        Segment.RESIDENTIAL: _profile([9, 10, 11, 14, 15, 16], [12, 13, 17, 18, 19], 1.2),
        # Early morning or after hours; busy mid-day.
        Segment.BUSINESS: _profile([8, 9, 17, 18], [12, 13, 14, 15], 0.7),
        # Before work, lunch break, after work.
        Segment.TRADESPERSON: _profile([7, 8, 12, 17, 18], [9, 10, 11, 14, 15, 16], 0.5),
        Segment.DEFAULT: _profile([9, 10, 11, 14, 15, 16], [12, 13], 0.8),
    }
)


class SegmentClassifier(Protocol):
    """Strategy mapping a contact to a calling-pattern segment."""

    def classify(self, contact: ContactRecord | None) -> Segment:
        ...


class KeywordSegmentClassifier:
    """Classify on keyword cues in the contact's project fields."""

    def __init__(
        self,
        business_cues: Iterable[str] = ("commercial", "business"),
        trade_cues: Iterable[str] = ("contractor", "builder"),
    ) -> None:
        self._business_cues = tuple(c.lower() for c in business_cues)
        self._trade_cues = tuple(c.lower() for c in trade_cues)

    def classify(self, contact: ContactRecord | None) -> Segment:
        if contact is None:
            return Segment.DEFAULT

        fields = contact.custom_fields or {}
        project_type = str(fields.get("project_type") or "").lower()
        notes = str(fields.get("project_notes") or "").lower()
        if not project_type and not notes:
            return Segment.DEFAULT

        text = f"{project_type} {notes}"
        if any(cue in text for cue in self._business_cues):
            return Segment.BUSINESS
        if any(cue in text for cue in self._trade_cues):
            return Segment.TRADESPERSON
        return Segment.RESIDENTIAL
