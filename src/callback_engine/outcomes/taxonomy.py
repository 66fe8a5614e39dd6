"""
Contact-attempt outcomes and their desirability weights.

The weight is the only signal used to turn a categorical outcome into a
number: outcomes weighing more than zero count as a successful contact, and
reconciliation re-centres the weight onto the 0-100 prediction scale.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from enum import Enum
from types import MappingProxyType

from callback_engine.shared.exceptions import ValidationError


class CallOutcome(str, Enum):
    """Result of one real-world contact attempt."""

    ANSWERED = "answered"
    APPOINTMENT_BOOKED = "appointment_booked"
    CALLBACK_REQUESTED = "callback_requested"
    VOICEMAIL = "voicemail"
    BUSY = "busy"
    NO_ANSWER = "no_answer"
    NOT_INTERESTED = "not_interested"
    WRONG_NUMBER = "wrong_number"


DEFAULT_OUTCOME_WEIGHTS: Mapping[CallOutcome, int] = MappingProxyType(
    {
        CallOutcome.ANSWERED: 100,
        CallOutcome.APPOINTMENT_BOOKED: 150,
        CallOutcome.CALLBACK_REQUESTED: 80,
        CallOutcome.VOICEMAIL: 20,
        CallOutcome.BUSY: 0,
        CallOutcome.NO_ANSWER: -10,
        CallOutcome.NOT_INTERESTED: -50,
        CallOutcome.WRONG_NUMBER: -100,
    }
)

DEFAULT_RETRY_ELIGIBLE: frozenset[CallOutcome] = frozenset(
    {
        CallOutcome.NO_ANSWER,
        CallOutcome.VOICEMAIL,
        CallOutcome.BUSY,
        CallOutcome.CALLBACK_REQUESTED,
    }
)

# Reconciliation maps a signed weight onto the prediction scale by adding this.
ACTUAL_SCORE_OFFSET = 50


def parse_outcome(value: CallOutcome | str) -> CallOutcome:
    """Coerce a raw outcome string into a CallOutcome.

    Raises:
        ValidationError: If the value is not a known outcome kind.
    """
    if isinstance(value, CallOutcome):
        return value
    try:
        return CallOutcome(str(value).strip().lower())
    except ValueError as exc:
        raise ValidationError(
            f"Unknown call outcome: {value!r}",
            details={"allowed": [o.value for o in CallOutcome]},
        ) from exc


class OutcomeTaxonomy:
    """Weight table plus the retry-eligibility rule."""

    def __init__(
        self,
        weights: Mapping[CallOutcome, int] | None = None,
        retry_eligible: Iterable[CallOutcome] | None = None,
    ) -> None:
        table = dict(DEFAULT_OUTCOME_WEIGHTS if weights is None else weights)
        missing = [o.value for o in CallOutcome if o not in table]
        if missing:
            raise ValidationError(
                "Outcome weight table is incomplete",
                details={"missing": missing},
            )
        self._weights: Mapping[CallOutcome, int] = MappingProxyType(table)
        self._retry_eligible = frozenset(
            DEFAULT_RETRY_ELIGIBLE if retry_eligible is None else retry_eligible
        )

    @property
    def weights(self) -> Mapping[CallOutcome, int]:
        return self._weights

    @property
    def retry_eligible(self) -> frozenset[CallOutcome]:
        return self._retry_eligible

    def weight(self, outcome: CallOutcome | str) -> int:
        return self._weights[parse_outcome(outcome)]

    def is_success(self, outcome: CallOutcome | str) -> bool:
        return self.weight(outcome) > 0

    def is_retry_eligible(self, outcome: CallOutcome | str) -> bool:
        return parse_outcome(outcome) in self._retry_eligible

    def actual_score(self, outcome: CallOutcome | str) -> float:
        """Realized score of an outcome on the 0-100 prediction scale.

        Weights outside [-50, 50] (appointment_booked, wrong_number) would
        leave the scale, so the result is clamped.
        """
        raw = self.weight(outcome) + ACTUAL_SCORE_OFFSET
        return float(max(0, min(100, raw)))
