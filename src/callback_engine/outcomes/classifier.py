"""
Keyword classification of a voice provider's end-of-call summary.

Voice providers report a free-text summary rather than one of our outcome
kinds. The rules below run in order; the first match wins.
"""

from __future__ import annotations

from callback_engine.outcomes.taxonomy import CallOutcome

_BOOKED_CUES = ("appointment", "scheduled", "booked")
_DECLINED_CUES = ("not interested", "no thank you")


def classify_call_summary(summary: str | None) -> CallOutcome:
    """Map an end-of-call summary to a CallOutcome.

    An empty summary means nobody talked to the agent. Any other
    conversation ("call me back later" included) that is neither a booking
    nor a refusal is a callback request.
    """
    if not summary or not summary.strip():
        return CallOutcome.NO_ANSWER

    text = summary.lower()
    if any(cue in text for cue in _BOOKED_CUES):
        return CallOutcome.APPOINTMENT_BOOKED
    if any(cue in text for cue in _DECLINED_CUES):
        return CallOutcome.NOT_INTERESTED
    return CallOutcome.CALLBACK_REQUESTED
