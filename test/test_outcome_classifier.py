import pytest

from callback_engine.outcomes.classifier import classify_call_summary
from callback_engine.outcomes.taxonomy import CallOutcome


@pytest.mark.parametrize(
    ("summary", "expected"),
    [
        (None, CallOutcome.NO_ANSWER),
        ("", CallOutcome.NO_ANSWER),
        ("   ", CallOutcome.NO_ANSWER),
        ("Customer booked a site visit", CallOutcome.APPOINTMENT_BOOKED),
        ("Appointment set for Tuesday 10am", CallOutcome.APPOINTMENT_BOOKED),
        ("Estimate SCHEDULED next week", CallOutcome.APPOINTMENT_BOOKED),
        ("Lead said they are not interested", CallOutcome.NOT_INTERESTED),
        ("No thank you, please remove me", CallOutcome.NOT_INTERESTED),
        ("Asked us to call back later this week", CallOutcome.CALLBACK_REQUESTED),
        ("Talked about pricing", CallOutcome.CALLBACK_REQUESTED),
    ],
)
def test_classify_call_summary(summary, expected) -> None:
    assert classify_call_summary(summary) is expected


def test_booking_cue_checked_before_refusal() -> None:
    summary = "Not interested in the upgrade but booked the repair"
    assert classify_call_summary(summary) is CallOutcome.APPOINTMENT_BOOKED
