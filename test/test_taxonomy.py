"""
Tests for the outcome taxonomy and the confidence bands.
"""

import pytest

from callback_engine.history.records import Confidence, confidence_for_score
from callback_engine.outcomes.taxonomy import (
    DEFAULT_OUTCOME_WEIGHTS,
    CallOutcome,
    OutcomeTaxonomy,
    parse_outcome,
)
from callback_engine.shared.exceptions import ValidationError


class TestOutcomeTaxonomy:
    def test_default_weights(self) -> None:
        taxonomy = OutcomeTaxonomy()

        assert taxonomy.weight(CallOutcome.ANSWERED) == 100
        assert taxonomy.weight(CallOutcome.APPOINTMENT_BOOKED) == 150
        assert taxonomy.weight(CallOutcome.CALLBACK_REQUESTED) == 80
        assert taxonomy.weight(CallOutcome.VOICEMAIL) == 20
        assert taxonomy.weight(CallOutcome.BUSY) == 0
        assert taxonomy.weight(CallOutcome.NO_ANSWER) == -10
        assert taxonomy.weight(CallOutcome.NOT_INTERESTED) == -50
        assert taxonomy.weight(CallOutcome.WRONG_NUMBER) == -100

    def test_success_means_positive_weight(self) -> None:
        taxonomy = OutcomeTaxonomy()

        assert taxonomy.is_success("voicemail")
        assert taxonomy.is_success("answered")
        # Zero is not a success.
        assert not taxonomy.is_success("busy")
        assert not taxonomy.is_success("no_answer")

    def test_retry_eligible_set(self) -> None:
        taxonomy = OutcomeTaxonomy()

        eligible = {o for o in CallOutcome if taxonomy.is_retry_eligible(o)}
        assert eligible == {
            CallOutcome.NO_ANSWER,
            CallOutcome.VOICEMAIL,
            CallOutcome.BUSY,
            CallOutcome.CALLBACK_REQUESTED,
        }

    @pytest.mark.parametrize(
        ("outcome", "expected"),
        [
            (CallOutcome.VOICEMAIL, 70.0),
            (CallOutcome.BUSY, 50.0),
            (CallOutcome.NO_ANSWER, 40.0),
            (CallOutcome.NOT_INTERESTED, 0.0),
            # Weights outside [-50, 50] are clamped onto the scale.
            (CallOutcome.ANSWERED, 100.0),
            (CallOutcome.APPOINTMENT_BOOKED, 100.0),
            (CallOutcome.WRONG_NUMBER, 0.0),
        ],
    )
    def test_actual_score(self, outcome: CallOutcome, expected: float) -> None:
        assert OutcomeTaxonomy().actual_score(outcome) == expected

    def test_custom_weights_and_retry_set(self) -> None:
        weights = dict(DEFAULT_OUTCOME_WEIGHTS)
        weights[CallOutcome.BUSY] = 5
        taxonomy = OutcomeTaxonomy(weights, retry_eligible=[CallOutcome.BUSY])

        assert taxonomy.is_success(CallOutcome.BUSY)
        assert taxonomy.is_retry_eligible(CallOutcome.BUSY)
        assert not taxonomy.is_retry_eligible(CallOutcome.NO_ANSWER)

    def test_incomplete_weight_table_rejected(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            OutcomeTaxonomy({CallOutcome.ANSWERED: 100})

        assert "wrong_number" in exc_info.value.details["missing"]

    def test_weights_are_read_only(self) -> None:
        taxonomy = OutcomeTaxonomy()
        with pytest.raises(TypeError):
            taxonomy.weights[CallOutcome.BUSY] = 10  # type: ignore[index]


class TestParseOutcome:
    def test_accepts_enum_and_strings(self) -> None:
        assert parse_outcome(CallOutcome.BUSY) is CallOutcome.BUSY
        assert parse_outcome("no_answer") is CallOutcome.NO_ANSWER
        assert parse_outcome("  Voicemail ") is CallOutcome.VOICEMAIL

    def test_unknown_outcome(self) -> None:
        with pytest.raises(ValidationError):
            parse_outcome("hung_up")


class TestConfidenceBands:
    @pytest.mark.parametrize(
        ("score", "expected"),
        [
            (100.0, Confidence.HIGH),
            (80.0, Confidence.HIGH),
            (79.0, Confidence.MEDIUM),
            (79.99, Confidence.MEDIUM),
            (60.0, Confidence.MEDIUM),
            (59.5, Confidence.LOW),
            (40.0, Confidence.LOW),
            (39.0, Confidence.VERY_LOW),
            (0.0, Confidence.VERY_LOW),
        ],
    )
    def test_thresholds(self, score: float, expected: Confidence) -> None:
        assert confidence_for_score(score) is expected
