"""
Tests for segment classification and profiles.
"""

from uuid import uuid4

import pytest

from callback_engine.contacts.segments import (
    DEFAULT_SEGMENT_PROFILES,
    KeywordSegmentClassifier,
    Segment,
    SegmentProfile,
)
from callback_engine.history.records import ContactRecord
from callback_engine.shared.exceptions import ValidationError


def _contact(**custom_fields) -> ContactRecord:
    return ContactRecord(id=uuid4(), phone_number="+15555550100", custom_fields=custom_fields)


class TestKeywordSegmentClassifier:
    @pytest.fixture
    def classifier(self) -> KeywordSegmentClassifier:
        return KeywordSegmentClassifier()

    def test_absent_contact_is_default(self, classifier: KeywordSegmentClassifier) -> None:
        assert classifier.classify(None) is Segment.DEFAULT

    def test_no_classification_fields_is_default(
        self, classifier: KeywordSegmentClassifier
    ) -> None:
        assert classifier.classify(_contact()) is Segment.DEFAULT
        assert classifier.classify(_contact(project_type="", project_notes=None)) is Segment.DEFAULT

    @pytest.mark.parametrize(
        ("fields", "expected"),
        [
            ({"project_type": "Commercial fit-out"}, Segment.BUSINESS),
            ({"project_notes": "small business office"}, Segment.BUSINESS),
            ({"project_type": "General CONTRACTOR"}, Segment.TRADESPERSON),
            ({"project_notes": "home builder, 3 crews"}, Segment.TRADESPERSON),
            ({"project_type": "kitchen remodel"}, Segment.RESIDENTIAL),
        ],
    )
    def test_keyword_cues(
        self,
        classifier: KeywordSegmentClassifier,
        fields: dict,
        expected: Segment,
    ) -> None:
        assert classifier.classify(_contact(**fields)) is expected

    def test_business_cue_wins_over_trade_cue(
        self, classifier: KeywordSegmentClassifier
    ) -> None:
        contact = _contact(project_type="commercial", project_notes="contractor referral")
        assert classifier.classify(contact) is Segment.BUSINESS

    def test_custom_cues(self) -> None:
        classifier = KeywordSegmentClassifier(business_cues=("office",), trade_cues=("plumber",))

        assert classifier.classify(_contact(project_type="office move")) is Segment.BUSINESS
        assert classifier.classify(_contact(project_type="plumber")) is Segment.TRADESPERSON
        assert classifier.classify(_contact(project_type="commercial")) is Segment.RESIDENTIAL


class TestSegmentProfile:
    def test_default_profiles(self) -> None:
        residential = DEFAULT_SEGMENT_PROFILES[Segment.RESIDENTIAL]
        business = DEFAULT_SEGMENT_PROFILES[Segment.BUSINESS]
        trades = DEFAULT_SEGMENT_PROFILES[Segment.TRADESPERSON]

        assert residential.weekend_multiplier > 1.0
        assert business.weekend_multiplier < 1.0
        assert trades.weekend_multiplier < 1.0
        assert 12 in residential.avoided_hours
        assert {8, 9, 17, 18} == business.preferred_hours
        assert set(DEFAULT_SEGMENT_PROFILES) == set(Segment)

    def test_from_mapping(self) -> None:
        profile = SegmentProfile.from_mapping(
            {"preferred_hours": [9, "10"], "avoided_hours": [12], "weekend_multiplier": "0.5"}
        )

        assert profile.preferred_hours == frozenset({9, 10})
        assert profile.avoided_hours == frozenset({12})
        assert profile.weekend_multiplier == 0.5

    def test_hour_out_of_range(self) -> None:
        with pytest.raises(ValidationError):
            SegmentProfile(frozenset({24}), frozenset(), 1.0)

    def test_negative_weekend_multiplier(self) -> None:
        with pytest.raises(ValidationError):
            SegmentProfile(frozenset(), frozenset(), -0.1)
