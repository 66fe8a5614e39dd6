"""
Contacts and segmentation.

NOTE:
This package __init__ MUST stay lightweight. Do NOT import the ORM model
here, otherwise importing the segment classifier triggers ORM mapping.
"""

from callback_engine.contacts.segments import (
    DEFAULT_SEGMENT_PROFILES,
    KeywordSegmentClassifier,
    Segment,
    SegmentClassifier,
    SegmentProfile,
)

__all__ = [
    "DEFAULT_SEGMENT_PROFILES",
    "KeywordSegmentClassifier",
    "Segment",
    "SegmentClassifier",
    "SegmentProfile",
]
