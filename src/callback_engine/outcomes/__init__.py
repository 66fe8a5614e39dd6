"""
Outcome taxonomy.
"""

from callback_engine.outcomes.classifier import classify_call_summary
from callback_engine.outcomes.taxonomy import (
    DEFAULT_OUTCOME_WEIGHTS,
    DEFAULT_RETRY_ELIGIBLE,
    CallOutcome,
    OutcomeTaxonomy,
    parse_outcome,
)

__all__ = [
    "CallOutcome",
    "DEFAULT_OUTCOME_WEIGHTS",
    "DEFAULT_RETRY_ELIGIBLE",
    "OutcomeTaxonomy",
    "classify_call_summary",
    "parse_outcome",
]
