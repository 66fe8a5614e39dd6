"""
Predictive callback scheduling engine.

Decides when to retry contacting a lead that was not reached, records the
outcome of every contact attempt and reconciles past predictions against
what actually happened.
"""

__version__ = "0.1.0"
