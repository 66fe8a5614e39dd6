"""
Callback scheduling.
"""

from callback_engine.scheduling.models import SchedulingResult

__all__ = ["SchedulingResult"]
