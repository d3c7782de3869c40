from __future__ import annotations

from .aggregator import CoachingAggregator, CoachReminder
from .messages import advice_for, title_for

__all__ = ["CoachingAggregator", "CoachReminder", "advice_for", "title_for"]
