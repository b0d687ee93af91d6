"""Recurring service windows during which probing is permitted."""

from .evaluator import ServiceWindowEvaluator, WindowMatch, is_within_window

__all__ = ["ServiceWindowEvaluator", "WindowMatch", "is_within_window"]
