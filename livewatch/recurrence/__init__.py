"""Weekly recurrence arithmetic."""

from .calculator import WEEK, next_occurrence, previous_occurrence, surrounding_occurrences

__all__ = [
    "WEEK",
    "next_occurrence",
    "previous_occurrence",
    "surrounding_occurrences",
]
