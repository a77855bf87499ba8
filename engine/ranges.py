"""
Score range matching.

Ranges are inclusive [min, max] windows checked in definition order. They
may overlap, so two lookups exist: the first containing range (used for
the end-of-survey result and the result email) and every containing range
(used for per-section results).
"""

from typing import List, Optional, Sequence

from models.schemas import ScoreRange
from .scoring import is_finite_number


def range_contains(score_range: ScoreRange, score: float) -> bool:
    """Inclusive containment; a non-finite score or a reversed range never matches."""
    if not is_finite_number(score):
        return False
    return score_range.min <= score <= score_range.max


def first_matching_range(score: float, ranges: Sequence[ScoreRange]) -> Optional[ScoreRange]:
    """
    Return the first range that contains the score.

    Args:
        score: Score to look up
        ranges: Ranges in definition order

    Returns:
        The first containing range, or None when nothing is configured for the score
    """
    for score_range in ranges:
        if range_contains(score_range, score):
            return score_range
    return None


def all_matching_ranges(score: float, ranges: Sequence[ScoreRange]) -> List[ScoreRange]:
    """Return every range that contains the score, preserving definition order."""
    return [r for r in ranges if range_contains(r, score)]
