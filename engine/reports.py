"""
Author-side response review.

Filtering, per-response summaries and aggregate statistics over a survey's
responses, plus the numbering prefixes used when rendering a survey.
"""

from dataclasses import dataclass, field
from string import ascii_lowercase
from typing import Dict, List, Optional, Sequence

from models.enums import IndexFormat
from models.schemas import Response, ResponseFilters, ScoreRange
from utils.rounding import round_half_up
from .ranges import first_matching_range
from .scoring import is_finite_number


@dataclass
class ResponseStats:
    """
    Aggregate statistics for a set of responses.

    Attributes:
        count: Number of responses
        mean_score: Mean total score, rounded half-up to 2 decimals (None when empty)
        min_score: Lowest total score (None when empty)
        max_score: Highest total score (None when empty)
        range_counts: Responses per first-matching range id; None collects
            responses no range covers
    """
    count: int = 0
    mean_score: Optional[float] = None
    min_score: Optional[float] = None
    max_score: Optional[float] = None
    range_counts: Dict[Optional[str], int] = field(default_factory=dict)


def filter_responses(responses: Sequence[Response], filters: ResponseFilters) -> List[Response]:
    """
    Apply author filters and sort newest first.

    Score and date bounds are inclusive; the search query matches any
    identification value, case-insensitively.
    """
    result = list(responses)

    if filters.score_min is not None:
        result = [r for r in result if r.total_score >= filters.score_min]
    if filters.score_max is not None:
        result = [r for r in result if r.total_score <= filters.score_max]
    if filters.date_from is not None:
        result = [r for r in result if r.responded_at >= filters.date_from]
    if filters.date_to is not None:
        result = [r for r in result if r.responded_at <= filters.date_to]
    if filters.search_query:
        query = filters.search_query.lower()
        result = [
            r for r in result
            if any(query in value.lower() for value in r.identification.values())
        ]

    return sorted(result, key=lambda r: r.responded_at, reverse=True)


def build_response_summary(response: Response) -> dict:
    """Headline numbers for one response."""
    return {
        "total_score": response.total_score,
        "answer_count": len(response.answers),
    }


def summarize_responses(responses: Sequence[Response], ranges: Sequence[ScoreRange]) -> ResponseStats:
    """
    Aggregate total scores across responses.

    Range buckets use the same first-match rule as the end-of-survey result,
    so each response lands in exactly one bucket.
    """
    scores = [r.total_score for r in responses if is_finite_number(r.total_score)]
    stats = ResponseStats(count=len(responses))
    if scores:
        stats.mean_score = round_half_up(sum(scores) / len(scores), 2)
        stats.min_score = min(scores)
        stats.max_score = max(scores)

    for response in responses:
        matched = first_matching_range(response.total_score, ranges)
        key = matched.id if matched is not None else None
        stats.range_counts[key] = stats.range_counts.get(key, 0) + 1

    return stats


def index_label(index: int, fmt: IndexFormat) -> str:
    """
    Numbering prefix for a 0-based index.

    Examples:
        >>> index_label(0, IndexFormat.NUMERIC)
        '1.'
        >>> index_label(27, IndexFormat.ALPHA)
        'b.'
    """
    if fmt == IndexFormat.NUMERIC:
        return f"{index + 1}."
    if fmt == IndexFormat.ALPHA:
        return f"{ascii_lowercase[index % 26]}."
    return ""
