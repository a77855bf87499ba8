"""Survey scoring and branching engine. Pure, synchronous, side-effect free."""

from .availability import check_availability
from .branching import resolve_branch_target, rule_fires
from .flow import FlowError, FlowStep, SectionResult, SurveyFlow
from .ranges import all_matching_ranges, first_matching_range
from .reports import (
    ResponseStats,
    build_response_summary,
    filter_responses,
    index_label,
    summarize_responses,
)
from .scoring import (
    build_answer,
    max_possible_score,
    score_answer,
    section_score,
    total_score,
)
from .validation import lint_survey, validate_identification, validate_section

__all__ = [
    "check_availability",
    "resolve_branch_target",
    "rule_fires",
    "FlowError",
    "FlowStep",
    "SectionResult",
    "SurveyFlow",
    "all_matching_ranges",
    "first_matching_range",
    "ResponseStats",
    "build_response_summary",
    "filter_responses",
    "index_label",
    "summarize_responses",
    "build_answer",
    "max_possible_score",
    "score_answer",
    "section_score",
    "total_score",
    "lint_survey",
    "validate_identification",
    "validate_section",
]
