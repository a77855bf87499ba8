"""Services package: respondent sessions and result notifications."""

from .notification import ResultNotifier, build_result_email, format_score
from .respondent import RespondentSession, SurveyNotFoundError

__all__ = [
    "ResultNotifier",
    "build_result_email",
    "format_score",
    "RespondentSession",
    "SurveyNotFoundError",
]
