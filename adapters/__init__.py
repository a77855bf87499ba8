"""Adapters package: stored records, in-memory stores and the email provider."""

from .email_adapter import EmailDelivery, EmailMessage, ResendEmailAdapter
from .memory_store import InMemoryResponseStore, InMemorySurveyStore
from .records import (
    SubmissionError,
    assert_valid_submission,
    dump_response,
    dump_survey,
    load_response,
    load_survey,
)

__all__ = [
    "EmailDelivery",
    "EmailMessage",
    "ResendEmailAdapter",
    "InMemoryResponseStore",
    "InMemorySurveyStore",
    "SubmissionError",
    "assert_valid_submission",
    "dump_response",
    "dump_survey",
    "load_response",
    "load_survey",
]
