"""
Conversion between stored records (camelCase dicts) and engine models.

Defaults for optional stored fields are filled here, once, by the pydantic
schemas; nothing downstream re-checks for missing keys. Loading raises
pydantic.ValidationError for records that do not fit the schema.
"""

import logging
import math
from typing import Any, Mapping

from models.schemas import Response, Survey

logger = logging.getLogger(__name__)


class SubmissionError(ValueError):
    """A response record that must not be written to the store."""


def load_survey(data: Mapping[str, Any]) -> Survey:
    """
    Build a Survey from a stored record.

    Args:
        data: Record as returned by the definition provider

    Returns:
        Validated Survey with every optional field defaulted
    """
    survey = Survey.model_validate(data)
    missing = [sid for sid in survey.section_order if sid not in survey.sections]
    if missing:
        logger.warning(f"Survey {survey.id}: section_order lists unknown sections {missing}")
    return survey


def load_response(data: Mapping[str, Any]) -> Response:
    return Response.model_validate(data)


def dump_survey(survey: Survey) -> dict:
    return survey.model_dump(by_alias=True, mode="json")


def _sanitize(value: Any) -> Any:
    # NaN and infinities have no JSON form; store them as 0
    if isinstance(value, float) and not math.isfinite(value):
        return 0
    if isinstance(value, dict):
        return {k: _sanitize(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_sanitize(v) for v in value]
    return value


def assert_valid_submission(record: Mapping[str, Any]) -> None:
    """
    Reject records missing the fields every stored response needs.

    Raises:
        SubmissionError: survey id empty, or timestamp / total not numeric
    """
    survey_id = record.get("surveyId")
    if not isinstance(survey_id, str) or not survey_id:
        raise SubmissionError("Response is missing surveyId")

    responded_at = record.get("respondedAt")
    if isinstance(responded_at, bool) or not isinstance(responded_at, (int, float)):
        raise SubmissionError("Response respondedAt must be a number")

    total = record.get("totalScore")
    if isinstance(total, bool) or not isinstance(total, (int, float)):
        raise SubmissionError("Response totalScore must be a number")


def dump_response(response: Response) -> dict:
    """
    Serialize a response for the sink.

    The store assigns ids, so a missing id is left out of the record.
    """
    record = _sanitize(response.model_dump(by_alias=True, exclude_none=False))
    if record.get("id") is None:
        record.pop("id", None)
    assert_valid_submission(record)
    return record
