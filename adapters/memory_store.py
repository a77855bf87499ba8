"""
In-memory survey provider and response sink.

Both stores speak plain camelCase records, like a document database would.
They back the tests and local runs; production code plugs in any object with
the same async methods.
"""

import copy
import logging
import uuid
from typing import Any, Dict, List, Mapping, Optional

from models.schemas import Response, ResponseFilters
from engine.reports import filter_responses
from .records import load_response

logger = logging.getLogger(__name__)


class InMemorySurveyStore:
    """Survey definition provider keyed by survey id."""

    def __init__(self, records: Optional[Mapping[str, Mapping[str, Any]]] = None):
        self._records: Dict[str, dict] = {k: copy.deepcopy(dict(v)) for k, v in (records or {}).items()}

    def put(self, record: Mapping[str, Any]) -> None:
        self._records[record["id"]] = copy.deepcopy(dict(record))

    async def get_survey(self, survey_id: str) -> Optional[dict]:
        record = self._records.get(survey_id)
        return copy.deepcopy(record) if record is not None else None


class InMemoryResponseStore:
    """Response sink that assigns ids on save."""

    def __init__(self):
        self._records: Dict[str, dict] = {}

    async def save_response(self, record: Mapping[str, Any]) -> str:
        response_id = uuid.uuid4().hex
        stored = copy.deepcopy(dict(record))
        stored["id"] = response_id
        self._records[response_id] = stored
        logger.info(f"Stored response {response_id} for survey {stored.get('surveyId')}")
        return response_id

    async def mark_email_sent(self, response_id: str) -> None:
        if response_id in self._records:
            self._records[response_id]["emailSent"] = True

    async def get_response(self, response_id: str) -> Optional[Response]:
        record = self._records.get(response_id)
        return load_response(record) if record is not None else None

    async def list_responses(
        self,
        survey_id: str,
        filters: Optional[ResponseFilters] = None,
    ) -> List[Response]:
        """Responses for one survey, filtered and newest first."""
        responses = [
            load_response(r) for r in self._records.values() if r.get("surveyId") == survey_id
        ]
        return filter_responses(responses, filters or ResponseFilters())

    def __len__(self) -> int:
        return len(self._records)
