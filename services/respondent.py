"""
Respondent session: one person taking one survey.

Glues the engine to the outside world. The survey is fetched once from the
definition provider, gated on availability, then driven through SurveyFlow;
on submit the response is written once to the sink.
"""

import logging
from typing import Any, Awaitable, Mapping, Optional, Protocol

from adapters.records import dump_response, load_survey
from engine.availability import check_availability
from engine.flow import FlowError, SurveyFlow
from models.schemas import Availability, Response, Survey

logger = logging.getLogger(__name__)


class SurveyProvider(Protocol):
    def get_survey(self, survey_id: str) -> Awaitable[Optional[Mapping[str, Any]]]: ...


class ResponseSink(Protocol):
    def save_response(self, record: Mapping[str, Any]) -> Awaitable[str]: ...


class SurveyNotFoundError(LookupError):
    """The provider has no survey with the requested id."""


class RespondentSession:
    """
    One respondent's pass through a survey.

    Build with RespondentSession.open(); the flow exists only when the
    survey is open at that moment.
    """

    def __init__(self, survey: Survey, availability: Availability):
        self.survey = survey
        self.availability = availability
        self.flow: Optional[SurveyFlow] = SurveyFlow(survey) if availability.open else None
        self.response: Optional[Response] = None

    @classmethod
    async def open(cls, provider: SurveyProvider, survey_id: str, now: int) -> "RespondentSession":
        """
        Fetch a survey and check it is accepting responses.

        Args:
            provider: Survey definition provider
            survey_id: Survey to take
            now: Current time in Unix milliseconds

        Raises:
            SurveyNotFoundError: The provider returned nothing
        """
        record = await provider.get_survey(survey_id)
        if record is None:
            raise SurveyNotFoundError(f"Survey {survey_id} not found")

        survey = load_survey(record)
        availability = check_availability(survey.status, survey.schedule, now)
        if not availability.open:
            logger.info(f"Survey {survey_id} closed: {availability.reason.value}")
        return cls(survey, availability)

    def _require_flow(self) -> SurveyFlow:
        if self.flow is None:
            raise FlowError(f"Survey {self.survey.id} is not open")
        return self.flow

    async def submit(self, sink: ResponseSink, now: int) -> Response:
        """
        Store the response and finish the flow.

        The sink is called exactly once. If it fails the flow goes back to
        the last section and the error is re-raised so the caller can offer
        a retry.
        """
        flow = self._require_flow()
        response = flow.build_response(now)

        try:
            response_id = await sink.save_response(dump_response(response))
        except Exception:
            logger.exception(f"Saving response for survey {self.survey.id} failed")
            flow.submission_failed()
            raise

        self.response = response.model_copy(update={"id": response_id})
        flow.mark_submitted()
        logger.info(f"Response {response_id} submitted for survey {self.survey.id}")
        return self.response
