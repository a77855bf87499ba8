"""
Section flow controller.

SurveyFlow is the per-respondent state machine that walks a survey:

    identification -> in-section -> [section-result] -> in-section ... -> submitting -> done

identification is only entered when the survey defines identification
fields; section-result only after a section with its own result ranges.
One SurveyFlow belongs to one respondent session and is never shared, so it
holds plain mutable state. Abandoning a survey is simply dropping the object.
"""

import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional, Tuple

from models.enums import FlowState
from models.schemas import Answer, AnswerValue, Response, ScoreRange, Survey
from .branching import resolve_branch_target
from .ranges import all_matching_ranges
from .scoring import build_answer, section_score, total_score
from .validation import validate_identification, validate_section

logger = logging.getLogger(__name__)


class FlowError(RuntimeError):
    """Raised when a caller drives the flow through a transition it does not allow."""


@dataclass
class SectionResult:
    """
    What the respondent sees after leaving a section that has result ranges.

    Attributes:
        section_id: Section just completed
        section_score: Points earned in that section alone (not cumulative)
        ranges: Every range of the section containing section_score
        show_score: Whether the score itself should be displayed
        next_section_id: Where the flow goes on dismissal; None means submit
    """
    section_id: str
    section_score: float
    ranges: List[ScoreRange]
    show_score: bool
    next_section_id: Optional[str]


@dataclass
class FlowStep:
    """Outcome of one respondent action."""
    state: FlowState
    section_id: Optional[str] = None
    errors: Dict[str, str] = field(default_factory=dict)
    section_result: Optional[SectionResult] = None

    @property
    def first_error(self) -> Optional[str]:
        """Question (or field) id the caller should focus."""
        return next(iter(self.errors), None)


@dataclass
class _Visit:
    section_id: str
    score_before: float


class SurveyFlow:
    """
    Traversal state for one respondent.

    Answers are kept for every section visited, including sections later
    skipped by backing out; the full set is submitted.

    Args:
        survey: Survey definition, read-only for the session
    """

    def __init__(self, survey: Survey):
        self.survey = survey
        self._order = [sid for sid in survey.section_order if sid in survey.sections]
        self._answers: Dict[str, Answer] = {}
        self._errors: Dict[str, str] = {}
        self._identification: Dict[str, str] = {}
        self._history: List[_Visit] = []
        self._running_score = 0.0
        self._pending: Optional[SectionResult] = None
        self._current: Optional[str] = None

        if survey.identification_fields:
            self._state = FlowState.IDENTIFICATION
        else:
            self._enter_first_section()

    # ---- read-only views ----

    @property
    def state(self) -> FlowState:
        return self._state

    @property
    def current_section_id(self) -> Optional[str]:
        return self._current

    @property
    def running_score(self) -> float:
        return self._running_score

    @property
    def answers(self) -> Mapping[str, Answer]:
        return MappingProxyType(self._answers)

    @property
    def errors(self) -> Dict[str, str]:
        return dict(self._errors)

    @property
    def identification(self) -> Dict[str, str]:
        return dict(self._identification)

    @property
    def pending_result(self) -> Optional[SectionResult]:
        return self._pending

    @property
    def can_go_back(self) -> bool:
        return self._state in (FlowState.IN_SECTION, FlowState.SECTION_RESULT) and bool(self._history)

    @property
    def progress(self) -> Tuple[int, int]:
        """(1-based position of the current section, number of sections)."""
        total = len(self._order)
        if self._current is None or self._current not in self._order:
            return 0, total
        return self._order.index(self._current) + 1, total

    # ---- transitions ----

    def identify(self, values: Mapping[str, str]) -> FlowStep:
        """
        Submit identification values keyed by field id.

        Valid values are stored under each field's storage key (empty values
        are dropped) and the first section is entered.
        """
        self._require(FlowState.IDENTIFICATION)
        fields = self.survey.identification_fields
        errors = validate_identification(fields, values)
        if errors:
            self._errors = errors
            return self._step()

        self._errors = {}
        self._identification = {
            f.storage_key: values[f.id].strip()
            for f in fields
            if (values.get(f.id) or "").strip()
        }
        self._enter_first_section()
        return self._step()

    def set_answer(self, question_id: str, value: AnswerValue) -> Optional[Answer]:
        """
        Record (or overwrite) an answer and compute its score.

        Unknown question ids are ignored. Any pending error for the question
        is cleared as soon as it is answered.
        """
        self._require(FlowState.IN_SECTION)
        question = self.survey.questions.get(question_id)
        if question is None:
            return None
        answer = build_answer(question, value)
        self._answers[question_id] = answer
        self._errors.pop(question_id, None)
        return answer

    def clear_answer(self, question_id: str) -> None:
        self._require(FlowState.IN_SECTION)
        self._answers.pop(question_id, None)

    def validate_current_section(self) -> Dict[str, str]:
        self._require(FlowState.IN_SECTION)
        section = self.survey.sections[self._current]
        return validate_section(section, self.survey.questions, self._answers)

    def next(self) -> FlowStep:
        """
        Leave the current section.

        On validation failure nothing moves and every error is reported.
        Otherwise the section's score joins the running total, the branch
        resolver is asked for a target (sequential next section when none
        fires, or when a rule points back at this same section), and the flow
        either pauses on the section result, enters the target, or moves to
        submitting when the target is past the end or not in the survey.
        """
        self._require(FlowState.IN_SECTION)
        section = self.survey.sections[self._current]

        errors = validate_section(section, self.survey.questions, self._answers)
        if errors:
            self._errors = errors
            return self._step()
        self._errors = {}

        delta = section_score(section, self._answers)
        self._history.append(_Visit(section_id=section.id, score_before=self._running_score))
        self._running_score += delta

        next_id = self._resolve_next(section.id)

        if section.has_result:
            result_config = section.result_config
            self._pending = SectionResult(
                section_id=section.id,
                section_score=delta,
                ranges=all_matching_ranges(delta, result_config.ranges),
                show_score=result_config.show_score,
                next_section_id=next_id,
            )
            self._state = FlowState.SECTION_RESULT
            logger.debug(f"Showing result for section {section.id} (score {delta})")
            return self._step()

        return self._go_to(next_id)

    def dismiss_result(self) -> FlowStep:
        """Close the section result screen and apply the deferred move."""
        self._require(FlowState.SECTION_RESULT)
        pending = self._pending
        self._pending = None
        return self._go_to(pending.next_section_id)

    def back(self) -> FlowStep:
        """
        Step back one section along the visited path.

        The running score returns to what it was before the section being
        re-entered. From a section result this re-opens the section just
        completed.
        """
        if self._state not in (FlowState.IN_SECTION, FlowState.SECTION_RESULT):
            raise FlowError(f"Cannot go back while {self._state.value}")
        if not self._history:
            raise FlowError("No previous section to go back to")
        self._rewind()
        return self._step()

    def build_response(self, now: int, response_id: Optional[str] = None) -> Response:
        """
        Assemble the Response record for the sink.

        The total is recomputed from the answers and the survey's questions,
        so the stored total can be reproduced later from the stored answers.
        """
        self._require(FlowState.SUBMITTING)
        return Response(
            id=response_id,
            survey_id=self.survey.id,
            responded_at=now,
            identification=dict(self._identification),
            answers=dict(self._answers),
            total_score=total_score(self._answers, self.survey.questions),
            email_sent=False,
        )

    def mark_submitted(self) -> FlowStep:
        self._require(FlowState.SUBMITTING)
        self._state = FlowState.DONE
        return self._step()

    def submission_failed(self) -> FlowStep:
        """Return to the last section so the respondent can submit again."""
        self._require(FlowState.SUBMITTING)
        if self._history:
            self._rewind()
        return self._step()

    # ---- internals ----

    def _require(self, state: FlowState) -> None:
        if self._state != state:
            raise FlowError(f"Expected state {state.value}, flow is {self._state.value}")

    def _step(self) -> FlowStep:
        return FlowStep(
            state=self._state,
            section_id=self._current,
            errors=dict(self._errors),
            section_result=self._pending,
        )

    def _enter_first_section(self) -> None:
        if self._order:
            self._current = self._order[0]
            self._state = FlowState.IN_SECTION
        else:
            self._state = FlowState.SUBMITTING

    def _resolve_next(self, section_id: str) -> Optional[str]:
        target = resolve_branch_target(
            section_id, self.survey.sections, self._answers, self._running_score
        )
        if target == section_id:
            logger.warning(f"Section {section_id} branches to itself; advancing sequentially")
            target = None

        if target is None:
            index = self._order.index(section_id) + 1
            return self._order[index] if index < len(self._order) else None

        if target not in self._order:
            return None
        return target

    def _go_to(self, section_id: Optional[str]) -> FlowStep:
        if section_id is None:
            self._state = FlowState.SUBMITTING
            logger.debug(f"Survey {self.survey.id} complete, submitting")
        else:
            self._current = section_id
            self._state = FlowState.IN_SECTION
        return self._step()

    def _rewind(self) -> None:
        visit = self._history.pop()
        self._pending = None
        self._errors = {}
        self._current = visit.section_id
        self._running_score = visit.score_before
        self._state = FlowState.IN_SECTION
