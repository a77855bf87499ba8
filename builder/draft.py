"""
Survey draft editing.

SurveyDraft owns one survey while an author edits it. Every edit is a named
operation that checks its arguments, builds a new frozen Survey snapshot,
stores it as draft.survey and returns it. There is deliberately no generic
"patch these fields" entry point: each operation keeps the structural
invariants intact:

- section_order lists exactly the keys of sections
- every question belongs to exactly one section's question_order
- status moves only draft -> published <-> locked
- options, selection bounds and scale settings of a question cannot change
  once the survey has left draft (responses already scored against them
  must stay reproducible)
"""

import logging
import uuid
from typing import Callable, Dict, List, Optional, Sequence

from models.enums import (
    QuestionType,
    ScoreOperator,
    SelectionMode,
    STATUS_TRANSITIONS,
    SurveyStatus,
    TextSize,
)
from models.schemas import (
    AnswerBranchRule,
    ChoiceConfig,
    ChoiceQuestion,
    EmailConfig,
    FormatConfig,
    IdentificationField,
    Question,
    QuestionOption,
    ResultConfig,
    ScaleConfig,
    ScaleQuestion,
    Schedule,
    ScoreBranchRule,
    ScoreRange,
    Section,
    Survey,
    TextConfig,
    TextQuestion,
)

logger = logging.getLogger(__name__)

IdFactory = Callable[[], str]


class DraftError(ValueError):
    """An edit that would break a survey invariant."""


def new_id() -> str:
    return uuid.uuid4().hex


def new_survey(
    author_id: str,
    now: int,
    title: str = "",
    survey_id: Optional[str] = None,
    id_factory: IdFactory = new_id,
) -> Survey:
    """A blank draft survey with no sections."""
    return Survey(
        id=survey_id or id_factory(),
        author_id=author_id,
        title=title,
        status=SurveyStatus.DRAFT,
        created_at=now,
        updated_at=now,
    )


def _is_permutation(new_order: Sequence[str], current: Sequence[str]) -> bool:
    return len(new_order) == len(current) and sorted(new_order) == sorted(current)


class SurveyDraft:
    """
    In-memory editing session for one survey.

    Args:
        survey: Snapshot to start from
        id_factory: Generator for new section/question/option/rule/range ids
    """

    def __init__(self, survey: Survey, id_factory: Optional[IdFactory] = None):
        self.survey = survey
        self.is_dirty = False
        self._new_id = id_factory or new_id

    # ---- plumbing ----

    def _commit(self, **update) -> Survey:
        self.survey = self.survey.model_copy(update=update)
        self.is_dirty = True
        return self.survey

    def _section(self, section_id: str) -> Section:
        section = self.survey.sections.get(section_id)
        if section is None:
            raise DraftError(f"Unknown section {section_id}")
        return section

    def _question(self, question_id: str) -> Question:
        question = self.survey.questions.get(question_id)
        if question is None:
            raise DraftError(f"Unknown question {question_id}")
        return question

    def _choice(self, question_id: str) -> ChoiceQuestion:
        question = self._question(question_id)
        if not isinstance(question, ChoiceQuestion):
            raise DraftError(f"Question {question_id} is not a choice question")
        return question

    def _require_draft(self, action: str) -> None:
        if self.survey.status != SurveyStatus.DRAFT:
            raise DraftError(f"Cannot {action} after the survey is published")

    def _with_section(self, section: Section) -> Dict[str, Section]:
        return {**self.survey.sections, section.id: section}

    def _with_question(self, question: Question) -> Dict[str, Question]:
        return {**self.survey.questions, question.id: question}

    def _drop_rules(self, keep: Callable[[object], bool]) -> Dict[str, Section]:
        sections = {}
        for sid, section in self.survey.sections.items():
            rules = [r for r in section.branch_rules if keep(r)]
            if len(rules) != len(section.branch_rules):
                section = section.model_copy(update={"branch_rules": rules})
            sections[sid] = section
        return sections

    def mark_saved(self) -> None:
        self.is_dirty = False

    # ---- survey details ----

    def update_details(self, title: Optional[str] = None, description: Optional[str] = None) -> Survey:
        update = {}
        if title is not None:
            update["title"] = title
        if description is not None:
            update["description"] = description
        return self._commit(**update)

    def set_schedule(self, open_at: Optional[int], close_at: Optional[int]) -> Survey:
        """Set the open/close window. Its ordering is checked on publish."""
        return self._commit(schedule=Schedule(open_at=open_at, close_at=close_at))

    def set_email_config(self, email_config: EmailConfig) -> Survey:
        return self._commit(email_config=email_config)

    def set_format_config(self, format_config: FormatConfig) -> Survey:
        return self._commit(format_config=format_config)

    def set_identification_fields(self, fields: Sequence[IdentificationField]) -> Survey:
        ids = [f.id for f in fields]
        if len(set(ids)) != len(ids):
            raise DraftError("Identification field ids must be unique")
        return self._commit(identification_fields=list(fields))

    # ---- survey result ranges ----

    def set_show_score(self, show_score: bool) -> Survey:
        config = self.survey.result_config.model_copy(update={"show_score": show_score})
        return self._commit(result_config=config)

    def add_score_range(
        self,
        min_score: float,
        max_score: float,
        message: str = "",
        image_url: Optional[str] = None,
    ) -> Survey:
        """Append a survey-level result range. Overlaps are allowed."""
        new_range = ScoreRange(
            id=self._new_id(), min=min_score, max=max_score, message=message, image_url=image_url
        )
        config = self.survey.result_config
        config = config.model_copy(update={"ranges": [*config.ranges, new_range]})
        return self._commit(result_config=config)

    def update_score_range(
        self,
        range_id: str,
        min_score: Optional[float] = None,
        max_score: Optional[float] = None,
        message: Optional[str] = None,
        image_url: Optional[str] = None,
    ) -> Survey:
        config = self.survey.result_config
        ranges = []
        found = False
        for score_range in config.ranges:
            if score_range.id == range_id:
                found = True
                update = {}
                if min_score is not None:
                    update["min"] = min_score
                if max_score is not None:
                    update["max"] = max_score
                if message is not None:
                    update["message"] = message
                if image_url is not None:
                    update["image_url"] = image_url
                score_range = score_range.model_copy(update=update)
            ranges.append(score_range)
        if not found:
            raise DraftError(f"Unknown score range {range_id}")
        return self._commit(result_config=config.model_copy(update={"ranges": ranges}))

    def remove_score_range(self, range_id: str) -> Survey:
        config = self.survey.result_config
        ranges = [r for r in config.ranges if r.id != range_id]
        if len(ranges) == len(config.ranges):
            raise DraftError(f"Unknown score range {range_id}")
        return self._commit(result_config=config.model_copy(update={"ranges": ranges}))

    # ---- sections ----

    def add_section(self, title: str = "New Section") -> Survey:
        section = Section(id=self._new_id(), title=title)
        return self._commit(
            sections=self._with_section(section),
            section_order=[*self.survey.section_order, section.id],
        )

    def update_section(
        self,
        section_id: str,
        title: Optional[str] = None,
        description: Optional[str] = None,
    ) -> Survey:
        section = self._section(section_id)
        update = {}
        if title is not None:
            update["title"] = title
        if description is not None:
            update["description"] = description
        return self._commit(sections=self._with_section(section.model_copy(update=update)))

    def set_section_result_config(self, section_id: str, result_config: Optional[ResultConfig]) -> Survey:
        """Attach (or with None, remove) the result shown after leaving a section."""
        section = self._section(section_id)
        section = section.model_copy(update={"result_config": result_config})
        return self._commit(sections=self._with_section(section))

    def delete_section(self, section_id: str) -> Survey:
        """Delete a section, its questions, and every rule jumping to it."""
        self._require_draft("delete a section")
        section = self._section(section_id)
        removed = set(section.question_order)

        sections = self._drop_rules(
            lambda r: r.target_section_id != section_id
            and not (isinstance(r, AnswerBranchRule) and r.question_id in removed)
        )
        del sections[section_id]
        questions = {qid: q for qid, q in self.survey.questions.items() if qid not in removed}
        return self._commit(
            sections=sections,
            questions=questions,
            section_order=[sid for sid in self.survey.section_order if sid != section_id],
        )

    def reorder_sections(self, new_order: Sequence[str]) -> Survey:
        if not _is_permutation(new_order, self.survey.section_order):
            raise DraftError("New section order must contain exactly the existing sections")
        return self._commit(section_order=list(new_order))

    # ---- branch rules ----

    def _check_target(self, section_id: str, target_section_id: str) -> None:
        if target_section_id == section_id:
            raise DraftError("A section cannot branch to itself")
        self._section(target_section_id)

    def _append_rule(self, section: Section, rule) -> Survey:
        section = section.model_copy(update={"branch_rules": [*section.branch_rules, rule]})
        return self._commit(sections=self._with_section(section))

    def add_answer_rule(
        self,
        section_id: str,
        question_id: str,
        option_id: str,
        target_section_id: str,
    ) -> Survey:
        """Jump to target when option_id is picked on a choice question of this section."""
        section = self._section(section_id)
        self._check_target(section_id, target_section_id)
        if question_id not in section.question_order:
            raise DraftError(f"Question {question_id} is not in section {section_id}")
        if self._choice(question_id).find_option(option_id) is None:
            raise DraftError(f"Unknown option {option_id}")
        rule = AnswerBranchRule(
            id=self._new_id(),
            question_id=question_id,
            option_id=option_id,
            target_section_id=target_section_id,
        )
        return self._append_rule(section, rule)

    def add_score_rule(
        self,
        section_id: str,
        threshold: float,
        operator: ScoreOperator,
        target_section_id: str,
    ) -> Survey:
        """Jump to target when the running score compares true against threshold."""
        section = self._section(section_id)
        self._check_target(section_id, target_section_id)
        rule = ScoreBranchRule(
            id=self._new_id(),
            threshold=threshold,
            operator=operator,
            target_section_id=target_section_id,
        )
        return self._append_rule(section, rule)

    def remove_branch_rule(self, section_id: str, rule_id: str) -> Survey:
        section = self._section(section_id)
        rules = [r for r in section.branch_rules if r.id != rule_id]
        if len(rules) == len(section.branch_rules):
            raise DraftError(f"Unknown branch rule {rule_id}")
        section = section.model_copy(update={"branch_rules": rules})
        return self._commit(sections=self._with_section(section))

    # ---- questions ----

    def add_question(self, section_id: str, question_type: QuestionType) -> Survey:
        """Append a blank question of the given type with that type's defaults."""
        section = self._section(section_id)
        qid = self._new_id()
        question_type = QuestionType(question_type)
        if question_type == QuestionType.TEXT:
            question = TextQuestion(id=qid, section_id=section_id)
        elif question_type == QuestionType.CHOICE:
            question = ChoiceQuestion(id=qid, section_id=section_id)
        else:
            question = ScaleQuestion(id=qid, section_id=section_id)

        section = section.model_copy(update={"question_order": [*section.question_order, qid]})
        return self._commit(
            questions=self._with_question(question),
            sections=self._with_section(section),
        )

    def update_question(
        self,
        question_id: str,
        prompt: Optional[str] = None,
        required: Optional[bool] = None,
    ) -> Survey:
        question = self._question(question_id)
        update = {}
        if prompt is not None:
            update["prompt"] = prompt
        if required is not None:
            update["required"] = required
        return self._commit(questions=self._with_question(question.model_copy(update=update)))

    def set_text_size(self, question_id: str, size: TextSize, max_length: int = 0) -> Survey:
        question = self._question(question_id)
        if not isinstance(question, TextQuestion):
            raise DraftError(f"Question {question_id} is not a text question")
        if max_length < 0:
            raise DraftError("max_length cannot be negative")
        config = TextConfig(size=size, max_length=max_length)
        return self._commit(questions=self._with_question(question.model_copy(update={"text_config": config})))

    def set_choice_mode(
        self,
        question_id: str,
        mode: SelectionMode,
        min_count: Optional[int] = None,
        max_count: Optional[int] = None,
    ) -> Survey:
        """
        Switch between single and range selection.

        Range mode defaults to at least one and at most every option. Bounds
        must satisfy 0 <= min <= max <= number of options (one when empty).
        """
        self._require_draft("change selection rules")
        question = self._choice(question_id)
        mode = SelectionMode(mode)
        if mode == SelectionMode.SINGLE:
            config = ChoiceConfig(selection_mode=mode)
        else:
            ceiling = max(len(question.options), 1)
            low = 1 if min_count is None else min_count
            high = ceiling if max_count is None else max_count
            if not 0 <= low <= high <= ceiling:
                raise DraftError(f"Selection bounds must satisfy 0 <= min <= max <= {ceiling}")
            config = ChoiceConfig(selection_mode=mode, min=low, max=high)
        question = question.model_copy(update={"choice_config": config})
        return self._commit(questions=self._with_question(question))

    def add_option(self, question_id: str, label: str = "", points: float = 0) -> Survey:
        question = self._choice(question_id)
        if points < 0:
            raise DraftError("Option points cannot be negative")
        option = QuestionOption(id=self._new_id(), label=label, points=points)
        question = question.model_copy(update={"options": [*question.options, option]})
        return self._commit(questions=self._with_question(question))

    def update_option(
        self,
        question_id: str,
        option_id: str,
        label: Optional[str] = None,
        points: Optional[float] = None,
    ) -> Survey:
        question = self._choice(question_id)
        if question.find_option(option_id) is None:
            raise DraftError(f"Unknown option {option_id}")
        update = {}
        if label is not None:
            update["label"] = label
        if points is not None:
            self._require_draft("change option points")
            if points < 0:
                raise DraftError("Option points cannot be negative")
            update["points"] = points
        options = [o.model_copy(update=update) if o.id == option_id else o for o in question.options]
        return self._commit(questions=self._with_question(question.model_copy(update={"options": options})))

    def remove_option(self, question_id: str, option_id: str) -> Survey:
        """
        Remove an option and every answer rule that picks it.

        Range bounds shrink with the option list so max never exceeds it.
        """
        self._require_draft("remove an option")
        question = self._choice(question_id)
        options = [o for o in question.options if o.id != option_id]
        if len(options) == len(question.options):
            raise DraftError(f"Unknown option {option_id}")

        update = {"options": options}
        config = question.choice_config
        if question.is_range and config.max is not None:
            high = min(config.max, max(len(options), 1))
            low = None if config.min is None else min(config.min, high)
            update["choice_config"] = config.model_copy(update={"min": low, "max": high})

        sections = self._drop_rules(
            lambda r: not (
                isinstance(r, AnswerBranchRule)
                and r.question_id == question_id
                and r.option_id == option_id
            )
        )
        question = question.model_copy(update=update)
        return self._commit(sections=sections, questions=self._with_question(question))

    def set_scale_config(
        self,
        question_id: str,
        min_value: int,
        max_value: int,
        min_label: Optional[str] = None,
        max_label: Optional[str] = None,
        use_value_as_points: bool = False,
    ) -> Survey:
        self._require_draft("change scale settings")
        question = self._question(question_id)
        if not isinstance(question, ScaleQuestion):
            raise DraftError(f"Question {question_id} is not a scale question")
        if min_value >= max_value:
            raise DraftError("Scale max must be greater than min")
        config = ScaleConfig(
            min=min_value,
            max=max_value,
            min_label=min_label,
            max_label=max_label,
            use_value_as_points=use_value_as_points,
        )
        return self._commit(questions=self._with_question(question.model_copy(update={"scale_config": config})))

    def delete_question(self, question_id: str) -> Survey:
        """Delete a question and every answer rule that references it."""
        self._require_draft("delete a question")
        question = self._question(question_id)
        sections = self._drop_rules(
            lambda r: not (isinstance(r, AnswerBranchRule) and r.question_id == question_id)
        )
        owner = sections.get(question.section_id)
        if owner is not None:
            order = [qid for qid in owner.question_order if qid != question_id]
            sections[owner.id] = owner.model_copy(update={"question_order": order})
        questions = {qid: q for qid, q in self.survey.questions.items() if qid != question_id}
        return self._commit(sections=sections, questions=questions)

    def reorder_questions(self, section_id: str, new_order: Sequence[str]) -> Survey:
        section = self._section(section_id)
        if not _is_permutation(new_order, section.question_order):
            raise DraftError("New question order must contain exactly the section's questions")
        section = section.model_copy(update={"question_order": list(new_order)})
        return self._commit(sections=self._with_section(section))

    def move_question(self, question_id: str, to_section_id: str, index: Optional[int] = None) -> Survey:
        """
        Move a question into another section at index (appended when None).

        Answer rules in the old section that referenced the question are
        dropped, since rules may only use their own section's questions.
        """
        question = self._question(question_id)
        target = self._section(to_section_id)
        from_section_id = question.section_id
        if from_section_id == to_section_id:
            raise DraftError("Use reorder_questions to move within a section")

        sections = dict(self.survey.sections)
        source = sections.get(from_section_id)
        if source is not None:
            rules = [
                r for r in source.branch_rules
                if not (isinstance(r, AnswerBranchRule) and r.question_id == question_id)
            ]
            order = [qid for qid in source.question_order if qid != question_id]
            sections[from_section_id] = source.model_copy(
                update={"question_order": order, "branch_rules": rules}
            )

        order: List[str] = list(target.question_order)
        order.insert(len(order) if index is None else index, question_id)
        sections[to_section_id] = target.model_copy(update={"question_order": order})

        question = question.model_copy(update={"section_id": to_section_id})
        return self._commit(sections=sections, questions=self._with_question(question))

    # ---- lifecycle ----

    def _transition(self, target: SurveyStatus, **update) -> Survey:
        current = self.survey.status
        if target not in STATUS_TRANSITIONS[current]:
            raise DraftError(f"Cannot move a {current.value} survey to {target.value}")
        logger.info(f"Survey {self.survey.id}: {current.value} -> {target.value}")
        return self._commit(status=target, **update)

    def publish(self, now: int) -> Survey:
        """Publish a draft. The schedule must open strictly before it closes."""
        schedule = self.survey.schedule
        if schedule.open_at is not None and schedule.close_at is not None:
            if schedule.open_at >= schedule.close_at:
                raise DraftError("Schedule must open before it closes")
        return self._transition(SurveyStatus.PUBLISHED, published_at=now, updated_at=now)

    def lock(self) -> Survey:
        return self._transition(SurveyStatus.LOCKED)

    def unlock(self) -> Survey:
        return self._transition(SurveyStatus.PUBLISHED)
