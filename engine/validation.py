"""
Respondent-facing validation and builder-side survey checks.

validate_section and validate_identification return a map of
id -> message covering every failing item at once; an empty map means the
respondent may continue. lint_survey reports definition problems for the
builder and is never consulted on the respondent path.
"""

from typing import Dict, List, Mapping, Optional, Sequence

from pydantic import EmailStr, TypeAdapter, ValidationError

from models.enums import PresetFieldKey, VALIDATION_MESSAGES
from models.schemas import (
    Answer,
    AnswerBranchRule,
    ChoiceQuestion,
    IdentificationField,
    Question,
    ScaleQuestion,
    ScoreRange,
    Section,
    Survey,
)

_email_adapter = TypeAdapter(EmailStr)


def has_usable_value(answer: Optional[Answer]) -> bool:
    """An answer counts as given unless it is missing, None, "" or []."""
    if answer is None or answer.value is None:
        return False
    if answer.value == "" or answer.value == []:
        return False
    return True


def is_valid_email(value: str) -> bool:
    try:
        _email_adapter.validate_python(value)
    except ValidationError:
        return False
    return True


def validate_section(
    section: Section,
    questions: Mapping[str, Question],
    answers: Mapping[str, Answer],
) -> Dict[str, str]:
    """
    Validate the answers of one section before advancing.

    - A required question without a usable answer -> "required".
    - A range-mode choice answer selecting fewer than min options ->
      "Select at least N", more than max -> "Select at most N". The count is
      only checked once something is selected, so an optional question left
      blank passes.

    Args:
        section: Section being left
        questions: Survey questions keyed by id
        answers: Answers keyed by question id

    Returns:
        question id -> message, in question order; empty when valid
    """
    errors: Dict[str, str] = {}

    for question_id in section.question_order:
        question = questions.get(question_id)
        if question is None:
            continue
        answer = answers.get(question_id)

        if not has_usable_value(answer):
            if question.required:
                errors[question_id] = VALIDATION_MESSAGES["required"]
            continue

        if isinstance(question, ChoiceQuestion) and question.is_range and isinstance(answer.value, list):
            low, high = question.range_bounds()
            count = len(answer.value)
            if count < low:
                errors[question_id] = VALIDATION_MESSAGES["select_min"].format(count=low)
            elif count > high:
                errors[question_id] = VALIDATION_MESSAGES["select_max"].format(count=high)

    return errors


def validate_identification(
    fields: Sequence[IdentificationField],
    values: Mapping[str, str],
) -> Dict[str, str]:
    """
    Validate identification values keyed by field id.

    Required fields must be non-empty; email fields must hold a valid
    address when filled in.
    """
    errors: Dict[str, str] = {}
    for field in fields:
        value = (values.get(field.id) or "").strip()
        if not value:
            if field.required:
                errors[field.id] = VALIDATION_MESSAGES["required"]
            continue
        if field.field_key == PresetFieldKey.EMAIL and not is_valid_email(value):
            errors[field.id] = VALIDATION_MESSAGES["invalid_email"]
    return errors


def _lint_ranges(owner: str, ranges: Sequence[ScoreRange]) -> List[str]:
    return [
        f"{owner}: range {r.id} has max {r.max} below min {r.min}"
        for r in ranges
        if r.max < r.min
    ]


def lint_survey(survey: Survey) -> List[str]:
    """
    List definition problems an author should fix before publishing.

    Nothing reported here stops the engine: it tolerates every one of these
    by falling back to its default behaviour.
    """
    problems: List[str] = []

    if sorted(survey.section_order) != sorted(survey.sections):
        problems.append("Section order does not match the defined sections")

    for section in survey.ordered_sections():
        for rule in section.branch_rules:
            if rule.target_section_id == section.id:
                problems.append(f"Section {section.id}: rule {rule.id} jumps to its own section")
            elif rule.target_section_id not in survey.sections:
                problems.append(
                    f"Section {section.id}: rule {rule.id} targets unknown section {rule.target_section_id}"
                )
            if isinstance(rule, AnswerBranchRule):
                question = survey.questions.get(rule.question_id)
                if not isinstance(question, ChoiceQuestion) or question.find_option(rule.option_id) is None:
                    problems.append(f"Section {section.id}: rule {rule.id} references an unknown option")
        if section.result_config is not None:
            problems.extend(_lint_ranges(f"Section {section.id}", section.result_config.ranges))

    for question in survey.questions.values():
        if isinstance(question, ChoiceQuestion) and question.is_range:
            low, high = question.range_bounds()
            if not 0 <= low <= high:
                problems.append(f"Question {question.id}: selection bounds must satisfy 0 <= min <= max")
            elif question.options and high > len(question.options):
                problems.append(f"Question {question.id}: max selections exceeds the number of options")
        elif isinstance(question, ScaleQuestion):
            if question.scale_config.min >= question.scale_config.max:
                problems.append(f"Question {question.id}: scale max must be greater than min")

    schedule = survey.schedule
    if schedule.open_at is not None and schedule.close_at is not None and schedule.open_at >= schedule.close_at:
        problems.append("Schedule opens at or after it closes")

    problems.extend(_lint_ranges("Survey", survey.result_config.ranges))
    return problems
