"""
Answer and aggregate scoring.

Every function here is lenient: answers pointing at deleted questions or
options, and non-finite numbers, contribute 0 instead of raising, so a
survey edited while respondents are mid-way never breaks a session.

Sums use math.fsum, which is exact and therefore independent of the order
in which answers were given.
"""

import math
from typing import Iterable, Mapping

from models.schemas import (
    Answer,
    AnswerValue,
    ChoiceQuestion,
    Question,
    ScaleQuestion,
    Section,
)


def is_finite_number(value: object) -> bool:
    """True for real ints/floats that are neither NaN nor infinite (bools excluded)."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    try:
        return math.isfinite(value)
    except OverflowError:
        # ints beyond float range
        return False


def _finite_sum(values: Iterable[object]) -> float:
    """Exact sum of the finite values; inf when the sum itself exceeds float range."""
    finite = [v for v in values if is_finite_number(v)]
    try:
        return math.fsum(finite)
    except OverflowError:
        return sum(float(v) for v in finite)


def _option_points(question: ChoiceQuestion, option_id: object) -> float:
    option = question.find_option(option_id)
    if option is None or not is_finite_number(option.points):
        return 0
    return option.points


def score_answer(answer: Answer, question: Question) -> float:
    """
    Compute the points one answer contributes.

    Rules:
        text           -> 0
        choice/single  -> points of the selected option, 0 if it no longer exists
        choice/range   -> sum of points per selected id; duplicates count again,
                          unknown ids count 0, a non-list value counts 0
        scale          -> the picked value when use_value_as_points is on and the
                          value is a finite number (not clamped to the scale), else 0

    Args:
        answer: The respondent's answer
        question: The question it answers

    Returns:
        Non-negative score contribution
    """
    if isinstance(question, ChoiceQuestion):
        if not question.options:
            return 0
        if question.is_range:
            if not isinstance(answer.value, list):
                return 0
            return _finite_sum(_option_points(question, oid) for oid in answer.value)
        return _option_points(question, answer.value)

    if isinstance(question, ScaleQuestion):
        if question.scale_config.use_value_as_points and is_finite_number(answer.value):
            return answer.value
        return 0

    return 0


def build_answer(question: Question, value: AnswerValue) -> Answer:
    """Create the Answer record for a value, with its score already computed."""
    draft = Answer(question_id=question.id, value=value)
    return draft.model_copy(update={"score": score_answer(draft, question)})


def total_score(answers: Mapping[str, Answer], questions: Mapping[str, Question]) -> float:
    """
    Sum the scores of all answers whose question still exists.

    Answers for unknown or deleted questions are skipped, and non-finite
    contributions are left out so one bad value cannot poison the total.

    Args:
        answers: Answers keyed by question id
        questions: The survey's questions keyed by id

    Returns:
        Total score
    """
    contributions = []
    for answer in answers.values():
        question = questions.get(answer.question_id)
        if question is None:
            continue
        contributions.append(score_answer(answer, question))
    return _finite_sum(contributions)


def section_score(section: Section, answers: Mapping[str, Answer]) -> float:
    """Sum the stored scores of the answers that belong to one section."""
    members = set(section.question_order)
    return _finite_sum(
        answer.score for answer in answers.values() if answer.question_id in members
    )


def max_possible_score(questions: Mapping[str, Question]) -> float:
    """
    Advisory "out of N" figure for display.

    Choice questions add their single best option, even in range mode where
    several options could be picked. Scale questions that score add their max.
    Never use this to reject a response.
    """
    parts = []
    for question in questions.values():
        if isinstance(question, ChoiceQuestion) and question.options:
            best = max(
                (o.points for o in question.options if is_finite_number(o.points)),
                default=0,
            )
            if best > 0:
                parts.append(best)
        elif isinstance(question, ScaleQuestion) and question.scale_config.use_value_as_points:
            parts.append(question.scale_config.max)
    return _finite_sum(parts)
