"""
Branch resolution.

A section's branch rules are checked in stored order and the first rule
that fires decides the next section. Rules are never combined or ranked by
specificity.
"""

import logging
from typing import Mapping, Optional

from models.enums import ScoreOperator
from models.schemas import Answer, AnswerBranchRule, BranchRule, ScoreBranchRule, Section

logger = logging.getLogger(__name__)


def _is_selected(answer: Answer, option_id: str) -> bool:
    # A scalar value is a singleton selection
    if isinstance(answer.value, list):
        return option_id in answer.value
    return answer.value == option_id


def rule_fires(rule: BranchRule, answers: Mapping[str, Answer], running_score: float) -> bool:
    """
    Check one rule in isolation.

    answer rules fire when the rule's option is among the selected values of
    its question (a missing answer or an incomplete rule never fires); score
    rules compare the running score with the threshold using gte or lte.
    """
    if isinstance(rule, AnswerBranchRule):
        if not rule.question_id or not rule.option_id:
            return False
        answer = answers.get(rule.question_id)
        if answer is None:
            return False
        return _is_selected(answer, rule.option_id)

    if isinstance(rule, ScoreBranchRule):
        if rule.operator == ScoreOperator.GTE:
            return running_score >= rule.threshold
        return running_score <= rule.threshold

    return False


def resolve_branch_target(
    section_id: str,
    sections: Mapping[str, Section],
    answers: Mapping[str, Answer],
    running_score: float,
) -> Optional[str]:
    """
    Decide whether to divert from the sequential next section.

    Rules whose target section does not exist are skipped, so a stale rule
    falls through to the next rule and ultimately to sequential advance.

    Args:
        section_id: The section just completed
        sections: All sections keyed by id
        answers: Answers collected so far, keyed by question id
        running_score: Cumulative score including the section just completed

    Returns:
        Target section id of the first firing rule, or None
    """
    section = sections.get(section_id)
    if section is None:
        return None

    for rule in section.branch_rules:
        if rule.target_section_id not in sections:
            continue
        if rule_fires(rule, answers, running_score):
            logger.debug(f"Branch rule {rule.id} fired in {section_id} -> {rule.target_section_id}")
            return rule.target_section_id

    return None
