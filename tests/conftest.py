"""
Shared fixtures.

Surveys are built directly from the pydantic models; record-level loading
has its own tests in test_records.py.
"""

import pytest

import utils.rate_limiter as rate_limiter_module
from models.enums import ScoreOperator, SelectionMode, SurveyStatus
from models.schemas import (
    AnswerBranchRule,
    ChoiceConfig,
    ChoiceQuestion,
    QuestionOption,
    ResultConfig,
    ScoreBranchRule,
    ScoreRange,
    Section,
    Survey,
)
from utils.cache import clear_cache
from utils.rate_limiter import RateLimiter


@pytest.fixture(autouse=True)
def fresh_caches(monkeypatch):
    """Isolate the notification cache and rate limiter between tests."""
    clear_cache()
    monkeypatch.setattr(rate_limiter_module, "_rate_limiter", RateLimiter(requests_per_second=1000, base_backoff=0))
    yield
    clear_cache()


@pytest.fixture
def color_survey() -> Survey:
    """One section, one single-choice question: Red=10, Blue=20; Low [0,10], High [11,30]."""
    question = ChoiceQuestion(
        id="q_color",
        section_id="s1",
        prompt="Pick a color",
        required=True,
        options=[
            QuestionOption(id="red", label="Red", points=10),
            QuestionOption(id="blue", label="Blue", points=20),
        ],
    )
    return Survey(
        id="survey_color",
        title="Colors",
        status=SurveyStatus.PUBLISHED,
        section_order=["s1"],
        sections={"s1": Section(id="s1", title="Only", question_order=["q_color"])},
        questions={"q_color": question},
        result_config=ResultConfig(
            show_score=True,
            ranges=[
                ScoreRange(id="low", min=0, max=10, message="Low"),
                ScoreRange(id="high", min=11, max=30, message="High"),
            ],
        ),
    )


@pytest.fixture
def branching_survey() -> Survey:
    """
    Sections A, B, C in order.

    A holds a range-mode choice (a1=5, a2=10, a3=15) and two rules:
    score gte 15 -> C, then answer a1 -> B. B holds a single choice (b1=1).
    C holds a single choice (c1=3) and has a section result.
    """
    qa = ChoiceQuestion(
        id="qa",
        section_id="A",
        options=[
            QuestionOption(id="a1", label="One", points=5),
            QuestionOption(id="a2", label="Two", points=10),
            QuestionOption(id="a3", label="Three", points=15),
        ],
        choice_config=ChoiceConfig(selection_mode=SelectionMode.RANGE, min=1, max=3),
    )
    qb = ChoiceQuestion(id="qb", section_id="B", options=[QuestionOption(id="b1", points=1)])
    qc = ChoiceQuestion(id="qc", section_id="C", options=[QuestionOption(id="c1", points=3)])
    sections = {
        "A": Section(
            id="A",
            title="A",
            question_order=["qa"],
            branch_rules=[
                ScoreBranchRule(id="r_score", threshold=15, operator=ScoreOperator.GTE, target_section_id="C"),
                AnswerBranchRule(id="r_answer", question_id="qa", option_id="a1", target_section_id="B"),
            ],
        ),
        "B": Section(id="B", title="B", question_order=["qb"]),
        "C": Section(
            id="C",
            title="C",
            question_order=["qc"],
            result_config=ResultConfig(
                show_score=True,
                ranges=[
                    ScoreRange(id="c_any", min=0, max=100, message="Done"),
                    ScoreRange(id="c_low", min=0, max=5, message="Low"),
                ],
            ),
        ),
    }
    return Survey(
        id="survey_branch",
        title="Branching",
        status=SurveyStatus.PUBLISHED,
        section_order=["A", "B", "C"],
        sections=sections,
        questions={"qa": qa, "qb": qb, "qc": qc},
    )
