"""Models package for the Survey Engine."""

from .schemas import (
    Answer,
    AnswerBranchRule,
    Availability,
    BranchRule,
    ChoiceConfig,
    ChoiceQuestion,
    EmailConfig,
    FormatConfig,
    IdentificationField,
    Question,
    QuestionOption,
    Response,
    ResponseFilters,
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
from .enums import (
    ClosedReason,
    FlowState,
    QuestionType,
    ScoreOperator,
    SelectionMode,
    SurveyStatus,
)

__all__ = [
    "Answer",
    "AnswerBranchRule",
    "Availability",
    "BranchRule",
    "ChoiceConfig",
    "ChoiceQuestion",
    "EmailConfig",
    "FormatConfig",
    "IdentificationField",
    "Question",
    "QuestionOption",
    "Response",
    "ResponseFilters",
    "ResultConfig",
    "ScaleConfig",
    "ScaleQuestion",
    "Schedule",
    "ScoreBranchRule",
    "ScoreRange",
    "Section",
    "Survey",
    "TextConfig",
    "TextQuestion",
    "ClosedReason",
    "FlowState",
    "QuestionType",
    "ScoreOperator",
    "SelectionMode",
    "SurveyStatus",
]
