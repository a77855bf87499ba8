"""
Pydantic schemas for survey definitions and responses.

Stored records use camelCase keys; Python code uses the snake_case field
names. Every model is frozen: edits go through builder.draft, which hands
out new snapshots. Optional fields are explicit and defaults are filled
here, once, when a record is validated.
"""

from typing import Annotated, Dict, List, Literal, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from config import settings
from .enums import (
    ClosedReason,
    DEFAULT_RANGE_MIN,
    IdentificationFieldType,
    IndexFormat,
    PresetFieldKey,
    ScoreOperator,
    SelectionMode,
    SurveyStatus,
    TextSize,
)


class SurveyModel(BaseModel):
    """Base for all stored records: camelCase aliases, immutable instances."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


# ---- Questions ----


class QuestionOption(SurveyModel):
    """One selectable option of a choice question."""
    id: str
    label: str = ""
    points: float = Field(0, ge=0, description="Points awarded when selected")


class TextConfig(SurveyModel):
    size: TextSize = TextSize.SHORT
    max_length: int = Field(0, ge=0, description="Character limit, 0 means unlimited")


class ChoiceConfig(SurveyModel):
    """Selection mode plus the range-mode bounds (ignored in single mode)."""
    selection_mode: SelectionMode = SelectionMode.SINGLE
    min: Optional[int] = None
    max: Optional[int] = None


class ScaleConfig(SurveyModel):
    """
    Numeric scale.

    When use_value_as_points is true the picked value is the score
    contribution; otherwise the question never scores.
    """
    min: int = Field(default_factory=lambda: settings.default_scale_min)
    max: int = Field(default_factory=lambda: settings.default_scale_max)
    min_label: Optional[str] = None
    max_label: Optional[str] = None
    use_value_as_points: bool = False


class QuestionBase(SurveyModel):
    id: str
    section_id: str = ""
    prompt: str = ""
    required: bool = False


class TextQuestion(QuestionBase):
    """Free-text question. Never contributes to scoring."""
    type: Literal["text"] = "text"
    text_config: TextConfig = Field(default_factory=TextConfig)


class ChoiceQuestion(QuestionBase):
    """Single- or multi-select question with per-option points."""
    type: Literal["choice"] = "choice"
    options: List[QuestionOption] = Field(default_factory=list)
    choice_config: ChoiceConfig = Field(default_factory=ChoiceConfig)

    @property
    def is_range(self) -> bool:
        return self.choice_config.selection_mode == SelectionMode.RANGE

    def range_bounds(self) -> Tuple[int, int]:
        """
        Effective (min, max) selection counts for range mode.

        Unset bounds fall back to the builder defaults: at least one
        selection, at most every option (never less than one).
        """
        low = self.choice_config.min
        high = self.choice_config.max
        if low is None:
            low = DEFAULT_RANGE_MIN
        if high is None:
            high = max(len(self.options), 1)
        return low, high

    def find_option(self, option_id: object) -> Optional[QuestionOption]:
        for option in self.options:
            if option.id == option_id:
                return option
        return None


class ScaleQuestion(QuestionBase):
    """Numeric scale question."""
    type: Literal["scale"] = "scale"
    scale_config: ScaleConfig = Field(default_factory=ScaleConfig)


Question = Annotated[
    Union[TextQuestion, ChoiceQuestion, ScaleQuestion],
    Field(discriminator="type"),
]


# ---- Branching and results ----


class AnswerBranchRule(SurveyModel):
    """Fires when option_id is among the selected values of question_id."""
    type: Literal["answer"] = "answer"
    id: str
    question_id: str = ""
    option_id: str = ""
    target_section_id: str


class ScoreBranchRule(SurveyModel):
    """Fires by comparing the running score against threshold."""
    type: Literal["score"] = "score"
    id: str
    threshold: float = 0
    operator: ScoreOperator = ScoreOperator.GTE
    target_section_id: str


BranchRule = Annotated[
    Union[AnswerBranchRule, ScoreBranchRule],
    Field(discriminator="type"),
]


class ScoreRange(SurveyModel):
    """
    Inclusive [min, max] commentary window.

    Ranges may overlap and min <= max is not enforced; a reversed range
    simply never matches.
    """
    id: str
    min: float
    max: float
    message: str = ""
    image_url: Optional[str] = None


class ResultConfig(SurveyModel):
    show_score: bool = True
    ranges: List[ScoreRange] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.ranges


class Section(SurveyModel):
    """An ordered page of questions with its own branch rules."""
    id: str
    title: str = ""
    description: Optional[str] = None
    question_order: List[str] = Field(default_factory=list)
    branch_rules: List[BranchRule] = Field(default_factory=list)
    result_config: Optional[ResultConfig] = None

    @property
    def has_result(self) -> bool:
        return self.result_config is not None and not self.result_config.is_empty


# ---- Survey ----


class Schedule(SurveyModel):
    """Optional open/close window in Unix milliseconds; None is unbounded."""
    open_at: Optional[int] = None
    close_at: Optional[int] = None


class EmailConfig(SurveyModel):
    enabled: bool = False
    subject: str = ""
    body_html: str = ""
    image_url: Optional[str] = None


class IdentificationField(SurveyModel):
    """A field the respondent fills in before the first section."""
    id: str
    type: IdentificationFieldType = IdentificationFieldType.PRESET
    field_key: PresetFieldKey = PresetFieldKey.CUSTOM
    label: str = ""
    required: bool = False

    @property
    def storage_key(self) -> str:
        """Key used on Response.identification: preset key, else label, else id."""
        if self.field_key == PresetFieldKey.CUSTOM:
            return self.label or self.id
        return self.field_key.value


class FormatConfig(SurveyModel):
    section_index: IndexFormat = IndexFormat.NONE
    question_index: IndexFormat = IndexFormat.NONE
    option_index: IndexFormat = IndexFormat.NONE


class Survey(SurveyModel):
    """
    Complete survey definition as supplied by the definition provider.

    The engine treats it as read-only for a respondent session.
    """
    id: str
    author_id: str = ""
    title: str = ""
    description: str = ""
    status: SurveyStatus = SurveyStatus.DRAFT
    schedule: Schedule = Field(default_factory=Schedule)
    format_config: FormatConfig = Field(default_factory=FormatConfig)
    created_at: int = 0
    updated_at: int = 0
    published_at: Optional[int] = None
    section_order: List[str] = Field(default_factory=list)
    identification_fields: List[IdentificationField] = Field(default_factory=list)
    result_config: ResultConfig = Field(default_factory=ResultConfig)
    email_config: EmailConfig = Field(default_factory=EmailConfig)
    sections: Dict[str, Section] = Field(default_factory=dict)
    questions: Dict[str, Question] = Field(default_factory=dict)

    def ordered_sections(self) -> List[Section]:
        """Sections in section_order, skipping ids with no section record."""
        return [self.sections[sid] for sid in self.section_order if sid in self.sections]


# ---- Responses ----


AnswerValue = Union[str, List[str], int, float, None]


class Answer(SurveyModel):
    """
    One respondent answer.

    value is a string for free text, an option id for single choice, a list
    of option ids for range choice, and a number for scales.
    """
    question_id: str
    value: AnswerValue = None
    score: float = 0


class Response(SurveyModel):
    """A finished, submitted set of answers."""
    id: Optional[str] = None
    survey_id: str
    responded_at: int
    identification: Dict[str, str] = Field(default_factory=dict)
    answers: Dict[str, Answer] = Field(default_factory=dict)
    total_score: float = 0
    email_sent: bool = False


class ResponseFilters(SurveyModel):
    """Author-side filters over a survey's responses. All bounds inclusive."""
    score_min: Optional[float] = None
    score_max: Optional[float] = None
    date_from: Optional[int] = None
    date_to: Optional[int] = None
    search_query: Optional[str] = None


class Availability(SurveyModel):
    """Outcome of the availability gate."""
    open: bool
    reason: Optional[ClosedReason] = None
