"""
Enumerations and constants for the Survey Engine.

This module defines the closed value sets used by survey definitions,
the respondent flow, and the fixed messages surfaced to respondents.
"""

from enum import Enum
from typing import Dict


class QuestionType(str, Enum):
    """Question type tag; selects the question variant."""
    TEXT = "text"
    CHOICE = "choice"
    SCALE = "scale"


class TextSize(str, Enum):
    """Input size hint for free-text questions."""
    SHORT = "short"
    LONG = "long"


class SelectionMode(str, Enum):
    """
    Choice question selection mode.

    - single: exactly one option, acts as a radio group
    - range: between min and max options inclusive, acts as checkboxes
    """
    SINGLE = "single"
    RANGE = "range"


class SurveyStatus(str, Enum):
    """
    Survey lifecycle status.

    Lifecycle: draft -> published <-> locked. There is no path back to draft.
    """
    DRAFT = "draft"
    PUBLISHED = "published"
    LOCKED = "locked"


class ClosedReason(str, Enum):
    """Why a survey currently refuses respondents."""
    LOCKED = "locked"
    NOT_STARTED = "not-started"
    ENDED = "ended"


class ScoreOperator(str, Enum):
    """Comparison used by score branch rules."""
    GTE = "gte"
    LTE = "lte"


class FlowState(str, Enum):
    """States of the per-respondent section flow."""
    IDENTIFICATION = "identification"
    IN_SECTION = "in-section"
    SECTION_RESULT = "section-result"
    SUBMITTING = "submitting"
    DONE = "done"


class IdentificationFieldType(str, Enum):
    PRESET = "preset"
    CUSTOM = "custom"


class PresetFieldKey(str, Enum):
    """Keys under which identification values are stored on a response."""
    NAME = "name"
    DOB = "dob"
    EMAIL = "email"
    PHONE = "phone"
    EMPLOYEE_ID = "employeeId"
    STUDENT_ID = "studentId"
    CUSTOM = "custom"


class IndexFormat(str, Enum):
    """Prefix style for section, question and option numbering."""
    NONE = "none"
    NUMERIC = "numeric"
    ALPHA = "alpha"


# Legal status transitions (draft is never re-entered)
STATUS_TRANSITIONS = {
    SurveyStatus.DRAFT: {SurveyStatus.PUBLISHED},
    SurveyStatus.PUBLISHED: {SurveyStatus.LOCKED},
    SurveyStatus.LOCKED: {SurveyStatus.PUBLISHED},
}

# Effective range-mode bounds when the builder left them unset
DEFAULT_RANGE_MIN = 1

# Respondent-facing validation messages
VALIDATION_MESSAGES: Dict[str, str] = {
    "required": "This question is required",
    "select_min": "Select at least {count}",
    "select_max": "Select at most {count}",
    "invalid_email": "Please enter a valid email address",
}

# Fallback copy for result emails
EMAIL_DEFAULTS = {
    "subject": 'Your results for "{title}"',
    "body_html": "<p>Thank you for completing <strong>{title}</strong>!</p>",
}
