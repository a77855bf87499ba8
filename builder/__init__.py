"""Survey authoring: named, invariant-preserving edits over immutable snapshots."""

from .draft import DraftError, SurveyDraft, new_id, new_survey

__all__ = ["DraftError", "SurveyDraft", "new_id", "new_survey"]
