"""
Tests for the survey draft editor.

Every operation must return a new snapshot, leave earlier snapshots
untouched and keep the structural invariants.
"""

import itertools

import pytest
from builder.draft import DraftError, SurveyDraft, new_survey
from models.enums import QuestionType, ScoreOperator, SelectionMode, SurveyStatus, TextSize
from models.schemas import ChoiceQuestion, ResultConfig, ScaleQuestion, ScoreRange, TextQuestion


def _ids():
    counter = itertools.count(1)
    return lambda: f"id{next(counter)}"


@pytest.fixture
def draft():
    ids = _ids()
    return SurveyDraft(new_survey(author_id="author", now=1000, title="Quiz", id_factory=ids), id_factory=ids)


def _check_invariants(survey):
    assert sorted(survey.section_order) == sorted(survey.sections)
    owned = [qid for s in survey.sections.values() for qid in s.question_order]
    assert sorted(owned) == sorted(survey.questions)
    for section in survey.sections.values():
        for qid in section.question_order:
            assert survey.questions[qid].section_id == section.id


class TestNewSurvey:
    """Tests for the survey factory."""

    def test_blank_draft(self, draft):
        survey = draft.survey
        assert survey.id == "id1"
        assert survey.status == SurveyStatus.DRAFT
        assert survey.created_at == survey.updated_at == 1000
        assert survey.section_order == []
        assert not draft.is_dirty


class TestSections:
    """Tests for section operations."""

    def test_add_section(self, draft):
        before = draft.survey
        after = draft.add_section("Intro")
        assert after is draft.survey
        assert after.section_order == ["id2"]
        assert after.sections["id2"].title == "Intro"
        assert before.section_order == []
        assert draft.is_dirty

    def test_mark_saved(self, draft):
        draft.add_section()
        draft.mark_saved()
        assert not draft.is_dirty

    def test_update_section(self, draft):
        draft.add_section()
        survey = draft.update_section("id2", description="Hello")
        assert survey.sections["id2"].description == "Hello"
        assert survey.sections["id2"].title == "New Section"

    def test_reorder_sections_must_be_permutation(self, draft):
        draft.add_section()
        draft.add_section()
        assert draft.reorder_sections(["id3", "id2"]).section_order == ["id3", "id2"]
        with pytest.raises(DraftError):
            draft.reorder_sections(["id3"])
        with pytest.raises(DraftError):
            draft.reorder_sections(["id3", "id3"])

    def test_delete_section_removes_questions_and_rules(self, draft):
        draft.add_section()
        draft.add_section()
        draft.add_question("id3", QuestionType.TEXT)
        draft.add_score_rule("id2", 5, ScoreOperator.GTE, "id3")
        survey = draft.delete_section("id3")
        assert survey.section_order == ["id2"]
        assert survey.questions == {}
        assert survey.sections["id2"].branch_rules == []
        _check_invariants(survey)

    def test_unknown_section(self, draft):
        with pytest.raises(DraftError):
            draft.update_section("nope", title="x")

    def test_section_result_config(self, draft):
        draft.add_section()
        config = ResultConfig(ranges=[ScoreRange(id="r", min=0, max=5)])
        assert draft.set_section_result_config("id2", config).sections["id2"].has_result
        assert draft.set_section_result_config("id2", None).sections["id2"].result_config is None


class TestQuestions:
    """Tests for question operations."""

    def test_add_question_defaults(self, draft):
        draft.add_section()
        draft.add_question("id2", QuestionType.TEXT)
        draft.add_question("id2", QuestionType.CHOICE)
        survey = draft.add_question("id2", "scale")

        text, choice, scale = (survey.questions[q] for q in ("id3", "id4", "id5"))
        assert isinstance(text, TextQuestion) and text.text_config.size == TextSize.SHORT
        assert isinstance(choice, ChoiceQuestion) and choice.options == []
        assert choice.choice_config.selection_mode == SelectionMode.SINGLE
        assert isinstance(scale, ScaleQuestion)
        assert (scale.scale_config.min, scale.scale_config.max) == (1, 5)
        assert survey.sections["id2"].question_order == ["id3", "id4", "id5"]
        _check_invariants(survey)

    def test_update_question(self, draft):
        draft.add_section()
        draft.add_question("id2", QuestionType.TEXT)
        survey = draft.update_question("id3", prompt="Name?", required=True)
        assert survey.questions["id3"].prompt == "Name?"
        assert survey.questions["id3"].required

    def test_text_size(self, draft):
        draft.add_section()
        draft.add_question("id2", QuestionType.TEXT)
        survey = draft.set_text_size("id3", TextSize.LONG, max_length=500)
        assert survey.questions["id3"].text_config.max_length == 500
        with pytest.raises(DraftError):
            draft.set_text_size("id3", TextSize.LONG, max_length=-1)

    def test_options(self, draft):
        draft.add_section()
        draft.add_question("id2", QuestionType.CHOICE)
        draft.add_option("id3", "Yes", 3)
        survey = draft.add_option("id3", "No")
        assert [(o.label, o.points) for o in survey.questions["id3"].options] == [("Yes", 3), ("No", 0)]

        survey = draft.update_option("id3", "id5", points=1)
        assert survey.questions["id3"].options[1].points == 1
        with pytest.raises(DraftError):
            draft.add_option("id3", "Bad", -1)
        with pytest.raises(DraftError):
            draft.update_option("id3", "nope", label="x")

    def test_choice_mode_defaults(self, draft):
        draft.add_section()
        draft.add_question("id2", QuestionType.CHOICE)
        draft.add_option("id3", "a")
        draft.add_option("id3", "b")
        config = draft.set_choice_mode("id3", SelectionMode.RANGE).questions["id3"].choice_config
        assert (config.min, config.max) == (1, 2)

    def test_choice_mode_bounds_checked(self, draft):
        draft.add_section()
        draft.add_question("id2", QuestionType.CHOICE)
        draft.add_option("id3", "a")
        with pytest.raises(DraftError):
            draft.set_choice_mode("id3", SelectionMode.RANGE, min_count=2, max_count=1)
        with pytest.raises(DraftError):
            draft.set_choice_mode("id3", SelectionMode.RANGE, max_count=5)

    def test_remove_option_shrinks_bounds_and_drops_rules(self, draft):
        draft.add_section()
        draft.add_section()
        draft.add_question("id2", QuestionType.CHOICE)
        draft.add_option("id4", "a")
        draft.add_option("id4", "b")
        draft.set_choice_mode("id4", SelectionMode.RANGE, min_count=2, max_count=2)
        draft.add_answer_rule("id2", "id4", "id6", "id3")

        survey = draft.remove_option("id4", "id6")
        question = survey.questions["id4"]
        assert [o.id for o in question.options] == ["id5"]
        assert (question.choice_config.min, question.choice_config.max) == (1, 1)
        assert survey.sections["id2"].branch_rules == []

    def test_scale_config(self, draft):
        draft.add_section()
        draft.add_question("id2", QuestionType.SCALE)
        survey = draft.set_scale_config("id3", 0, 10, "Never", "Always", use_value_as_points=True)
        assert survey.questions["id3"].scale_config.use_value_as_points
        with pytest.raises(DraftError):
            draft.set_scale_config("id3", 5, 5)

    def test_wrong_question_type(self, draft):
        draft.add_section()
        draft.add_question("id2", QuestionType.TEXT)
        with pytest.raises(DraftError):
            draft.add_option("id3", "a")
        with pytest.raises(DraftError):
            draft.set_scale_config("id3", 1, 5)

    def test_delete_question(self, draft):
        draft.add_section()
        draft.add_section()
        draft.add_question("id2", QuestionType.CHOICE)
        draft.add_option("id4", "a")
        draft.add_answer_rule("id2", "id4", "id5", "id3")
        survey = draft.delete_question("id4")
        assert survey.questions == {}
        assert survey.sections["id2"].question_order == []
        assert survey.sections["id2"].branch_rules == []
        _check_invariants(survey)

    def test_reorder_questions(self, draft):
        draft.add_section()
        draft.add_question("id2", QuestionType.TEXT)
        draft.add_question("id2", QuestionType.TEXT)
        assert draft.reorder_questions("id2", ["id4", "id3"]).sections["id2"].question_order == ["id4", "id3"]
        with pytest.raises(DraftError):
            draft.reorder_questions("id2", ["id4"])

    def test_move_question(self, draft):
        draft.add_section()
        draft.add_section()
        draft.add_question("id2", QuestionType.TEXT)
        draft.add_question("id3", QuestionType.TEXT)
        survey = draft.move_question("id4", "id3", index=0)
        assert survey.sections["id2"].question_order == []
        assert survey.sections["id3"].question_order == ["id4", "id5"]
        assert survey.questions["id4"].section_id == "id3"
        _check_invariants(survey)


class TestBranchRules:
    """Tests for branch rule operations."""

    def test_add_and_remove(self, draft):
        draft.add_section()
        draft.add_section()
        survey = draft.add_score_rule("id2", 10, ScoreOperator.LTE, "id3")
        rule = survey.sections["id2"].branch_rules[0]
        assert (rule.threshold, rule.operator, rule.target_section_id) == (10, ScoreOperator.LTE, "id3")

        survey = draft.remove_branch_rule("id2", rule.id)
        assert survey.sections["id2"].branch_rules == []
        with pytest.raises(DraftError):
            draft.remove_branch_rule("id2", rule.id)

    def test_self_target_rejected(self, draft):
        draft.add_section()
        with pytest.raises(DraftError):
            draft.add_score_rule("id2", 0, ScoreOperator.GTE, "id2")

    def test_unknown_target_rejected(self, draft):
        draft.add_section()
        with pytest.raises(DraftError):
            draft.add_score_rule("id2", 0, ScoreOperator.GTE, "nowhere")

    def test_answer_rule_needs_question_in_section(self, draft):
        draft.add_section()
        draft.add_section()
        draft.add_question("id3", QuestionType.CHOICE)
        draft.add_option("id4", "a")
        with pytest.raises(DraftError):
            draft.add_answer_rule("id2", "id4", "id5", "id3")
        with pytest.raises(DraftError):
            draft.add_answer_rule("id3", "id4", "missing", "id2")
        assert draft.add_answer_rule("id3", "id4", "id5", "id2").sections["id3"].branch_rules


class TestSurveySettings:
    """Tests for survey-level settings."""

    def test_score_ranges(self, draft):
        draft.add_score_range(0, 10, "Low")
        survey = draft.add_score_range(11, 20, "High")
        assert [r.message for r in survey.result_config.ranges] == ["Low", "High"]

        survey = draft.update_score_range("id2", message="Bottom")
        assert survey.result_config.ranges[0].message == "Bottom"
        survey = draft.remove_score_range("id2")
        assert [r.id for r in survey.result_config.ranges] == ["id3"]
        assert not draft.set_show_score(False).result_config.show_score

    def test_details(self, draft):
        survey = draft.update_details(title="Renamed")
        assert survey.title == "Renamed"
        assert survey.description == ""


class TestLifecycle:
    """Tests for status transitions."""

    def test_publish_lock_unlock(self, draft):
        survey = draft.publish(now=5000)
        assert survey.status == SurveyStatus.PUBLISHED
        assert survey.published_at == 5000
        assert draft.lock().status == SurveyStatus.LOCKED
        assert draft.unlock().status == SurveyStatus.PUBLISHED

    def test_no_path_back_to_draft(self, draft):
        draft.publish(now=1)
        with pytest.raises(DraftError):
            draft.publish(now=2)
        with pytest.raises(DraftError):
            draft.unlock()

    def test_publish_checks_schedule(self, draft):
        draft.set_schedule(open_at=100, close_at=100)
        with pytest.raises(DraftError):
            draft.publish(now=1)
        draft.set_schedule(open_at=100, close_at=200)
        assert draft.publish(now=1).status == SurveyStatus.PUBLISHED

    def test_scoring_frozen_after_publish(self, draft):
        draft.add_section()
        draft.add_question("id2", QuestionType.CHOICE)
        draft.add_option("id3", "a", 1)
        draft.publish(now=1)

        with pytest.raises(DraftError):
            draft.update_option("id3", "id4", points=5)
        with pytest.raises(DraftError):
            draft.delete_question("id3")
        with pytest.raises(DraftError):
            draft.set_choice_mode("id3", SelectionMode.RANGE)

        survey = draft.update_option("id3", "id4", label="Renamed")
        assert survey.questions["id3"].options[0].label == "Renamed"
