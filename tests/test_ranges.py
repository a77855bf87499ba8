"""
Unit tests for score range matching.
"""

import pytest
from engine.ranges import all_matching_ranges, first_matching_range, range_contains
from engine.scoring import build_answer
from models.schemas import ScoreRange


RANGES = [
    ScoreRange(id="a", min=0, max=10, message="Low"),
    ScoreRange(id="b", min=5, max=20, message="Mid"),
    ScoreRange(id="c", min=20, max=30, message="High"),
]


class TestRangeContains:
    """Tests for inclusive containment."""

    @pytest.mark.parametrize("score", [0, 5, 10])
    def test_inclusive_bounds(self, score):
        assert range_contains(RANGES[0], score)

    def test_outside(self):
        assert not range_contains(RANGES[0], 10.5)
        assert not range_contains(RANGES[0], -1)

    def test_non_finite_never_matches(self):
        assert not range_contains(RANGES[0], float("nan"))
        assert not range_contains(ScoreRange(id="x", min=0, max=float("inf")), float("inf"))

    def test_reversed_range_never_matches(self):
        assert not range_contains(ScoreRange(id="x", min=10, max=0), 5)


class TestFirstMatchingRange:
    """Tests for first-match lookup."""

    def test_definition_order_wins_on_overlap(self):
        assert first_matching_range(7, RANGES).id == "a"
        assert first_matching_range(20, RANGES).id == "b"

    def test_no_match(self):
        assert first_matching_range(31, RANGES) is None

    def test_empty(self):
        assert first_matching_range(5, []) is None

    def test_pick_a_color(self, color_survey):
        """Selecting Blue scores 20, which lands in High."""
        question = color_survey.questions["q_color"]
        answer = build_answer(question, "blue")
        assert answer.score == 20
        assert first_matching_range(answer.score, color_survey.result_config.ranges).message == "High"


class TestAllMatchingRanges:
    """Tests for all-match lookup."""

    def test_overlaps_in_order(self):
        assert [r.id for r in all_matching_ranges(7, RANGES)] == ["a", "b"]

    @pytest.mark.parametrize("score", [-5, 0, 5, 10, 15, 20, 25, 30, 31, float("nan")])
    def test_consistent_with_first(self, score):
        """all contains first (by identity); empty exactly when first is None."""
        first = first_matching_range(score, RANGES)
        everything = all_matching_ranges(score, RANGES)
        if first is None:
            assert everything == []
        else:
            assert any(r is first for r in everything)
            assert everything[0] is first
