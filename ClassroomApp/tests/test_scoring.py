from datetime import datetime, timezone as dt_timezone

import pytest
from hypothesis import given, strategies as st

from ClassroomApp.core.choices import FinalGrade
from ClassroomApp.domain.scoring import (
    AssignmentStatistics,
    apply_late_penalty,
    attendance_percentage,
    band_for_percentage,
    completion_percentage,
    compute_statistics,
    is_eligible_for_certificate,
    make_certificate_id,
    summarize_grades,
)

scores = st.floats(min_value=0, max_value=100, allow_nan=False)


class TestLatePenalty:
    """Tests for the late-penalty arithmetic."""

    def test_late_submission_loses_percentage_of_max_score(self) -> None:
        assert apply_late_penalty(80, 100, 10, is_late=True) == 70

    def test_on_time_submission_keeps_raw_score(self) -> None:
        assert apply_late_penalty(80, 100, 10, is_late=False) == 80

    def test_zero_penalty_is_ignored(self) -> None:
        assert apply_late_penalty(80, 100, 0, is_late=True) == 80

    def test_penalty_never_goes_below_zero(self) -> None:
        assert apply_late_penalty(5, 100, 50, is_late=True) == 0

    @given(score=scores, penalty=st.floats(min_value=0, max_value=100, allow_nan=False))
    def test_penalized_score_stays_in_range(self, score: float, penalty: float) -> None:
        stored = apply_late_penalty(score, 100, penalty, is_late=True)
        assert 0 <= stored <= score


class TestStatistics:
    """Tests for the assignment aggregates."""

    def test_aggregates_graded_scores_and_counts_all_submissions(self) -> None:
        stats = compute_statistics([(False, 90), (True, 60), (False, None)], AssignmentStatistics())
        assert stats.total_submissions == 3
        assert stats.average_score == 75
        assert stats.highest_score == 90
        assert stats.lowest_score == 60
        assert stats.on_time_submissions == 2
        assert stats.late_submissions == 1

    def test_no_graded_submissions_keeps_previous_scores(self) -> None:
        previous = AssignmentStatistics(total_submissions=1, average_score=55, highest_score=70, lowest_score=40)
        stats = compute_statistics([(True, None), (False, None)], previous)
        assert (stats.average_score, stats.highest_score, stats.lowest_score) == (55, 70, 40)
        assert stats.total_submissions == 2
        assert stats.late_submissions == 1

    @given(st.lists(st.tuples(st.booleans(), st.one_of(st.none(), scores)), max_size=30))
    def test_on_time_plus_late_equals_total(self, submissions) -> None:
        stats = compute_statistics(submissions, AssignmentStatistics())
        assert stats.on_time_submissions + stats.late_submissions == stats.total_submissions


@pytest.mark.parametrize("percentage,letter", [
    (100, FinalGrade.A_PLUS),
    (90.0, FinalGrade.A_PLUS),
    (89.99, FinalGrade.A),
    (80, FinalGrade.A),
    (70, FinalGrade.B_PLUS),
    (69.9, FinalGrade.B),
    (60, FinalGrade.B),
    (50, FinalGrade.C_PLUS),
    (40, FinalGrade.C),
    (39.99, FinalGrade.D),
    (30, FinalGrade.D),
    (29.99, FinalGrade.F),
    (0, FinalGrade.F),
])
def test_band_boundaries(percentage: float, letter: FinalGrade) -> None:
    assert band_for_percentage(percentage) == letter


def test_summarize_grades_single_assignment_scenario() -> None:
    summary = summarize_grades([(80, 100)])
    assert summary.grade_percentage == 80
    assert summary.final_grade == FinalGrade.A
    assert summary.total_score == 80


def test_summarize_grades_without_max_score_leaves_grade_unset() -> None:
    summary = summarize_grades([])
    assert summary.grade_percentage is None
    assert summary.final_grade is None


@given(st.lists(st.tuples(scores, st.just(100.0)), min_size=1, max_size=20))
def test_grade_percentage_in_range(entries) -> None:
    summary = summarize_grades(entries)
    assert 0 <= summary.grade_percentage <= 100


def test_attendance_scenario() -> None:
    assert attendance_percentage(["present", "present", "absent", "late"]) == 75


def test_attendance_without_records_is_zero() -> None:
    assert attendance_percentage([]) == 0


def test_excused_does_not_count_as_attended() -> None:
    assert attendance_percentage(["excused", "present"]) == 50


@pytest.mark.parametrize("completed,total,expected", [
    (0, 0, 0),
    (3, 0, 0),
    (1, 3, 33),
    (2, 3, 67),
    (1, 8, 13),
    (4, 4, 100),
    (5, 4, 100),
])
def test_completion_percentage(completed: int, total: int, expected: int) -> None:
    assert completion_percentage(completed, total) == expected


class TestEligibility:

    def test_all_criteria_met(self) -> None:
        assert is_eligible_for_certificate(100, "completed", 40)

    def test_incomplete_progress_blocks_even_with_passing_grade(self) -> None:
        assert not is_eligible_for_certificate(99, "completed", 95)

    def test_active_status_blocks(self) -> None:
        assert not is_eligible_for_certificate(100, "active", 95)

    def test_failing_or_missing_grade_blocks(self) -> None:
        assert not is_eligible_for_certificate(100, "completed", 39.9)
        assert not is_eligible_for_certificate(100, "completed", None)


def test_certificate_id_embeds_timestamp_and_enrollment() -> None:
    issued_at = datetime(2026, 1, 1, tzinfo=dt_timezone.utc)
    assert make_certificate_id(issued_at, 42) == "CERT-1767225600000-42"
