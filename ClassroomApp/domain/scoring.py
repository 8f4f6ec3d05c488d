"""Pure scoring arithmetic shared by the grading, progress and certificate services.

Nothing here touches the database; services feed plain values in and persist
what comes out.
"""

import math
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Sequence

from ClassroomApp.core.choices import ATTENDED_STATUSES, EnrollmentStatus, FinalGrade

# Inclusive lower bounds, checked top-down.
GRADE_BANDS: tuple[tuple[float, FinalGrade], ...] = (
    (90, FinalGrade.A_PLUS),
    (80, FinalGrade.A),
    (70, FinalGrade.B_PLUS),
    (60, FinalGrade.B),
    (50, FinalGrade.C_PLUS),
    (40, FinalGrade.C),
    (30, FinalGrade.D),
)


def round_half_up(value: float) -> int:
    """Round .5 away from zero for non-negative values (Python's round() is banker's)."""
    return int(math.floor(value + 0.5))


def apply_late_penalty(score: float, max_score: float, late_penalty: float, is_late: bool) -> float:
    """Deduct late_penalty percent of max_score from a late submission, never below 0."""
    if not is_late or late_penalty <= 0:
        return score
    return max(0.0, score - max_score * late_penalty / 100)


@dataclass(frozen=True)
class AssignmentStatistics:
    total_submissions: int = 0
    average_score: float = 0
    highest_score: float = 0
    lowest_score: float = 0
    on_time_submissions: int = 0
    late_submissions: int = 0


def compute_statistics(
    submissions: Sequence[tuple[bool, float | None]],
    previous: AssignmentStatistics,
) -> AssignmentStatistics:
    """Recompute assignment aggregates.

    Args:
        submissions: (is_late, score) per submission; score is None when ungraded.
        previous: Current aggregates; score fields are kept when nothing is graded.
    """
    scores = [score for _, score in submissions if score is not None]
    late = sum(1 for is_late, _ in submissions if is_late)
    if scores:
        average, highest, lowest = sum(scores) / len(scores), max(scores), min(scores)
    else:
        average, highest, lowest = previous.average_score, previous.highest_score, previous.lowest_score
    return AssignmentStatistics(
        total_submissions=len(submissions),
        average_score=average,
        highest_score=highest,
        lowest_score=lowest,
        on_time_submissions=len(submissions) - late,
        late_submissions=late,
    )


def band_for_percentage(percentage: float) -> FinalGrade:
    """Map a grade percentage to its letter band."""
    for lower_bound, letter in GRADE_BANDS:
        if percentage >= lower_bound:
            return letter
    return FinalGrade.F


@dataclass(frozen=True)
class GradeSummary:
    total_score: float
    total_max_score: float
    grade_percentage: float | None
    final_grade: FinalGrade | None


def summarize_grades(entries: Iterable[tuple[float | None, float | None]]) -> GradeSummary:
    """Sum (score, max_score) pairs of assignments and quizzes into a weighted grade.

    With no max score at all the percentage and letter stay None.
    """
    total_score = total_max = 0.0
    for score, max_score in entries:
        total_score += score or 0
        total_max += max_score or 0
    if total_max <= 0:
        return GradeSummary(total_score, total_max, None, None)
    percentage = min(100.0, max(0.0, total_score / total_max * 100))
    return GradeSummary(total_score, total_max, percentage, band_for_percentage(percentage))


def completion_percentage(completed: int, total_materials: int) -> int:
    if total_materials <= 0:
        return 0
    return min(100, round_half_up(completed / total_materials * 100))


def attendance_percentage(statuses: Sequence[str]) -> int:
    """Share of sessions attended, counting 'late' as attended."""
    if not statuses:
        return 0
    attended = sum(1 for status in statuses if status in ATTENDED_STATUSES)
    return round_half_up(attended / len(statuses) * 100)


def is_eligible_for_certificate(
    percentage_complete: int,
    status: str,
    grade_percentage: float | None,
    min_percentage: float = 40,
) -> bool:
    return (
        percentage_complete == 100
        and status == EnrollmentStatus.COMPLETED
        and grade_percentage is not None
        and grade_percentage >= min_percentage
    )


def make_certificate_id(issued_at: datetime, enrollment_id: int) -> str:
    return f"CERT-{int(issued_at.timestamp() * 1000)}-{enrollment_id}"
