"""Roll graded assignment and quiz scores into an enrollment's weighted grade.

The grading engine never writes to enrollments directly: it records a
GradeEvent in its own transaction and this module applies it. Applying an
event upserts one ledger row per (enrollment, assignment), so replaying an
event, or re-grading a submission, never double counts.
"""

import logging

from django.db import transaction

from ClassroomApp.core.clock import Clock, system_clock
from ClassroomApp.core.exceptions import ValidationError
from ClassroomApp.domain.scoring import GradeSummary, summarize_grades
from ClassroomApp.domain.services.enrollment_service import get_enrollment
from ClassroomApp.enrollments.models import AssignmentGradeEntry, Enrollment, QuizGradeEntry
from ClassroomApp.learning.models import GradeEvent

logger = logging.getLogger(__name__)


def calculate_final_grade(enrollment: Enrollment) -> GradeSummary:
    """Recompute total_score, grade_percentage and final_grade from the ledger.

    With a zero total max score the stored grade fields are left as they are.
    """
    entries = [
        *enrollment.assignment_grades.values_list("score", "max_score"),
        *enrollment.quiz_grades.values_list("score", "max_score"),
    ]
    summary = summarize_grades(entries)
    if summary.grade_percentage is None:
        return summary
    enrollment.total_score = summary.total_score
    enrollment.grade_percentage = summary.grade_percentage
    enrollment.final_grade = summary.final_grade
    enrollment.save(update_fields=["total_score", "grade_percentage", "final_grade", "updated_at"])
    logger.info(
        "Enrollment %s graded %.2f%% (%s)", enrollment.pk, summary.grade_percentage, summary.final_grade
    )
    return summary


def _is_superseded(event: GradeEvent, enrollment: Enrollment) -> bool:
    """A later grade of the same submission was already applied to the ledger."""
    newer_applied = GradeEvent.objects.filter(
        submission_id=event.submission_id, pk__gt=event.pk, processed_at__isnull=False
    ).exists()
    if newer_applied:
        return True
    return AssignmentGradeEntry.objects.filter(
        enrollment=enrollment, assignment_id=event.assignment_id, graded_at__gt=event.graded_at
    ).exists()


@transaction.atomic
def apply_grade_event(event_id: int, *, clock: Clock = system_clock) -> Enrollment | None:
    """Apply one pending GradeEvent to the student's enrollment in the assignment's class.

    Returns the updated enrollment, or None when the event was already processed
    or the student has no enrollment in the class. An event superseded by a
    later grade of the same submission is marked processed without touching
    the ledger.
    """
    event = (
        GradeEvent.objects.select_for_update()
        .select_related("assignment")
        .get(pk=event_id)
    )
    if event.processed_at is not None:
        return None

    enrollment = (
        Enrollment.objects.select_for_update()
        .filter(student_id=event.student_id, classroom_id=event.assignment.classroom_id)
        .first()
    )
    if enrollment is None:
        logger.warning(
            "Grade event %s: student %s has no enrollment in class %s",
            event.pk, event.student_id, event.assignment.classroom_id,
        )
    elif _is_superseded(event, enrollment):
        logger.info("Grade event %s superseded by a newer grade; skipped", event.pk)
    else:
        AssignmentGradeEntry.objects.update_or_create(
            enrollment=enrollment,
            assignment_id=event.assignment_id,
            defaults={
                "score": event.score,
                "max_score": event.max_score,
                "graded_at": event.graded_at,
                "graded_by_id": event.graded_by_id,
                "feedback": event.feedback,
            },
        )
        calculate_final_grade(enrollment)

    event.processed_at = clock.now()
    event.save(update_fields=["processed_at"])
    return enrollment


def process_pending_grade_events(*, clock: Clock = system_clock) -> int:
    """Apply every pending event in creation order; returns how many were applied."""
    applied = 0
    for event_id in GradeEvent.objects.pending().order_by("created_at", "id").values_list("id", flat=True):
        apply_grade_event(event_id, clock=clock)
        applied += 1
    return applied


@transaction.atomic
def record_quiz_score(
    enrollment_id: int,
    quiz_ref: str,
    score: float,
    max_score: float,
    *,
    clock: Clock = system_clock,
) -> Enrollment:
    """Store (or replace) a quiz result in the ledger and recompute the final grade."""
    if max_score <= 0 or not 0 <= score <= max_score:
        raise ValidationError({"score": f"Score must be between 0 and {max_score}."})
    enrollment = get_enrollment(enrollment_id, for_update=True)

    entry, created = QuizGradeEntry.objects.get_or_create(
        enrollment=enrollment,
        quiz_ref=quiz_ref,
        defaults={"score": score, "max_score": max_score, "completed_at": clock.now()},
    )
    if not created:
        entry.score = score
        entry.max_score = max_score
        entry.attempts += 1
        entry.completed_at = clock.now()
        entry.save()
    calculate_final_grade(enrollment)
    return enrollment
