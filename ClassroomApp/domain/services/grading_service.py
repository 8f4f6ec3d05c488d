"""Grading engine: instructor grades, late penalties and returned submissions.

State transitions:
    SUBMITTED | LATE | RESUBMITTED -> GRADED -> RETURNED
Re-grading a GRADED/RETURNED submission overwrites the grade when the
CLASSROOM["REGRADE_POLICY"] is "allow"; every version is kept in the grade's
history table.
"""

import logging
from numbers import Real
from typing import Any

from django.db import transaction

from ClassroomApp.core.choices import NotificationKind, SubmissionStatus
from ClassroomApp.core.clock import Clock, system_clock
from ClassroomApp.core.conf import classroom_settings
from ClassroomApp.core.exceptions import RegradeNotAllowed, ValidationError
from ClassroomApp.domain.collaborators import NotificationSinkProtocol, dispatch_notification
from ClassroomApp.domain.scoring import apply_late_penalty
from ClassroomApp.domain.services import grade_aggregator
from ClassroomApp.core.access import ensure_grader
from ClassroomApp.domain.services.assignment_service import get_assignment
from ClassroomApp.domain.services.statistics_service import recompute_statistics
from ClassroomApp.domain.services.submission_service import get_submission
from ClassroomApp.learning.models import Assignment, GradeEvent, Submission, SubmissionGrade
from ClassroomApp.users.models import User

logger = logging.getLogger(__name__)


def _validate_rubric_scores(assignment: Assignment, rubric_scores: list[dict[str, Any]]) -> None:
    limits = {row["criterion"]: row.get("max_points") for row in assignment.rubric}
    for row in rubric_scores:
        if not isinstance(row, dict) or not row.get("criterion"):
            raise ValidationError({"rubric_scores": "Each rubric score needs a criterion."})
        score = row.get("score", 0)
        if isinstance(score, bool) or not isinstance(score, Real):
            raise ValidationError({"rubric_scores": f"Score for criterion {row['criterion']!r} must be a number."})
        limit = limits.get(row["criterion"])
        if score < 0 or (limit is not None and score > limit):
            raise ValidationError({"rubric_scores": f"Invalid score for criterion {row['criterion']!r}."})


def grade_submission(
    grader: User,
    assignment_id: int,
    student_id: int,
    score: float,
    feedback: str = "",
    rubric_scores: list[dict[str, Any]] | None = None,
    *,
    clock: Clock = system_clock,
    notification_sink: NotificationSinkProtocol | None = None,
) -> Submission:
    """Grade the student's submission, applying the late penalty when it was late.

    Stored score = max(0, score - max_score * late_penalty / 100) for late
    submissions, the raw score otherwise. The enrollment ledger is updated
    from the GradeEvent written alongside the grade.

    Raises:
        AssignmentNotFound / SubmissionNotFound: Unknown assignment or no submission.
        PermissionDenied: Grader is not the class instructor.
        ValidationError: Score outside [0, max_score] or malformed rubric scores.
        RegradeNotAllowed: Already graded and re-grading is disabled.
    """
    rubric_scores = rubric_scores or []
    with transaction.atomic():
        now = clock.now()
        assignment = get_assignment(assignment_id, for_update=True)
        ensure_grader(grader, assignment.classroom)
        if not 0 <= score <= assignment.max_score:
            raise ValidationError({"score": f"Score must be between 0 and {assignment.max_score}."})
        _validate_rubric_scores(assignment, rubric_scores)

        submission = get_submission(assignment.pk, student_id, for_update=True)
        existing = SubmissionGrade.objects.filter(submission=submission).first()
        already_graded = submission.status in (SubmissionStatus.GRADED, SubmissionStatus.RETURNED)
        if already_graded and not classroom_settings().allows_regrade:
            logger.warning("Re-grade of submission %s rejected by policy", submission.pk)
            raise RegradeNotAllowed()

        stored = apply_late_penalty(score, assignment.max_score, assignment.late_penalty, submission.is_late)
        SubmissionGrade.objects.update_or_create(
            submission=submission,
            defaults={
                "score": stored,
                "raw_score": score,
                "feedback": feedback,
                "graded_by": grader,
                "graded_at": now,
                "rubric_scores": rubric_scores,
            },
        )
        submission.status = SubmissionStatus.GRADED
        submission.save(update_fields=["status", "updated_at"])
        recompute_statistics(assignment)
        event = GradeEvent.objects.create(
            submission=submission,
            assignment=assignment,
            student_id=student_id,
            score=stored,
            max_score=assignment.max_score,
            feedback=feedback,
            graded_by=grader,
            graded_at=now,
        )

    logger.info(
        "Submission %s graded %s -> %s by %s%s",
        submission.pk, score, stored, grader.pk, " (regrade)" if existing else "",
    )
    try:
        grade_aggregator.apply_grade_event(event.pk, clock=clock)
    except Exception:
        # The event stays pending; process_grade_events re-applies it.
        logger.exception("Grade event %s could not be applied", event.pk)

    dispatch_notification(
        notification_sink,
        NotificationKind.ASSIGNMENT_GRADED,
        student_id,
        {"assignment_id": assignment.pk, "score": stored, "max_score": assignment.max_score},
    )
    submission.refresh_from_db()
    return submission


@transaction.atomic
def return_submission(instructor: User, assignment_id: int, student_id: int) -> Submission:
    """Hand a graded submission back to the student (GRADED -> RETURNED)."""
    assignment = get_assignment(assignment_id)
    ensure_grader(instructor, assignment.classroom)
    submission = get_submission(assignment.pk, student_id, for_update=True)
    if submission.status != SubmissionStatus.GRADED:
        raise ValidationError({"status": "Only graded submissions can be returned."})
    submission.status = SubmissionStatus.RETURNED
    submission.save(update_fields=["status", "updated_at"])
    return submission
