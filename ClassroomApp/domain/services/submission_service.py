"""Submission ledger: one attempt history per (assignment, student).

Rules:
    - The assignment must exist, be published and be open (now >= available_from).
    - The student needs an active enrollment in the assignment's class.
    - A resubmission requires attempt < max_attempts; it overwrites content,
      files and submitted_at and re-stamps is_late for that attempt.
State transitions:
    (new) -> SUBMITTED | LATE
    existing -> RESUBMITTED | LATE
An earlier grade stays attached to a resubmitted attempt until it is re-graded.
"""

import logging
from typing import Any

from django.db import transaction
from rest_framework.exceptions import PermissionDenied

from ClassroomApp.core.choices import NotificationKind, SubmissionStatus
from ClassroomApp.core.clock import Clock, system_clock
from ClassroomApp.core.exceptions import AssignmentNotFound, AttemptLimitExceeded, SubmissionNotFound, ValidationError
from ClassroomApp.core.access import is_participant
from ClassroomApp.domain.collaborators import (
    EnrollmentLookupProtocol,
    NotificationSinkProtocol,
    active_enrollment_lookup,
    dispatch_notification,
)
from ClassroomApp.domain.services.assignment_service import get_assignment
from ClassroomApp.domain.services.statistics_service import recompute_statistics
from ClassroomApp.learning.models import Submission, SubmissionComment
from ClassroomApp.users.models import User

logger = logging.getLogger(__name__)


def submit(
    student: User,
    assignment_id: int,
    content: str = "",
    files: list[dict[str, Any]] | None = None,
    *,
    clock: Clock = system_clock,
    enrollment_lookup: EnrollmentLookupProtocol = active_enrollment_lookup,
    notification_sink: NotificationSinkProtocol | None = None,
) -> Submission:
    """Create or resubmit the student's submission for an assignment.

    Raises:
        AssignmentNotFound: Unknown, unpublished or not yet available assignment.
        NotEnrolled: No active enrollment in the assignment's class.
        AttemptLimitExceeded: The student already used max_attempts.
        ValidationError: Neither content nor files supplied.
    """
    files = files or []
    if not content and not files:
        raise ValidationError("Empty submission")

    with transaction.atomic():
        now = clock.now()
        assignment = get_assignment(assignment_id, for_update=True)
        if not assignment.is_published:
            raise AssignmentNotFound()
        if assignment.available_from and now < assignment.available_from:
            raise AssignmentNotFound("Assignment is not available yet.")
        enrollment_lookup(student.id, assignment.classroom_id)

        is_late = now > assignment.due_date
        submission = (
            Submission.objects.select_for_update()
            .filter(assignment=assignment, student=student)
            .first()
        )
        if submission is None:
            submission = Submission.objects.create(
                assignment=assignment,
                student=student,
                attempt=1,
                content=content,
                files=files,
                submitted_at=now,
                is_late=is_late,
                status=SubmissionStatus.LATE if is_late else SubmissionStatus.SUBMITTED,
            )
        else:
            if submission.attempt >= assignment.max_attempts:
                logger.warning(
                    "Student %s hit the attempt limit (%s) on assignment %s",
                    student.pk, assignment.max_attempts, assignment.pk,
                )
                raise AttemptLimitExceeded()
            submission.attempt += 1
            submission.content = content
            submission.files = files
            submission.submitted_at = now
            submission.is_late = is_late
            submission.status = SubmissionStatus.LATE if is_late else SubmissionStatus.RESUBMITTED
            submission.save()
        recompute_statistics(assignment)

    logger.info(
        "Student %s submitted assignment %s (attempt %s, late=%s)",
        student.pk, assignment.pk, submission.attempt, is_late,
    )
    dispatch_notification(
        notification_sink,
        NotificationKind.ASSIGNMENT_SUBMITTED,
        assignment.classroom.instructor_id,
        {"assignment_id": assignment.pk, "student_id": student.pk, "attempt": submission.attempt},
    )
    return submission


def get_submission(assignment_id: int, student_id: int, *, for_update: bool = False) -> Submission:
    """Fetch the (assignment, student) submission or raise SubmissionNotFound."""
    qs = Submission.objects.select_related("assignment__classroom")
    if for_update:
        qs = qs.select_for_update()
    try:
        return qs.get(assignment_id=assignment_id, student_id=student_id)
    except Submission.DoesNotExist:
        raise SubmissionNotFound() from None


@transaction.atomic
def add_comment(author: User, submission: Submission, content: str) -> SubmissionComment:
    """Comment on a submission (its student or anyone who may grade it)."""
    if not is_participant(author, submission):
        raise PermissionDenied("Not a participant of this submission")
    if not content.strip():
        raise ValidationError({"content": "Comment cannot be empty."})
    return SubmissionComment.objects.create(submission=submission, author=author, content=content)
