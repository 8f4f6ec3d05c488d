"""Domain service functions for the assignment lifecycle.

Assignments are created as drafts by the class instructor, published to make
them submittable, and may only be deleted while nobody has submitted.
"""

import logging
from typing import Any

from django.db import transaction
from django.db.models import QuerySet

from ClassroomApp.classes.models import Classroom
from ClassroomApp.core.access import can_grade, ensure_grader
from ClassroomApp.core.exceptions import AssignmentHasSubmissions, AssignmentNotFound, ValidationError
from ClassroomApp.learning.models import Assignment
from ClassroomApp.users.models import User

logger = logging.getLogger(__name__)


def get_assignment(assignment_id: int, *, for_update: bool = False) -> Assignment:
    """Fetch an assignment by id or raise AssignmentNotFound."""
    qs = Assignment.objects.select_related("classroom")
    if for_update:
        qs = qs.select_for_update()
    try:
        return qs.get(pk=assignment_id)
    except Assignment.DoesNotExist:
        raise AssignmentNotFound() from None


def _validate_window_and_scores(max_score, passing_score, available_from, due_date) -> None:
    if passing_score > max_score:
        raise ValidationError({"passing_score": "Passing score cannot exceed max score."})
    if available_from and available_from > due_date:
        raise ValidationError({"available_from": "Assignment must open before its due date."})


@transaction.atomic
def create_assignment(instructor: User, classroom: Classroom, data: dict[str, Any]) -> Assignment:
    """Create a draft assignment in a class (instructor only).

    Raises:
        PermissionDenied: If user cannot manage the class.
        ValidationError: If passing_score exceeds max_score or available_from is after due_date.
    """
    ensure_grader(instructor, classroom)
    _validate_window_and_scores(
        data.get("max_score", 100), data.get("passing_score", 0), data.get("available_from"), data["due_date"]
    )
    assignment = Assignment.objects.create(classroom=classroom, created_by=instructor, **data)
    logger.info("Assignment %s created in class %s by %s", assignment.pk, classroom.pk, instructor.pk)
    return assignment


@transaction.atomic
def update_assignment(instructor: User, assignment: Assignment, data: dict[str, Any]) -> Assignment:
    """Apply a partial update to an assignment (instructor only).

    Existing submissions keep their is_late stamp even when due_date moves.

    Raises:
        PermissionDenied: If user cannot manage the class.
        ValidationError: If the updated passing_score exceeds max_score or
            available_from falls after due_date.
    """
    ensure_grader(instructor, assignment.classroom)
    merged = {field: data.get(field, getattr(assignment, field))
              for field in ("max_score", "passing_score", "available_from", "due_date")}
    _validate_window_and_scores(**merged)
    for field, value in data.items():
        setattr(assignment, field, value)
    assignment.save(update_fields=[*data, "updated_at"])
    logger.info("Assignment %s updated (%s)", assignment.pk, ", ".join(sorted(data)) or "no fields")
    return assignment


@transaction.atomic
def publish_assignment(instructor: User, assignment: Assignment) -> Assignment:
    """Publish a draft so enrolled students can submit."""
    ensure_grader(instructor, assignment.classroom)
    if not assignment.is_published:
        assignment.is_published = True
        assignment.save(update_fields=["is_published", "updated_at"])
        logger.info("Assignment %s published", assignment.pk)
    return assignment


@transaction.atomic
def delete_assignment(instructor: User, assignment: Assignment) -> None:
    """Delete an assignment that has no submissions yet."""
    ensure_grader(instructor, assignment.classroom)
    if assignment.submissions.exists():
        logger.warning("Refused to delete assignment %s with submissions", assignment.pk)
        raise AssignmentHasSubmissions()
    assignment.delete()


def list_assignments_for_class(user: User, classroom: Classroom) -> QuerySet[Assignment]:
    """Assignments of a class ordered by due date; non-instructors see published ones only."""
    qs = Assignment.objects.filter(classroom=classroom).select_related("created_by")
    if not can_grade(user, classroom):
        qs = qs.published()
    return qs.order_by("due_date")
