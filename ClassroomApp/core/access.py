"""Role & object access helpers."""

from typing import Any

from rest_framework.exceptions import PermissionDenied

from ClassroomApp.classes.models import Classroom
from ClassroomApp.core.choices import UserRole
from ClassroomApp.enrollments.models import Enrollment
from ClassroomApp.learning.models import Assignment, Submission, SubmissionGrade, SubmissionComment


def classroom_from(obj: Any) -> Classroom | None:
    if obj is None:
        return None
    if isinstance(obj, Classroom):
        return obj
    if isinstance(obj, (Assignment, Enrollment)):
        return obj.classroom
    if isinstance(obj, Submission):
        return obj.assignment.classroom
    if isinstance(obj, SubmissionGrade):
        return obj.submission.assignment.classroom
    if isinstance(obj, SubmissionComment):
        return obj.submission.assignment.classroom
    return getattr(obj, "classroom", None)


def is_admin(user) -> bool:
    return bool(user and (user.is_staff or getattr(user, "role", None) == UserRole.ADMIN))


def is_instructor(user, classroom: Classroom | None) -> bool:
    return bool(user and classroom and classroom.instructor_id == user.id)


def can_grade(user, classroom: Classroom | None) -> bool:
    """Instructor of the class or an administrator."""
    return is_instructor(user, classroom) or is_admin(user)


def is_participant(user, obj: Any) -> bool:
    """User owns the submission/enrollment behind obj, or may grade its class."""
    if isinstance(obj, (Submission, Enrollment)) and obj.student_id == user.id:
        return True
    if isinstance(obj, (SubmissionGrade, SubmissionComment)) and obj.submission.student_id == user.id:
        return True
    return can_grade(user, classroom_from(obj))


def ensure_grader(user, classroom: Classroom | None) -> None:
    """Raise PermissionDenied unless user may manage and grade the class."""
    if not can_grade(user, classroom):
        raise PermissionDenied("Instructor role required")
