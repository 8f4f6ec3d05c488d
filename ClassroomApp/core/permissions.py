"""Custom DRF permission classes for class, submission and enrollment access control."""

from rest_framework.request import Request
from typing import Any

from rest_framework.permissions import BasePermission, SAFE_METHODS
from django.shortcuts import get_object_or_404

from ClassroomApp.classes.models import Classroom
from ClassroomApp.core.access import classroom_from, can_grade, is_participant


class IsClassInstructor(BasePermission):
    """Write access limited to the class instructor (GET always allowed)."""

    def _classroom_from_view(self, view: Any) -> Classroom | None:
        classroom = getattr(view, "_resolved_classroom", None)
        if classroom:
            return classroom
        kw = getattr(view, "kwargs", {})
        if "class_pk" in kw:
            classroom = get_object_or_404(Classroom, pk=kw["class_pk"])
            view._resolved_classroom = classroom
        return classroom

    def has_permission(self, request: Request, view: Any) -> bool:
        if request.method in SAFE_METHODS:
            return True
        classroom = self._classroom_from_view(view)
        return True if not classroom else can_grade(request.user, classroom)

    def has_object_permission(self, request: Request, view: Any, obj: Any) -> bool:
        if request.method in SAFE_METHODS:
            return True
        return can_grade(request.user, classroom_from(obj))


class IsGrader(BasePermission):
    """Instructor of the object's class (or an administrator), for every method."""

    def has_object_permission(self, request: Request, view: Any, obj: Any) -> bool:
        return can_grade(request.user, classroom_from(obj))


class ParticipantPermission(BasePermission):
    """Unified participant permission for Submission, SubmissionComment and Enrollment."""

    def has_object_permission(self, request: Request, view: Any, obj: Any) -> bool:
        return is_participant(request.user, obj)
