"""Querysets for classroom visibility and active study materials."""

from django.db.models import QuerySet
from typing import Self


class ClassroomQuerySet(QuerySet):
    """QuerySet helpers for classrooms."""

    def published(self) -> Self:
        return self.filter(is_published=True)

    def taught_by(self, user) -> Self:
        """Classrooms where the user is the instructor."""
        return self.filter(instructor=user)


class StudyMaterialQuerySet(QuerySet):
    """QuerySet helpers for study materials."""

    def active_for(self, classroom_id: int) -> Self:
        """Active materials of a class; their count is the progress denominator."""
        return self.filter(classroom_id=classroom_id, is_active=True)
