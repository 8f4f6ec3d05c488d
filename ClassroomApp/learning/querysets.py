"""Querysets encapsulating role-based filtering for assignments, submissions and grade events."""

from django.db.models import QuerySet, Q
from typing import Self


class AssignmentQuerySet(QuerySet):
    """QuerySet helpers for assignment visibility."""

    def published(self) -> Self:
        return self.filter(is_published=True)

    def visible_to(self, user) -> Self:
        """Assignments visible to user:
        - Instructor of the class: all, drafts included
        - Anyone else: published only
        """
        return self.filter(Q(is_published=True) | Q(classroom__instructor=user))


class SubmissionQuerySet(QuerySet):
    """QuerySet helpers for filtering submissions by role."""

    def for_instructor(self, user) -> Self:
        """Submissions in classes the user teaches."""
        return self.filter(assignment__classroom__instructor=user)

    def for_student(self, user) -> Self:
        """Submissions belonging to the student."""
        return self.filter(student=user)

    def graded(self) -> Self:
        return self.filter(grade__isnull=False)


class GradeEventQuerySet(QuerySet):

    def pending(self) -> Self:
        """Events not yet applied to the enrollment grade ledger."""
        return self.filter(processed_at__isnull=True)
