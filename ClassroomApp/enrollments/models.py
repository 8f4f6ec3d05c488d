"""Enrollment domain models: Enrollment plus its progress, grade ledger and attendance rows."""

from django.db import models
from django.conf import settings
from django.core.validators import MinValueValidator, MaxValueValidator
from django.db.models import QuerySet
from typing import Self

from simple_history.models import HistoricalRecords

from ClassroomApp.classes.models import Classroom, StudyMaterial
from ClassroomApp.core.choices import (
    ACTIVE_ENROLLMENT_STATUSES,
    AttendanceStatus,
    EnrollmentStatus,
    FinalGrade,
    SessionType,
)

User = settings.AUTH_USER_MODEL


class EnrollmentQuerySet(QuerySet):

    def active(self) -> Self:
        """Active enrollments ('enrolled' is the legacy spelling of 'active')."""
        return self.filter(status__in=ACTIVE_ENROLLMENT_STATUSES)

    def for_class(self, classroom_id: int) -> Self:
        return self.filter(classroom_id=classroom_id)


class Enrollment(models.Model):
    """A student's membership in a class with progress, grade and certificate state.

    Fields:
        percentage_complete: Derived from completed lessons / active materials.
        grade_percentage / final_grade / total_score: Derived from the grade ledger
            (AssignmentGradeEntry + QuizGradeEntry); null until anything is graded.
        certificate_*: Certificate stamp; once issued it is never revoked here.
    Constraints:
        uq_enrollment_student_class: One enrollment per (student, class).
    """
    student = models.ForeignKey(User, on_delete=models.CASCADE, related_name="enrollments")
    classroom = models.ForeignKey(Classroom, on_delete=models.CASCADE, related_name="enrollments")
    status = models.CharField(max_length=16, choices=EnrollmentStatus.choices, default=EnrollmentStatus.ACTIVE)
    enrolled_at = models.DateTimeField(auto_now_add=True)
    completion_date = models.DateTimeField(null=True, blank=True)

    current_lesson = models.ForeignKey(
        StudyMaterial, on_delete=models.SET_NULL, null=True, blank=True, related_name="+"
    )
    percentage_complete = models.PositiveSmallIntegerField(
        default=0, validators=[MinValueValidator(0), MaxValueValidator(100)]
    )
    last_accessed_at = models.DateTimeField(null=True, blank=True)

    final_grade = models.CharField(max_length=2, choices=FinalGrade.choices, null=True, blank=True)
    total_score = models.FloatField(default=0)
    grade_percentage = models.FloatField(
        null=True, blank=True, validators=[MinValueValidator(0), MaxValueValidator(100)]
    )

    certificate_issued = models.BooleanField(default=False)
    certificate_issued_date = models.DateTimeField(null=True, blank=True)
    certificate_id = models.CharField(max_length=64, blank=True)
    certificate_url = models.CharField(max_length=255, blank=True)

    updated_at = models.DateTimeField(auto_now=True)
    history = HistoricalRecords()

    objects = EnrollmentQuerySet.as_manager()

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=["student", "classroom"], name="uq_enrollment_student_class"),
        ]
        indexes = [
            models.Index(fields=["classroom", "status"], name="ix_enrollment_class_status"),
            models.Index(fields=["percentage_complete"], name="ix_enrollment_progress"),
        ]

    def __str__(self) -> str:
        return f"Enrollment({self.student_id} -> {self.classroom_id}, {self.status})"

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_ENROLLMENT_STATUSES

    @property
    def certificate(self) -> dict:
        return {
            "issued": self.certificate_issued,
            "issued_date": self.certificate_issued_date,
            "certificate_id": self.certificate_id,
            "certificate_url": self.certificate_url,
        }


class LessonCompletion(models.Model):
    """A completed lesson; time_spent (seconds) keeps accumulating on repeat visits."""
    enrollment = models.ForeignKey(Enrollment, on_delete=models.CASCADE, related_name="completed_lessons")
    lesson = models.ForeignKey(StudyMaterial, on_delete=models.CASCADE, related_name="completions")
    completed_at = models.DateTimeField()
    time_spent = models.PositiveIntegerField(default=0)

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=["enrollment", "lesson"], name="uq_completion_enrollment_lesson"),
        ]


class AssignmentGradeEntry(models.Model):
    """The enrollment-side copy of a graded assignment score (one per assignment)."""
    enrollment = models.ForeignKey(Enrollment, on_delete=models.CASCADE, related_name="assignment_grades")
    assignment = models.ForeignKey("learning.Assignment", on_delete=models.CASCADE, related_name="ledger_entries")
    score = models.FloatField()
    max_score = models.FloatField()
    graded_at = models.DateTimeField()
    graded_by = models.ForeignKey(User, on_delete=models.PROTECT, related_name="+")
    feedback = models.TextField(blank=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=["enrollment", "assignment"], name="uq_ledger_enrollment_assignment"),
        ]


class QuizGradeEntry(models.Model):
    """A quiz score reported by the quiz subsystem (quizzes are identified by an opaque ref)."""
    enrollment = models.ForeignKey(Enrollment, on_delete=models.CASCADE, related_name="quiz_grades")
    quiz_ref = models.CharField(max_length=64)
    score = models.FloatField(validators=[MinValueValidator(0)])
    max_score = models.FloatField(validators=[MinValueValidator(0)])
    attempts = models.PositiveSmallIntegerField(default=1)
    completed_at = models.DateTimeField()

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=["enrollment", "quiz_ref"], name="uq_quiz_enrollment_ref"),
        ]


class AttendanceRecord(models.Model):
    """One attended (or missed) session; no de-duplication by date."""
    enrollment = models.ForeignKey(Enrollment, on_delete=models.CASCADE, related_name="attendance")
    date = models.DateTimeField()
    status = models.CharField(max_length=16, choices=AttendanceStatus.choices)
    session_type = models.CharField(max_length=16, choices=SessionType.choices, default=SessionType.LECTURE)
    duration = models.PositiveIntegerField(default=60)
    notes = models.TextField(blank=True)

    class Meta:
        ordering = ["date", "id"]
