"""Learning domain models: Assignment, Submission, SubmissionGrade, SubmissionComment, GradeEvent."""

from django.db import models
from django.conf import settings
from django.core.validators import MinValueValidator, MaxValueValidator

from simple_history.models import HistoricalRecords

from ClassroomApp.classes.models import Classroom
from ClassroomApp.core.choices import AssignmentType, SubmissionStatus
from ClassroomApp.core.validators import validate_rubric, validate_submission_files
from ClassroomApp.learning.querysets import AssignmentQuerySet, SubmissionQuerySet, GradeEventQuerySet

User = settings.AUTH_USER_MODEL

class Assignment(models.Model):
    """A gradable unit of work scoped to a class.

    Fields:
        due_date / available_from: Submission window; submissions after due_date are late.
        max_score / passing_score: Scoring range.
        late_penalty: Percent of max_score deducted from a late submission's grade.
        max_attempts: Upper bound on a student's submission attempts.
        rubric: List of {criterion, description, max_points}.
        total_submissions .. late_submissions: Derived statistics, recomputed on every
            submit/grade; never edited by hand.
    """
    classroom = models.ForeignKey(Classroom, on_delete=models.CASCADE, related_name="assignments")
    title = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    instructions = models.TextField(blank=True)
    type = models.CharField(max_length=16, choices=AssignmentType.choices, default=AssignmentType.HOMEWORK)
    created_by = models.ForeignKey(User, on_delete=models.PROTECT, related_name="created_assignments")
    due_date = models.DateTimeField()
    available_from = models.DateTimeField(null=True, blank=True)
    max_score = models.FloatField(default=100, validators=[MinValueValidator(0)])
    passing_score = models.FloatField(default=40, validators=[MinValueValidator(0)])
    late_penalty = models.FloatField(default=10, validators=[MinValueValidator(0), MaxValueValidator(100)])
    max_attempts = models.PositiveSmallIntegerField(default=1, validators=[MinValueValidator(1)])
    rubric = models.JSONField(default=list, blank=True, validators=[validate_rubric])
    is_published = models.BooleanField(default=False)

    total_submissions = models.PositiveIntegerField(default=0)
    average_score = models.FloatField(default=0)
    highest_score = models.FloatField(default=0)
    lowest_score = models.FloatField(default=0)
    on_time_submissions = models.PositiveIntegerField(default=0)
    late_submissions = models.PositiveIntegerField(default=0)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    history = HistoricalRecords()

    objects = AssignmentQuerySet.as_manager()

    class Meta:
        indexes = [
            models.Index(fields=["classroom", "due_date"], name="ix_assignment_class_due"),
            models.Index(fields=["created_by", "is_published"], name="ix_assignment_author_pub"),
        ]

    def __str__(self) -> str:
        return f"{self.title} (#{self.pk})"

    @property
    def statistics(self) -> dict:
        return {
            "total_submissions": self.total_submissions,
            "average_score": self.average_score,
            "highest_score": self.highest_score,
            "lowest_score": self.lowest_score,
            "on_time_submissions": self.on_time_submissions,
            "late_submissions": self.late_submissions,
        }


class Submission(models.Model):
    """A student's attempt record for an assignment (unique per assignment+student).

    is_late is stamped on each submit call and never recomputed afterwards.
    """
    assignment = models.ForeignKey(Assignment, on_delete=models.PROTECT, related_name="submissions")
    student = models.ForeignKey(User, on_delete=models.CASCADE, related_name="submissions")
    attempt = models.PositiveSmallIntegerField(default=1, validators=[MinValueValidator(1)])
    content = models.TextField(blank=True)
    files = models.JSONField(default=list, blank=True, validators=[validate_submission_files])
    submitted_at = models.DateTimeField()
    updated_at = models.DateTimeField(auto_now=True)
    is_late = models.BooleanField(default=False)
    status = models.CharField(max_length=16, choices=SubmissionStatus.choices, default=SubmissionStatus.SUBMITTED)
    history = HistoricalRecords()

    objects = SubmissionQuerySet.as_manager()

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=["assignment", "student"], name="uq_assignment_student"),
        ]

    def __str__(self) -> str:
        return f"Submission({self.student_id} -> {self.assignment_id}, attempt {self.attempt})"


class SubmissionGrade(models.Model):
    """An instructor's evaluation of a submission; score is stored after late penalty."""
    submission = models.OneToOneField(Submission, on_delete=models.CASCADE, related_name="grade")
    score = models.FloatField(validators=[MinValueValidator(0)])
    raw_score = models.FloatField(validators=[MinValueValidator(0)])
    feedback = models.TextField(blank=True)
    graded_by = models.ForeignKey(User, on_delete=models.PROTECT, related_name="assigned_grades")
    graded_at = models.DateTimeField()
    rubric_scores = models.JSONField(default=list, blank=True)
    history = HistoricalRecords()


class SubmissionComment(models.Model):
    """A comment thread entry attached to a submission (author can be student or instructor)."""
    submission = models.ForeignKey(Submission, on_delete=models.CASCADE, related_name="comments")
    author = models.ForeignKey(User, on_delete=models.CASCADE, related_name="submission_comments")
    content = models.TextField()
    created_at = models.DateTimeField(auto_now_add=True)


class GradeEvent(models.Model):
    """Outbox row written in the grading transaction.

    Applied to the enrollment grade ledger after commit; processed_at marks
    it as consumed so replays are no-ops.
    """
    submission = models.ForeignKey(Submission, on_delete=models.CASCADE, related_name="grade_events")
    assignment = models.ForeignKey(Assignment, on_delete=models.CASCADE, related_name="grade_events")
    student = models.ForeignKey(User, on_delete=models.CASCADE, related_name="grade_events")
    score = models.FloatField()
    max_score = models.FloatField()
    feedback = models.TextField(blank=True)
    graded_by = models.ForeignKey(User, on_delete=models.PROTECT, related_name="+")
    graded_at = models.DateTimeField()
    processed_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    objects = GradeEventQuerySet.as_manager()

    class Meta:
        indexes = [models.Index(fields=["processed_at"], name="ix_grade_event_processed")]
