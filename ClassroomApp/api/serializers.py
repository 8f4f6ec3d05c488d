"""Serializers for classes, assignments, submissions, grades, comments and enrollment read models."""

from rest_framework import serializers
from django.contrib.auth import get_user_model

from ClassroomApp.classes.models import Classroom
from ClassroomApp.core.choices import AttendanceStatus, SessionType
from ClassroomApp.core.validators import validate_resource_url, validate_attachment_mime, validate_file_size, validate_rubric
from ClassroomApp.enrollments.models import AssignmentGradeEntry, AttendanceRecord, Enrollment, QuizGradeEntry
from ClassroomApp.learning.models import Assignment, Submission, SubmissionGrade, SubmissionComment

User = get_user_model()


class UserSerializer(serializers.ModelSerializer):
    """Public, safe representation of a user."""

    class Meta:
        model = User
        fields = ["id", "email", "first_name", "last_name", "role"]


class ClassroomSerializer(serializers.ModelSerializer):
    instructor = UserSerializer(read_only=True)

    class Meta:
        model = Classroom
        fields = ["id", "title", "description", "instructor", "is_published"]


class AssignmentWriteSerializer(serializers.ModelSerializer):
    """Serializer for creating an assignment (statistics are never writable)."""

    class Meta:
        model = Assignment
        fields = [
            "title", "description", "instructions", "type", "due_date", "available_from",
            "max_score", "passing_score", "late_penalty", "max_attempts", "rubric",
        ]
        extra_kwargs = {
            "late_penalty": {"help_text": "Percent of max_score deducted from late submissions."},
            "max_attempts": {"help_text": "Number of submissions a student may make."},
            "rubric": {"help_text": "List of {criterion, description, max_points}."},
        }

    def validate_rubric(self, value):
        validate_rubric(value)
        return value


class AssignmentStatisticsSerializer(serializers.Serializer):
    total_submissions = serializers.IntegerField()
    average_score = serializers.FloatField()
    highest_score = serializers.FloatField()
    lowest_score = serializers.FloatField()
    on_time_submissions = serializers.IntegerField()
    late_submissions = serializers.IntegerField()


class AssignmentReadSerializer(serializers.ModelSerializer):
    """Assignment details including derived statistics."""
    statistics = AssignmentStatisticsSerializer(read_only=True)

    class Meta:
        model = Assignment
        fields = [
            "id", "classroom", "title", "description", "instructions", "type", "created_by",
            "due_date", "available_from", "max_score", "passing_score", "late_penalty",
            "max_attempts", "rubric", "is_published", "statistics", "created_at", "updated_at",
        ]


class FileDescriptorSerializer(serializers.Serializer):
    """An already-uploaded file attached to a submission."""
    file_name = serializers.CharField(required=False, allow_blank=True)
    file_url = serializers.CharField(validators=[validate_resource_url])
    file_type = serializers.CharField(required=False, allow_blank=True, validators=[validate_attachment_mime])
    file_size = serializers.IntegerField(required=False, min_value=0, validators=[validate_file_size])


class SubmissionWriteSerializer(serializers.Serializer):
    """Body of a submit / resubmit call."""
    content = serializers.CharField(
        required=False,
        allow_blank=True,
        help_text="Textual answer (optional if files provided)."
    )
    files = FileDescriptorSerializer(many=True, required=False)

    def validate(self, data):
        if not data.get("content") and not data.get("files"):
            raise serializers.ValidationError("At least one of `content` or `files` is required.")
        return super().validate(data)


class GradeMiniSerializer(serializers.ModelSerializer):
    """Compact grade representation attached to a submission."""

    class Meta:
        model = SubmissionGrade
        fields = ["score", "raw_score", "feedback", "graded_by", "graded_at", "rubric_scores"]


class SubmissionReadSerializer(serializers.ModelSerializer):
    """Detailed submission view including grade and student."""
    grade = GradeMiniSerializer(read_only=True)
    student = UserSerializer(read_only=True)

    class Meta:
        model = Submission
        fields = [
            "id", "assignment", "student", "attempt", "content", "files",
            "submitted_at", "updated_at", "is_late", "status", "grade",
        ]
        read_only_fields = fields


class RubricScoreSerializer(serializers.Serializer):
    criterion = serializers.CharField()
    score = serializers.FloatField(min_value=0)
    comments = serializers.CharField(required=False, allow_blank=True)


class GradeWriteSerializer(serializers.Serializer):
    """Body of a grading call; range checks against max_score happen in the service."""
    score = serializers.FloatField(min_value=0)
    feedback = serializers.CharField(required=False, allow_blank=True, default="")
    rubric_scores = RubricScoreSerializer(many=True, required=False)


class SubmissionCommentWriteSerializer(serializers.Serializer):
    content = serializers.CharField()


class SubmissionCommentReadSerializer(serializers.ModelSerializer):
    author = UserSerializer(read_only=True)

    class Meta:
        model = SubmissionComment
        fields = ["id", "submission", "author", "content", "created_at"]
        read_only_fields = fields


class CertificateSerializer(serializers.Serializer):
    issued = serializers.BooleanField()
    issued_date = serializers.DateTimeField(allow_null=True)
    certificate_id = serializers.CharField(allow_blank=True)
    certificate_url = serializers.CharField(allow_blank=True)


class EnrollmentReadSerializer(serializers.ModelSerializer):
    certificate = CertificateSerializer(read_only=True)

    class Meta:
        model = Enrollment
        fields = [
            "id", "student", "classroom", "status", "enrolled_at", "completion_date",
            "current_lesson", "percentage_complete", "last_accessed_at",
            "final_grade", "total_score", "grade_percentage", "certificate",
        ]
        read_only_fields = fields


class ProgressUpdateSerializer(serializers.Serializer):
    lesson_id = serializers.IntegerField()
    time_spent = serializers.IntegerField(required=False, min_value=0, default=0, help_text="Seconds spent on the lesson.")


class ProgressSnapshotSerializer(serializers.Serializer):
    enrollment_id = serializers.IntegerField()
    completed_lessons = serializers.IntegerField()
    total_materials = serializers.IntegerField()
    percentage_complete = serializers.IntegerField()
    current_lesson_id = serializers.IntegerField(allow_null=True)
    last_accessed_at = serializers.DateTimeField(allow_null=True)
    time_spent = serializers.IntegerField()


class AttendanceWriteSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=AttendanceStatus.choices)
    session_type = serializers.ChoiceField(choices=SessionType.choices, required=False)
    duration = serializers.IntegerField(required=False, min_value=0)
    notes = serializers.CharField(required=False, allow_blank=True, default="")


class AttendanceSnapshotSerializer(serializers.Serializer):
    enrollment_id = serializers.IntegerField()
    attendance_percentage = serializers.IntegerField()
    total_sessions = serializers.IntegerField()
    present_sessions = serializers.IntegerField()


class AttendanceRecordSerializer(serializers.ModelSerializer):

    class Meta:
        model = AttendanceRecord
        fields = ["id", "date", "status", "session_type", "duration", "notes"]


class QuizScoreSerializer(serializers.Serializer):
    quiz_ref = serializers.CharField(max_length=64)
    score = serializers.FloatField(min_value=0)
    max_score = serializers.FloatField(min_value=0)


class AssignmentGradeEntrySerializer(serializers.ModelSerializer):

    class Meta:
        model = AssignmentGradeEntry
        fields = ["assignment", "score", "max_score", "graded_at", "graded_by", "feedback"]


class QuizGradeEntrySerializer(serializers.ModelSerializer):

    class Meta:
        model = QuizGradeEntry
        fields = ["quiz_ref", "score", "max_score", "attempts", "completed_at"]
