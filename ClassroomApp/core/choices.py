"""Typed enumerations (TextChoices) for roles, submission/enrollment states and attendance."""
from django.db import models

class UserRole(models.TextChoices):
    """System-level role assigned to a user account."""
    INSTRUCTOR = "INSTRUCTOR", "Instructor"
    STUDENT = "STUDENT", "Student"
    ADMIN = "ADMIN", "Admin"

class AssignmentType(models.TextChoices):
    HOMEWORK = "homework", "Homework"
    PROJECT = "project", "Project"
    LAB = "lab", "Lab"
    PRESENTATION = "presentation", "Presentation"
    ESSAY = "essay", "Essay"

class SubmissionStatus(models.TextChoices):
    """Lifecycle states for an assignment submission.

    submitted|late -> resubmitted|late -> graded -> returned
    """
    SUBMITTED = "submitted", "Submitted"
    LATE = "late", "Late"
    RESUBMITTED = "resubmitted", "Resubmitted"
    GRADED = "graded", "Graded"
    RETURNED = "returned", "Returned"

class EnrollmentStatus(models.TextChoices):
    """Enrollment lifecycle; ENROLLED is a legacy alias of ACTIVE."""
    ACTIVE = "active", "Active"
    ENROLLED = "enrolled", "Enrolled"
    COMPLETED = "completed", "Completed"
    DROPPED = "dropped", "Dropped"
    SUSPENDED = "suspended", "Suspended"

ACTIVE_ENROLLMENT_STATUSES = (EnrollmentStatus.ACTIVE, EnrollmentStatus.ENROLLED)

class AttendanceStatus(models.TextChoices):
    PRESENT = "present", "Present"
    ABSENT = "absent", "Absent"
    LATE = "late", "Late"
    EXCUSED = "excused", "Excused"

# Statuses that count towards the attendance percentage.
ATTENDED_STATUSES = (AttendanceStatus.PRESENT, AttendanceStatus.LATE)

class SessionType(models.TextChoices):
    LECTURE = "lecture", "Lecture"
    LAB = "lab", "Lab"
    TUTORIAL = "tutorial", "Tutorial"
    EXAM = "exam", "Exam"

class FinalGrade(models.TextChoices):
    """Letter bands derived from an enrollment's grade percentage."""
    A_PLUS = "A+", "A+"
    A = "A", "A"
    B_PLUS = "B+", "B+"
    B = "B", "B"
    C_PLUS = "C+", "C+"
    C = "C", "C"
    D = "D", "D"
    F = "F", "F"

class RegradePolicy(models.TextChoices):
    ALLOW = "allow", "Allow"
    DENY = "deny", "Deny"

class NotificationKind(models.TextChoices):
    ASSIGNMENT_SUBMITTED = "assignment_submitted", "Assignment submitted"
    ASSIGNMENT_GRADED = "assignment_graded", "Assignment graded"
    CERTIFICATE_ISSUED = "certificate_issued", "Certificate issued"
