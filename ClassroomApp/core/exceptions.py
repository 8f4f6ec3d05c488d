"""Domain error taxonomy.

Every error is a DRF ``APIException`` so the HTTP layer renders it with the
right status code; services raise them directly and views never catch them.
"""

from rest_framework import status
from rest_framework.exceptions import APIException, NotFound, PermissionDenied
from rest_framework.exceptions import ValidationError as DRFValidationError


class AssignmentNotFound(NotFound):
    default_detail = "Assignment not found."
    default_code = "assignment_not_found"


class EnrollmentNotFound(NotFound):
    default_detail = "Enrollment not found."
    default_code = "enrollment_not_found"


class SubmissionNotFound(NotFound):
    default_detail = "Submission not found."
    default_code = "submission_not_found"


class NotEnrolled(PermissionDenied):
    default_detail = "You are not enrolled in this class."
    default_code = "not_enrolled"


class AttemptLimitExceeded(APIException):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Maximum attempts reached."
    default_code = "attempt_limit_exceeded"


class RegradeNotAllowed(APIException):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Submission is already graded."
    default_code = "regrade_not_allowed"


class AssignmentHasSubmissions(APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Cannot delete assignment with submissions."
    default_code = "assignment_has_submissions"


class NotEligible(APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Not eligible for certificate yet."
    default_code = "not_eligible"


class ValidationError(DRFValidationError):
    """Score out of range, missing required fields and similar input errors."""
    default_code = "invalid"
