"""Enrollment lookups shared by the progress, attendance, grade and certificate services."""

from ClassroomApp.core.exceptions import EnrollmentNotFound
from ClassroomApp.enrollments.models import Enrollment


def get_enrollment(enrollment_id: int, *, for_update: bool = False) -> Enrollment:
    """Fetch an enrollment by id or raise EnrollmentNotFound."""
    qs = Enrollment.objects.select_related("classroom")
    if for_update:
        qs = qs.select_for_update()
    try:
        return qs.get(pk=enrollment_id)
    except Enrollment.DoesNotExist:
        raise EnrollmentNotFound() from None
