"""Certificate eligibility gate and idempotent certificate issuing."""

import logging
from dataclasses import dataclass
from datetime import datetime

from django.db import transaction

from ClassroomApp.core.choices import NotificationKind
from ClassroomApp.core.clock import Clock, system_clock
from ClassroomApp.core.conf import classroom_settings
from ClassroomApp.core.exceptions import NotEligible
from ClassroomApp.domain.collaborators import NotificationSinkProtocol, dispatch_notification
from ClassroomApp.domain.scoring import is_eligible_for_certificate, make_certificate_id
from ClassroomApp.domain.services.enrollment_service import get_enrollment
from ClassroomApp.enrollments.models import Enrollment

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Certificate:
    issued: bool
    issued_date: datetime | None
    certificate_id: str
    certificate_url: str

    @classmethod
    def from_enrollment(cls, enrollment: Enrollment) -> "Certificate":
        return cls(**enrollment.certificate)


def is_eligible(enrollment: Enrollment) -> bool:
    """100% progress, a completed enrollment and a passing grade percentage."""
    return is_eligible_for_certificate(
        enrollment.percentage_complete,
        enrollment.status,
        enrollment.grade_percentage,
        classroom_settings().certificate_min_percentage,
    )


def generate_certificate(
    enrollment_id: int,
    *,
    clock: Clock = system_clock,
    notification_sink: NotificationSinkProtocol | None = None,
) -> Certificate:
    """Issue the enrollment's certificate once; later calls return it unchanged.

    Raises:
        EnrollmentNotFound: Unknown enrollment.
        NotEligible: No certificate yet and the eligibility criteria are not met.
    """
    with transaction.atomic():
        enrollment = get_enrollment(enrollment_id, for_update=True)
        if enrollment.certificate_issued:
            return Certificate.from_enrollment(enrollment)
        if not is_eligible(enrollment):
            logger.warning("Enrollment %s is not eligible for a certificate", enrollment.pk)
            raise NotEligible()

        now = clock.now()
        enrollment.certificate_issued = True
        enrollment.certificate_issued_date = now
        enrollment.certificate_id = make_certificate_id(now, enrollment.pk)
        enrollment.certificate_url = classroom_settings().certificate_url_template.format(
            enrollment_id=enrollment.pk
        )
        enrollment.save(update_fields=[
            "certificate_issued", "certificate_issued_date", "certificate_id", "certificate_url", "updated_at",
        ])

    logger.info("Certificate %s issued for enrollment %s", enrollment.certificate_id, enrollment.pk)
    dispatch_notification(
        notification_sink,
        NotificationKind.CERTIFICATE_ISSUED,
        enrollment.student_id,
        {"enrollment_id": enrollment.pk, "certificate_id": enrollment.certificate_id},
    )
    return Certificate.from_enrollment(enrollment)
