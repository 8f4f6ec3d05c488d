"""Attendance tracking for enrollments."""

import logging
from dataclasses import dataclass

from django.db import transaction

from ClassroomApp.core.choices import ATTENDED_STATUSES, AttendanceStatus, SessionType
from ClassroomApp.core.clock import Clock, system_clock
from ClassroomApp.core.conf import classroom_settings
from ClassroomApp.core.exceptions import ValidationError
from ClassroomApp.domain.scoring import attendance_percentage
from ClassroomApp.domain.services.enrollment_service import get_enrollment
from ClassroomApp.enrollments.models import AttendanceRecord, Enrollment

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AttendanceSnapshot:
    enrollment_id: int
    attendance_percentage: int
    total_sessions: int
    present_sessions: int


def attendance_summary(enrollment: Enrollment) -> AttendanceSnapshot:
    statuses = list(enrollment.attendance.values_list("status", flat=True))
    return AttendanceSnapshot(
        enrollment_id=enrollment.pk,
        attendance_percentage=attendance_percentage(statuses),
        total_sessions=len(statuses),
        present_sessions=sum(1 for status in statuses if status in ATTENDED_STATUSES),
    )


@transaction.atomic
def mark_attendance(
    enrollment_id: int,
    status: str,
    session_type: str | None = None,
    duration: int | None = None,
    notes: str = "",
    *,
    clock: Clock = system_clock,
) -> AttendanceSnapshot:
    """Append an attendance record (no de-duplication by date) and return the new totals."""
    if status not in AttendanceStatus.values:
        raise ValidationError({"status": f"Unknown attendance status {status!r}."})
    if session_type is not None and session_type not in SessionType.values:
        raise ValidationError({"session_type": f"Unknown session type {session_type!r}."})
    if duration is not None and duration < 0:
        raise ValidationError({"duration": "Duration cannot be negative."})
    enrollment = get_enrollment(enrollment_id, for_update=True)

    conf = classroom_settings()
    AttendanceRecord.objects.create(
        enrollment=enrollment,
        date=clock.now(),
        status=status,
        session_type=session_type or conf.default_session_type,
        duration=conf.default_session_duration if duration is None else duration,
        notes=notes or "",
    )
    snapshot = attendance_summary(enrollment)
    logger.info(
        "Attendance %s recorded for enrollment %s (%s%%)", status, enrollment.pk, snapshot.attendance_percentage
    )
    return snapshot
