import pytest
from django.test import override_settings

from ClassroomApp.core.exceptions import EnrollmentNotFound, ValidationError
from ClassroomApp.domain.services import attendance_service
from ClassroomApp.enrollments.models import AttendanceRecord

pytestmark = pytest.mark.django_db


def test_percentage_counts_present_and_late(enrollment, clock):
    for status in ("present", "present", "late", "absent"):
        snap = attendance_service.mark_attendance(enrollment.pk, status, clock=clock)
    assert snap.attendance_percentage == 75
    assert snap.total_sessions == 4
    assert snap.present_sessions == 3


def test_defaults_applied(enrollment, clock):
    attendance_service.mark_attendance(enrollment.pk, "present", clock=clock)
    record = AttendanceRecord.objects.get()
    assert record.session_type == "lecture"
    assert record.duration == 60
    assert record.date == clock.now()


@override_settings(CLASSROOM={"DEFAULT_SESSION_TYPE": "lab", "DEFAULT_SESSION_DURATION": 90})
def test_defaults_follow_settings(enrollment, clock):
    attendance_service.mark_attendance(enrollment.pk, "absent", clock=clock)
    record = AttendanceRecord.objects.get()
    assert record.session_type == "lab"
    assert record.duration == 90


def test_same_day_records_not_deduplicated(enrollment, clock):
    attendance_service.mark_attendance(enrollment.pk, "present", clock=clock)
    snap = attendance_service.mark_attendance(enrollment.pk, "absent", clock=clock)
    assert snap.total_sessions == 2
    assert snap.attendance_percentage == 50


def test_no_records_is_zero(enrollment):
    snap = attendance_service.attendance_summary(enrollment)
    assert snap.attendance_percentage == 0
    assert snap.total_sessions == 0


@pytest.mark.parametrize("kwargs", [
    {"status": "sleeping"},
    {"status": "present", "session_type": "party"},
    {"status": "present", "duration": -1},
])
def test_invalid_input_rejected(enrollment, clock, kwargs):
    with pytest.raises(ValidationError):
        attendance_service.mark_attendance(enrollment.pk, clock=clock, **kwargs)
    assert not AttendanceRecord.objects.exists()


def test_unknown_enrollment(clock):
    with pytest.raises(EnrollmentNotFound):
        attendance_service.mark_attendance(999999, "present", clock=clock)
