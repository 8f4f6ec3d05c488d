"""Collaborator contracts consumed by the grading core, with Django-backed defaults.

Services accept any object satisfying these protocols, which keeps them
independent of how enrollments, materials and notifications are stored.
"""

import logging
from typing import Any, Protocol

from django.utils.module_loading import import_string

from ClassroomApp.classes.models import StudyMaterial
from ClassroomApp.core.conf import classroom_settings
from ClassroomApp.core.exceptions import NotEnrolled
from ClassroomApp.enrollments.models import Enrollment

logger = logging.getLogger(__name__)


class EnrollmentLookupProtocol(Protocol):
    """Resolve the active enrollment of a student in a class or raise NotEnrolled."""

    def __call__(self, student_id: int, classroom_id: int) -> Enrollment:
        ...


class ClassMaterialCountProtocol(Protocol):
    """Number of active materials of a class (the progress denominator)."""

    def __call__(self, classroom_id: int) -> int:
        ...


class NotificationSinkProtocol(Protocol):
    """Fire-and-forget notification delivery."""

    def notify(self, event_kind: str, recipient_id: int, payload: dict[str, Any]) -> None:
        ...


def active_enrollment_lookup(student_id: int, classroom_id: int) -> Enrollment:
    enrollment = (
        Enrollment.objects.active()
        .filter(student_id=student_id, classroom_id=classroom_id)
        .first()
    )
    if enrollment is None:
        raise NotEnrolled()
    return enrollment


def active_material_count(classroom_id: int) -> int:
    return StudyMaterial.objects.active_for(classroom_id).count()


class LoggingNotificationSink:
    """Default sink: records the notification in the application log."""

    def notify(self, event_kind: str, recipient_id: int, payload: dict[str, Any]) -> None:
        logger.info("Notification %s for user %s: %s", event_kind, recipient_id, payload)


def get_notification_sink() -> NotificationSinkProtocol:
    """Instantiate the sink configured in CLASSROOM['NOTIFICATION_SINK']."""
    return import_string(classroom_settings().notification_sink)()


def dispatch_notification(
    sink: NotificationSinkProtocol | None,
    event_kind: str,
    recipient_id: int,
    payload: dict[str, Any],
) -> None:
    """Deliver without awaiting or retrying; delivery failures never fail the caller."""
    sink = sink or get_notification_sink()
    try:
        sink.notify(event_kind, recipient_id, payload)
    except Exception:
        logger.exception("Notification %s to user %s failed", event_kind, recipient_id)
