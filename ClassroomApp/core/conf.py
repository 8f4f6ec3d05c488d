"""Typed access to the ``CLASSROOM`` settings dict."""

from dataclasses import dataclass

from django.conf import settings

from ClassroomApp.core.choices import RegradePolicy, SessionType

DEFAULTS = {
    "REGRADE_POLICY": RegradePolicy.ALLOW,
    "CERTIFICATE_MIN_PERCENTAGE": 40,
    "CERTIFICATE_URL_TEMPLATE": "/certificates/{enrollment_id}.pdf",
    "DEFAULT_SESSION_TYPE": SessionType.LECTURE,
    "DEFAULT_SESSION_DURATION": 60,
    "NOTIFICATION_SINK": "ClassroomApp.domain.collaborators.LoggingNotificationSink",
    "MAX_SUBMISSION_FILE_MB": 10,
}


@dataclass(frozen=True)
class ClassroomSettings:
    regrade_policy: str
    certificate_min_percentage: float
    certificate_url_template: str
    default_session_type: str
    default_session_duration: int
    notification_sink: str
    max_submission_file_mb: int

    @property
    def allows_regrade(self) -> bool:
        return self.regrade_policy == RegradePolicy.ALLOW


def classroom_settings() -> ClassroomSettings:
    """Read the current settings; evaluated per call so ``override_settings`` applies."""
    values = {**DEFAULTS, **getattr(settings, "CLASSROOM", {})}
    return ClassroomSettings(**{key.lower(): value for key, value in values.items()})
