"""Learning app configuration."""

from django.apps import AppConfig

class LearningConfig(AppConfig):
    """AppConfig for the learning domain (assignments, submissions, grades, grade events)."""
    default_auto_field = "django.db.models.BigAutoField"
    name = "ClassroomApp.learning"
