from django.apps import AppConfig

class EnrollmentsConfig(AppConfig):
    """AppConfig for enrollments (progress, grade ledger, attendance, certificates)."""
    default_auto_field = "django.db.models.BigAutoField"
    name = "ClassroomApp.enrollments"
