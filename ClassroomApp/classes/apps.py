from django.apps import AppConfig

class ClassesConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "ClassroomApp.classes"
