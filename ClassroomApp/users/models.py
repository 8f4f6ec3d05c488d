from django.contrib.auth.models import AbstractUser
from django.db import models

from ClassroomApp.core.choices import UserRole

class User(AbstractUser):
    """Account referenced by enrollments, submissions and grades (students, instructors)."""
    email = models.EmailField(unique=True)
    role = models.CharField(max_length=16, choices=UserRole.choices, default=UserRole.STUDENT)
    USERNAME_FIELD = "email"
    REQUIRED_FIELDS = ["username"]

    @property
    def display_name(self) -> str:
        return self.get_full_name() or self.email
