"""Class listing records the grading core resolves against: Classroom, StudyMaterial.

Listing management itself (CRUD, scheduling, pricing) lives outside this app;
only the fields the core reads are modelled here.
"""

from django.db import models
from django.conf import settings

from ClassroomApp.classes.querysets import ClassroomQuerySet, StudyMaterialQuerySet


User = settings.AUTH_USER_MODEL

class Classroom(models.Model):
    """A class taught by one instructor that students enroll into."""
    title = models.CharField(max_length=200)
    description = models.TextField(blank=True)
    instructor = models.ForeignKey(User, on_delete=models.PROTECT, related_name="taught_classes")
    is_published = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = ClassroomQuerySet.as_manager()

    def __str__(self) -> str:
        return f"{self.title} (#{self.pk})"


class StudyMaterial(models.Model):
    """A lesson/material of a class; completing one advances enrollment progress."""
    classroom = models.ForeignKey(Classroom, on_delete=models.CASCADE, related_name="materials")
    title = models.CharField(max_length=255)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    objects = StudyMaterialQuerySet.as_manager()

    def __str__(self) -> str:
        return self.title
