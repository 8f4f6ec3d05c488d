from datetime import datetime, timedelta, timezone as dt_timezone

import pytest
from model_bakery import baker

from ClassroomApp.core.choices import UserRole
from ClassroomApp.core.clock import FixedClock

NOW = datetime(2026, 3, 2, 12, 0, tzinfo=dt_timezone.utc)


class RecordingSink:
    """Notification sink capturing every delivered notification."""

    def __init__(self):
        self.sent = []

    def notify(self, event_kind, recipient_id, payload):
        self.sent.append((event_kind, recipient_id, payload))


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(NOW)


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def instructor():
    return baker.make("users.User", email="instructor@example.com", role=UserRole.INSTRUCTOR)


@pytest.fixture
def student():
    return baker.make("users.User", email="student@example.com", role=UserRole.STUDENT)


@pytest.fixture
def classroom(instructor):
    return baker.make("classes.Classroom", title="Algebra I", instructor=instructor, is_published=True)


@pytest.fixture
def materials(classroom):
    return baker.make("classes.StudyMaterial", classroom=classroom, is_active=True, _quantity=4)


@pytest.fixture
def enrollment(student, classroom):
    return baker.make("enrollments.Enrollment", student=student, classroom=classroom, status="active")


@pytest.fixture
def make_assignment(classroom, instructor):
    def _make(**overrides):
        data = {
            "classroom": classroom,
            "created_by": instructor,
            "title": "Homework 1",
            "due_date": NOW + timedelta(days=1),
            "available_from": NOW - timedelta(days=1),
            "max_score": 100,
            "late_penalty": 10,
            "max_attempts": 2,
            "rubric": [],
            "is_published": True,
        }
        data.update(overrides)
        return baker.make("learning.Assignment", **data)
    return _make


@pytest.fixture
def assignment(make_assignment):
    return make_assignment()
