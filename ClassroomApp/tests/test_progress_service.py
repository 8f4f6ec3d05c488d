import pytest
from model_bakery import baker
from rest_framework.exceptions import PermissionDenied

from ClassroomApp.core.exceptions import EnrollmentNotFound, ValidationError
from ClassroomApp.domain.services import attendance_service, progress_service

pytestmark = pytest.mark.django_db


def test_completing_lessons_updates_percentage(enrollment, materials, clock):
    snap = progress_service.update_progress(enrollment.pk, materials[0].pk, time_spent=300, clock=clock)
    assert snap.completed_lessons == 1
    assert snap.total_materials == 4
    assert snap.percentage_complete == 25
    assert snap.current_lesson_id == materials[0].pk
    assert snap.last_accessed_at == clock.now()
    assert snap.time_spent == 300


def test_repeat_visit_accumulates_time_but_not_completion(enrollment, materials, clock):
    progress_service.update_progress(enrollment.pk, materials[0].pk, time_spent=100, clock=clock)
    clock.advance(minutes=10)
    snap = progress_service.update_progress(enrollment.pk, materials[0].pk, time_spent=50, clock=clock)
    assert snap.completed_lessons == 1
    assert snap.percentage_complete == 25
    assert snap.time_spent == 150
    assert snap.last_accessed_at == clock.now()


def test_all_lessons_completed_reaches_hundred(enrollment, materials, clock):
    for material in materials:
        snap = progress_service.update_progress(enrollment.pk, material.pk, clock=clock)
    assert snap.percentage_complete == 100


def test_percentage_rounds_half_up(enrollment, classroom, clock):
    lessons = baker.make("classes.StudyMaterial", classroom=classroom, is_active=True, _quantity=8)
    snap = progress_service.update_progress(enrollment.pk, lessons[0].pk, clock=clock)
    assert snap.percentage_complete == 13


def test_percentage_clamped_when_materials_removed(enrollment, materials, clock):
    for material in materials[:3]:
        progress_service.update_progress(enrollment.pk, material.pk, clock=clock)
    snap = progress_service.update_progress(
        enrollment.pk, materials[3].pk, clock=clock, material_count=lambda classroom_id: 2
    )
    assert snap.percentage_complete == 100


def test_zero_materials_gives_zero_percentage(enrollment, materials, clock):
    snap = progress_service.update_progress(
        enrollment.pk, materials[0].pk, clock=clock, material_count=lambda classroom_id: 0
    )
    assert snap.percentage_complete == 0


def test_lesson_from_another_class_rejected(enrollment, materials, clock):
    foreign = baker.make("classes.StudyMaterial", is_active=True)
    with pytest.raises(ValidationError):
        progress_service.update_progress(enrollment.pk, foreign.pk, clock=clock)


def test_negative_time_rejected(enrollment, materials, clock):
    with pytest.raises(ValidationError):
        progress_service.update_progress(enrollment.pk, materials[0].pk, time_spent=-5, clock=clock)


def test_unknown_enrollment(materials, clock):
    with pytest.raises(EnrollmentNotFound):
        progress_service.update_progress(999999, materials[0].pk, clock=clock)


def test_class_progress_summary(enrollment, materials, clock):
    progress_service.update_progress(enrollment.pk, materials[0].pk, clock=clock)
    attendance_service.mark_attendance(enrollment.pk, "present", clock=clock)
    summary = progress_service.class_progress(enrollment)
    assert summary["progress"].percentage_complete == 25
    assert summary["attendance"].attendance_percentage == 100
    assert summary["grades"]["assignments"]["completed"] == 0
    assert summary["grades"]["final_grade"] is None


class TestInstructorOverview:

    def test_aggregates_active_enrollments(self, instructor, classroom, enrollment, materials, clock):
        other = baker.make("enrollments.Enrollment", classroom=classroom, status="active")
        baker.make("enrollments.Enrollment", classroom=classroom, status="dropped", percentage_complete=100)
        for material in materials:
            progress_service.update_progress(other.pk, material.pk, clock=clock)
        progress_service.update_progress(enrollment.pk, materials[0].pk, clock=clock)

        overview = progress_service.instructor_class_overview(instructor, classroom)

        assert overview["classroom"]["total_students"] == 2
        stats = overview["statistics"]
        assert stats["average_progress"] == 63
        assert stats["students_completed"] == 1
        assert stats["students_in_progress"] == 1
        assert stats["students_not_started"] == 0
        assert overview["students"][0]["enrollment_id"] == other.pk

    def test_requires_instructor(self, student, classroom):
        with pytest.raises(PermissionDenied):
            progress_service.instructor_class_overview(student, classroom)

    def test_empty_class(self, instructor, classroom):
        overview = progress_service.instructor_class_overview(instructor, classroom)
        assert overview["statistics"]["average_progress"] == 0
        assert overview["students"] == []


def test_inactive_lesson_rejected(enrollment, classroom, materials, clock):
    retired = baker.make("classes.StudyMaterial", classroom=classroom, is_active=False)
    with pytest.raises(ValidationError):
        progress_service.update_progress(enrollment.pk, retired.pk, clock=clock)
    assert not enrollment.completed_lessons.exists()


def test_snapshot_of_stale_instance_reads_stored_progress(enrollment, materials, clock):
    progress_service.update_progress(enrollment.pk, materials[0].pk, time_spent=60, clock=clock)
    snap = progress_service.progress_snapshot(enrollment)
    assert snap.completed_lessons == 1
    assert snap.percentage_complete == 25
    assert snap.current_lesson_id == materials[0].pk


class TestOverallProgress:

    def test_summarizes_active_enrollments(self, student, enrollment, materials, clock):
        other_class = baker.make("classes.Classroom", title="Biology", is_published=True)
        other_lessons = baker.make("classes.StudyMaterial", classroom=other_class, is_active=True, _quantity=2)
        other = baker.make(
            "enrollments.Enrollment", student=student, classroom=other_class, status="active",
            grade_percentage=70, certificate_issued=True,
        )
        baker.make(
            "enrollments.Enrollment", student=student, status="dropped", percentage_complete=100, grade_percentage=10,
        )
        enrollment.grade_percentage = 85
        enrollment.save()
        progress_service.update_progress(enrollment.pk, materials[0].pk, time_spent=600, clock=clock)
        clock.advance(hours=1)
        for lesson in other_lessons:
            progress_service.update_progress(other.pk, lesson.pk, time_spent=90, clock=clock)

        data = progress_service.overall_progress(student)

        assert data["total_classes"] == 2
        assert data["average_progress"] == 63
        assert data["completed_classes"] == 1
        assert data["in_progress_classes"] == 1
        assert data["total_time_spent"] == 13
        assert data["average_grade"] == 78
        assert data["certificates_earned"] == 1
        assert [row["classroom_id"] for row in data["recent_classes"]] == [other_class.pk, enrollment.classroom_id]
        assert data["recent_classes"][0]["title"] == "Biology"

    def test_no_active_enrollments(self, student):
        data = progress_service.overall_progress(student)
        assert data["total_classes"] == 0
        assert data["average_progress"] == 0
        assert data["average_grade"] == 0
        assert data["recent_classes"] == []
