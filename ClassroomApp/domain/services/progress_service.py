"""Lesson-completion progress for enrollments, plus the progress read models.

percentage_complete is always recomputed from the completed lessons and the
class's current active-material count; it is never set directly.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from django.db import transaction
from django.db.models import Sum

from ClassroomApp.classes.models import Classroom, StudyMaterial
from ClassroomApp.core.access import ensure_grader
from ClassroomApp.core.clock import Clock, system_clock
from ClassroomApp.core.exceptions import ValidationError
from ClassroomApp.domain.collaborators import ClassMaterialCountProtocol, active_material_count
from ClassroomApp.domain.scoring import completion_percentage, round_half_up
from ClassroomApp.domain.services.attendance_service import attendance_summary
from ClassroomApp.domain.services.enrollment_service import get_enrollment
from ClassroomApp.enrollments.models import Enrollment, LessonCompletion
from ClassroomApp.users.models import User

logger = logging.getLogger(__name__)

PROGRESS_FIELDS = ["percentage_complete", "current_lesson", "last_accessed_at"]


@dataclass(frozen=True)
class ProgressSnapshot:
    enrollment_id: int
    completed_lessons: int
    total_materials: int
    percentage_complete: int
    current_lesson_id: int | None
    last_accessed_at: datetime | None
    time_spent: int


def _snapshot(enrollment: Enrollment, total_materials: int) -> ProgressSnapshot:
    totals = enrollment.completed_lessons.aggregate(time_spent=Sum("time_spent"))
    return ProgressSnapshot(
        enrollment_id=enrollment.pk,
        completed_lessons=enrollment.completed_lessons.count(),
        total_materials=total_materials,
        percentage_complete=enrollment.percentage_complete,
        current_lesson_id=enrollment.current_lesson_id,
        last_accessed_at=enrollment.last_accessed_at,
        time_spent=totals["time_spent"] or 0,
    )


def recompute_progress(
    enrollment: Enrollment,
    material_count: ClassMaterialCountProtocol = active_material_count,
) -> int:
    """Refresh percentage_complete from completed lessons / active materials; returns the denominator."""
    total = material_count(enrollment.classroom_id)
    enrollment.percentage_complete = completion_percentage(enrollment.completed_lessons.count(), total)
    return total


@transaction.atomic
def update_progress(
    enrollment_id: int,
    lesson_id: int,
    time_spent: int = 0,
    *,
    clock: Clock = system_clock,
    material_count: ClassMaterialCountProtocol = active_material_count,
) -> ProgressSnapshot:
    """Mark a lesson completed (first visit) or add time to it (repeat visits).

    Completion is idempotent; time accounting is not. current_lesson and
    last_accessed_at are refreshed on every call.
    """
    if time_spent < 0:
        raise ValidationError({"time_spent": "Time spent cannot be negative."})
    enrollment = get_enrollment(enrollment_id, for_update=True)
    if not StudyMaterial.objects.active_for(enrollment.classroom_id).filter(pk=lesson_id).exists():
        raise ValidationError({"lesson_id": "Unknown or inactive lesson for this class."})

    now = clock.now()
    completion, created = LessonCompletion.objects.get_or_create(
        enrollment=enrollment,
        lesson_id=lesson_id,
        defaults={"completed_at": now, "time_spent": time_spent},
    )
    if not created and time_spent:
        completion.time_spent += time_spent
        completion.save(update_fields=["time_spent"])

    enrollment.current_lesson_id = lesson_id
    enrollment.last_accessed_at = now
    total = recompute_progress(enrollment, material_count)
    enrollment.save(update_fields=["current_lesson", "last_accessed_at", "percentage_complete", "updated_at"])
    if created:
        logger.info(
            "Enrollment %s completed lesson %s (%s%%)", enrollment.pk, lesson_id, enrollment.percentage_complete
        )
    return _snapshot(enrollment, total)


def progress_snapshot(
    enrollment: Enrollment,
    material_count: ClassMaterialCountProtocol = active_material_count,
) -> ProgressSnapshot:
    """Snapshot read from the stored row, so callers may pass a stale instance."""
    enrollment.refresh_from_db(fields=PROGRESS_FIELDS)
    return _snapshot(enrollment, material_count(enrollment.classroom_id))


def class_progress(enrollment: Enrollment) -> dict[str, Any]:
    """Progress, grade and attendance summary of one enrollment."""
    enrollment.refresh_from_db()
    progress = _snapshot(enrollment, active_material_count(enrollment.classroom_id))
    ledger = list(enrollment.assignment_grades.values_list("score", "max_score"))
    average = (
        sum(score / max_score * 100 for score, max_score in ledger if max_score) / len(ledger)
        if ledger else 0
    )
    attendance = attendance_summary(enrollment)
    return {
        "classroom": {"id": enrollment.classroom_id, "title": enrollment.classroom.title},
        "progress": progress,
        "grades": {
            "assignments": {
                "completed": len(ledger),
                "total": enrollment.classroom.assignments.published().count(),
                "average_score": round_half_up(average),
            },
            "final_grade": enrollment.final_grade,
            "grade_percentage": enrollment.grade_percentage,
        },
        "attendance": attendance,
        "status": enrollment.status,
        "enrolled_at": enrollment.enrolled_at,
    }


def overall_progress(student: User, *, recent_limit: int = 5) -> dict[str, Any]:
    """Progress of a student across all of their active enrollments.

    total_time_spent is in minutes; average_grade only counts graded enrollments.
    recent_classes lists the most recently accessed classes first.
    """
    enrollments = list(
        Enrollment.objects.filter(student=student).active()
        .select_related("classroom")
        .annotate(time_spent=Sum("completed_lessons__time_spent"))
    )
    total = len(enrollments)
    progress_values = [enrollment.percentage_complete for enrollment in enrollments]
    graded = [e.grade_percentage for e in enrollments if e.grade_percentage is not None]
    seconds = sum(enrollment.time_spent or 0 for enrollment in enrollments)
    recent = sorted(
        enrollments,
        key=lambda e: (e.last_accessed_at is not None, e.last_accessed_at or e.enrolled_at),
        reverse=True,
    )[:recent_limit]
    return {
        "total_classes": total,
        "average_progress": round_half_up(sum(progress_values) / total) if total else 0,
        "completed_classes": sum(1 for value in progress_values if value == 100),
        "in_progress_classes": sum(1 for value in progress_values if 0 < value < 100),
        "total_time_spent": round_half_up(seconds / 60),
        "average_grade": round_half_up(sum(graded) / len(graded)) if graded else 0,
        "certificates_earned": sum(1 for enrollment in enrollments if enrollment.certificate_issued),
        "recent_classes": [
            {
                "classroom_id": enrollment.classroom_id,
                "title": enrollment.classroom.title,
                "progress": enrollment.percentage_complete,
                "last_accessed_at": enrollment.last_accessed_at,
            }
            for enrollment in recent
        ],
    }


def instructor_class_overview(instructor: User, classroom: Classroom) -> dict[str, Any]:
    """Aggregate progress of the active enrollments of a class (instructor only)."""
    ensure_grader(instructor, classroom)
    enrollments = list(
        Enrollment.objects.for_class(classroom.pk).active().select_related("student").order_by("-percentage_complete")
    )
    students = []
    for enrollment in enrollments:
        students.append({
            "enrollment_id": enrollment.pk,
            "student_id": enrollment.student_id,
            "progress": enrollment.percentage_complete,
            "last_accessed_at": enrollment.last_accessed_at,
            "attendance": attendance_summary(enrollment).attendance_percentage,
            "final_grade": enrollment.final_grade,
            "grade_percentage": enrollment.grade_percentage,
            "assignments_completed": enrollment.assignment_grades.count(),
            "status": enrollment.status,
        })
    total = len(enrollments)
    progress_values = [row["progress"] for row in students]
    return {
        "classroom": {"id": classroom.pk, "title": classroom.title, "total_students": total},
        "statistics": {
            "average_progress": round_half_up(sum(progress_values) / total) if total else 0,
            "students_completed": sum(1 for value in progress_values if value == 100),
            "students_in_progress": sum(1 for value in progress_values if 0 < value < 100),
            "students_not_started": sum(1 for value in progress_values if value == 0),
            "average_attendance": round_half_up(sum(row["attendance"] for row in students) / total) if total else 0,
        },
        "students": students,
    }
