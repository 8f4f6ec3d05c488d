import pytest
from model_bakery import baker
from django.test import override_settings
from rest_framework.exceptions import PermissionDenied

from ClassroomApp.core.choices import NotificationKind, SubmissionStatus
from ClassroomApp.core.exceptions import RegradeNotAllowed, SubmissionNotFound, ValidationError
from ClassroomApp.domain.services import grading_service, submission_service
from ClassroomApp.learning.models import GradeEvent, SubmissionGrade

pytestmark = pytest.mark.django_db


@pytest.fixture
def submitted(student, enrollment, assignment, clock, sink):
    return submission_service.submit(student, assignment.pk, content="answer", clock=clock, notification_sink=sink)


def test_late_submission_graded_with_penalty(student, instructor, enrollment, make_assignment, clock, sink):
    assignment = make_assignment(due_date=clock.now(), max_score=100, late_penalty=10)
    clock.advance(hours=1)
    submission_service.submit(student, assignment.pk, content="late work", clock=clock, notification_sink=sink)

    sub = grading_service.grade_submission(instructor, assignment.pk, student.pk, 80, clock=clock, notification_sink=sink)

    assert sub.grade.score == 70
    assert sub.grade.raw_score == 80
    assert sub.status == SubmissionStatus.GRADED
    assert sub.is_late is True


def test_on_time_submission_keeps_raw_score(student, instructor, assignment, submitted, clock, sink):
    sub = grading_service.grade_submission(
        instructor, assignment.pk, student.pk, 95, feedback="Great", clock=clock, notification_sink=sink
    )
    assert sub.grade.score == 95
    assert sub.grade.feedback == "Great"
    assert sub.grade.graded_by == instructor
    assert sub.grade.graded_at == clock.now()


def test_penalty_never_goes_below_zero(student, instructor, enrollment, make_assignment, clock, sink):
    assignment = make_assignment(due_date=clock.now(), late_penalty=50)
    clock.advance(minutes=5)
    submission_service.submit(student, assignment.pk, content="x", clock=clock, notification_sink=sink)
    sub = grading_service.grade_submission(instructor, assignment.pk, student.pk, 20, clock=clock, notification_sink=sink)
    assert sub.grade.score == 0


@pytest.mark.parametrize("score", [-1, 100.5])
def test_score_out_of_range_rejected(student, instructor, assignment, submitted, clock, sink, score):
    with pytest.raises(ValidationError):
        grading_service.grade_submission(instructor, assignment.pk, student.pk, score, clock=clock, notification_sink=sink)
    assert not SubmissionGrade.objects.exists()


@pytest.mark.parametrize("score", [0, 100])
def test_boundary_scores_accepted(student, instructor, assignment, submitted, clock, sink, score):
    sub = grading_service.grade_submission(instructor, assignment.pk, student.pk, score, clock=clock, notification_sink=sink)
    assert sub.grade.score == score


def test_only_class_instructor_may_grade(student, assignment, submitted, clock, sink):
    other = baker.make("users.User", role="INSTRUCTOR")
    with pytest.raises(PermissionDenied):
        grading_service.grade_submission(other, assignment.pk, student.pk, 50, clock=clock, notification_sink=sink)
    with pytest.raises(PermissionDenied):
        grading_service.grade_submission(student, assignment.pk, student.pk, 50, clock=clock, notification_sink=sink)


def test_grading_missing_submission(student, instructor, assignment, clock, sink):
    with pytest.raises(SubmissionNotFound):
        grading_service.grade_submission(instructor, assignment.pk, student.pk, 50, clock=clock, notification_sink=sink)


def test_grading_updates_statistics(student, instructor, assignment, submitted, clock, sink):
    grading_service.grade_submission(instructor, assignment.pk, student.pk, 60, clock=clock, notification_sink=sink)
    assignment.refresh_from_db()
    assert assignment.average_score == 60
    assert assignment.highest_score == 60
    assert assignment.lowest_score == 60


def test_regrade_overwrites_when_allowed(student, instructor, enrollment, assignment, submitted, clock, sink):
    grading_service.grade_submission(instructor, assignment.pk, student.pk, 50, clock=clock, notification_sink=sink)
    sub = grading_service.grade_submission(instructor, assignment.pk, student.pk, 90, clock=clock, notification_sink=sink)
    assert sub.grade.score == 90
    assert sub.grade.history.count() == 2
    enrollment.refresh_from_db()
    assert enrollment.assignment_grades.count() == 1
    assert enrollment.grade_percentage == 90


@override_settings(CLASSROOM={"REGRADE_POLICY": "deny"})
def test_regrade_rejected_when_denied(student, instructor, assignment, submitted, clock, sink):
    grading_service.grade_submission(instructor, assignment.pk, student.pk, 50, clock=clock, notification_sink=sink)
    with pytest.raises(RegradeNotAllowed):
        grading_service.grade_submission(instructor, assignment.pk, student.pk, 90, clock=clock, notification_sink=sink)
    assert SubmissionGrade.objects.get().score == 50


def test_grade_flows_into_enrollment(student, instructor, enrollment, assignment, submitted, clock, sink):
    grading_service.grade_submission(instructor, assignment.pk, student.pk, 80, clock=clock, notification_sink=sink)
    enrollment.refresh_from_db()
    assert enrollment.total_score == 80
    assert enrollment.grade_percentage == 80
    assert enrollment.final_grade == "A"
    event = GradeEvent.objects.get()
    assert event.processed_at == clock.now()


def test_student_notified_after_grading(student, instructor, assignment, submitted, clock, sink):
    grading_service.grade_submission(instructor, assignment.pk, student.pk, 75, clock=clock, notification_sink=sink)
    kind, recipient, payload = sink.sent[-1]
    assert kind == NotificationKind.ASSIGNMENT_GRADED
    assert recipient == student.pk
    assert payload["score"] == 75


def test_return_requires_graded_status(student, instructor, assignment, submitted, clock, sink):
    with pytest.raises(ValidationError):
        grading_service.return_submission(instructor, assignment.pk, student.pk)
    grading_service.grade_submission(instructor, assignment.pk, student.pk, 75, clock=clock, notification_sink=sink)
    sub = grading_service.return_submission(instructor, assignment.pk, student.pk)
    assert sub.status == SubmissionStatus.RETURNED


def test_resubmission_keeps_previous_grade(student, instructor, assignment, submitted, clock, sink):
    grading_service.grade_submission(instructor, assignment.pk, student.pk, 40, clock=clock, notification_sink=sink)
    sub = submission_service.submit(student, assignment.pk, content="v2", clock=clock, notification_sink=sink)
    assert sub.status == SubmissionStatus.RESUBMITTED
    assert SubmissionGrade.objects.get(submission=sub).score == 40


def test_rubric_scores_validated(student, instructor, make_assignment, enrollment, clock, sink):
    assignment = make_assignment(rubric=[{"criterion": "clarity", "description": "", "max_points": 5}])
    submission_service.submit(student, assignment.pk, content="x", clock=clock, notification_sink=sink)
    with pytest.raises(ValidationError):
        grading_service.grade_submission(
            instructor, assignment.pk, student.pk, 50,
            rubric_scores=[{"criterion": "clarity", "score": 7}], clock=clock, notification_sink=sink,
        )
    sub = grading_service.grade_submission(
        instructor, assignment.pk, student.pk, 50,
        rubric_scores=[{"criterion": "clarity", "score": 4}], clock=clock, notification_sink=sink,
    )
    assert sub.grade.rubric_scores == [{"criterion": "clarity", "score": 4}]


@override_settings(CLASSROOM={"REGRADE_POLICY": "deny"})
def test_resubmitted_attempt_can_be_graded_when_regrade_denied(student, instructor, assignment, submitted, clock, sink):
    grading_service.grade_submission(instructor, assignment.pk, student.pk, 40, clock=clock, notification_sink=sink)
    resubmitted = submission_service.submit(student, assignment.pk, content="v2", clock=clock, notification_sink=sink)
    assert resubmitted.status == SubmissionStatus.RESUBMITTED

    sub = grading_service.grade_submission(instructor, assignment.pk, student.pk, 90, clock=clock, notification_sink=sink)

    assert sub.status == SubmissionStatus.GRADED
    assert sub.grade.score == 90


@override_settings(CLASSROOM={"REGRADE_POLICY": "deny"})
def test_returned_submission_cannot_be_regraded_when_denied(student, instructor, assignment, submitted, clock, sink):
    grading_service.grade_submission(instructor, assignment.pk, student.pk, 40, clock=clock, notification_sink=sink)
    grading_service.return_submission(instructor, assignment.pk, student.pk)
    with pytest.raises(RegradeNotAllowed):
        grading_service.grade_submission(instructor, assignment.pk, student.pk, 90, clock=clock, notification_sink=sink)


@pytest.mark.parametrize("bad_score", ["four", None, True])
def test_non_numeric_rubric_score_rejected(student, instructor, make_assignment, enrollment, clock, sink, bad_score):
    assignment = make_assignment(rubric=[{"criterion": "clarity", "description": "", "max_points": 5}])
    submission_service.submit(student, assignment.pk, content="x", clock=clock, notification_sink=sink)
    with pytest.raises(ValidationError):
        grading_service.grade_submission(
            instructor, assignment.pk, student.pk, 50,
            rubric_scores=[{"criterion": "clarity", "score": bad_score}], clock=clock, notification_sink=sink,
        )
    assert not SubmissionGrade.objects.exists()
