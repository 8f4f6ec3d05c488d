"""REST API views for classes, assignments, submissions, grading and enrollment progress."""

from django.shortcuts import get_object_or_404
from django.db.models import Q

from rest_framework import status, mixins, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.request import Request

from drf_spectacular.utils import (
    extend_schema,
    extend_schema_view,
    OpenApiResponse,
    OpenApiParameter,
)

from ClassroomApp.api.mixins import PaginationMixin
from ClassroomApp.api.throttles import SubmissionRateThrottle
from ClassroomApp.classes.models import Classroom
from ClassroomApp.core.access import can_grade
from ClassroomApp.core.permissions import IsClassInstructor, IsGrader, ParticipantPermission
from ClassroomApp.domain.services import (
    assignment_service,
    attendance_service,
    certificate_service,
    grade_aggregator,
    grading_service,
    progress_service,
    submission_service,
)
from ClassroomApp.enrollments.models import Enrollment
from ClassroomApp.learning.models import Assignment, Submission
from ClassroomApp.api.serializers import (
    ClassroomSerializer,
    AssignmentWriteSerializer,
    AssignmentReadSerializer,
    SubmissionWriteSerializer,
    SubmissionReadSerializer,
    GradeWriteSerializer,
    SubmissionCommentWriteSerializer,
    SubmissionCommentReadSerializer,
    EnrollmentReadSerializer,
    ProgressUpdateSerializer,
    ProgressSnapshotSerializer,
    AttendanceWriteSerializer,
    AttendanceSnapshotSerializer,
    AttendanceRecordSerializer,
    CertificateSerializer,
    QuizScoreSerializer,
    AssignmentGradeEntrySerializer,
    QuizGradeEntrySerializer,
)

AUTH_RESPONSES = {
    401: OpenApiResponse(description="Authentication required."),
    403: OpenApiResponse(description="Forbidden"),
    404: OpenApiResponse(description="Not Found"),
}

VALIDATION_RESPONSE = {
    400: OpenApiResponse(description="Validation failed."),
}

CONFLICT_RESPONSE = {
    409: OpenApiResponse(description="Attempt limit reached or re-grade not allowed."),
}


# ---------- Classes ----------
@extend_schema_view(
    list=extend_schema(tags=["Classes"], responses={200: ClassroomSerializer(many=True), **AUTH_RESPONSES}),
    retrieve=extend_schema(tags=["Classes"], responses={200: ClassroomSerializer, **AUTH_RESPONSES}),
    progress_overview=extend_schema(
        tags=["Progress"],
        responses={200: OpenApiResponse(description="Class progress statistics."), **AUTH_RESPONSES},
        extensions={"x-permissions": {"required_roles": ["instructor"]}},
    ),
)
class ClassroomViewSet(PaginationMixin, viewsets.ReadOnlyModelViewSet):
    """Read-only class listing the grading endpoints hang off."""
    serializer_class = ClassroomSerializer
    permission_classes = [IsAuthenticated]

    def get_queryset(self):
        user = self.request.user
        return (
            Classroom.objects.filter(
                Q(is_published=True) | Q(instructor=user) | Q(enrollments__student=user)
            )
            .select_related("instructor")
            .distinct()
            .order_by("id")
        )

    @action(detail=True, methods=["get"], url_path="progress-overview")
    def progress_overview(self, request: Request, pk: int | None = None) -> Response:
        """Average progress/attendance and per-student rows for the instructor."""
        classroom = self.get_object()
        return Response(progress_service.instructor_class_overview(request.user, classroom))


# ---------- Assignments ----------
@extend_schema_view(
    list=extend_schema(tags=["Assignments"], responses={200: AssignmentReadSerializer(many=True), **AUTH_RESPONSES}),
    retrieve=extend_schema(tags=["Assignments"], responses={200: AssignmentReadSerializer, **AUTH_RESPONSES}),
    create=extend_schema(
        tags=["Assignments"],
        request=AssignmentWriteSerializer,
        responses={201: AssignmentReadSerializer, **AUTH_RESPONSES, **VALIDATION_RESPONSE},
        extensions={"x-permissions": {"required_roles": ["instructor"]}},
    ),
    partial_update=extend_schema(
        tags=["Assignments"],
        request=AssignmentWriteSerializer,
        responses={200: AssignmentReadSerializer, **AUTH_RESPONSES, **VALIDATION_RESPONSE},
        extensions={"x-permissions": {"required_roles": ["instructor"]}},
    ),
    destroy=extend_schema(
        tags=["Assignments"],
        responses={204: OpenApiResponse(description="Deleted"), **AUTH_RESPONSES, **VALIDATION_RESPONSE},
        extensions={"x-permissions": {"required_roles": ["instructor"]}},
    ),
    publish=extend_schema(
        tags=["Assignments"],
        request=None,
        responses={200: AssignmentReadSerializer, **AUTH_RESPONSES},
        extensions={"x-permissions": {"required_roles": ["instructor"]}},
    ),
)
@extend_schema(parameters=[OpenApiParameter("class_pk", int, OpenApiParameter.PATH)])
class AssignmentViewSet(
    PaginationMixin,
    mixins.CreateModelMixin,
    mixins.RetrieveModelMixin,
    mixins.UpdateModelMixin,
    mixins.ListModelMixin,
    mixins.DestroyModelMixin,
    viewsets.GenericViewSet,
):
    """Assignment lifecycle within a class (draft -> published -> deleted while unsubmitted)."""
    permission_classes = [IsAuthenticated, IsClassInstructor]
    http_method_names = ["get", "post", "patch", "delete", "head", "options"]

    def get_serializer_class(self):
        return AssignmentWriteSerializer if self.action in ("create", "partial_update") else AssignmentReadSerializer

    def _classroom(self) -> Classroom:
        return get_object_or_404(Classroom, pk=self.kwargs["class_pk"])

    def get_queryset(self):
        return assignment_service.list_assignments_for_class(self.request.user, self._classroom())

    def list(self, request: Request, *args, **kwargs) -> Response:
        return self.paginate_and_respond(self.get_queryset(), AssignmentReadSerializer)

    def create(self, request: Request, *args, **kwargs) -> Response:
        """Create a draft assignment and return its read representation."""
        ser = AssignmentWriteSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        assignment = assignment_service.create_assignment(request.user, self._classroom(), ser.validated_data)
        return Response(AssignmentReadSerializer(assignment).data, status=status.HTTP_201_CREATED)

    def update(self, request: Request, *args, **kwargs) -> Response:
        """PATCH: partially update an assignment; submissions keep their lateness."""
        ser = AssignmentWriteSerializer(data=request.data, partial=True)
        ser.is_valid(raise_exception=True)
        assignment = assignment_service.update_assignment(request.user, self.get_object(), ser.validated_data)
        return Response(AssignmentReadSerializer(assignment).data)

    def perform_destroy(self, instance: Assignment) -> None:
        assignment_service.delete_assignment(self.request.user, instance)

    @action(detail=True, methods=["post"], url_path="publish")
    def publish(self, request: Request, pk: int | None = None, *args, **kwargs) -> Response:
        assignment = assignment_service.publish_assignment(request.user, self.get_object())
        return Response(AssignmentReadSerializer(assignment).data)


# ---------- Submissions ----------
@extend_schema_view(
    list=extend_schema(tags=["Submissions"], responses={200: SubmissionReadSerializer(many=True), **AUTH_RESPONSES}),
    retrieve=extend_schema(tags=["Submissions"], responses={200: SubmissionReadSerializer, **AUTH_RESPONSES}),
    create=extend_schema(
        tags=["Submissions"],
        request=SubmissionWriteSerializer,
        description="Submit, or resubmit while attempts remain. Lateness is stamped per attempt.",
        responses={
            201: SubmissionReadSerializer,
            429: OpenApiResponse(description="Too many requests / throttled."),
            **AUTH_RESPONSES,
            **VALIDATION_RESPONSE,
            **CONFLICT_RESPONSE,
        },
        extensions={"x-permissions": {"required_roles": ["student"], "ownership": "self"}},
    ),
)
@extend_schema(
    parameters=[
        OpenApiParameter("class_pk", int, OpenApiParameter.PATH),
        OpenApiParameter("assignment_pk", int, OpenApiParameter.PATH),
    ]
)
class SubmissionViewSet(
    PaginationMixin,
    mixins.CreateModelMixin,
    mixins.RetrieveModelMixin,
    mixins.ListModelMixin,
    viewsets.GenericViewSet,
):
    """Submission ledger, grading and comments with throttled creation."""

    permission_classes = [IsAuthenticated, ParticipantPermission]
    throttle_classes: list[type] = []
    queryset = Submission.objects.select_related("assignment__classroom", "student", "grade")

    def get_serializer_class(self):
        return SubmissionWriteSerializer if self.action == "create" else SubmissionReadSerializer

    def get_throttles(self):
        """Apply rate throttle only on create."""
        if self.action == "create":
            self.throttle_classes = [SubmissionRateThrottle]
        return super().get_throttles()

    def _assignment(self) -> Assignment:
        """The assignment named by the URL; it must belong to the class in the URL."""
        return get_object_or_404(
            Assignment.objects.select_related("classroom"),
            pk=self.kwargs["assignment_pk"],
            classroom_id=self.kwargs["class_pk"],
        )

    def get_queryset(self):
        """Instructors see every submission of the assignment, students only their own."""
        assignment = self._assignment()
        qs = self.queryset.filter(assignment=assignment)
        if not can_grade(self.request.user, assignment.classroom):
            qs = qs.for_student(self.request.user)
        return qs.order_by("id")

    def list(self, request: Request, *args, **kwargs) -> Response:
        return self.paginate_and_respond(self.get_queryset(), SubmissionReadSerializer)

    def create(self, request: Request, *args, **kwargs) -> Response:
        """Submit (or resubmit) the requesting student's work."""
        assignment = self._assignment()
        ser = SubmissionWriteSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        submission = submission_service.submit(
            request.user,
            assignment.pk,
            content=ser.validated_data.get("content", ""),
            files=ser.validated_data.get("files", []),
        )
        return Response(SubmissionReadSerializer(submission).data, status=status.HTTP_201_CREATED)

    @extend_schema(
        tags=["Grades"],
        request=GradeWriteSerializer,
        responses={200: SubmissionReadSerializer, **AUTH_RESPONSES, **VALIDATION_RESPONSE, **CONFLICT_RESPONSE},
        extensions={"x-permissions": {"required_roles": ["instructor"]}},
    )
    @action(detail=True, methods=["post"], url_path="grade", permission_classes=[IsAuthenticated, IsGrader])
    def grade(self, request: Request, pk: int | None = None, *args, **kwargs) -> Response:
        """Grade a submission; late submissions lose the assignment's late penalty."""
        submission = self.get_object()
        ser = GradeWriteSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        graded = grading_service.grade_submission(
            request.user,
            submission.assignment_id,
            submission.student_id,
            ser.validated_data["score"],
            ser.validated_data.get("feedback", ""),
            ser.validated_data.get("rubric_scores", []),
        )
        return Response(SubmissionReadSerializer(graded).data)

    @extend_schema(
        tags=["Grades"],
        request=None,
        responses={200: SubmissionReadSerializer, **AUTH_RESPONSES, **VALIDATION_RESPONSE},
        extensions={"x-permissions": {"required_roles": ["instructor"]}},
    )
    @action(detail=True, methods=["post"], url_path="return", permission_classes=[IsAuthenticated, IsGrader])
    def return_to_student(self, request: Request, pk: int | None = None, *args, **kwargs) -> Response:
        submission = self.get_object()
        returned = grading_service.return_submission(request.user, submission.assignment_id, submission.student_id)
        return Response(SubmissionReadSerializer(returned).data)

    @extend_schema(
        tags=["Submissions"],
        request=SubmissionCommentWriteSerializer,
        responses={200: SubmissionCommentReadSerializer(many=True), 201: SubmissionCommentReadSerializer, **AUTH_RESPONSES},
    )
    @action(detail=True, methods=["get", "post"], url_path="comments")
    def comments(self, request: Request, pk: int | None = None, *args, **kwargs) -> Response:
        submission = self.get_object()
        if request.method == "GET":
            qs = submission.comments.select_related("author").order_by("created_at")
            return self.paginate_and_respond(qs, SubmissionCommentReadSerializer)
        ser = SubmissionCommentWriteSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        comment = submission_service.add_comment(request.user, submission, ser.validated_data["content"])
        return Response(SubmissionCommentReadSerializer(comment).data, status=status.HTTP_201_CREATED)


# ---------- Enrollments ----------
@extend_schema_view(
    list=extend_schema(tags=["Enrollments"], responses={200: EnrollmentReadSerializer(many=True), **AUTH_RESPONSES}),
    retrieve=extend_schema(tags=["Enrollments"], responses={200: EnrollmentReadSerializer, **AUTH_RESPONSES}),
)
class EnrollmentViewSet(PaginationMixin, viewsets.ReadOnlyModelViewSet):
    """Enrollment progress, attendance, grade ledger and certificate endpoints."""
    serializer_class = EnrollmentReadSerializer
    permission_classes = [IsAuthenticated, ParticipantPermission]

    def get_queryset(self):
        user = self.request.user
        return (
            Enrollment.objects.filter(Q(student=user) | Q(classroom__instructor=user))
            .select_related("classroom")
            .order_by("id")
        )

    @extend_schema(
        tags=["Progress"],
        responses={200: OpenApiResponse(description="Progress across the student's active classes."), **AUTH_RESPONSES},
    )
    @action(detail=False, methods=["get"], url_path="overall-progress")
    def overall_progress(self, request: Request) -> Response:
        """Averages and recent classes over the requesting student's active enrollments."""
        return Response(progress_service.overall_progress(request.user))

    @extend_schema(
        tags=["Progress"],
        request=ProgressUpdateSerializer,
        responses={200: ProgressSnapshotSerializer, **AUTH_RESPONSES, **VALIDATION_RESPONSE},
    )
    @action(detail=True, methods=["get", "post"], url_path="progress")
    def progress(self, request: Request, pk: int | None = None) -> Response:
        """GET the progress snapshot; POST marks a lesson completed / adds time spent."""
        enrollment = self.get_object()
        if request.method == "GET":
            return Response(ProgressSnapshotSerializer(progress_service.progress_snapshot(enrollment)).data)
        ser = ProgressUpdateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        snapshot = progress_service.update_progress(
            enrollment.pk, ser.validated_data["lesson_id"], ser.validated_data["time_spent"]
        )
        return Response(ProgressSnapshotSerializer(snapshot).data)

    @extend_schema(tags=["Progress"], responses={200: OpenApiResponse(description="Class progress summary."), **AUTH_RESPONSES})
    @action(detail=True, methods=["get"], url_path="summary")
    def summary(self, request: Request, pk: int | None = None) -> Response:
        data = progress_service.class_progress(self.get_object())
        data["progress"] = ProgressSnapshotSerializer(data["progress"]).data
        data["attendance"] = AttendanceSnapshotSerializer(data["attendance"]).data
        return Response(data)

    @extend_schema(
        tags=["Attendance"],
        request=AttendanceWriteSerializer,
        responses={200: AttendanceSnapshotSerializer, **AUTH_RESPONSES, **VALIDATION_RESPONSE},
        extensions={"x-permissions": {"required_roles": ["instructor"], "read": "participant"}},
    )
    @action(detail=True, methods=["get", "post"], url_path="attendance")
    def attendance(self, request: Request, pk: int | None = None) -> Response:
        """GET the attendance records and percentage; POST (instructor) appends a record."""
        enrollment = self.get_object()
        if request.method == "GET":
            return Response({
                "records": AttendanceRecordSerializer(enrollment.attendance.all(), many=True).data,
                **AttendanceSnapshotSerializer(attendance_service.attendance_summary(enrollment)).data,
            })
        self.check_object_permissions_as_grader(enrollment)
        ser = AttendanceWriteSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        snapshot = attendance_service.mark_attendance(enrollment.pk, **ser.validated_data)
        return Response(AttendanceSnapshotSerializer(snapshot).data)

    @extend_schema(
        tags=["Grades"],
        request=QuizScoreSerializer,
        responses={200: EnrollmentReadSerializer, **AUTH_RESPONSES, **VALIDATION_RESPONSE},
        extensions={"x-permissions": {"required_roles": ["instructor"], "read": "participant"}},
    )
    @action(detail=True, methods=["get", "post"], url_path="grades")
    def grades(self, request: Request, pk: int | None = None) -> Response:
        """GET the grade ledger; POST (instructor) records a quiz score."""
        enrollment = self.get_object()
        if request.method == "POST":
            self.check_object_permissions_as_grader(enrollment)
            ser = QuizScoreSerializer(data=request.data)
            ser.is_valid(raise_exception=True)
            enrollment = grade_aggregator.record_quiz_score(enrollment.pk, **ser.validated_data)
        return Response({
            "assignments": AssignmentGradeEntrySerializer(enrollment.assignment_grades.all(), many=True).data,
            "quizzes": QuizGradeEntrySerializer(enrollment.quiz_grades.all(), many=True).data,
            "final_grade": enrollment.final_grade,
            "total_score": enrollment.total_score,
            "grade_percentage": enrollment.grade_percentage,
        })

    @extend_schema(
        tags=["Certificates"],
        request=None,
        responses={200: CertificateSerializer, **AUTH_RESPONSES, **VALIDATION_RESPONSE},
    )
    @action(detail=True, methods=["post"], url_path="certificate")
    def certificate(self, request: Request, pk: int | None = None) -> Response:
        """Issue the completion certificate (idempotent)."""
        enrollment = self.get_object()
        cert = certificate_service.generate_certificate(enrollment.pk)
        return Response(CertificateSerializer(cert).data)

    def check_object_permissions_as_grader(self, enrollment: Enrollment) -> None:
        if not IsGrader().has_object_permission(self.request, self, enrollment):
            self.permission_denied(self.request, message="Instructor role required")
