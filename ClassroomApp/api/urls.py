from django.urls import path, include
from rest_framework_nested import routers
from drf_spectacular.views import SpectacularAPIView, SpectacularSwaggerView

from ClassroomApp.api.views import (
    ClassroomViewSet,
    AssignmentViewSet,
    SubmissionViewSet,
    EnrollmentViewSet,
)

router = routers.SimpleRouter()
router.register(r"classes", ClassroomViewSet, basename="class")
router.register(r"enrollments", EnrollmentViewSet, basename="enrollment")

classes_router = routers.NestedSimpleRouter(router, r"classes", lookup="class")
classes_router.register(r"assignments", AssignmentViewSet, basename="class-assignments")

assignments_router = routers.NestedSimpleRouter(classes_router, r"assignments", lookup="assignment")
assignments_router.register(r"submissions", SubmissionViewSet, basename="assignment-submissions")

urlpatterns = [
    path("schema/", SpectacularAPIView.as_view(), name="schema"),
    path("docs/", SpectacularSwaggerView.as_view(url_name="schema"), name="docs"),
    path("", include(router.urls)),
    path("", include(classes_router.urls)),
    path("", include(assignments_router.urls)),
]
