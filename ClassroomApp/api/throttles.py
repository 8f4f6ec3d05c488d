"""API throttling classes."""

from rest_framework.throttling import UserRateThrottle

class SubmissionRateThrottle(UserRateThrottle):
    """Limits how often one student may submit to one assignment.

    The rate comes from DEFAULT_THROTTLE_RATES["submission_create"]; the cache
    key includes the assignment so work on different assignments is counted apart.
    """
    scope = "submission_create"

    def get_cache_key(self, request, view):
        if not request.user or not request.user.is_authenticated:
            return None
        ident = f"{request.user.pk}:{view.kwargs.get('assignment_pk', '-')}"
        return self.cache_format % {"scope": self.scope, "ident": ident}
