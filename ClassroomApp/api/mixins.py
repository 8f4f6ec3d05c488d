from rest_framework.response import Response

class PaginationMixin:
    """Shared helper to reduce pagination boilerplate."""

    def paginate_and_respond(self, queryset, serializer_cls, **serializer_kwargs):
        """Serialize one page of queryset (or all of it when pagination is off)."""
        serializer_kwargs.setdefault("context", self.get_serializer_context())
        page = self.paginate_queryset(queryset)
        serializer = serializer_cls(page if page is not None else queryset, many=True, **serializer_kwargs)
        if page is not None:
            return self.get_paginated_response(serializer.data)
        return Response(serializer.data)
