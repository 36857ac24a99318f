"""
API Base Classes - response envelope, pagination and the identity mixin.

Every successful response follows this structure:
{
    "success": true,
    "data": {...} | [...],
    "count": int,          # list responses
    "pagination": {...}    # paginated list responses
}
"""

import logging
from typing import Any, Dict, Optional

from django.apps import apps
from rest_framework import status
from rest_framework.pagination import PageNumberPagination
from rest_framework.response import Response

from core.access import Identity

logger = logging.getLogger(__name__)


# =============================================================================
# STANDARD RESPONSE HELPERS
# =============================================================================

class APIResponse:
    """Standardized success responses for consistent client handling."""

    @staticmethod
    def success(
        data: Any = None,
        status_code: int = status.HTTP_200_OK,
        count: Optional[int] = None,
        pagination: Optional[Dict] = None,
        headers: Dict = None,
    ) -> Response:
        """Create a successful response."""
        body = {"success": True, "data": data}
        if count is not None:
            body["count"] = count
        if pagination is not None:
            body["pagination"] = pagination
        return Response(body, status=status_code, headers=headers)

    @staticmethod
    def created(data: Any = None) -> Response:
        """Create a 201 Created response."""
        return APIResponse.success(data=data, status_code=status.HTTP_201_CREATED)

    @staticmethod
    def listed(data: list) -> Response:
        """List response without pagination."""
        return APIResponse.success(data=data, count=len(data))

    @staticmethod
    def deleted() -> Response:
        """Deletion acknowledgement carrying an empty payload."""
        return APIResponse.success(data={})


# =============================================================================
# PAGINATION CLASSES
# =============================================================================

class StandardPagination(PageNumberPagination):
    """
    Page-number pagination with configurable page size.

    Query params:
    - page: Page number (1-indexed)
    - limit: Items per page (default: 10, max: 100)
    """
    page_size = 10
    page_size_query_param = 'limit'
    max_page_size = 100

    def get_paginated_response(self, data):
        return Response({
            "success": True,
            "data": data,
            "count": len(data),
            "pagination": {
                "total": self.page.paginator.count,
                "page": self.page.number,
                "limit": self.get_page_size(self.request),
                "pages": self.page.paginator.num_pages,
                "next": self.page.next_page_number() if self.page.has_next() else None,
                "previous": self.page.previous_page_number() if self.page.has_previous() else None,
            }
        })

    def get_paginated_response_schema(self, schema):
        return {
            'type': 'object',
            'properties': {
                'success': {'type': 'boolean'},
                'data': schema,
                'count': {'type': 'integer'},
                'pagination': {'type': 'object'},
            },
        }


# =============================================================================
# VIEW MIXINS
# =============================================================================

class IdentityViewSetMixin:
    """
    Gives views access to the resolved identity and the injected services.

    The authentication class attaches the identity to the user object; when
    a request was authenticated some other way (session, forced test auth)
    the identity is resolved on first use, which still enforces the
    inactive-account short-circuit.
    """

    resource_type: str = None
    collection_actions: Dict[str, str] = {}

    def get_identity(self) -> Identity:
        request = self.request
        cached = getattr(request, '_workforce_identity', None)
        if cached is not None:
            return cached

        identity = getattr(request.user, 'identity', None)
        if identity is None:
            from accounts.services import IdentityResolver
            identity = IdentityResolver().resolve(request.user.pk)

        request._workforce_identity = identity
        return identity

    def get_blob_store(self):
        return apps.get_app_config('core').blob_store

    def paginated(self, queryset, serializer_class=None, **serializer_kwargs):
        """Serialize a queryset through the configured paginator."""
        serializer_class = serializer_class or self.get_serializer_class()
        context = self.get_serializer_context()
        page = self.paginate_queryset(queryset)
        if page is not None:
            serializer = serializer_class(page, many=True, context=context, **serializer_kwargs)
            return self.get_paginated_response(serializer.data)
        serializer = serializer_class(queryset, many=True, context=context, **serializer_kwargs)
        return APIResponse.listed(serializer.data)
