"""
API Exceptions - mapping of domain errors onto HTTP responses.

Services raise the typed errors from ``core.exceptions``; this module is
the only place that knows which HTTP status each one becomes.

All errors are rendered as:
{
    "success": false,
    "error": {
        "code": "MACHINE_READABLE_CODE",
        "message": "Human-readable message",
        "details": {...}
    },
    "meta": {"timestamp": "ISO8601"}
}
"""

import logging
from typing import Any, Dict, Optional

from django.core.exceptions import PermissionDenied
from django.http import Http404
from django.utils import timezone

from rest_framework import status
from rest_framework.exceptions import APIException, ValidationError
from rest_framework.response import Response
from rest_framework.views import exception_handler

from core import exceptions as domain
from core.db.exceptions import ConcurrentModificationError

logger = logging.getLogger(__name__)


# =============================================================================
# STATUS MAPPING
# =============================================================================

DOMAIN_STATUS_CODES = (
    (domain.NotFound, status.HTTP_404_NOT_FOUND),
    (domain.AccountInactive, status.HTTP_401_UNAUTHORIZED),
    (domain.Forbidden, status.HTTP_403_FORBIDDEN),
    (domain.InvalidTransition, status.HTTP_409_CONFLICT),
    (domain.PreconditionFailed, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (domain.ValidationError, status.HTTP_400_BAD_REQUEST),
    (domain.Conflict, status.HTTP_409_CONFLICT),
    (domain.InvalidOperation, status.HTTP_400_BAD_REQUEST),
    (domain.InvalidCredential, status.HTTP_401_UNAUTHORIZED),
)


def status_for(exc: domain.WorkforceError) -> int:
    for exc_class, status_code in DOMAIN_STATUS_CODES:
        if isinstance(exc, exc_class):
            return status_code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def error_body(code: str, message: str, details: Optional[Any] = None) -> Dict[str, Any]:
    return {
        "success": False,
        "error": {
            "code": code,
            "message": message,
            "details": details if details is not None else {},
        },
        "meta": {
            "timestamp": timezone.now().isoformat(),
        },
    }


def _validation_details(detail) -> Any:
    if isinstance(detail, dict):
        return [
            {"field": field, "messages": msgs if isinstance(msgs, list) else [str(msgs)]}
            for field, msgs in detail.items()
        ]
    if isinstance(detail, list):
        return [{"field": "non_field_errors", "messages": [str(e) for e in detail]}]
    return [{"field": "non_field_errors", "messages": [str(detail)]}]


# =============================================================================
# EXCEPTION HANDLER
# =============================================================================

def workforce_exception_handler(exc, context):
    """
    Custom exception handler producing the standard error envelope.

    Handles, in order: typed domain errors, optimistic-lock conflicts,
    DRF validation errors, every other DRF/Django exception, and finally
    anything unhandled (500).
    """
    if isinstance(exc, domain.WorkforceError):
        status_code = status_for(exc)
        if status_code >= 500:
            logger.error("Unmapped domain error %s: %s", type(exc).__name__, exc)
        return Response(error_body(exc.code, exc.message, exc.extra_data), status=status_code)

    if isinstance(exc, ConcurrentModificationError):
        logger.info("Optimistic lock conflict: %s", exc)
        return Response(
            error_body("CONFLICT", exc.message, {
                "expected_version": exc.expected_version,
                "actual_version": exc.actual_version,
            }),
            status=status.HTTP_409_CONFLICT,
        )

    # Get the standard DRF response
    response = exception_handler(exc, context)

    if response is None:
        logger.exception("Unhandled exception: %s", exc)
        return Response(
            error_body("INTERNAL_ERROR", "An unexpected error occurred."),
            status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    if isinstance(exc, ValidationError):
        detail = exc.detail
        message = "Validation failed."
        if isinstance(detail, list) and detail:
            message = str(detail[0])
        response.data = error_body("VALIDATION_ERROR", message, _validation_details(detail))
        return response

    if isinstance(exc, Http404):
        response.data = error_body("NOT_FOUND", "The requested resource was not found.")
        return response

    if isinstance(exc, PermissionDenied):
        response.data = error_body("FORBIDDEN", "You do not have permission to perform this action.")
        return response

    if isinstance(exc, APIException):
        code = exc.get_codes() if isinstance(exc.get_codes(), str) else exc.default_code
        response.data = error_body(str(code).upper(), str(exc.detail))
        return response

    response.data = error_body("ERROR", str(exc))
    return response
