"""
API exception handlers.

This module provides custom exception handling for REST API responses
and the reason-code to HTTP status table shared with the client views.
"""

import logging
from typing import Any, Dict, Optional

from django.http import Http404
from rest_framework import status
from rest_framework.exceptions import APIException, ValidationError
from rest_framework.response import Response
from rest_framework.views import exception_handler

from core.domain.exceptions import DomainException

logger = logging.getLogger(__name__)

REASON_HTTP_STATUS: Dict[str, int] = {
    "invalid_key_format": status.HTTP_400_BAD_REQUEST,
    "invalid_site_url": status.HTTP_400_BAD_REQUEST,
    "license_not_found": status.HTTP_404_NOT_FOUND,
    "activation_not_found": status.HTTP_404_NOT_FOUND,
    "license_suspended": status.HTTP_403_FORBIDDEN,
    "license_revoked": status.HTTP_403_FORBIDDEN,
    "license_expired": status.HTTP_403_FORBIDDEN,
    "product_not_licensed": status.HTTP_403_FORBIDDEN,
    "ip_blocked": status.HTTP_403_FORBIDDEN,
    "max_activations_reached": status.HTTP_409_CONFLICT,
    "invalid_status_transition": status.HTTP_409_CONFLICT,
    "activation_conflict": status.HTTP_409_CONFLICT,
    "duplicate_fingerprint": status.HTTP_409_CONFLICT,
    "rate_limited": status.HTTP_429_TOO_MANY_REQUESTS,
    "store_unavailable": status.HTTP_503_SERVICE_UNAVAILABLE,
}


def http_status_for(code: str) -> int:
    """Return the HTTP status for a reason code, 400 for unknown codes."""
    return REASON_HTTP_STATUS.get(code, status.HTTP_400_BAD_REQUEST)


def error_response(code: str, message: str, status_code: int) -> Response:
    """Build the operator API error envelope."""
    return Response({"error": {"code": code, "message": message}}, status=status_code)


def custom_exception_handler(exc: Exception, context: Dict[str, Any]) -> Response:
    """Custom exception handler for REST API."""
    trace_id = _get_trace_id(context)

    if isinstance(exc, DomainException):
        response = _handle_domain_exception(exc, trace_id)
    elif isinstance(exc, ValueError):
        logger.info("Rejected invalid input: %s", exc, extra={"trace_id": trace_id})
        response = error_response("invalid_request", str(exc), status.HTTP_400_BAD_REQUEST)
    elif isinstance(exc, ValidationError):
        response = exception_handler(exc, context)
        response.data = {
            "error": {
                "code": "invalid_request",
                "message": "Invalid request parameters.",
                "details": response.data,
            }
        }
    elif isinstance(exc, APIException):
        response = exception_handler(exc, context)
        response.data = {"error": {"code": exc.get_codes(), "message": str(exc.detail)}}
    elif isinstance(exc, Http404):
        response = error_response("not_found", "Resource not found", status.HTTP_404_NOT_FOUND)
    else:
        response = _handle_unexpected_exception(exc, trace_id)

    if trace_id:
        response["X-Trace-ID"] = trace_id
    return response


def _get_trace_id(context: Dict[str, Any]) -> Optional[str]:
    """Extract trace ID from request context."""
    request = context.get("request")
    if not request:
        return None
    return getattr(request, "trace_id", getattr(request, "correlation_id", None))


def _handle_domain_exception(exc: DomainException, trace_id: Optional[str]) -> Response:
    """Handle domain-specific exceptions."""
    status_code = http_status_for(exc.code)
    if status_code >= 500:
        logger.error("Domain exception: %s - %s", exc.code, exc.message, extra={"trace_id": trace_id})
    else:
        logger.warning(
            "Domain exception: %s - %s", exc.code, exc.message, extra={"trace_id": trace_id}
        )
    return error_response(exc.code, exc.message, status_code)


def _handle_unexpected_exception(exc: Exception, trace_id: Optional[str]) -> Response:
    """Handle unexpected or untracked exceptions."""
    logger.error("Unexpected error: %s", exc, extra={"trace_id": trace_id}, exc_info=True)
    return error_response(
        "internal_error", "An internal error occurred", status.HTTP_500_INTERNAL_SERVER_ERROR
    )
