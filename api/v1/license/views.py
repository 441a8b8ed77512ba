"""
Client license API views.

These endpoints are called by installed products to:
- Validate a license key
- Activate and deactivate sites
- Send heartbeats
- Read the license status
"""

from typing import Any, Dict

from asgiref.sync import async_to_sync
from drf_spectacular.utils import OpenApiParameter, OpenApiResponse, extend_schema
from rest_framework import status
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from activations.application.commands.activate_site import ActivateSiteCommand
from activations.application.commands.deactivate_site import DeactivateSiteCommand
from activations.application.commands.heartbeat_site import HeartbeatSiteCommand
from activations.application.dto.activation_dto import ActivationResultDTO
from api.client_ip import get_client_ip
from api.container import get_container
from api.exceptions import http_status_for
from api.v1.license.serializers import (
    ActivateLicenseRequestSerializer,
    ActivationResultSerializer,
    ClientErrorSerializer,
    DeactivateLicenseRequestSerializer,
    HeartbeatRequestSerializer,
    LicenseKeyRequestSerializer,
    LicenseSnapshotSerializer,
    ValidateLicenseRequestSerializer,
)
from core.domain.outcome import Outcome, OutcomeKind
from core.instrumentation import Status, StatusCode, get_tracer
from licenses.application.queries.get_license_status import GetLicenseStatusQuery
from licenses.application.queries.validate_license import ValidateLicenseQuery

tracer = get_tracer(__name__)

CLIENT_ERRORS = {
    code: OpenApiResponse(response=ClientErrorSerializer, description=description)
    for code, description in [
        (400, "Invalid key format or site URL"),
        (403, "License suspended, revoked, expired or not valid for the product"),
        (404, "License or activation not found"),
        (429, "Rate limited"),
        (503, "License store unavailable"),
    ]
}


def outcome_response(outcome: Outcome) -> Response:
    """
    Render an engine outcome in the client envelope.

    Args:
        outcome: Engine outcome

    Returns:
        Response with ``success`` and either the payload or the reason
    """
    if not outcome.ok:
        body: Dict[str, Any] = {
            "success": False,
            "error": str(outcome.reason),
            "message": outcome.message,
        }
        if outcome.retry_after_seconds:
            body["retry_after"] = outcome.retry_after_seconds
        response = Response(body, status=http_status_for(str(outcome.reason)))
        if outcome.retry_after_seconds:
            response["Retry-After"] = str(outcome.retry_after_seconds)
        return response

    if isinstance(outcome.payload, ActivationResultDTO):
        data = ActivationResultSerializer(outcome.payload).data
    else:
        data = LicenseSnapshotSerializer(outcome.payload).data

    status_code = status.HTTP_200_OK
    if outcome.kind == OutcomeKind.ACTIVATED:
        status_code = status.HTTP_201_CREATED
    return Response({"success": True, "message": outcome.message, **data}, status=status_code)


def invalid_request(errors: Dict[str, Any]) -> Response:
    """Render serializer errors in the client envelope."""
    return Response(
        {
            "success": False,
            "error": "invalid_request",
            "message": "Invalid request parameters.",
            "details": errors,
        },
        status=status.HTTP_400_BAD_REQUEST,
    )


class ClientLicenseView(APIView):
    """Base view for client endpoints."""

    def client_context(self, request: Request) -> Dict[str, Any]:
        """Return the caller's IP and user agent."""
        trusted = get_container().config.trusted_proxy_headers
        return {
            "ip_address": get_client_ip(request, trusted),
            "user_agent": request.META.get("HTTP_USER_AGENT", "")[:255],
        }

    def traced(self, span_name: str, run) -> Response:
        """Run an engine coroutine factory inside a span and render its outcome."""
        with tracer.start_as_current_span(span_name) as span:
            outcome = async_to_sync(run)()
            span.set_attribute("outcome", str(outcome.kind))
            if outcome.ok:
                span.set_status(Status(StatusCode.OK))
            else:
                span.set_attribute("reason", str(outcome.reason))
            return outcome_response(outcome)


class ValidateLicenseView(ClientLicenseView):
    """View for validating a license key."""

    @extend_schema(
        operation_id="validate_license",
        summary="Validate License",
        description=(
            "Check that a license key is usable for a product. When a site URL "
            "is given and that site holds an activation, its check-in time is refreshed."
        ),
        tags=["License API"],
        request=ValidateLicenseRequestSerializer,
        responses={200: LicenseSnapshotSerializer, **CLIENT_ERRORS},
    )
    def post(self, request: Request) -> Response:
        """Validate a license key."""
        serializer = ValidateLicenseRequestSerializer(data=request.data)
        if not serializer.is_valid():
            return invalid_request(serializer.errors)

        query = ValidateLicenseQuery(
            license_key=serializer.validated_data["license_key"],
            product_slug=serializer.validated_data.get("product_slug"),
            site_url=serializer.validated_data.get("site_url") or None,
            **self.client_context(request),
        )
        return self.traced("validate_license", lambda: get_container().engine.validate(query))


class ActivateLicenseView(ClientLicenseView):
    """View for activating a license on a site."""

    @extend_schema(
        operation_id="activate_license",
        summary="Activate License",
        description=(
            "Activate a license on a site. Re-activating a site that already "
            "holds a slot succeeds without consuming another one."
        ),
        tags=["License API"],
        request=ActivateLicenseRequestSerializer,
        responses={
            201: ActivationResultSerializer,
            200: ActivationResultSerializer,
            409: OpenApiResponse(
                response=ClientErrorSerializer, description="Maximum activations reached"
            ),
            **CLIENT_ERRORS,
        },
    )
    def post(self, request: Request) -> Response:
        """Activate a site."""
        serializer = ActivateLicenseRequestSerializer(data=request.data)
        if not serializer.is_valid():
            return invalid_request(serializer.errors)

        command = ActivateSiteCommand(
            license_key=serializer.validated_data["license_key"],
            site_url=serializer.validated_data["site_url"],
            product_slug=serializer.validated_data.get("product_slug"),
            site_name=serializer.validated_data.get("site_name", ""),
            site_metadata=serializer.site_metadata(),
            **self.client_context(request),
        )
        return self.traced("activate_license", lambda: get_container().engine.activate(command))


class DeactivateLicenseView(ClientLicenseView):
    """View for releasing a site's activation."""

    @extend_schema(
        operation_id="deactivate_license",
        summary="Deactivate License",
        description="Release the activation slot held by a site, whatever the license status.",
        tags=["License API"],
        request=DeactivateLicenseRequestSerializer,
        responses={200: ActivationResultSerializer, **CLIENT_ERRORS},
    )
    def post(self, request: Request) -> Response:
        """Deactivate a site."""
        serializer = DeactivateLicenseRequestSerializer(data=request.data)
        if not serializer.is_valid():
            return invalid_request(serializer.errors)

        command = DeactivateSiteCommand(
            license_key=serializer.validated_data["license_key"],
            site_url=serializer.validated_data["site_url"],
            **self.client_context(request),
        )
        return self.traced(
            "deactivate_license", lambda: get_container().engine.deactivate(command)
        )


class HeartbeatView(ClientLicenseView):
    """View for site check-ins."""

    @extend_schema(
        operation_id="license_heartbeat",
        summary="Heartbeat",
        description="Record a check-in from an activated site and refresh its metadata.",
        tags=["License API"],
        request=HeartbeatRequestSerializer,
        responses={200: ActivationResultSerializer, **CLIENT_ERRORS},
    )
    def post(self, request: Request) -> Response:
        """Record a heartbeat."""
        serializer = HeartbeatRequestSerializer(data=request.data)
        if not serializer.is_valid():
            return invalid_request(serializer.errors)

        command = HeartbeatSiteCommand(
            license_key=serializer.validated_data["license_key"],
            site_url=serializer.validated_data["site_url"],
            site_metadata=serializer.site_metadata(),
            **self.client_context(request),
        )
        return self.traced("license_heartbeat", lambda: get_container().engine.heartbeat(command))


class LicenseStatusView(ClientLicenseView):
    """View for reading a license's status."""

    @extend_schema(
        operation_id="license_status",
        summary="License Status",
        description=(
            "Return the license snapshot without touching activations. "
            "Inactive licenses are returned with their status."
        ),
        tags=["License API"],
        parameters=[
            OpenApiParameter(
                name="license_key",
                type=str,
                location=OpenApiParameter.QUERY,
                required=True,
                description="License key",
            ),
        ],
        responses={200: LicenseSnapshotSerializer, **CLIENT_ERRORS},
    )
    def get(self, request: Request) -> Response:
        """Read license status."""
        serializer = LicenseKeyRequestSerializer(data=request.query_params)
        if not serializer.is_valid():
            return invalid_request(serializer.errors)

        query = GetLicenseStatusQuery(
            license_key=serializer.validated_data["license_key"],
            **self.client_context(request),
        )
        return self.traced("license_status", lambda: get_container().engine.status(query))
