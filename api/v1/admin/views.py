"""
Operator (admin) API views.

These endpoints are used by operators to:
- Issue, list, inspect and delete licenses
- Drive license lifecycle transitions
- Inspect the validation log

Authentication is enforced by AdminAPIKeyMiddleware.
"""

import uuid

from asgiref.sync import async_to_sync
from drf_spectacular.utils import OpenApiResponse, extend_schema
from rest_framework import status
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from api.container import get_container
from api.v1.admin.serializers import (
    CreateLicenseRequestSerializer,
    IssuedLicenseSerializer,
    LicensePageSerializer,
    LicenseSerializer,
    ListLicensesRequestSerializer,
    ReasonRequestSerializer,
    RegenerateKeyRequestSerializer,
    RenewLicenseRequestSerializer,
    StatisticsQuerySerializer,
    TransferLicenseRequestSerializer,
    ValidationLogPageSerializer,
    ValidationLogQuerySerializer,
    ValidationLogStatisticsSerializer,
)
from core.domain.value_objects import LicenseStatus, LicenseTier, ReasonCode, ValidationEvent
from core.instrumentation import get_tracer
from licenses.application.commands.create_license import CreateLicenseCommand
from licenses.application.commands.delete_license import DeleteLicenseCommand
from licenses.application.commands.reactivate_license import ReactivateLicenseCommand
from licenses.application.commands.regenerate_license_key import RegenerateLicenseKeyCommand
from licenses.application.commands.renew_license import RenewLicenseCommand
from licenses.application.commands.resume_license import ResumeLicenseCommand
from licenses.application.commands.revoke_license import RevokeLicenseCommand
from licenses.application.commands.suspend_license import SuspendLicenseCommand
from licenses.application.commands.transfer_license import TransferLicenseCommand
from licenses.application.queries.get_license import GetLicenseQuery
from licenses.application.queries.list_licenses import ListLicensesQuery
from validation_logs.domain.entry import LogOutcome, ValidationLogFilters

tracer = get_tracer(__name__)

NOT_FOUND = OpenApiResponse(description="License not found")
INVALID_TRANSITION = OpenApiResponse(description="Transition not allowed from the current status")


def actor_for(request: Request) -> str:
    """Operator identity set by the admin middleware."""
    return getattr(request, "admin_actor", "admin")


def license_response(license_id: uuid.UUID) -> Response:
    """Render the current state of a license with its active sites."""
    query = GetLicenseQuery(license_id=license_id)
    dto = async_to_sync(get_container().get_license.handle)(query)
    return Response(LicenseSerializer(dto).data)


class LicenseCollectionView(APIView):
    """View for listing and issuing licenses."""

    @extend_schema(
        operation_id="list_licenses",
        summary="List Licenses",
        description="List licenses newest first. Filters: status, tier, search, customer e-mail.",
        tags=["Admin API"],
        parameters=[ListLicensesRequestSerializer],
        responses={200: LicensePageSerializer},
    )
    def get(self, request: Request) -> Response:
        """List licenses."""
        serializer = ListLicensesRequestSerializer(data=request.query_params)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        query = ListLicensesQuery(
            status=LicenseStatus(data["status"]) if data.get("status") else None,
            tier=LicenseTier(data["tier"]) if data.get("tier") else None,
            search=data.get("search"),
            customer_email=data.get("customer_email"),
            page=data["page"],
            per_page=data["per_page"],
        )
        with tracer.start_as_current_span("list_licenses"):
            page = async_to_sync(get_container().list_licenses.handle)(query)
        return Response(LicensePageSerializer(page).data)

    @extend_schema(
        operation_id="create_license",
        summary="Create License",
        description=(
            "Issue a license. The plaintext key is returned once and, unless "
            "disabled, e-mailed to the customer."
        ),
        tags=["Admin API"],
        request=CreateLicenseRequestSerializer,
        responses={201: IssuedLicenseSerializer, 400: OpenApiResponse(description="Bad Request")},
    )
    def post(self, request: Request) -> Response:
        """Create a license."""
        serializer = CreateLicenseRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        command = CreateLicenseCommand(
            customer_email=data["customer_email"],
            customer_name=data["customer_name"],
            tier=LicenseTier(data["tier"]),
            product_scope=data["product_scope"],
            max_activations=data.get("max_activations"),
            expires_at=data.get("expires_at"),
            send_email=data["send_email"],
            actor=actor_for(request),
        )
        with tracer.start_as_current_span("create_license") as span:
            issued = async_to_sync(get_container().create_license.handle)(command)
            span.set_attribute("license.id", str(issued.license.id))
        return Response(IssuedLicenseSerializer(issued).data, status=status.HTTP_201_CREATED)


class LicenseDetailView(APIView):
    """View for reading and deleting one license."""

    @extend_schema(
        operation_id="get_license",
        summary="Get License",
        tags=["Admin API"],
        responses={200: LicenseSerializer, 404: NOT_FOUND},
    )
    def get(self, _request: Request, license_id: uuid.UUID) -> Response:
        """Get a license."""
        return license_response(license_id)

    @extend_schema(
        operation_id="delete_license",
        summary="Delete License",
        description="Delete a license together with its activations.",
        tags=["Admin API"],
        responses={204: None, 404: NOT_FOUND},
    )
    def delete(self, request: Request, license_id: uuid.UUID) -> Response:
        """Delete a license."""
        command = DeleteLicenseCommand(license_id=license_id, actor=actor_for(request))
        async_to_sync(get_container().delete_license.handle)(command)
        return Response(status=status.HTTP_204_NO_CONTENT)


class SuspendLicenseView(APIView):
    """View for suspending a license."""

    @extend_schema(
        operation_id="suspend_license",
        summary="Suspend License",
        tags=["Admin API"],
        request=ReasonRequestSerializer,
        responses={200: LicenseSerializer, 404: NOT_FOUND, 409: INVALID_TRANSITION},
    )
    def post(self, request: Request, license_id: uuid.UUID) -> Response:
        """Suspend a license."""
        serializer = ReasonRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        command = SuspendLicenseCommand(
            license_id=license_id,
            reason=serializer.validated_data.get("reason"),
            actor=actor_for(request),
        )
        async_to_sync(get_container().suspend_license.handle)(command)
        return license_response(license_id)


class ResumeLicenseView(APIView):
    """View for resuming a suspended license."""

    @extend_schema(
        operation_id="resume_license",
        summary="Resume License",
        tags=["Admin API"],
        request=None,
        responses={200: LicenseSerializer, 404: NOT_FOUND, 409: INVALID_TRANSITION},
    )
    def post(self, request: Request, license_id: uuid.UUID) -> Response:
        """Resume a license."""
        command = ResumeLicenseCommand(license_id=license_id, actor=actor_for(request))
        async_to_sync(get_container().resume_license.handle)(command)
        return license_response(license_id)


class RevokeLicenseView(APIView):
    """View for revoking a license."""

    @extend_schema(
        operation_id="revoke_license",
        summary="Revoke License",
        tags=["Admin API"],
        request=ReasonRequestSerializer,
        responses={200: LicenseSerializer, 404: NOT_FOUND, 409: INVALID_TRANSITION},
    )
    def post(self, request: Request, license_id: uuid.UUID) -> Response:
        """Revoke a license."""
        serializer = ReasonRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        command = RevokeLicenseCommand(
            license_id=license_id,
            reason=serializer.validated_data.get("reason"),
            actor=actor_for(request),
        )
        async_to_sync(get_container().revoke_license.handle)(command)
        return license_response(license_id)


class ReactivateLicenseView(APIView):
    """View for reactivating a license."""

    @extend_schema(
        operation_id="reactivate_license",
        summary="Reactivate License",
        tags=["Admin API"],
        request=None,
        responses={200: LicenseSerializer, 404: NOT_FOUND, 409: INVALID_TRANSITION},
    )
    def post(self, request: Request, license_id: uuid.UUID) -> Response:
        """Reactivate a license."""
        command = ReactivateLicenseCommand(license_id=license_id, actor=actor_for(request))
        async_to_sync(get_container().reactivate_license.handle)(command)
        return license_response(license_id)


class RenewLicenseView(APIView):
    """View for renewing a license."""

    @extend_schema(
        operation_id="renew_license",
        summary="Renew License",
        description="Set a new expiry and make the license active.",
        tags=["Admin API"],
        request=RenewLicenseRequestSerializer,
        responses={
            200: LicenseSerializer,
            400: OpenApiResponse(description="Bad Request"),
            404: NOT_FOUND,
        },
    )
    def post(self, request: Request, license_id: uuid.UUID) -> Response:
        """Renew a license."""
        serializer = RenewLicenseRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        command = RenewLicenseCommand(
            license_id=license_id,
            expires_at=serializer.validated_data["expires_at"],
            actor=actor_for(request),
        )
        async_to_sync(get_container().renew_license.handle)(command)
        return license_response(license_id)


class RegenerateLicenseKeyView(APIView):
    """View for issuing a new key for a license."""

    @extend_schema(
        operation_id="regenerate_license_key",
        summary="Regenerate License Key",
        description="Issue a new key. The old key stops working immediately; activations are kept.",
        tags=["Admin API"],
        request=RegenerateKeyRequestSerializer,
        responses={200: IssuedLicenseSerializer, 404: NOT_FOUND},
    )
    def post(self, request: Request, license_id: uuid.UUID) -> Response:
        """Regenerate a license key."""
        serializer = RegenerateKeyRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        command = RegenerateLicenseKeyCommand(
            license_id=license_id,
            send_email=serializer.validated_data["send_email"],
            actor=actor_for(request),
        )
        issued = async_to_sync(get_container().regenerate_license_key.handle)(command)
        return Response(IssuedLicenseSerializer(issued).data)


class TransferLicenseView(APIView):
    """View for transferring a license to another customer."""

    @extend_schema(
        operation_id="transfer_license",
        summary="Transfer License",
        tags=["Admin API"],
        request=TransferLicenseRequestSerializer,
        responses={200: LicenseSerializer, 404: NOT_FOUND},
    )
    def post(self, request: Request, license_id: uuid.UUID) -> Response:
        """Transfer a license."""
        serializer = TransferLicenseRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        command = TransferLicenseCommand(
            license_id=license_id,
            customer_email=data["customer_email"],
            customer_name=data["customer_name"],
            deactivate_sites=data["deactivate_sites"],
            send_email=data["send_email"],
            actor=actor_for(request),
        )
        async_to_sync(get_container().transfer_license.handle)(command)
        return license_response(license_id)


class ValidationLogListView(APIView):
    """View for querying the validation log."""

    @extend_schema(
        operation_id="list_validation_logs",
        summary="List Validation Logs",
        description=(
            "Query client requests newest first. When filtering by IP the "
            "response also reports whether that IP is considered suspicious."
        ),
        tags=["Admin API"],
        parameters=[ValidationLogQuerySerializer],
        responses={200: ValidationLogPageSerializer},
    )
    def get(self, request: Request) -> Response:
        """List validation log entries."""
        serializer = ValidationLogQuerySerializer(data=request.query_params)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        filters = ValidationLogFilters(
            outcome=LogOutcome(data["outcome"]) if data.get("outcome") else None,
            event=ValidationEvent(data["event"]) if data.get("event") else None,
            reason=ReasonCode(data["reason"]) if data.get("reason") else None,
            ip_address=data.get("ip_address"),
            license_id=data.get("license_id"),
            date_from=data.get("date_from"),
            date_to=data.get("date_to"),
        )
        validation_logger = get_container().validation_logger
        page = async_to_sync(validation_logger.query)(filters, data["page"], data["per_page"])
        body = ValidationLogPageSerializer(page).data

        if filters.ip_address:
            body["ip_is_suspicious"] = async_to_sync(validation_logger.is_suspicious_ip)(
                filters.ip_address
            )
        return Response(body)


class ValidationLogStatisticsView(APIView):
    """View for validation log statistics."""

    @extend_schema(
        operation_id="validation_log_statistics",
        summary="Validation Log Statistics",
        description="Request totals for the last ``days`` days plus license counts by status.",
        tags=["Admin API"],
        parameters=[StatisticsQuerySerializer],
        responses={200: ValidationLogStatisticsSerializer},
    )
    def get(self, request: Request) -> Response:
        """Return validation statistics."""
        serializer = StatisticsQuerySerializer(data=request.query_params)
        serializer.is_valid(raise_exception=True)
        days = serializer.validated_data["days"]

        container = get_container()
        stats = async_to_sync(container.validation_logger.statistics)(days)
        by_status = async_to_sync(container.license_repository.count_by_status)()

        body = ValidationLogStatisticsSerializer(stats).data
        body["days"] = days
        body["licenses_by_status"] = {str(key): value for key, value in by_status.items()}
        return Response(body)
