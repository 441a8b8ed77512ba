"""
Serializers for operator (admin) endpoints.
"""

from rest_framework import serializers

from api.v1.license.serializers import ActivatedSiteSerializer
from core.domain.value_objects import LicenseStatus, LicenseTier, ReasonCode, ValidationEvent
from validation_logs.domain.entry import LogOutcome


def _choices(enum_class):
    return [member.value for member in enum_class]


class CreateLicenseRequestSerializer(serializers.Serializer):
    """Serializer for create license request."""

    customer_email = serializers.EmailField(required=True)
    customer_name = serializers.CharField(required=False, max_length=255, allow_blank=True, default="")
    tier = serializers.ChoiceField(choices=_choices(LicenseTier), default=LicenseTier.FREE.value)
    product_scope = serializers.ListField(
        child=serializers.SlugField(max_length=100), required=False, default=list
    )
    max_activations = serializers.IntegerField(required=False, min_value=1, allow_null=True)
    expires_at = serializers.DateTimeField(required=False, allow_null=True)
    send_email = serializers.BooleanField(required=False, default=True)


class ListLicensesRequestSerializer(serializers.Serializer):
    """Serializer for list licenses query parameters."""

    status = serializers.ChoiceField(choices=_choices(LicenseStatus), required=False)
    tier = serializers.ChoiceField(choices=_choices(LicenseTier), required=False)
    search = serializers.CharField(required=False, max_length=255)
    customer_email = serializers.EmailField(required=False)
    page = serializers.IntegerField(required=False, min_value=1, default=1)
    per_page = serializers.IntegerField(required=False, min_value=1, max_value=100, default=20)


class ReasonRequestSerializer(serializers.Serializer):
    """Serializer for suspend and revoke requests."""

    reason = serializers.CharField(required=False, max_length=500, allow_blank=True)


class RenewLicenseRequestSerializer(serializers.Serializer):
    """Serializer for renew request. A null expiry makes the license perpetual."""

    expires_at = serializers.DateTimeField(required=True, allow_null=True)


class RegenerateKeyRequestSerializer(serializers.Serializer):
    """Serializer for regenerate key request."""

    send_email = serializers.BooleanField(required=False, default=True)


class TransferLicenseRequestSerializer(serializers.Serializer):
    """Serializer for transfer request."""

    customer_email = serializers.EmailField(required=True)
    customer_name = serializers.CharField(required=False, max_length=255, allow_blank=True, default="")
    deactivate_sites = serializers.BooleanField(required=False, default=False)
    send_email = serializers.BooleanField(required=False, default=True)


class LicenseSerializer(serializers.Serializer):
    """Serializer for LicenseDTO."""

    id = serializers.UUIDField()
    key_hint = serializers.CharField()
    customer_email = serializers.EmailField()
    customer_name = serializers.CharField()
    tier = serializers.CharField()
    status = serializers.CharField()
    max_activations = serializers.IntegerField()
    activations_used = serializers.IntegerField()
    product_scope = serializers.ListField(child=serializers.CharField())
    expires_at = serializers.DateTimeField(allow_null=True)
    created_at = serializers.DateTimeField()
    updated_at = serializers.DateTimeField()
    activated_sites = ActivatedSiteSerializer(many=True)


class IssuedLicenseSerializer(serializers.Serializer):
    """Serializer for IssuedLicenseDTO. The only response carrying a plaintext key."""

    license_key = serializers.CharField()
    license = LicenseSerializer()


class LicensePageSerializer(serializers.Serializer):
    """Serializer for LicensePageDTO."""

    items = LicenseSerializer(many=True)
    total = serializers.IntegerField()
    page = serializers.IntegerField()
    per_page = serializers.IntegerField()


class ValidationLogQuerySerializer(serializers.Serializer):
    """Serializer for validation log query parameters."""

    outcome = serializers.ChoiceField(choices=_choices(LogOutcome), required=False)
    event = serializers.ChoiceField(choices=_choices(ValidationEvent), required=False)
    reason = serializers.ChoiceField(choices=_choices(ReasonCode), required=False)
    ip_address = serializers.IPAddressField(required=False)
    license_id = serializers.UUIDField(required=False)
    date_from = serializers.DateTimeField(required=False)
    date_to = serializers.DateTimeField(required=False)
    page = serializers.IntegerField(required=False, min_value=1, default=1)
    per_page = serializers.IntegerField(required=False, min_value=1, max_value=100, default=50)


class ValidationLogEntrySerializer(serializers.Serializer):
    """Serializer for ValidationLogEntry."""

    id = serializers.UUIDField()
    event = serializers.CharField()
    outcome = serializers.CharField()
    reason = serializers.CharField(allow_null=True)
    message = serializers.CharField()
    license_id = serializers.UUIDField(allow_null=True)
    key_hint = serializers.CharField()
    site_identity = serializers.CharField()
    ip_address = serializers.CharField(allow_null=True)
    user_agent = serializers.CharField()
    created_at = serializers.DateTimeField()


class ValidationLogPageSerializer(serializers.Serializer):
    """Serializer for ValidationLogPage."""

    items = ValidationLogEntrySerializer(many=True)
    total = serializers.IntegerField()
    page = serializers.IntegerField()
    per_page = serializers.IntegerField()
    total_pages = serializers.IntegerField()


class StatisticsQuerySerializer(serializers.Serializer):
    """Serializer for statistics query parameters."""

    days = serializers.IntegerField(required=False, min_value=1, max_value=365, default=30)


class ValidationLogStatisticsSerializer(serializers.Serializer):
    """Serializer for ValidationLogStatistics."""

    total = serializers.IntegerField()
    successes = serializers.IntegerField()
    failures = serializers.IntegerField()
    success_rate = serializers.FloatField()
    by_reason = serializers.DictField(child=serializers.IntegerField())
    by_event = serializers.DictField(child=serializers.IntegerField())
