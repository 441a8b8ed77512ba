"""
Serializers for client license endpoints.
"""

from rest_framework import serializers


class LicenseKeyRequestSerializer(serializers.Serializer):
    """Fields shared by every client request."""

    # Format is checked by the engine so malformed keys are logged
    license_key = serializers.CharField(required=True, max_length=100, allow_blank=True)


class ValidateLicenseRequestSerializer(LicenseKeyRequestSerializer):
    """Serializer for validate request."""

    product_slug = serializers.SlugField(required=False, max_length=100, allow_null=True)
    site_url = serializers.CharField(required=False, max_length=500, allow_blank=True)


class SiteRequestSerializer(LicenseKeyRequestSerializer):
    """Serializer for requests that target one site."""

    site_url = serializers.CharField(required=True, max_length=500, allow_blank=True)


class SiteMetadataSerializer(SiteRequestSerializer):
    """Site request carrying client metadata."""

    plugin_version = serializers.CharField(required=False, max_length=50, allow_blank=True)
    platform_version = serializers.CharField(required=False, max_length=50, allow_blank=True)

    def site_metadata(self):
        """Return the metadata fields the client actually sent."""
        return {
            name: self.validated_data[name]
            for name in ("plugin_version", "platform_version")
            if self.validated_data.get(name)
        }


class ActivateLicenseRequestSerializer(SiteMetadataSerializer):
    """Serializer for activate request."""

    product_slug = serializers.SlugField(required=False, max_length=100, allow_null=True)
    site_name = serializers.CharField(required=False, max_length=255, allow_blank=True, default="")


class DeactivateLicenseRequestSerializer(SiteRequestSerializer):
    """Serializer for deactivate request."""


class HeartbeatRequestSerializer(SiteMetadataSerializer):
    """Serializer for heartbeat request."""


class ActivatedSiteSerializer(serializers.Serializer):
    """Serializer for ActivatedSiteDTO."""

    site_identity = serializers.CharField()
    site_url = serializers.CharField()
    site_name = serializers.CharField()
    activated_at = serializers.DateTimeField()
    last_checked_at = serializers.DateTimeField()


class LicenseSnapshotSerializer(serializers.Serializer):
    """Serializer for LicenseSnapshotDTO."""

    key_hint = serializers.CharField()
    status = serializers.CharField()
    tier = serializers.CharField()
    tier_name = serializers.CharField()
    expires_at = serializers.DateTimeField(allow_null=True)
    activations_used = serializers.IntegerField()
    activations_limit = serializers.IntegerField()
    features = serializers.ListField(child=serializers.CharField())
    product_scope = serializers.ListField(child=serializers.CharField())
    activated_sites = ActivatedSiteSerializer(many=True)


class ActivationResultSerializer(serializers.Serializer):
    """Serializer for ActivationResultDTO."""

    activation_id = serializers.UUIDField()
    site_identity = serializers.CharField()
    activated_at = serializers.DateTimeField()
    last_checked_at = serializers.DateTimeField()
    license = LicenseSnapshotSerializer()


class ClientErrorSerializer(serializers.Serializer):
    """Serializer documenting the client failure envelope."""

    success = serializers.BooleanField(default=False)
    error = serializers.CharField()
    message = serializers.CharField()
    retry_after = serializers.IntegerField(required=False)
