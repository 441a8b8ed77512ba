"""
Integration tests for the client license API endpoints.
"""

from datetime import timedelta

import pytest
from asgiref.sync import async_to_sync
from django.urls import reverse

from core.domain.clock import utcnow
from licenses.infrastructure.models import AuditLog
from licenses.infrastructure.models import License as LicenseModel
from validation_logs.infrastructure.models import ValidationLog


@pytest.fixture
def issue(django_license_repository, license_factory):
    """Save a license in the database and return (license, plaintext key)."""

    def _issue(**overrides):
        license = license_factory(**overrides)
        async_to_sync(django_license_repository.save)(license)
        return license, license.key_plaintext

    return _issue


def post(client, name, data, **extra):
    return client.post(reverse(name), data, format="json", **extra)


@pytest.mark.django_db
@pytest.mark.integration
class TestValidateAPI:
    """Integration tests for the validate endpoint."""

    def test_valid_key(self, api_client, issue):
        """Test validating an active key."""
        license, key = issue(product_scope=["formflow"], max_activations=2)

        response = post(
            api_client,
            "license-validate",
            {"license_key": key, "product_slug": "formflow"},
            HTTP_USER_AGENT="WordPress/6.5",
            REMOTE_ADDR="203.0.113.7",
        )

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["message"] == "License is valid."
        assert data["status"] == "active"
        assert data["key_hint"] == license.key_hint
        assert data["activations_limit"] == 2
        assert "basic_forms" in data["features"]
        assert key not in response.content.decode()

        entry = ValidationLog.objects.get()
        assert entry.outcome == "success"
        assert entry.ip_address == "203.0.113.7"
        assert entry.user_agent == "WordPress/6.5"
        assert entry.license_id == license.id

    def test_malformed_key(self, api_client):
        response = post(api_client, "license-validate", {"license_key": "abc"})

        assert response.status_code == 400
        assert response.json() == {
            "success": False,
            "error": "invalid_key_format",
            "message": "Invalid license key format.",
        }
        assert ValidationLog.objects.get().key_fingerprint is None

    def test_unknown_key(self, api_client):
        response = post(api_client, "license-validate", {"license_key": "AAAA-BBBB-CCCC-DDDD"})
        assert response.status_code == 404
        assert response.json()["error"] == "license_not_found"

    def test_missing_key(self, api_client):
        response = post(api_client, "license-validate", {})

        assert response.status_code == 400
        data = response.json()
        assert data["error"] == "invalid_request"
        assert "license_key" in data["details"]

    def test_suspended_license(self, api_client, issue):
        license, key = issue()
        LicenseModel.objects.filter(id=license.id).update(status="suspended")

        response = post(api_client, "license-validate", {"license_key": key})

        assert response.status_code == 403
        assert response.json()["error"] == "license_suspended"

    def test_expired_license_is_persisted(self, api_client, issue):
        license, key = issue(expires_at=utcnow() - timedelta(days=1))

        response = post(api_client, "license-validate", {"license_key": key})

        assert response.status_code == 403
        assert response.json()["error"] == "license_expired"
        assert LicenseModel.objects.get(id=license.id).status == "expired"
        assert AuditLog.objects.filter(action="LicenseExpired", license_id=license.id).exists()

    def test_product_not_licensed(self, api_client, issue):
        _, key = issue(product_scope=["formflow"])
        response = post(
            api_client, "license-validate", {"license_key": key, "product_slug": "peanut-booker"}
        )
        assert response.status_code == 403
        assert response.json()["error"] == "product_not_licensed"


@pytest.mark.django_db
@pytest.mark.integration
class TestActivationAPI:
    """Integration tests for activate, deactivate and heartbeat."""

    def test_activate_then_reactivate(self, api_client, issue):
        """Test that URL variants share one slot."""
        _, key = issue(max_activations=1)

        first = post(
            api_client,
            "license-activate",
            {
                "license_key": key,
                "site_url": "https://www.example.com/",
                "site_name": "Example",
                "plugin_version": "2.1.0",
            },
        )
        second = post(
            api_client, "license-activate", {"license_key": key, "site_url": "http://example.com"}
        )

        assert first.status_code == 201
        assert first.json()["message"] == "Site activated successfully."
        assert first.json()["site_identity"] == "example.com"
        assert second.status_code == 200
        assert second.json()["message"] == "Site already activated."
        assert second.json()["activation_id"] == first.json()["activation_id"]
        assert second.json()["license"]["activations_used"] == 1

    def test_quota(self, api_client, issue):
        _, key = issue(max_activations=1)
        post(api_client, "license-activate", {"license_key": key, "site_url": "one.example.com"})

        response = post(
            api_client, "license-activate", {"license_key": key, "site_url": "two.example.com"}
        )

        assert response.status_code == 409
        assert response.json()["error"] == "max_activations_reached"

    def test_invalid_site_url(self, api_client, issue):
        _, key = issue()
        response = post(api_client, "license-activate", {"license_key": key, "site_url": "https://"})
        assert response.status_code == 400
        assert response.json()["error"] == "invalid_site_url"

    def test_deactivate_frees_slot(self, api_client, issue):
        _, key = issue(max_activations=1)
        post(api_client, "license-activate", {"license_key": key, "site_url": "one.example.com"})

        released = post(
            api_client, "license-deactivate", {"license_key": key, "site_url": "one.example.com"}
        )
        missing = post(
            api_client, "license-deactivate", {"license_key": key, "site_url": "one.example.com"}
        )
        again = post(
            api_client, "license-activate", {"license_key": key, "site_url": "two.example.com"}
        )

        assert released.status_code == 200
        assert released.json()["license"]["activations_used"] == 0
        assert missing.status_code == 404
        assert missing.json()["error"] == "activation_not_found"
        assert again.status_code == 201

    def test_heartbeat(self, api_client, issue):
        _, key = issue()
        post(api_client, "license-activate", {"license_key": key, "site_url": "example.com"})

        response = post(
            api_client,
            "license-heartbeat",
            {"license_key": key, "site_url": "example.com", "plugin_version": "3.0.0"},
        )
        unknown = post(
            api_client, "license-heartbeat", {"license_key": key, "site_url": "other.example.com"}
        )

        assert response.status_code == 200
        assert response.json()["message"] == "Check-in recorded."
        assert unknown.status_code == 404

    def test_activation_audited(self, api_client, issue):
        license, key = issue()
        post(api_client, "license-activate", {"license_key": key, "site_url": "example.com"})

        record = AuditLog.objects.get(action="SiteActivated")
        assert record.license_id == license.id
        assert record.changes["site_identity"] == "example.com"


@pytest.mark.django_db
@pytest.mark.integration
class TestStatusAPI:
    """Integration tests for the status endpoint."""

    def test_status(self, api_client, issue):
        license, key = issue()
        LicenseModel.objects.filter(id=license.id).update(status="revoked")

        response = api_client.get(reverse("license-status"), {"license_key": key})

        assert response.status_code == 200
        assert response.json()["status"] == "revoked"

    def test_status_requires_key(self, api_client):
        response = api_client.get(reverse("license-status"))
        assert response.status_code == 400
        assert response.json()["error"] == "invalid_request"


@pytest.mark.django_db
@pytest.mark.integration
class TestRateLimiting:
    """Integration tests for request throttling."""

    def test_ip_limit(self, api_client, settings):
        settings.LICENSE_SERVER = {
            **settings.LICENSE_SERVER,
            "RATE_LIMITS": {"validate:ip": {"requests": 2, "window": 60}},
        }
        payload = {"license_key": "AAAA-BBBB-CCCC-DDDD"}

        statuses = [
            post(api_client, "license-validate", payload, REMOTE_ADDR="198.51.100.9").status_code
            for _ in range(3)
        ]
        other_ip = post(api_client, "license-validate", payload, REMOTE_ADDR="198.51.100.10")

        assert statuses == [404, 404, 429]
        assert other_ip.status_code == 404

    def test_retry_after(self, api_client, settings):
        settings.LICENSE_SERVER = {
            **settings.LICENSE_SERVER,
            "RATE_LIMITS": {"status:ip": {"requests": 1, "window": 60}},
        }
        url = reverse("license-status")
        api_client.get(url, {"license_key": "AAAA-BBBB-CCCC-DDDD"})

        response = api_client.get(url, {"license_key": "AAAA-BBBB-CCCC-DDDD"})

        assert response.status_code == 429
        data = response.json()
        assert data["error"] == "rate_limited"
        assert 0 < data["retry_after"] <= 60
        assert response["Retry-After"] == str(data["retry_after"])

    def test_suspicious_ip_is_blocked(self, api_client, issue, settings):
        settings.LICENSE_SERVER = {
            **settings.LICENSE_SERVER,
            "SUSPICIOUS_IP_THRESHOLD": 3,
            "IP_BLOCK_SECONDS": 900,
        }
        _, key = issue()
        for _ in range(3):
            post(api_client, "license-validate", {"license_key": "bad"}, REMOTE_ADDR="198.51.100.9")

        blocked = post(api_client, "license-validate", {"license_key": key}, REMOTE_ADDR="198.51.100.9")
        other_ip = post(api_client, "license-validate", {"license_key": key}, REMOTE_ADDR="198.51.100.10")

        assert blocked.status_code == 403
        data = blocked.json()
        assert data["error"] == "ip_blocked"
        assert data["message"] == "Access temporarily blocked. Please try again later."
        assert 0 < data["retry_after"] <= 900
        assert other_ip.status_code == 200


@pytest.mark.django_db
@pytest.mark.integration
class TestHealthEndpoints:
    """Integration tests for health and metrics endpoints."""

    @pytest.mark.parametrize("name", ["health", "health-db", "health-cache", "ready"])
    def test_healthy(self, client, name):
        response = client.get(reverse(name))
        assert response.status_code == 200

    def test_metrics(self, client, api_client):
        post(api_client, "license-validate", {"license_key": "bad"})

        response = client.get(reverse("metrics"))

        assert response.status_code == 200
        assert b"license_operations_total" in response.content
