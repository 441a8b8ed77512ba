"""
Unit tests for License domain entity.
"""

from datetime import timedelta

import pytest

from core.domain.clock import utcnow
from core.domain.exceptions import InvalidLicenseStatusError
from core.domain.value_objects import LicenseStatus, LicenseTier, ReasonCode
from licenses.domain.license import License
from licenses.domain.license_key import fingerprint_license_key, mask_license_key
from licenses.domain.services import LicenseValidator


class TestLicenseEntity:
    """Tests for License domain entity."""

    def test_create_license(self):
        """Test creating a license entity."""
        expires_at = utcnow() + timedelta(days=365)

        license = License.create(
            customer_email="buyer@example.com",
            customer_name="Buyer",
            tier=LicenseTier.PRO,
            expires_at=expires_at,
        )

        assert license.status == LicenseStatus.ACTIVE
        assert license.max_activations == 3
        assert license.expires_at == expires_at
        assert license.key_fingerprint == fingerprint_license_key(license.key_plaintext)
        assert license.key_hint == mask_license_key(license.key_plaintext)

    def test_plaintext_not_in_repr(self):
        license = License.create(customer_email="buyer@example.com")
        assert license.key_plaintext not in repr(license)

    def test_explicit_quota_overrides_tier(self):
        license = License.create(customer_email="buyer@example.com", max_activations=10)
        assert license.max_activations == 10

    def test_negative_quota_rejected(self):
        with pytest.raises(ValueError):
            License.create(customer_email="buyer@example.com", max_activations=-1)

    def test_invalid_email_rejected(self):
        with pytest.raises(ValueError):
            License.create(customer_email="not-an-email")


class TestLicenseTransitions:
    """Tests for the status state machine."""

    @pytest.fixture
    def license(self):
        return License.create(customer_email="buyer@example.com")

    def test_suspend_and_resume(self, license):
        suspended = license.suspend()
        assert suspended.status == LicenseStatus.SUSPENDED
        assert suspended.key_plaintext is None
        assert suspended.resume().status == LicenseStatus.ACTIVE

    def test_suspend_requires_active(self, license):
        with pytest.raises(InvalidLicenseStatusError) as exc_info:
            license.revoke().suspend()
        assert exc_info.value.code == "invalid_status_transition"

    def test_resume_requires_suspended(self, license):
        with pytest.raises(InvalidLicenseStatusError):
            license.resume()

    def test_revoke_from_any_but_revoked(self, license):
        assert license.suspend().revoke().status == LicenseStatus.REVOKED
        assert license.mark_expired().revoke().status == LicenseStatus.REVOKED
        with pytest.raises(InvalidLicenseStatusError):
            license.revoke().revoke()

    def test_reactivate(self, license):
        for inactive in (license.suspend(), license.revoke(), license.mark_expired()):
            assert inactive.reactivate().status == LicenseStatus.ACTIVE
        with pytest.raises(InvalidLicenseStatusError):
            license.reactivate()

    def test_renew_sets_active_and_expiry(self, license):
        new_expiry = utcnow() + timedelta(days=30)
        renewed = license.mark_expired().renew(new_expiry)
        assert renewed.status == LicenseStatus.ACTIVE
        assert renewed.expires_at == new_expiry

    def test_renew_perpetual(self, license):
        assert license.renew(None).expires_at is None

    def test_renew_in_past_rejected(self, license):
        with pytest.raises(ValueError):
            license.renew(utcnow() - timedelta(days=1))

    def test_regenerate_key(self, license):
        regenerated = license.regenerate_key()
        assert regenerated.id == license.id
        assert regenerated.status == license.status
        assert regenerated.key_fingerprint != license.key_fingerprint
        assert regenerated.key_fingerprint == fingerprint_license_key(regenerated.key_plaintext)

    def test_transfer(self, license):
        transferred = license.transfer("new@example.com", "New Owner")
        assert str(transferred.customer_email) == "new@example.com"
        assert transferred.customer_name == "New Owner"
        assert transferred.key_fingerprint == license.key_fingerprint


class TestLicenseExpiryAndScope:
    """Tests for lazy expiry and product scope."""

    def test_effective_status_past_expiry(self):
        license = License.create(
            customer_email="buyer@example.com", expires_at=utcnow() - timedelta(seconds=1)
        )
        assert license.status == LicenseStatus.ACTIVE
        assert license.effective_status() == LicenseStatus.EXPIRED

    def test_suspended_past_expiry_stays_suspended(self):
        license = License.create(
            customer_email="buyer@example.com", expires_at=utcnow() - timedelta(days=1)
        ).suspend()
        assert license.effective_status() == LicenseStatus.SUSPENDED

    def test_perpetual_never_expires(self):
        license = License.create(customer_email="buyer@example.com")
        assert not license.is_past_expiry(utcnow() + timedelta(days=10_000))

    def test_unrestricted_scope(self):
        assert License.create(customer_email="a@example.com").authorizes_product("anything")
        assert License.create(
            customer_email="a@example.com", product_scope=["all"]
        ).authorizes_product("anything")

    def test_restricted_scope(self):
        license = License.create(customer_email="a@example.com", product_scope=["formflow"])
        assert license.authorizes_product("formflow")
        assert not license.authorizes_product("peanut-booker")
        assert license.authorizes_product(None)

    def test_validator_checks_status_before_scope(self):
        license = License.create(
            customer_email="a@example.com", product_scope=["formflow"]
        ).suspend()
        reason = LicenseValidator.admission_rejection(license, "peanut-booker", utcnow())
        assert reason == ReasonCode.LICENSE_SUSPENDED

    def test_validator_scope_rejection(self):
        license = License.create(customer_email="a@example.com", product_scope=["formflow"])
        reason = LicenseValidator.admission_rejection(license, "peanut-booker", utcnow())
        assert reason == ReasonCode.PRODUCT_NOT_LICENSED
