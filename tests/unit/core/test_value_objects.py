"""
Unit tests for core value objects.
"""
import pytest

from core.domain.exceptions import InvalidSiteUrlError
from core.domain.outcome import Outcome, OutcomeKind
from core.domain.value_objects import (
    Email,
    LicenseStatus,
    ReasonCode,
    SiteIdentity,
)


class TestEmail:
    """Tests for Email value object."""

    def test_valid_email(self):
        """Test valid email creation."""
        email = Email("test@example.com")
        assert str(email) == "test@example.com"
        assert email.value == "test@example.com"

    def test_invalid_email_no_at(self):
        """Test invalid email without @."""
        with pytest.raises(ValueError, match="Invalid email"):
            Email("invalid-email")

    def test_invalid_email_empty(self):
        """Test invalid empty email."""
        with pytest.raises(ValueError, match="Invalid email"):
            Email("")

    def test_equality_by_value(self):
        assert Email("a@example.com") == Email("a@example.com")
        assert hash(Email("a@example.com")) == hash(Email("a@example.com"))


class TestSiteIdentity:
    """Tests for site URL normalization."""

    @pytest.mark.parametrize(
        "url",
        [
            "https://example.com",
            "http://example.com/",
            "https://www.example.com",
            "HTTPS://WWW.Example.COM//",
            "  example.com  ",
            "www.example.com",
        ],
    )
    def test_variants_share_identity(self, url):
        assert SiteIdentity.from_url(url) == SiteIdentity("example.com")

    def test_path_is_kept(self):
        assert str(SiteIdentity.from_url("https://example.com/blog/")) == "example.com/blog"

    def test_other_schemes_are_not_stripped(self):
        assert str(SiteIdentity.from_url("ftp://example.com")) == "ftp://example.com"

    def test_inner_www_is_kept(self):
        assert str(SiteIdentity.from_url("https://shop.www.example.com")) == "shop.www.example.com"

    @pytest.mark.parametrize("url", ["", "   ", "https://", "http://www.", "https:///", None])
    def test_empty_after_normalization_is_rejected(self, url):
        with pytest.raises(InvalidSiteUrlError) as exc_info:
            SiteIdentity.from_url(url)
        assert exc_info.value.code == "invalid_site_url"

    def test_too_long_is_rejected(self):
        with pytest.raises(InvalidSiteUrlError):
            SiteIdentity.from_url("https://" + "a" * 501)


class TestReasonCode:
    """Tests for rejection reasons."""

    def test_status_mapping(self):
        assert ReasonCode.for_status(LicenseStatus.SUSPENDED) == ReasonCode.LICENSE_SUSPENDED
        assert ReasonCode.for_status(LicenseStatus.REVOKED) == ReasonCode.LICENSE_REVOKED
        assert ReasonCode.for_status(LicenseStatus.EXPIRED) == ReasonCode.LICENSE_EXPIRED

    def test_every_reason_has_a_message(self):
        for reason in ReasonCode:
            assert reason.message

    def test_string_form_is_the_wire_code(self):
        assert str(ReasonCode.MAX_ACTIVATIONS_REACHED) == "max_activations_reached"


class TestOutcome:
    """Tests for the Outcome result type."""

    def test_success(self):
        outcome = Outcome.success(OutcomeKind.VALIDATED, {"a": 1}, "ok")
        assert outcome.ok
        assert outcome.reason is None
        assert outcome.payload == {"a": 1}

    def test_success_rejects_failure_kind(self):
        with pytest.raises(ValueError):
            Outcome.success(OutcomeKind.REJECTED)

    def test_rejected_uses_default_message(self):
        outcome = Outcome.rejected(ReasonCode.LICENSE_REVOKED)
        assert not outcome.ok
        assert outcome.kind == OutcomeKind.REJECTED
        assert outcome.message == ReasonCode.LICENSE_REVOKED.message

    def test_rejected_carries_retry_after(self):
        outcome = Outcome.rejected(ReasonCode.RATE_LIMITED, retry_after_seconds=42)
        assert outcome.retry_after_seconds == 42

    def test_not_found(self):
        outcome = Outcome.not_found()
        assert not outcome.ok
        assert outcome.kind == OutcomeKind.NOT_FOUND
        assert outcome.reason == ReasonCode.ACTIVATION_NOT_FOUND
