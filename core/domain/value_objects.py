"""
Value objects for the domain.

Value objects are immutable objects that are defined by their attributes
rather than their identity. They have no identity and are compared by value.
"""
import re
from abc import ABC
from dataclasses import dataclass
from enum import Enum

from core.domain.exceptions import InvalidSiteUrlError

_SCHEME_PATTERN = re.compile(r"^https?://")


@dataclass(frozen=True)
class ValueObject(ABC):
    """
    Base class for value objects.

    Value objects are immutable and compared by value.
    """

    def __eq__(self, other):
        """Compare value objects by their attributes."""
        if not isinstance(other, self.__class__):
            return False
        return self.__dict__ == other.__dict__

    def __hash__(self):
        """Make value objects hashable."""
        return hash(tuple(sorted(self.__dict__.items())))


@dataclass(frozen=True)
class Email(ValueObject):
    """Email value object with validation."""

    value: str

    def __post_init__(self):
        """Validate email format."""
        if not self.value or "@" not in self.value:
            raise ValueError(f"Invalid email address: {self.value}")

    def __str__(self) -> str:
        """Return email as string."""
        return self.value


@dataclass(frozen=True)
class SiteIdentity(ValueObject):
    """
    Normalized site URL.

    Two URLs that normalize to the same identity are the same site
    for activation quota purposes.
    """

    value: str

    MAX_LENGTH = 500

    @classmethod
    def from_url(cls, url: str) -> "SiteIdentity":
        """
        Normalize a raw site URL.

        Lowercases, strips the http/https scheme, a leading ``www.``
        and trailing slashes.

        Args:
            url: Raw site URL as sent by the client

        Returns:
            SiteIdentity for the URL

        Raises:
            InvalidSiteUrlError: If nothing is left after normalization
        """
        value = (url or "").strip().lower()
        value = _SCHEME_PATTERN.sub("", value)
        if value.startswith("www."):
            value = value[4:]
        value = value.rstrip("/")
        if not value:
            raise InvalidSiteUrlError()
        if len(value) > cls.MAX_LENGTH:
            raise InvalidSiteUrlError("Site URL too long")
        return cls(value)

    def __str__(self) -> str:
        """Return identity as string."""
        return self.value


class LicenseStatus(Enum):
    """License status value object."""

    ACTIVE = "active"
    SUSPENDED = "suspended"
    REVOKED = "revoked"
    EXPIRED = "expired"

    def __str__(self) -> str:
        """Return status as string."""
        return self.value


class LicenseTier(Enum):
    """License tier value object."""

    FREE = "free"
    PRO = "pro"
    AGENCY = "agency"

    def __str__(self) -> str:
        """Return tier as string."""
        return self.value


class ValidationEvent(Enum):
    """Client operation recorded by the validation log."""

    VALIDATE = "validate"
    ACTIVATE = "activate"
    DEACTIVATE = "deactivate"
    HEARTBEAT = "heartbeat"
    STATUS = "status"

    def __str__(self) -> str:
        """Return event as string."""
        return self.value


class ReasonCode(Enum):
    """Stable machine-readable rejection reasons."""

    INVALID_KEY_FORMAT = "invalid_key_format"
    LICENSE_NOT_FOUND = "license_not_found"
    LICENSE_SUSPENDED = "license_suspended"
    LICENSE_REVOKED = "license_revoked"
    LICENSE_EXPIRED = "license_expired"
    PRODUCT_NOT_LICENSED = "product_not_licensed"
    MAX_ACTIVATIONS_REACHED = "max_activations_reached"
    ACTIVATION_NOT_FOUND = "activation_not_found"
    INVALID_SITE_URL = "invalid_site_url"
    RATE_LIMITED = "rate_limited"
    IP_BLOCKED = "ip_blocked"
    STORE_UNAVAILABLE = "store_unavailable"

    @property
    def message(self) -> str:
        """Human-readable message for the reason."""
        return REASON_MESSAGES[self]

    @classmethod
    def for_status(cls, status: LicenseStatus) -> "ReasonCode":
        """
        Map a non-active license status to its rejection reason.

        Args:
            status: License status other than ACTIVE

        Returns:
            Matching reason code
        """
        return {
            LicenseStatus.SUSPENDED: cls.LICENSE_SUSPENDED,
            LicenseStatus.REVOKED: cls.LICENSE_REVOKED,
            LicenseStatus.EXPIRED: cls.LICENSE_EXPIRED,
        }[status]

    def __str__(self) -> str:
        """Return reason as string."""
        return self.value


REASON_MESSAGES = {
    ReasonCode.INVALID_KEY_FORMAT: "Invalid license key format.",
    ReasonCode.LICENSE_NOT_FOUND: "Invalid license key.",
    ReasonCode.LICENSE_SUSPENDED: "This license has been suspended.",
    ReasonCode.LICENSE_REVOKED: "This license has been revoked.",
    ReasonCode.LICENSE_EXPIRED: "This license has expired.",
    ReasonCode.PRODUCT_NOT_LICENSED: "This license is not valid for this product.",
    ReasonCode.MAX_ACTIVATIONS_REACHED: "Maximum activations reached for this license.",
    ReasonCode.ACTIVATION_NOT_FOUND: "No active activation found for this site.",
    ReasonCode.INVALID_SITE_URL: "Invalid site URL.",
    ReasonCode.RATE_LIMITED: "Too many requests. Please try again later.",
    ReasonCode.IP_BLOCKED: "Access temporarily blocked. Please try again later.",
    ReasonCode.STORE_UNAVAILABLE: "License service temporarily unavailable.",
}
