"""
License domain events.

Domain events represent something that happened in the license domain.
Events never carry plaintext license keys.
"""

import uuid
from datetime import datetime
from typing import Any, Dict, Optional

from core.domain.events import DomainEvent
from core.domain.value_objects import LicenseStatus, LicenseTier, ReasonCode, ValidationEvent


class LicenseCreated(DomainEvent):
    """Event raised when a license is issued."""

    def __init__(
        self,
        license_id: uuid.UUID,
        customer_email: str,
        tier: LicenseTier,
        actor: str = "system",
        occurred_at: Optional[datetime] = None,
    ):
        """
        Initialize LicenseCreated event.

        Args:
            license_id: License UUID
            customer_email: Customer email
            tier: License tier
            actor: Who issued the license
            occurred_at: When the event occurred
        """
        super().__init__(**self._base_fields(license_id, actor, occurred_at))
        self.customer_email = customer_email
        self.tier = tier

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update(customer_email=self.customer_email, tier=str(self.tier))
        return data


class LicenseStatusChanged(DomainEvent):
    """Base event for status transitions."""

    def __init__(
        self,
        license_id: uuid.UUID,
        previous_status: LicenseStatus,
        new_status: LicenseStatus,
        actor: str = "system",
        occurred_at: Optional[datetime] = None,
    ):
        """
        Initialize a status transition event.

        Args:
            license_id: License UUID
            previous_status: Status before the transition
            new_status: Status after the transition
            actor: Who triggered the transition
            occurred_at: When the event occurred
        """
        super().__init__(**self._base_fields(license_id, actor, occurred_at))
        self.previous_status = previous_status
        self.new_status = new_status

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update(previous_status=str(self.previous_status), new_status=str(self.new_status))
        return data


class LicenseSuspended(LicenseStatusChanged):
    """Event raised when a license is suspended."""


class LicenseResumed(LicenseStatusChanged):
    """Event raised when a suspended license is resumed."""


class LicenseRevoked(LicenseStatusChanged):
    """Event raised when a license is revoked."""


class LicenseReactivated(LicenseStatusChanged):
    """Event raised when an operator reactivates a license."""


class LicenseExpired(LicenseStatusChanged):
    """Event raised when lazy expiry persists the expired status."""


class LicenseRenewed(LicenseStatusChanged):
    """Event raised when a license is renewed."""

    def __init__(
        self,
        license_id: uuid.UUID,
        previous_status: LicenseStatus,
        expires_at: Optional[datetime],
        actor: str = "system",
        occurred_at: Optional[datetime] = None,
    ):
        """
        Initialize LicenseRenewed event.

        Args:
            license_id: License UUID
            previous_status: Status before renewal
            expires_at: New expiration datetime
            actor: Who renewed the license
            occurred_at: When the event occurred
        """
        super().__init__(
            license_id,
            previous_status,
            LicenseStatus.ACTIVE,
            actor=actor,
            occurred_at=occurred_at,
        )
        self.expires_at = expires_at

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["expires_at"] = self.expires_at.isoformat() if self.expires_at else None
        return data


class LicenseKeyRegenerated(DomainEvent):
    """Event raised when a license receives a new key."""

    def __init__(
        self,
        license_id: uuid.UUID,
        key_hint: str,
        actor: str = "system",
        occurred_at: Optional[datetime] = None,
    ):
        super().__init__(**self._base_fields(license_id, actor, occurred_at))
        self.key_hint = key_hint

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["key_hint"] = self.key_hint
        return data


class LicenseTransferred(DomainEvent):
    """Event raised when a license changes owner."""

    def __init__(
        self,
        license_id: uuid.UUID,
        previous_email: str,
        new_email: str,
        deactivated_sites: int = 0,
        actor: str = "system",
        occurred_at: Optional[datetime] = None,
    ):
        """
        Initialize LicenseTransferred event.

        Args:
            license_id: License UUID
            previous_email: Previous owner's email
            new_email: New owner's email
            deactivated_sites: Number of sites released by the transfer
            actor: Who transferred the license
            occurred_at: When the event occurred
        """
        super().__init__(**self._base_fields(license_id, actor, occurred_at))
        self.previous_email = previous_email
        self.new_email = new_email
        self.deactivated_sites = deactivated_sites

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update(
            previous_email=self.previous_email,
            new_email=self.new_email,
            deactivated_sites=self.deactivated_sites,
        )
        return data


class LicenseDeleted(DomainEvent):
    """Event raised when an operator deletes a license."""

    def __init__(
        self,
        license_id: uuid.UUID,
        actor: str = "system",
        occurred_at: Optional[datetime] = None,
    ):
        super().__init__(**self._base_fields(license_id, actor, occurred_at))


class LicenseValidated(DomainEvent):
    """Event raised when a client validation succeeds."""

    def __init__(
        self,
        license_id: uuid.UUID,
        product_slug: Optional[str] = None,
        site_identity: Optional[str] = None,
        ip_address: Optional[str] = None,
        actor: str = "client",
        occurred_at: Optional[datetime] = None,
    ):
        super().__init__(**self._base_fields(license_id, actor, occurred_at))
        self.product_slug = product_slug
        self.site_identity = site_identity
        self.ip_address = ip_address

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update(
            product_slug=self.product_slug,
            site_identity=self.site_identity,
            ip_address=self.ip_address,
        )
        return data


class LicenseRequestRejected(DomainEvent):
    """Event raised when a client request is rejected."""

    def __init__(
        self,
        operation: ValidationEvent,
        reason: ReasonCode,
        license_id: Optional[uuid.UUID] = None,
        site_identity: Optional[str] = None,
        ip_address: Optional[str] = None,
        actor: str = "client",
        occurred_at: Optional[datetime] = None,
    ):
        """
        Initialize LicenseRequestRejected event.

        Args:
            operation: Client operation that was rejected
            reason: Rejection reason
            license_id: License UUID, when the key resolved to one
            site_identity: Normalized site, when known
            ip_address: Client IP
            actor: Who sent the request
            occurred_at: When the event occurred
        """
        super().__init__(**self._base_fields(license_id, actor, occurred_at))
        self.operation = operation
        self.reason = reason
        self.site_identity = site_identity
        self.ip_address = ip_address

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update(
            operation=str(self.operation),
            reason=str(self.reason),
            site_identity=self.site_identity,
            ip_address=self.ip_address,
        )
        return data
