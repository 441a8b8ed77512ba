"""
License domain entity.

This is the core domain entity representing a license and its status
state machine. It contains business logic and is independent of
infrastructure.
"""
import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import FrozenSet, Iterable, Optional

from core.domain.clock import utcnow
from core.domain.exceptions import InvalidLicenseStatusError
from core.domain.value_objects import Email, LicenseStatus, LicenseTier
from licenses.domain.license_key import generate_license_key, mask_license_key
from licenses.domain.tiers import default_max_activations

UNRESTRICTED_SCOPE = "all"


@dataclass(frozen=True)
class License:
    """
    License domain entity.

    Immutable: every transition returns a new instance. ``key_plaintext``
    is only populated on the instance returned by creation or key
    regeneration and is never persisted.
    """

    id: uuid.UUID
    key_fingerprint: str
    key_hint: str
    customer_email: Email
    customer_name: str
    tier: LicenseTier
    status: LicenseStatus
    max_activations: int
    product_scope: FrozenSet[str]
    expires_at: Optional[datetime]
    created_at: datetime
    updated_at: datetime
    key_plaintext: Optional[str] = field(default=None, repr=False, compare=False)

    def __post_init__(self):
        """Validate license entity."""
        if not self.key_fingerprint or len(self.key_fingerprint) != 64:
            raise ValueError("Invalid key fingerprint")
        if self.max_activations < 0:
            raise ValueError("Max activations cannot be negative")

    @classmethod
    def create(
        cls,
        customer_email: str,
        customer_name: str = "",
        tier: LicenseTier = LicenseTier.FREE,
        product_scope: Iterable[str] = (),
        max_activations: Optional[int] = None,
        expires_at: Optional[datetime] = None,
        license_id: Optional[uuid.UUID] = None,
    ) -> "License":
        """
        Create a new License entity with a freshly generated key.

        Args:
            customer_email: Customer email address
            customer_name: Customer display name
            tier: License tier
            product_scope: Product slugs the license authorizes
                (empty means unrestricted)
            max_activations: Activation quota (defaults to the tier's quota)
            expires_at: Optional expiration datetime (None = perpetual)
            license_id: Optional UUID (generated if not provided)

        Returns:
            License entity instance carrying the plaintext key
        """
        now = utcnow()
        plaintext, fingerprint = generate_license_key()
        return cls(
            id=license_id or uuid.uuid4(),
            key_fingerprint=fingerprint,
            key_hint=mask_license_key(plaintext),
            customer_email=Email(customer_email),
            customer_name=customer_name,
            tier=tier,
            status=LicenseStatus.ACTIVE,
            max_activations=(
                default_max_activations(tier) if max_activations is None else max_activations
            ),
            product_scope=frozenset(slug for slug in product_scope if slug),
            expires_at=expires_at,
            created_at=now,
            updated_at=now,
            key_plaintext=plaintext,
        )

    @property
    def is_unrestricted(self) -> bool:
        """Whether the license is valid for every product."""
        return not self.product_scope or UNRESTRICTED_SCOPE in self.product_scope

    def authorizes_product(self, product_slug: Optional[str]) -> bool:
        """
        Check the product scope.

        Args:
            product_slug: Product the request is for (None skips the check)

        Returns:
            True if the license covers the product
        """
        if not product_slug or self.is_unrestricted:
            return True
        return product_slug in self.product_scope

    def is_past_expiry(self, current_time: Optional[datetime] = None) -> bool:
        """
        Check whether ``expires_at`` lies in the past.

        Args:
            current_time: Current time (defaults to utcnow)

        Returns:
            True if the license has an expiry date that has passed
        """
        if self.expires_at is None:
            return False
        return self.expires_at < (current_time or utcnow())

    def effective_status(self, current_time: Optional[datetime] = None) -> LicenseStatus:
        """
        Status with lazy expiry applied.

        An active license past its expiry date is treated as expired.

        Args:
            current_time: Current time (defaults to utcnow)

        Returns:
            Effective LicenseStatus
        """
        if self.status == LicenseStatus.ACTIVE and self.is_past_expiry(current_time):
            return LicenseStatus.EXPIRED
        return self.status

    def _with_status(self, status: LicenseStatus, **changes) -> "License":
        return replace(self, status=status, updated_at=utcnow(), key_plaintext=None, **changes)

    def suspend(self) -> "License":
        """
        Create a new License instance with suspended status.

        Returns:
            New License instance with suspended status

        Raises:
            InvalidLicenseStatusError: If the license is not active
        """
        if self.status != LicenseStatus.ACTIVE:
            raise InvalidLicenseStatusError(f"Cannot suspend a {self.status} license")
        return self._with_status(LicenseStatus.SUSPENDED)

    def resume(self) -> "License":
        """
        Create a new License instance with resumed status.

        Returns:
            New License instance with active status

        Raises:
            InvalidLicenseStatusError: If the license is not suspended
        """
        if self.status != LicenseStatus.SUSPENDED:
            raise InvalidLicenseStatusError("Can only resume a suspended license")
        return self._with_status(LicenseStatus.ACTIVE)

    def revoke(self) -> "License":
        """
        Create a new License instance with revoked status.

        Returns:
            New License instance with revoked status

        Raises:
            InvalidLicenseStatusError: If the license is already revoked
        """
        if self.status == LicenseStatus.REVOKED:
            raise InvalidLicenseStatusError("License is already revoked")
        return self._with_status(LicenseStatus.REVOKED)

    def reactivate(self) -> "License":
        """
        Bring a revoked, expired or suspended license back to active.

        Returns:
            New License instance with active status

        Raises:
            InvalidLicenseStatusError: If the license is already active
        """
        if self.status == LicenseStatus.ACTIVE:
            raise InvalidLicenseStatusError("License is already active")
        return self._with_status(LicenseStatus.ACTIVE)

    def renew(self, new_expiration: Optional[datetime]) -> "License":
        """
        Create a new active License instance with a new expiration.

        Args:
            new_expiration: New expiration datetime (None = perpetual)

        Returns:
            New License instance

        Raises:
            ValueError: If the new expiration is in the past
        """
        if new_expiration is not None and new_expiration < utcnow():
            raise ValueError("Expiration date cannot be in the past")
        return self._with_status(LicenseStatus.ACTIVE, expires_at=new_expiration)

    def mark_expired(self) -> "License":
        """
        Create a new License instance with expired status.

        Returns:
            New License instance with expired status
        """
        return self._with_status(LicenseStatus.EXPIRED)

    def regenerate_key(self) -> "License":
        """
        Issue a new key for this license.

        The old fingerprint stops resolving once the new instance is
        saved. Status and activations are unaffected.

        Returns:
            New License instance carrying the new plaintext key
        """
        plaintext, fingerprint = generate_license_key()
        return replace(
            self,
            key_fingerprint=fingerprint,
            key_hint=mask_license_key(plaintext),
            updated_at=utcnow(),
            key_plaintext=plaintext,
        )

    def transfer(self, customer_email: str, customer_name: str = "") -> "License":
        """
        Reassign the license to another customer.

        Args:
            customer_email: New owner's email
            customer_name: New owner's name

        Returns:
            New License instance owned by the new customer
        """
        return replace(
            self,
            customer_email=Email(customer_email),
            customer_name=customer_name,
            updated_at=utcnow(),
            key_plaintext=None,
        )
