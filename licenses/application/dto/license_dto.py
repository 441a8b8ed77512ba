"""
License DTOs for API responses.
"""
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional

from activations.domain.activation import Activation
from licenses.domain.license import License
from licenses.domain.tiers import get_tier_config


@dataclass
class ActivatedSiteDTO:
    """DTO for one active site."""

    site_identity: str
    site_url: str
    site_name: str
    activated_at: datetime
    last_checked_at: datetime
    metadata: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_entity(cls, activation: Activation) -> "ActivatedSiteDTO":
        return cls(
            site_identity=str(activation.site_identity),
            site_url=activation.raw_site_url,
            site_name=activation.site_name,
            activated_at=activation.activated_at,
            last_checked_at=activation.last_checked_at,
            metadata=dict(activation.metadata),
        )


@dataclass
class LicenseSnapshotDTO:
    """
    Client-facing view of a license.

    Returned by validate, status and the activation operations. Never
    carries the key, only its masked hint.
    """

    key_hint: str
    status: str
    tier: str
    tier_name: str
    expires_at: Optional[datetime]
    activations_used: int
    activations_limit: int
    features: List[str]
    product_scope: List[str]
    activated_sites: List[ActivatedSiteDTO]

    @classmethod
    def build(
        cls,
        license: License,
        active_sites: List[Activation],
        product_slug: Optional[str] = None,
    ) -> "LicenseSnapshotDTO":
        """
        Build a snapshot.

        Args:
            license: License entity (status with lazy expiry already applied)
            active_sites: Active activations of the license
            product_slug: Product whose feature catalogue applies

        Returns:
            LicenseSnapshotDTO
        """
        tier_config = get_tier_config(license.tier, product_slug)
        return cls(
            key_hint=license.key_hint,
            status=license.status.value,
            tier=license.tier.value,
            tier_name=tier_config.name,
            expires_at=license.expires_at,
            activations_used=len(active_sites),
            activations_limit=license.max_activations,
            features=list(tier_config.features),
            product_scope=sorted(license.product_scope),
            activated_sites=[ActivatedSiteDTO.from_entity(site) for site in active_sites],
        )


@dataclass
class LicenseDTO:
    """Operator-facing view of a license."""

    id: uuid.UUID
    key_hint: str
    customer_email: str
    customer_name: str
    tier: str
    status: str
    max_activations: int
    activations_used: int
    product_scope: List[str]
    expires_at: Optional[datetime]
    created_at: datetime
    updated_at: datetime
    activated_sites: List[ActivatedSiteDTO] = field(default_factory=list)

    @classmethod
    def from_entity(
        cls, license: License, active_sites: Optional[List[Activation]] = None
    ) -> "LicenseDTO":
        active_sites = active_sites or []
        return cls(
            id=license.id,
            key_hint=license.key_hint,
            customer_email=str(license.customer_email),
            customer_name=license.customer_name,
            tier=license.tier.value,
            status=license.status.value,
            max_activations=license.max_activations,
            activations_used=len(active_sites),
            product_scope=sorted(license.product_scope),
            expires_at=license.expires_at,
            created_at=license.created_at,
            updated_at=license.updated_at,
            activated_sites=[ActivatedSiteDTO.from_entity(site) for site in active_sites],
        )


@dataclass
class IssuedLicenseDTO:
    """
    DTO for create and regenerate-key responses.

    ``license_key`` is the plaintext key; this is the only response
    that ever carries it.
    """

    license_key: str
    license: LicenseDTO


@dataclass
class LicensePageDTO:
    """DTO for a page of licenses."""

    items: List[LicenseDTO]
    total: int
    page: int
    per_page: int
