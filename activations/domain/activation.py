"""
Activation domain entity.

This is the core domain entity representing a license activation on
one customer site. It contains business logic and is independent of
infrastructure.
"""

import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any, Dict, Optional

from core.domain.clock import utcnow
from core.domain.value_objects import SiteIdentity

METADATA_FIELDS = ("plugin_version", "platform_version", "ip_address")


def clean_metadata(metadata: Optional[Dict[str, Any]]) -> Dict[str, str]:
    """
    Keep the known metadata fields with non-empty values.

    Args:
        metadata: Raw metadata sent by the client

    Returns:
        Metadata restricted to METADATA_FIELDS
    """
    metadata = metadata or {}
    return {
        key: str(metadata[key])[:100]
        for key in METADATA_FIELDS
        if metadata.get(key) not in (None, "")
    }


@dataclass(frozen=True)
class Activation:
    """
    Activation domain entity.

    An activation consumes one slot of its license's quota while
    ``deactivated_at`` is None. Deactivated activations are kept for
    history and never reused.
    """

    id: uuid.UUID
    license_id: uuid.UUID
    site_identity: SiteIdentity
    raw_site_url: str
    site_name: str
    activated_at: datetime
    last_checked_at: datetime
    deactivated_at: Optional[datetime] = None
    metadata: Dict[str, str] = field(default_factory=dict)

    def __post_init__(self):
        """Validate activation entity."""
        if not self.license_id:
            raise ValueError("License ID is required")
        if not self.site_identity:
            raise ValueError("Site identity is required")

    @classmethod
    def create(
        cls,
        license_id: uuid.UUID,
        site_identity: SiteIdentity,
        raw_site_url: str,
        site_name: str = "",
        metadata: Optional[Dict[str, Any]] = None,
        activation_id: Optional[uuid.UUID] = None,
    ) -> "Activation":
        """
        Create a new Activation entity.

        Args:
            license_id: License UUID
            site_identity: Normalized site URL
            raw_site_url: URL as sent by the client
            site_name: Optional site display name
            metadata: Optional client metadata
            activation_id: Optional UUID (generated if not provided)

        Returns:
            Activation entity instance
        """
        now = utcnow()
        return cls(
            id=activation_id or uuid.uuid4(),
            license_id=license_id,
            site_identity=site_identity,
            raw_site_url=raw_site_url[:500],
            site_name=(site_name or "")[:255],
            activated_at=now,
            last_checked_at=now,
            deactivated_at=None,
            metadata=clean_metadata(metadata),
        )

    @property
    def is_active(self) -> bool:
        """Whether the activation holds a slot."""
        return self.deactivated_at is None

    def touch(self, metadata: Optional[Dict[str, Any]] = None, site_name: str = "") -> "Activation":
        """
        Create a new Activation instance with updated last_checked_at.

        Args:
            metadata: Fresh client metadata merged over the stored one
            site_name: New site name, kept unchanged when empty

        Returns:
            New Activation instance with updated timestamp
        """
        merged = dict(self.metadata)
        merged.update(clean_metadata(metadata))
        return replace(
            self,
            last_checked_at=utcnow(),
            metadata=merged,
            site_name=(site_name or self.site_name)[:255],
        )

    def deactivate(self) -> "Activation":
        """
        Create a new Activation instance with deactivated status.

        Returns:
            New Activation instance with deactivated status
        """
        if not self.is_active:
            return self  # Already deactivated

        return replace(self, deactivated_at=utcnow())
