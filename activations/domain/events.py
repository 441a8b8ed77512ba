"""
Activation domain events.

Domain events represent something that happened in the activation domain.
"""

import uuid
from datetime import datetime
from typing import Any, Dict, Optional

from core.domain.events import DomainEvent


class SiteActivationEvent(DomainEvent):
    """Base event for a change to one site's activation."""

    def __init__(
        self,
        license_id: uuid.UUID,
        activation_id: uuid.UUID,
        site_identity: str,
        ip_address: Optional[str] = None,
        actor: str = "client",
        occurred_at: Optional[datetime] = None,
    ):
        """
        Initialize a site activation event.

        Args:
            license_id: License UUID
            activation_id: Activation UUID
            site_identity: Normalized site URL
            ip_address: Client IP, when triggered by a client
            actor: Who triggered the change
            occurred_at: When the event occurred
        """
        super().__init__(**self._base_fields(license_id, actor, occurred_at))
        self.activation_id = activation_id
        self.site_identity = site_identity
        self.ip_address = ip_address

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update(
            activation_id=str(self.activation_id),
            site_identity=self.site_identity,
            ip_address=self.ip_address,
        )
        return data


class SiteActivated(SiteActivationEvent):
    """Event raised when a site takes a new activation slot."""


class SiteReactivated(SiteActivationEvent):
    """Event raised when an already-active site activates again."""


class SiteDeactivated(SiteActivationEvent):
    """Event raised when a site releases its activation slot."""


class SiteCheckedIn(SiteActivationEvent):
    """Event raised when an active site sends a heartbeat."""
