"""
Ports for external collaborators fed by license lifecycle events.

The audit trail, webhook dispatcher and email sender sit outside the
license core. Implementations must be fire-and-forget: they may log
failures but must never raise into the operation that triggered them.
"""
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional


class AuditTrailSink(ABC):
    """Sink for immutable audit records."""

    @abstractmethod
    async def record_event(
        self,
        event_type: str,
        license_id: Optional[str],
        actor: str,
        metadata: Dict[str, Any],
    ) -> None:
        """
        Record an audit event.

        Args:
            event_type: Event name
            license_id: License the event concerns, if any
            actor: Who triggered the event
            metadata: Event details
        """
        pass


class WebhookDispatcher(ABC):
    """Outbound webhook notifications."""

    @abstractmethod
    async def notify(self, event_type: str, payload: Dict[str, Any]) -> None:
        """
        Queue a webhook notification.

        Args:
            event_type: Webhook event name (e.g. "license.activated")
            payload: JSON-serializable payload
        """
        pass


class EmailSender(ABC):
    """Customer e-mail notifications."""

    @abstractmethod
    async def send(self, license: Any, template: str) -> None:
        """
        Queue a templated e-mail for a license's customer.

        Args:
            license: License entity (carries the one-time plaintext key
                when the template needs it)
            template: Template name
        """
        pass
