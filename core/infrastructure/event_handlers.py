"""
Event handlers for domain events.

These handlers forward lifecycle events to the external collaborators:
the audit trail and webhook subscribers.
"""

import logging
from typing import Dict, Optional, Type

from activations.domain.events import SiteActivated, SiteDeactivated
from core.domain.events import DomainEvent, EventBus, EventHandler
from core.ports.collaborators import AuditTrailSink, WebhookDispatcher
from licenses.domain.events import (
    LicenseCreated,
    LicenseDeleted,
    LicenseExpired,
    LicenseKeyRegenerated,
    LicenseReactivated,
    LicenseRenewed,
    LicenseResumed,
    LicenseRevoked,
    LicenseSuspended,
    LicenseTransferred,
)

logger = logging.getLogger(__name__)

WEBHOOK_EVENT_NAMES: Dict[Type[DomainEvent], str] = {
    LicenseCreated: "license.created",
    SiteActivated: "license.activated",
    SiteDeactivated: "license.deactivated",
    LicenseExpired: "license.expired",
    LicenseSuspended: "license.suspended",
    LicenseResumed: "license.resumed",
    LicenseRevoked: "license.revoked",
    LicenseReactivated: "license.reactivated",
    LicenseRenewed: "license.renewed",
    LicenseTransferred: "license.transferred",
    LicenseKeyRegenerated: "license.key_regenerated",
    LicenseDeleted: "license.deleted",
}


class AuditTrailEventHandler(EventHandler):
    """
    Event handler for audit logging.

    Records every domain event in the audit trail.
    """

    def __init__(self, sink: AuditTrailSink):
        """Initialize handler with the audit sink."""
        self.sink = sink

    async def handle(self, event: DomainEvent) -> None:
        """
        Handle domain event for audit logging.

        Args:
            event: Domain event to log
        """
        await self.sink.record_event(
            event_type=event.event_type,
            license_id=event.license_id,
            actor=event.actor,
            metadata=event.to_dict(),
        )


class WebhookEventHandler(EventHandler):
    """
    Event handler for webhook delivery.

    Notifies webhook subscribers of license lifecycle changes. Client
    traffic (validations, check-ins, rejections) is not forwarded.
    """

    def __init__(self, dispatcher: WebhookDispatcher):
        """Initialize handler with the webhook dispatcher."""
        self.dispatcher = dispatcher

    @staticmethod
    def webhook_name(event: DomainEvent) -> Optional[str]:
        """Webhook event name for a domain event, or None if not forwarded."""
        return WEBHOOK_EVENT_NAMES.get(type(event))

    async def handle(self, event: DomainEvent) -> None:
        """
        Handle domain event for webhook delivery.

        Args:
            event: Domain event to deliver via webhook
        """
        webhook_event_type = self.webhook_name(event)
        if not webhook_event_type:
            logger.debug("No webhook mapping for event type: %s", event.event_type)
            return

        await self.dispatcher.notify(webhook_event_type, event.to_dict())


def register_event_handlers(
    bus: EventBus,
    audit_sink: AuditTrailSink,
    webhook_dispatcher: WebhookDispatcher,
) -> EventBus:
    """
    Register the collaborator handlers with an event bus.

    Args:
        bus: Event bus to subscribe on
        audit_sink: Audit trail sink
        webhook_dispatcher: Webhook dispatcher

    Returns:
        The same bus
    """
    bus.subscribe(DomainEvent, AuditTrailEventHandler(audit_sink))

    webhook_handler = WebhookEventHandler(webhook_dispatcher)
    for event_type in WEBHOOK_EVENT_NAMES:
        bus.subscribe(event_type, webhook_handler)

    logger.info("Event handlers registered")
    return bus
