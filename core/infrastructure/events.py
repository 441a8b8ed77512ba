"""
In-memory event bus implementation.

Fans domain events out to the observers registered for the event's
class or any of its base classes. Handler failures are logged and
never reach the publisher.
"""

import asyncio
import logging
from typing import Dict, List, Type

from core.domain.events import DomainEvent, EventBus, EventHandler
from core.metrics import collaborator_failures_total

logger = logging.getLogger(__name__)


class InMemoryEventBus(EventBus):
    """
    In-memory event bus implementation.

    Subscribing to ``DomainEvent`` receives every event.
    """

    def __init__(self):
        """Initialize the event bus."""
        self._handlers: Dict[Type[DomainEvent], List[EventHandler]] = {}

    def subscribe(self, event_type: Type[DomainEvent], handler: EventHandler) -> None:
        """
        Subscribe to a domain event type.

        Args:
            event_type: The type of event to subscribe to
            handler: The handler to call when event is published
        """
        if event_type not in self._handlers:
            self._handlers[event_type] = []
        self._handlers[event_type].append(handler)
        logger.debug("Subscribed %s to %s", handler.__class__.__name__, event_type.__name__)

    def handlers_for(self, event: DomainEvent) -> List[EventHandler]:
        """
        Collect handlers for an event, most specific type first.

        Args:
            event: Published event

        Returns:
            Handlers without duplicates
        """
        handlers: List[EventHandler] = []
        for event_type in type(event).__mro__:
            for handler in self._handlers.get(event_type, []):
                if handler not in handlers:
                    handlers.append(handler)
        return handlers

    async def publish(self, event: DomainEvent) -> None:
        """
        Publish a domain event.

        Args:
            event: The domain event to publish
        """
        handlers = self.handlers_for(event)

        if not handlers:
            logger.debug("No handlers registered for %s", event.event_type)
            return

        logger.info("Publishing %s to %d handler(s)", event.event_type, len(handlers))

        # Process handlers concurrently
        tasks = [self._handle_event(handler, event) for handler in handlers]
        await asyncio.gather(*tasks)

    async def _handle_event(self, handler: EventHandler, event: DomainEvent) -> None:
        """
        Handle an event with a specific handler.

        Args:
            handler: The handler to use
            event: The event to handle
        """
        try:
            await handler.handle(event)
            logger.debug(
                "Successfully handled %s with %s", event.event_type, handler.__class__.__name__
            )
        except Exception as e:  # pylint: disable=broad-exception-caught
            collaborator_failures_total.labels(collaborator=handler.__class__.__name__).inc()
            logger.error(
                "Error handling %s with %s: %s",
                event.event_type,
                handler.__class__.__name__,
                e,
                exc_info=True,
            )
