"""
Domain events base classes and infrastructure.

Domain events represent something that happened in the domain.
They are used for decoupling the lifecycle engine from its observers
(audit trail, webhooks, metrics).
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional
from uuid import UUID, uuid4

from core.domain.clock import utcnow


@dataclass(frozen=True)
class DomainEvent(ABC):
    """
    Base class for all domain events.

    Domain events are immutable value objects that represent
    something that happened in the domain.
    """

    event_id: UUID
    occurred_at: datetime
    aggregate_id: str
    event_type: str
    actor: str = "system"

    def __init_subclass__(cls, **kwargs):
        """Automatically set event_type for subclasses."""
        super().__init_subclass__(**kwargs)
        cls.event_type = cls.__name__

    @classmethod
    def _base_fields(
        cls,
        aggregate_id: Any,
        actor: str = "system",
        occurred_at: Optional[datetime] = None,
    ) -> Dict[str, Any]:
        """Build the keyword arguments shared by every event."""
        return {
            "event_id": uuid4(),
            "occurred_at": occurred_at or utcnow(),
            "aggregate_id": str(aggregate_id) if aggregate_id is not None else "",
            "event_type": cls.__name__,
            "actor": actor,
        }

    @property
    def license_id(self) -> Optional[str]:
        """Identifier of the license the event concerns, if any."""
        return self.aggregate_id or None

    def to_dict(self) -> Dict[str, Any]:
        """Convert event to dictionary for serialization."""
        return {
            "event_id": str(self.event_id),
            "occurred_at": self.occurred_at.isoformat(),
            "aggregate_id": self.aggregate_id,
            "event_type": self.event_type,
            "actor": self.actor,
        }


class EventHandler(ABC):
    """
    Base class for event handlers.

    Event handlers process domain events asynchronously.
    """

    @abstractmethod
    async def handle(self, event: DomainEvent) -> None:
        """
        Handle a domain event.

        Args:
            event: The domain event to handle
        """
        pass


class EventBus(ABC):
    """
    Abstract event bus for publishing and subscribing to domain events.
    """

    @abstractmethod
    async def publish(self, event: DomainEvent) -> None:
        """
        Publish a domain event.

        Implementations must not raise handler failures to the publisher.

        Args:
            event: The domain event to publish
        """
        pass

    @abstractmethod
    def subscribe(self, event_type: type, handler: EventHandler) -> None:
        """
        Subscribe to a domain event type.

        Args:
            event_type: The type of event to subscribe to
            handler: The handler to call when event is published
        """
        pass
