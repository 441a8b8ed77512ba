"""
Django implementation of the AuditTrailSink port.
"""
import logging
import uuid
from typing import Any, Dict, Optional

from asgiref.sync import sync_to_async

from core.infrastructure.database import store_operation
from core.ports.collaborators import AuditTrailSink
from licenses.infrastructure.models import AuditLog

logger = logging.getLogger(__name__)


class DjangoAuditTrailSink(AuditTrailSink):
    """Writes immutable AuditLog rows."""

    @sync_to_async
    @store_operation
    def record_event(
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
        AuditLog.objects.create(
            license_id=uuid.UUID(license_id) if license_id else None,
            action=event_type,
            changes=metadata,
            actor=actor,
        )
