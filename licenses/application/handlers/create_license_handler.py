"""
CreateLicenseHandler.

Handles the create license command.
"""
import logging
from typing import Optional

from core.domain.events import EventBus
from core.domain.exceptions import DuplicateKeyFingerprintError
from core.metrics import license_transitions_total
from core.ports.collaborators import EmailSender
from licenses.application.commands.create_license import CreateLicenseCommand
from licenses.application.dto.license_dto import IssuedLicenseDTO, LicenseDTO
from licenses.application.handlers.license_lifecycle_handlers import MAX_KEY_ATTEMPTS
from licenses.domain.events import LicenseCreated
from licenses.domain.license import License
from licenses.ports.license_repository import LicenseRepository

logger = logging.getLogger(__name__)


class CreateLicenseHandler:
    """Handler for CreateLicenseCommand."""

    def __init__(
        self,
        license_repository: LicenseRepository,
        event_bus: EventBus,
        email_sender: Optional[EmailSender] = None,
    ):
        """Initialize handler with repository and collaborators."""
        self.license_repository = license_repository
        self.event_bus = event_bus
        self.email_sender = email_sender

    async def handle(self, command: CreateLicenseCommand) -> IssuedLicenseDTO:
        """
        Handle create license command.

        Args:
            command: CreateLicenseCommand

        Returns:
            IssuedLicenseDTO carrying the plaintext key, shown only once

        Raises:
            ValueError: If the e-mail or quota is invalid
            DuplicateKeyFingerprintError: If every generated key collided
        """
        for attempt in range(1, MAX_KEY_ATTEMPTS + 1):
            license = License.create(
                customer_email=command.customer_email,
                customer_name=command.customer_name,
                tier=command.tier,
                product_scope=command.product_scope,
                max_activations=command.max_activations,
                expires_at=command.expires_at,
            )
            try:
                saved = await self.license_repository.save(license)
                break
            except DuplicateKeyFingerprintError:
                logger.warning("Key fingerprint collision, retrying (attempt %d)", attempt)
        else:
            raise DuplicateKeyFingerprintError()

        license_transitions_total.labels(transition="created").inc()
        logger.info(
            "License created",
            extra={"license_id": str(saved.id), "tier": str(saved.tier), "actor": command.actor},
        )

        # Publish event
        await self.event_bus.publish(
            LicenseCreated(
                license_id=saved.id,
                customer_email=str(saved.customer_email),
                tier=saved.tier,
                actor=command.actor,
            )
        )

        if command.send_email and self.email_sender is not None:
            try:
                await self.email_sender.send(license, "license_issued")
            except Exception:  # pylint: disable=broad-exception-caught
                logger.exception("Failed to queue license_issued e-mail")

        return IssuedLicenseDTO(
            license_key=license.key_plaintext,
            license=LicenseDTO.from_entity(saved),
        )
