"""
License lifecycle handlers.

Operator-only handlers for suspend, resume, revoke, reactivate, renew,
key regeneration, transfer and delete.
"""
import logging
import uuid
from typing import Optional

from activations.domain.events import SiteDeactivated
from activations.domain.services import ActivationAllocator
from core.domain.events import EventBus
from core.domain.exceptions import DuplicateKeyFingerprintError, LicenseNotFoundError
from core.metrics import license_transitions_total
from core.ports.collaborators import EmailSender
from licenses.application.commands.delete_license import DeleteLicenseCommand
from licenses.application.commands.reactivate_license import ReactivateLicenseCommand
from licenses.application.commands.regenerate_license_key import RegenerateLicenseKeyCommand
from licenses.application.commands.renew_license import RenewLicenseCommand
from licenses.application.commands.resume_license import ResumeLicenseCommand
from licenses.application.commands.revoke_license import RevokeLicenseCommand
from licenses.application.commands.suspend_license import SuspendLicenseCommand
from licenses.application.commands.transfer_license import TransferLicenseCommand
from licenses.application.dto.license_dto import IssuedLicenseDTO, LicenseDTO
from licenses.domain.events import (
    LicenseDeleted,
    LicenseKeyRegenerated,
    LicenseReactivated,
    LicenseRenewed,
    LicenseResumed,
    LicenseRevoked,
    LicenseSuspended,
    LicenseTransferred,
)
from licenses.domain.license import License
from licenses.ports.license_repository import LicenseRepository

logger = logging.getLogger(__name__)

MAX_KEY_ATTEMPTS = 5


class LicenseCommandHandler:
    """Shared plumbing for operator handlers."""

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

    async def _load(self, license_id: uuid.UUID) -> License:
        license = await self.license_repository.find_by_id(license_id)
        if not license:
            raise LicenseNotFoundError(f"License {license_id} not found")
        return license

    async def _notify(self, license: License, template: str) -> None:
        """Queue a customer e-mail; failures never fail the operation."""
        if self.email_sender is None:
            return
        try:
            await self.email_sender.send(license, template)
        except Exception:  # pylint: disable=broad-exception-caught
            logger.exception(
                "Failed to queue %s e-mail", template, extra={"license_id": str(license.id)}
            )


class SuspendLicenseHandler(LicenseCommandHandler):
    """Handler for SuspendLicenseCommand."""

    async def handle(self, command: SuspendLicenseCommand) -> License:
        """
        Handle suspend license command.

        Args:
            command: SuspendLicenseCommand

        Returns:
            Suspended License entity

        Raises:
            LicenseNotFoundError: If license not found
            InvalidLicenseStatusError: If the license is not active
        """
        license = await self._load(command.license_id)
        suspended = await self.license_repository.save(license.suspend())
        license_transitions_total.labels(transition="suspended").inc()

        await self.event_bus.publish(
            LicenseSuspended(
                license_id=suspended.id,
                previous_status=license.status,
                new_status=suspended.status,
                actor=command.actor,
            )
        )
        return suspended


class ResumeLicenseHandler(LicenseCommandHandler):
    """Handler for ResumeLicenseCommand."""

    async def handle(self, command: ResumeLicenseCommand) -> License:
        """
        Handle resume license command.

        Args:
            command: ResumeLicenseCommand

        Returns:
            Resumed License entity

        Raises:
            LicenseNotFoundError: If license not found
            InvalidLicenseStatusError: If the license is not suspended
        """
        license = await self._load(command.license_id)
        resumed = await self.license_repository.save(license.resume())
        license_transitions_total.labels(transition="resumed").inc()

        await self.event_bus.publish(
            LicenseResumed(
                license_id=resumed.id,
                previous_status=license.status,
                new_status=resumed.status,
                actor=command.actor,
            )
        )
        return resumed


class RevokeLicenseHandler(LicenseCommandHandler):
    """Handler for RevokeLicenseCommand."""

    async def handle(self, command: RevokeLicenseCommand) -> License:
        """
        Handle revoke license command.

        Args:
            command: RevokeLicenseCommand

        Returns:
            Revoked License entity

        Raises:
            LicenseNotFoundError: If license not found
            InvalidLicenseStatusError: If the license is already revoked
        """
        license = await self._load(command.license_id)
        revoked = await self.license_repository.save(license.revoke())
        license_transitions_total.labels(transition="revoked").inc()
        logger.info(
            "License revoked",
            extra={"license_id": str(revoked.id), "actor": command.actor, "reason": command.reason},
        )

        await self.event_bus.publish(
            LicenseRevoked(
                license_id=revoked.id,
                previous_status=license.status,
                new_status=revoked.status,
                actor=command.actor,
            )
        )
        return revoked


class ReactivateLicenseHandler(LicenseCommandHandler):
    """Handler for ReactivateLicenseCommand."""

    async def handle(self, command: ReactivateLicenseCommand) -> License:
        """
        Handle reactivate license command.

        Args:
            command: ReactivateLicenseCommand

        Returns:
            Active License entity

        Raises:
            LicenseNotFoundError: If license not found
            InvalidLicenseStatusError: If the license is already active
        """
        license = await self._load(command.license_id)
        reactivated = await self.license_repository.save(license.reactivate())
        license_transitions_total.labels(transition="reactivated").inc()

        await self.event_bus.publish(
            LicenseReactivated(
                license_id=reactivated.id,
                previous_status=license.status,
                new_status=reactivated.status,
                actor=command.actor,
            )
        )
        return reactivated


class RenewLicenseHandler(LicenseCommandHandler):
    """Handler for RenewLicenseCommand."""

    async def handle(self, command: RenewLicenseCommand) -> License:
        """
        Handle renew license command.

        Args:
            command: RenewLicenseCommand

        Returns:
            Renewed License entity

        Raises:
            LicenseNotFoundError: If license not found
            ValueError: If the new expiration is in the past
        """
        license = await self._load(command.license_id)
        renewed = await self.license_repository.save(license.renew(command.expires_at))
        license_transitions_total.labels(transition="renewed").inc()

        await self.event_bus.publish(
            LicenseRenewed(
                license_id=renewed.id,
                previous_status=license.status,
                expires_at=renewed.expires_at,
                actor=command.actor,
            )
        )
        return renewed


class RegenerateLicenseKeyHandler(LicenseCommandHandler):
    """Handler for RegenerateLicenseKeyCommand."""

    async def handle(self, command: RegenerateLicenseKeyCommand) -> IssuedLicenseDTO:
        """
        Handle regenerate key command.

        The old key stops resolving as soon as the new fingerprint is
        saved. Activations are kept.

        Args:
            command: RegenerateLicenseKeyCommand

        Returns:
            IssuedLicenseDTO carrying the new plaintext key

        Raises:
            LicenseNotFoundError: If license not found
            DuplicateKeyFingerprintError: If every generated key collided
        """
        license = await self._load(command.license_id)

        for attempt in range(1, MAX_KEY_ATTEMPTS + 1):
            regenerated = license.regenerate_key()
            try:
                saved = await self.license_repository.save(regenerated)
                break
            except DuplicateKeyFingerprintError:
                logger.warning("Key fingerprint collision, retrying (attempt %d)", attempt)
        else:
            raise DuplicateKeyFingerprintError()

        license_transitions_total.labels(transition="key_regenerated").inc()
        await self.event_bus.publish(
            LicenseKeyRegenerated(
                license_id=saved.id,
                key_hint=saved.key_hint,
                actor=command.actor,
            )
        )
        if command.send_email:
            await self._notify(regenerated, "license_key_regenerated")

        return IssuedLicenseDTO(
            license_key=regenerated.key_plaintext,
            license=LicenseDTO.from_entity(saved),
        )


class TransferLicenseHandler(LicenseCommandHandler):
    """Handler for TransferLicenseCommand."""

    def __init__(
        self,
        license_repository: LicenseRepository,
        event_bus: EventBus,
        allocator: ActivationAllocator,
        email_sender: Optional[EmailSender] = None,
    ):
        """Initialize handler with repository, allocator and collaborators."""
        super().__init__(license_repository, event_bus, email_sender)
        self.allocator = allocator

    async def handle(self, command: TransferLicenseCommand) -> License:
        """
        Handle transfer license command.

        Args:
            command: TransferLicenseCommand

        Returns:
            Transferred License entity

        Raises:
            LicenseNotFoundError: If license not found
            ValueError: If the new e-mail is invalid
        """
        license = await self._load(command.license_id)
        transferred = await self.license_repository.save(
            license.transfer(command.customer_email, command.customer_name)
        )

        released = []
        if command.deactivate_sites:
            released = await self.allocator.deactivate_all(transferred)
            for activation in released:
                await self.event_bus.publish(
                    SiteDeactivated(
                        license_id=transferred.id,
                        activation_id=activation.id,
                        site_identity=str(activation.site_identity),
                        actor=command.actor,
                    )
                )

        license_transitions_total.labels(transition="transferred").inc()
        await self.event_bus.publish(
            LicenseTransferred(
                license_id=transferred.id,
                previous_email=str(license.customer_email),
                new_email=str(transferred.customer_email),
                deactivated_sites=len(released),
                actor=command.actor,
            )
        )
        if command.send_email:
            await self._notify(transferred, "license_transferred")
        return transferred


class DeleteLicenseHandler(LicenseCommandHandler):
    """Handler for DeleteLicenseCommand."""

    async def handle(self, command: DeleteLicenseCommand) -> None:
        """
        Handle delete license command.

        Args:
            command: DeleteLicenseCommand

        Raises:
            LicenseNotFoundError: If license not found
        """
        if not await self.license_repository.delete(command.license_id):
            raise LicenseNotFoundError(f"License {command.license_id} not found")

        license_transitions_total.labels(transition="deleted").inc()
        await self.event_bus.publish(
            LicenseDeleted(license_id=command.license_id, actor=command.actor)
        )
