"""
License lifecycle engine.

Serves the client-facing operations (validate, activate, deactivate,
heartbeat, status). Every request runs the same pipeline:

    IP block -> rate limit (per IP) -> key sanitize/format
    -> rate limit (per key) -> lookup by fingerprint -> lazy expiry -> operation
    -> validation log -> IP block check -> domain events

Business outcomes are returned as ``Outcome`` values, never raised.
"""
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Optional

from activations.application.commands.activate_site import ActivateSiteCommand
from activations.application.commands.deactivate_site import DeactivateSiteCommand
from activations.application.commands.heartbeat_site import HeartbeatSiteCommand
from activations.application.dto.activation_dto import ActivationResultDTO
from activations.domain.activation import Activation
from activations.domain.events import (
    SiteActivated,
    SiteCheckedIn,
    SiteDeactivated,
    SiteReactivated,
)
from activations.domain.services import ActivationAllocator
from activations.ports.activation_repository import ActivationRepository
from core.domain.clock import Clock, utcnow
from core.domain.events import DomainEvent, EventBus
from core.domain.exceptions import (
    ActivationConflictError,
    ActivationNotFoundError,
    InvalidSiteUrlError,
    LicenseNotFoundError,
    StoreUnavailableError,
)
from core.domain.outcome import Outcome, OutcomeKind
from core.domain.value_objects import LicenseStatus, ReasonCode, SiteIdentity, ValidationEvent
from core.infrastructure.ip_blocklist import IpBlocklist
from core.infrastructure.rate_limiter import RateLimiter
from core.metrics import license_operations_total, license_transitions_total
from licenses.application.dto.license_dto import LicenseSnapshotDTO
from licenses.application.queries.get_license_status import GetLicenseStatusQuery
from licenses.application.queries.validate_license import ValidateLicenseQuery
from licenses.domain.events import LicenseExpired, LicenseRequestRejected, LicenseValidated
from licenses.domain.license import License
from licenses.domain.license_key import (
    fingerprint_license_key,
    is_valid_key_format,
    mask_license_key,
    sanitize_license_key,
)
from licenses.domain.services import LicenseValidator
from licenses.ports.license_repository import LicenseRepository
from validation_logs.application.services.validation_logger import ValidationLogger
from validation_logs.domain.entry import ValidationLogEntry

logger = logging.getLogger(__name__)

_ACTIVATION_EVENTS = {
    OutcomeKind.ACTIVATED: SiteActivated,
    OutcomeKind.REACTIVATED: SiteReactivated,
    OutcomeKind.DEACTIVATED: SiteDeactivated,
}


@dataclass
class RequestContext:
    """State gathered while one client request moves through the pipeline."""

    event: ValidationEvent
    ip_address: Optional[str] = None
    user_agent: str = ""
    product_slug: Optional[str] = None
    site_identity: str = ""
    key_fingerprint: Optional[str] = None
    key_hint: str = ""
    license: Optional[License] = None

    def identify_site(self, raw_url: Optional[str]) -> None:
        try:
            self.site_identity = str(SiteIdentity.from_url(raw_url or ""))
        except InvalidSiteUrlError:
            self.site_identity = ""


Operation = Callable[[RequestContext], Awaitable[Outcome]]


class LicenseLifecycleEngine:
    """
    Orchestrates client license operations.

    Collaborators are injected; the engine reads no global state.
    """

    def __init__(
        self,
        license_repository: LicenseRepository,
        activation_repository: ActivationRepository,
        allocator: ActivationAllocator,
        validation_logger: ValidationLogger,
        rate_limiter: RateLimiter,
        event_bus: EventBus,
        ip_blocklist: Optional[IpBlocklist] = None,
        clock: Clock = utcnow,
    ):
        """
        Initialize engine.

        Args:
            license_repository: License store
            activation_repository: Activation store (snapshots)
            allocator: Activation allocator
            validation_logger: Validation log service
            rate_limiter: Rate limiter
            event_bus: Bus feeding the audit trail and webhooks
            ip_blocklist: Blocks IPs the validation log flags as suspicious
            clock: Returns the current aware UTC time
        """
        self.license_repository = license_repository
        self.activation_repository = activation_repository
        self.allocator = allocator
        self.validation_logger = validation_logger
        self.rate_limiter = rate_limiter
        self.event_bus = event_bus
        self.ip_blocklist = ip_blocklist
        self.clock = clock

    # Client operations

    async def validate(self, query: ValidateLicenseQuery) -> Outcome:
        """
        Validate a key for a product, refreshing the site's check-in.

        Args:
            query: ValidateLicenseQuery

        Returns:
            Outcome VALIDATED with a LicenseSnapshotDTO, or REJECTED
        """
        context = RequestContext(ValidationEvent.VALIDATE, query.ip_address, query.user_agent)
        context.product_slug = query.product_slug
        context.identify_site(query.site_url)

        async def operation(ctx: RequestContext) -> Outcome:
            reason = LicenseValidator.admission_rejection(
                ctx.license, query.product_slug, self.clock()
            )
            if reason is not None:
                return Outcome.rejected(reason)
            if ctx.site_identity:
                # Only refreshes last_checked_at; never takes a slot
                await self.allocator.heartbeat(ctx.license, query.site_url)
            snapshot = await self._snapshot(ctx.license, query.product_slug)
            return Outcome.success(OutcomeKind.VALIDATED, snapshot, "License is valid.")

        return await self._run(context, query.license_key, operation)

    async def activate(self, command: ActivateSiteCommand) -> Outcome:
        """
        Activate a key on a site.

        Args:
            command: ActivateSiteCommand

        Returns:
            Outcome ACTIVATED or REACTIVATED with an ActivationResultDTO,
            or REJECTED
        """
        context = RequestContext(ValidationEvent.ACTIVATE, command.ip_address, command.user_agent)
        context.product_slug = command.product_slug
        context.identify_site(command.site_url)

        async def operation(ctx: RequestContext) -> Outcome:
            reason = LicenseValidator.admission_rejection(
                ctx.license, command.product_slug, self.clock()
            )
            if reason is not None:
                return Outcome.rejected(reason)
            outcome = await self.allocator.activate(
                ctx.license,
                command.site_url,
                site_name=command.site_name,
                metadata=self._metadata(command.site_metadata, ctx.ip_address),
            )
            if not outcome.ok:
                return outcome
            message = (
                "Site activated successfully."
                if outcome.kind == OutcomeKind.ACTIVATED
                else "Site already activated."
            )
            result = await self._activation_result(ctx.license, outcome.payload, command.product_slug)
            return Outcome.success(outcome.kind, result, message)

        return await self._run(context, command.license_key, operation)

    async def deactivate(self, command: DeactivateSiteCommand) -> Outcome:
        """
        Release the slot held by a site.

        Deactivation is allowed whatever the license status.

        Args:
            command: DeactivateSiteCommand

        Returns:
            Outcome DEACTIVATED with an ActivationResultDTO, or NOT_FOUND
        """
        context = RequestContext(
            ValidationEvent.DEACTIVATE, command.ip_address, command.user_agent
        )
        context.identify_site(command.site_url)

        async def operation(ctx: RequestContext) -> Outcome:
            outcome = await self.allocator.deactivate(ctx.license, command.site_url)
            if not outcome.ok:
                return outcome
            result = await self._activation_result(ctx.license, outcome.payload)
            return Outcome.success(OutcomeKind.DEACTIVATED, result, "Site deactivated successfully.")

        return await self._run(context, command.license_key, operation)

    async def heartbeat(self, command: HeartbeatSiteCommand) -> Outcome:
        """
        Record a check-in from an activated site.

        Args:
            command: HeartbeatSiteCommand

        Returns:
            Outcome REACTIVATED with an ActivationResultDTO, NOT_FOUND,
            or REJECTED when the license is no longer active
        """
        context = RequestContext(ValidationEvent.HEARTBEAT, command.ip_address, command.user_agent)
        context.identify_site(command.site_url)

        async def operation(ctx: RequestContext) -> Outcome:
            reason = LicenseValidator.status_rejection(ctx.license, self.clock())
            if reason is not None:
                return Outcome.rejected(reason)
            outcome = await self.allocator.heartbeat(
                ctx.license,
                command.site_url,
                metadata=self._metadata(command.site_metadata, ctx.ip_address),
            )
            if not outcome.ok:
                return outcome
            result = await self._activation_result(ctx.license, outcome.payload)
            return Outcome.success(OutcomeKind.REACTIVATED, result, "Check-in recorded.")

        return await self._run(context, command.license_key, operation)

    async def status(self, query: GetLicenseStatusQuery) -> Outcome:
        """
        Read the current snapshot of a license.

        Inactive licenses still return their snapshot; the status field
        tells the client why the license is unusable.

        Args:
            query: GetLicenseStatusQuery

        Returns:
            Outcome STATUS with a LicenseSnapshotDTO, or REJECTED
        """
        context = RequestContext(ValidationEvent.STATUS, query.ip_address, query.user_agent)

        async def operation(ctx: RequestContext) -> Outcome:
            snapshot = await self._snapshot(ctx.license)
            return Outcome.success(OutcomeKind.STATUS, snapshot)

        return await self._run(context, query.license_key, operation)

    # Pipeline

    async def _run(self, context: RequestContext, raw_key: str, operation: Operation) -> Outcome:
        try:
            outcome = await self._process(context, raw_key, operation)
        except LicenseNotFoundError:
            logger.info(
                "License removed while the request was in flight",
                extra={"event": str(context.event), "key_hint": context.key_hint},
            )
            outcome = Outcome.rejected(ReasonCode.LICENSE_NOT_FOUND)
        except ActivationNotFoundError:
            logger.info(
                "Activation removed while the request was in flight",
                extra={"event": str(context.event), "key_hint": context.key_hint},
            )
            outcome = Outcome.rejected(ReasonCode.ACTIVATION_NOT_FOUND)
        except (StoreUnavailableError, ActivationConflictError):
            logger.error(
                "License store unavailable",
                extra={"event": str(context.event), "key_hint": context.key_hint},
                exc_info=True,
            )
            outcome = Outcome.rejected(ReasonCode.STORE_UNAVAILABLE)

        await self._record(context, outcome)
        await self._block_if_suspicious(context, outcome)
        await self._publish_outcome(context, outcome)
        return outcome

    async def _process(
        self, context: RequestContext, raw_key: str, operation: Operation
    ) -> Outcome:
        if self.ip_blocklist is not None:
            blocked_for = await self.ip_blocklist.blocked_for(context.ip_address)
            if blocked_for is not None:
                return Outcome.rejected(ReasonCode.IP_BLOCKED, retry_after_seconds=blocked_for)

        denied = await self._throttle(f"{context.event}:ip", context.ip_address)
        if denied is not None:
            return denied

        key = sanitize_license_key(raw_key)
        if not is_valid_key_format(key):
            return Outcome.rejected(ReasonCode.INVALID_KEY_FORMAT)
        context.key_fingerprint = fingerprint_license_key(key)
        context.key_hint = mask_license_key(key)

        denied = await self._throttle(f"{context.event}:license", context.key_fingerprint)
        if denied is not None:
            return denied

        license = await self.license_repository.find_by_fingerprint(context.key_fingerprint)
        if license is None:
            return Outcome.rejected(ReasonCode.LICENSE_NOT_FOUND)
        context.license = await self._apply_lazy_expiry(license)

        return await operation(context)

    async def _throttle(self, bucket: str, identifier: Optional[str]) -> Optional[Outcome]:
        decision = await self.rate_limiter.check(bucket, identifier)
        if decision.admitted:
            return None
        return Outcome.rejected(
            ReasonCode.RATE_LIMITED,
            retry_after_seconds=decision.retry_after_seconds,
        )

    async def _apply_lazy_expiry(self, license: License) -> License:
        """
        Treat an active license past its expiry date as expired.

        Persisting the transition is best-effort: if the store fails the
        request still sees the license as expired.
        """
        if license.status != LicenseStatus.ACTIVE or not license.is_past_expiry(self.clock()):
            return license

        expired = license.mark_expired()
        try:
            persisted = await self.license_repository.transition_status(
                license.id, [LicenseStatus.ACTIVE], LicenseStatus.EXPIRED
            )
        except StoreUnavailableError:
            logger.warning(
                "Could not persist lazy expiry",
                extra={"license_id": str(license.id)},
                exc_info=True,
            )
            return expired

        if persisted is None:
            return expired

        license_transitions_total.labels(transition="expired").inc()
        logger.info("License expired", extra={"license_id": str(license.id)})
        await self._publish(
            LicenseExpired(
                license_id=license.id,
                previous_status=LicenseStatus.ACTIVE,
                new_status=LicenseStatus.EXPIRED,
            )
        )
        return persisted

    # Payloads

    async def _snapshot(
        self, license: License, product_slug: Optional[str] = None
    ) -> LicenseSnapshotDTO:
        active_sites = await self.activation_repository.find_active_by_license(license.id)
        return LicenseSnapshotDTO.build(license, active_sites, product_slug)

    async def _activation_result(
        self,
        license: License,
        activation: Activation,
        product_slug: Optional[str] = None,
    ) -> ActivationResultDTO:
        return ActivationResultDTO(
            activation_id=activation.id,
            site_identity=str(activation.site_identity),
            activated_at=activation.activated_at,
            last_checked_at=activation.last_checked_at,
            license=await self._snapshot(license, product_slug),
        )

    @staticmethod
    def _metadata(site_metadata: Optional[Dict[str, Any]], ip_address: Optional[str]) -> Dict:
        metadata = dict(site_metadata or {})
        if ip_address:
            metadata["ip_address"] = ip_address
        return metadata

    # Observers

    async def _record(self, context: RequestContext, outcome: Outcome) -> None:
        license_operations_total.labels(
            operation=str(context.event),
            outcome=str(outcome.kind),
            reason=str(outcome.reason) if outcome.reason else "",
        ).inc()
        await self.validation_logger.record(
            ValidationLogEntry.from_outcome(
                event=context.event,
                outcome=outcome,
                license_id=context.license.id if context.license else None,
                key_fingerprint=context.key_fingerprint,
                key_hint=context.key_hint,
                site_identity=context.site_identity,
                ip_address=context.ip_address,
                user_agent=context.user_agent,
                created_at=self.clock(),
            )
        )

    async def _block_if_suspicious(self, context: RequestContext, outcome: Outcome) -> None:
        """Block the client IP once its recent failures reach the threshold."""
        if self.ip_blocklist is None or outcome.ok or not context.ip_address:
            return
        if outcome.reason in (ReasonCode.IP_BLOCKED, ReasonCode.STORE_UNAVAILABLE):
            return
        try:
            suspicious = await self.validation_logger.is_suspicious_ip(context.ip_address)
        except StoreUnavailableError:
            logger.warning(
                "Could not count failures for IP",
                extra={"ip_address": context.ip_address},
                exc_info=True,
            )
            return
        if suspicious:
            await self.ip_blocklist.block(context.ip_address)

    async def _publish_outcome(
self, context: RequestContext, outcome: Outcome) -> None:
        license_id = context.license.id if context.license else None

        if not outcome.ok:
            await self._publish(
                LicenseRequestRejected(
                    operation=context.event,
                    reason=outcome.reason,
                    license_id=license_id,
                    site_identity=context.site_identity or None,
                    ip_address=context.ip_address,
                )
            )
            return

        if outcome.kind == OutcomeKind.VALIDATED:
            await self._publish(
                LicenseValidated(
                    license_id=license_id,
                    product_slug=context.product_slug,
                    site_identity=context.site_identity or None,
                    ip_address=context.ip_address,
                )
            )
            return

        if not isinstance(outcome.payload, ActivationResultDTO):
            return

        event_class = _ACTIVATION_EVENTS.get(outcome.kind)
        if context.event == ValidationEvent.HEARTBEAT:
            event_class = SiteCheckedIn
        if event_class is not None:
            await self._publish(
                event_class(
                    license_id=license_id,
                    activation_id=outcome.payload.activation_id,
                    site_identity=outcome.payload.site_identity,
                    ip_address=context.ip_address,
                )
            )

    async def _publish(self, event: DomainEvent) -> None:
        try:
            await self.event_bus.publish(event)
        except Exception:  # pylint: disable=broad-exception-caught
            logger.exception("Failed to publish %s", event.event_type)
