"""
Activation domain services.

Domain services contain business logic that doesn't naturally
fit within a single entity.
"""

import logging
from typing import Any, Dict, List, Optional

from activations.domain.activation import Activation
from activations.ports.activation_repository import ActivationRepository
from core.domain.exceptions import ActivationConflictError, InvalidSiteUrlError
from core.domain.outcome import Outcome, OutcomeKind
from core.domain.value_objects import ReasonCode, SiteIdentity
from core.infrastructure.locks import KeyedLock
from licenses.domain.license import License

logger = logging.getLogger(__name__)


class ActivationAllocator:
    """
    Domain service allocating and releasing a license's activation slots.

    All slot changes for one license run under that license's lock, so
    the existing-site check, the count and the insert cannot interleave
    with another request for the same license. Different licenses never
    wait on each other.
    """

    # One retry covers a site activated by another process between the
    # existing-site check and the insert.
    MAX_INSERT_ATTEMPTS = 2

    def __init__(
        self,
        repository: ActivationRepository,
        locks: Optional[KeyedLock] = None,
    ):
        """
        Initialize allocator.

        Args:
            repository: Activation repository
            locks: Per-license lock registry
        """
        self.repository = repository
        self.locks = locks or KeyedLock()

    @staticmethod
    def normalize(url: str) -> SiteIdentity:
        """
        Normalize a site URL into its identity.

        Args:
            url: Raw site URL

        Returns:
            SiteIdentity

        Raises:
            InvalidSiteUrlError: If the URL is empty after normalization
        """
        return SiteIdentity.from_url(url)

    async def activate(
        self,
        license: License,
        raw_url: str,
        site_name: str = "",
        metadata: Optional[Dict[str, Any]] = None,
    ) -> Outcome:
        """
        Allocate a slot for a site.

        Args:
            license: License entity (status already checked by the caller)
            raw_url: Site URL as sent by the client
            site_name: Optional site display name
            metadata: Optional client metadata

        Returns:
            Outcome ACTIVATED or REACTIVATED with the Activation as payload,
            or REJECTED(max_activations_reached | invalid_site_url)
        """
        try:
            identity = self.normalize(raw_url)
        except InvalidSiteUrlError:
            return Outcome.rejected(ReasonCode.INVALID_SITE_URL)

        async with self.locks.hold(license.id):
            for _ in range(self.MAX_INSERT_ATTEMPTS):
                existing = await self.repository.find_active_by_site(license.id, identity)
                if existing is not None:
                    touched = await self.repository.save(existing.touch(metadata, site_name))
                    return Outcome.success(OutcomeKind.REACTIVATED, touched)

                candidate = Activation.create(
                    license_id=license.id,
                    site_identity=identity,
                    raw_site_url=raw_url,
                    site_name=site_name,
                    metadata=metadata,
                )
                try:
                    created = await self.repository.create_if_capacity(
                        candidate, license.max_activations
                    )
                except ActivationConflictError:
                    logger.info(
                        "Concurrent activation detected, re-checking site",
                        extra={"license_id": str(license.id), "site_identity": str(identity)},
                    )
                    continue

                if created is None:
                    return Outcome.rejected(ReasonCode.MAX_ACTIVATIONS_REACHED)
                return Outcome.success(OutcomeKind.ACTIVATED, created)

        raise ActivationConflictError()

    async def deactivate(self, license: License, raw_url: str) -> Outcome:
        """
        Release the slot held by a site.

        Args:
            license: License entity
            raw_url: Site URL as sent by the client

        Returns:
            Outcome DEACTIVATED with the Activation as payload, or NOT_FOUND
        """
        try:
            identity = self.normalize(raw_url)
        except InvalidSiteUrlError:
            return Outcome.rejected(ReasonCode.INVALID_SITE_URL)

        async with self.locks.hold(license.id):
            existing = await self.repository.find_active_by_site(license.id, identity)
            if existing is None:
                return Outcome.not_found()
            released = await self.repository.save(existing.deactivate())
        return Outcome.success(OutcomeKind.DEACTIVATED, released)

    async def heartbeat(
        self,
        license: License,
        raw_url: str,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> Outcome:
        """
        Record a client check-in without touching the slot count.

        Args:
            license: License entity
            raw_url: Site URL as sent by the client
            metadata: Optional client metadata

        Returns:
            Outcome REACTIVATED with the Activation as payload, or NOT_FOUND
        """
        try:
            identity = self.normalize(raw_url)
        except InvalidSiteUrlError:
            return Outcome.rejected(ReasonCode.INVALID_SITE_URL)

        async with self.locks.hold(license.id):
            existing = await self.repository.find_active_by_site(license.id, identity)
            if existing is None:
                return Outcome.not_found()
            touched = await self.repository.save(existing.touch(metadata))
        return Outcome.success(OutcomeKind.REACTIVATED, touched)

    async def deactivate_all(self, license: License) -> List[Activation]:
        """
        Deactivate every active activation of a license.

        Args:
            license: License entity

        Returns:
            The deactivated activations
        """
        released: List[Activation] = []
        async with self.locks.hold(license.id):
            for activation in await self.repository.find_active_by_license(license.id):
                released.append(await self.repository.save(activation.deactivate()))
        return released
