"""
In-memory implementation of ActivationRepository port.

Used to run the allocator and lifecycle engine without a database.
"""

import uuid
from typing import Dict, List, Optional

from activations.domain.activation import Activation
from activations.ports.activation_repository import ActivationRepository
from core.domain.exceptions import ActivationConflictError
from core.domain.value_objects import SiteIdentity


class InMemoryActivationRepository(ActivationRepository):
    """Dict-backed ActivationRepository."""

    def __init__(self):
        """Initialize the store."""
        self._activations: Dict[uuid.UUID, Activation] = {}

    def _active(self, license_id: uuid.UUID) -> List[Activation]:
        return [
            activation
            for activation in self._activations.values()
            if activation.license_id == license_id and activation.is_active
        ]

    async def save(self, activation: Activation) -> Activation:
        self._activations[activation.id] = activation
        return activation

    async def create_if_capacity(
        self, activation: Activation, max_activations: int
    ) -> Optional[Activation]:
        active = self._active(activation.license_id)
        if any(existing.site_identity == activation.site_identity for existing in active):
            raise ActivationConflictError()
        if len(active) >= max_activations:
            return None
        self._activations[activation.id] = activation
        return activation

    async def find_by_id(self, activation_id: uuid.UUID) -> Optional[Activation]:
        return self._activations.get(activation_id)

    async def find_active_by_site(
        self, license_id: uuid.UUID, site_identity: SiteIdentity
    ) -> Optional[Activation]:
        for activation in self._active(license_id):
            if activation.site_identity == site_identity:
                return activation
        return None

    async def find_active_by_license(self, license_id: uuid.UUID) -> List[Activation]:
        return sorted(self._active(license_id), key=lambda activation: activation.activated_at)

    async def find_all_by_license(self, license_id: uuid.UUID) -> List[Activation]:
        matches = [
            activation
            for activation in self._activations.values()
            if activation.license_id == license_id
        ]
        return sorted(matches, key=lambda activation: activation.activated_at, reverse=True)

    async def count_active_by_license(self, license_id: uuid.UUID) -> int:
        return len(self._active(license_id))
