"""
Activation repository port (interface).

This defines the contract for activation persistence operations.
Implementations are in the infrastructure layer.
"""
from abc import ABC, abstractmethod
from typing import List, Optional
import uuid

from activations.domain.activation import Activation
from core.domain.value_objects import SiteIdentity


class ActivationRepository(ABC):
    """
    Abstract repository for Activation entities.

    This is a port in hexagonal architecture - it defines
    what operations are available, not how they're implemented.
    At most one active activation may exist per (license, site identity).
    """

    @abstractmethod
    async def save(self, activation: Activation) -> Activation:
        """
        Update an existing activation entity.

        Args:
            activation: Activation entity to save

        Returns:
            Saved activation entity
        """
        pass

    @abstractmethod
    async def create_if_capacity(
        self, activation: Activation, max_activations: int
    ) -> Optional[Activation]:
        """
        Insert an activation unless the license is at its quota.

        The count and the insert happen atomically with respect to other
        callers of this method for the same license.

        Args:
            activation: New active activation
            max_activations: License quota

        Returns:
            Inserted activation, or None if the quota is exhausted

        Raises:
            ActivationConflictError: If the site already holds an active activation
        """
        pass

    @abstractmethod
    async def find_by_id(
        self, activation_id: uuid.UUID
    ) -> Optional[Activation]:
        """
        Find an activation by ID.

        Args:
            activation_id: Activation UUID

        Returns:
            Activation entity or None if not found
        """
        pass

    @abstractmethod
    async def find_active_by_site(
        self, license_id: uuid.UUID, site_identity: SiteIdentity
    ) -> Optional[Activation]:
        """
        Find the active activation of a site.

        Args:
            license_id: License UUID
            site_identity: Normalized site URL

        Returns:
            Activation entity or None if the site holds no slot
        """
        pass

    @abstractmethod
    async def find_active_by_license(
        self, license_id: uuid.UUID
    ) -> List[Activation]:
        """
        Find all active activations for a license, oldest first.

        Args:
            license_id: License UUID

        Returns:
            List of active Activation entities
        """
        pass

    @abstractmethod
    async def find_all_by_license(
        self, license_id: uuid.UUID
    ) -> List[Activation]:
        """
        Find every activation of a license, including deactivated ones.

        Args:
            license_id: License UUID

        Returns:
            List of Activation entities, newest first
        """
        pass

    @abstractmethod
    async def count_active_by_license(self, license_id: uuid.UUID) -> int:
        """
        Count active activations for a license.

        Args:
            license_id: License UUID

        Returns:
            Number of active activations
        """
        pass
