"""
License repository port (interface).

This defines the contract for license persistence operations.
Implementations are in the infrastructure layer.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple
import uuid

from core.domain.value_objects import LicenseStatus, LicenseTier
from licenses.domain.license import License


@dataclass(frozen=True)
class LicenseFilters:
    """Filters for listing licenses."""

    status: Optional[LicenseStatus] = None
    tier: Optional[LicenseTier] = None
    search: Optional[str] = None


class LicenseRepository(ABC):
    """
    Abstract repository for License entities.

    This is a port in hexagonal architecture - it defines
    what operations are available, not how they're implemented.
    Lookups by key always go through the fingerprint.
    Adapters raise StoreUnavailableError when the backing store fails.
    """

    @abstractmethod
    async def save(self, license: License) -> License:
        """
        Insert or update a license entity.

        Args:
            license: License entity to save

        Returns:
            Saved license entity

        Raises:
            DuplicateKeyFingerprintError: If another license owns the fingerprint
        """
        pass

    @abstractmethod
    async def find_by_id(self, license_id: uuid.UUID) -> Optional[License]:
        """
        Find a license by ID.

        Args:
            license_id: License UUID

        Returns:
            License entity or None if not found
        """
        pass

    @abstractmethod
    async def find_by_fingerprint(self, key_fingerprint: str) -> Optional[License]:
        """
        Find a license by key fingerprint.

        Args:
            key_fingerprint: SHA-256 hex digest of the key

        Returns:
            License entity or None if not found
        """
        pass

    @abstractmethod
    async def find_by_customer_email(self, email: str) -> List[License]:
        """
        Find all licenses owned by a customer.

        Args:
            email: Customer email (case-insensitive)

        Returns:
            List of License entities, newest first
        """
        pass

    @abstractmethod
    async def list(
        self,
        filters: LicenseFilters,
        page: int = 1,
        per_page: int = 20,
    ) -> Tuple[List[License], int]:
        """
        List licenses, newest first.

        Args:
            filters: Listing filters
            page: 1-based page number
            per_page: Page size

        Returns:
            Tuple of (licenses on the page, total matching)
        """
        pass

    @abstractmethod
    async def transition_status(
        self,
        license_id: uuid.UUID,
        from_statuses: Iterable[LicenseStatus],
        to_status: LicenseStatus,
    ) -> Optional[License]:
        """
        Atomically move a license to ``to_status`` if it is in ``from_statuses``.

        Args:
            license_id: License UUID
            from_statuses: Statuses the transition is allowed from
            to_status: Target status

        Returns:
            Updated license, or None if the license was not in an allowed status
        """
        pass

    @abstractmethod
    async def delete(self, license_id: uuid.UUID) -> bool:
        """
        Delete a license and its activations.

        Args:
            license_id: License UUID

        Returns:
            True if a license was deleted
        """
        pass

    @abstractmethod
    async def count_by_status(self) -> Dict[LicenseStatus, int]:
        """
        Count licenses per status.

        Returns:
            Mapping of every status to its count
        """
        pass
