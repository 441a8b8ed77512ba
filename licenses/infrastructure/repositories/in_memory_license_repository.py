"""
In-memory implementation of LicenseRepository port.

Used to run the lifecycle engine without a database (tests, local
tooling). Not shared across processes.
"""
import uuid
from dataclasses import replace
from typing import Dict, Iterable, List, Optional, Tuple

from core.domain.clock import utcnow
from core.domain.exceptions import DuplicateKeyFingerprintError
from core.domain.value_objects import LicenseStatus
from licenses.domain.license import License
from licenses.ports.license_repository import LicenseFilters, LicenseRepository


class InMemoryLicenseRepository(LicenseRepository):
    """Dict-backed LicenseRepository."""

    def __init__(self):
        """Initialize the store."""
        self._licenses: Dict[uuid.UUID, License] = {}

    async def save(self, license: License) -> License:
        for other in self._licenses.values():
            if other.id != license.id and other.key_fingerprint == license.key_fingerprint:
                raise DuplicateKeyFingerprintError()
        stored = replace(license, key_plaintext=None)
        self._licenses[license.id] = stored
        return stored

    async def find_by_id(self, license_id: uuid.UUID) -> Optional[License]:
        return self._licenses.get(license_id)

    async def find_by_fingerprint(self, key_fingerprint: str) -> Optional[License]:
        for license in self._licenses.values():
            if license.key_fingerprint == key_fingerprint:
                return license
        return None

    async def find_by_customer_email(self, email: str) -> List[License]:
        matches = [
            license
            for license in self._licenses.values()
            if str(license.customer_email).lower() == email.lower()
        ]
        return sorted(matches, key=lambda license: license.created_at, reverse=True)

    async def list(
        self,
        filters: LicenseFilters,
        page: int = 1,
        per_page: int = 20,
    ) -> Tuple[List[License], int]:
        matches = list(self._licenses.values())
        if filters.status:
            matches = [license for license in matches if license.status == filters.status]
        if filters.tier:
            matches = [license for license in matches if license.tier == filters.tier]
        if filters.search:
            needle = filters.search.lower()
            matches = [
                license
                for license in matches
                if needle in str(license.customer_email).lower()
                or needle in license.customer_name.lower()
                or needle in license.key_hint.lower()
            ]
        matches.sort(key=lambda license: license.created_at, reverse=True)
        offset = (max(page, 1) - 1) * per_page
        return matches[offset : offset + per_page], len(matches)

    async def transition_status(
        self,
        license_id: uuid.UUID,
        from_statuses: Iterable[LicenseStatus],
        to_status: LicenseStatus,
    ) -> Optional[License]:
        license = self._licenses.get(license_id)
        if license is None or license.status not in set(from_statuses):
            return None
        updated = replace(license, status=to_status, updated_at=utcnow())
        self._licenses[license_id] = updated
        return updated

    async def delete(self, license_id: uuid.UUID) -> bool:
        return self._licenses.pop(license_id, None) is not None

    async def count_by_status(self) -> Dict[LicenseStatus, int]:
        counts = {status: 0 for status in LicenseStatus}
        for license in self._licenses.values():
            counts[license.status] += 1
        return counts
