"""
GetLicenseHandler.

Handler for the operator license detail query.
"""
from activations.ports.activation_repository import ActivationRepository
from core.domain.exceptions import LicenseNotFoundError
from licenses.application.dto.license_dto import LicenseDTO
from licenses.application.queries.get_license import GetLicenseQuery
from licenses.ports.license_repository import LicenseRepository


class GetLicenseHandler:
    """Handler for GetLicenseQuery."""

    def __init__(
        self,
        license_repository: LicenseRepository,
        activation_repository: ActivationRepository,
    ):
        """Initialize handler with repositories."""
        self.license_repository = license_repository
        self.activation_repository = activation_repository

    async def handle(self, query: GetLicenseQuery) -> LicenseDTO:
        """
        Handle get license query.

        Args:
            query: GetLicenseQuery

        Returns:
            LicenseDTO with the active sites

        Raises:
            LicenseNotFoundError: If license not found
        """
        license = await self.license_repository.find_by_id(query.license_id)
        if not license:
            raise LicenseNotFoundError(f"License {query.license_id} not found")

        active_sites = await self.activation_repository.find_active_by_license(license.id)
        return LicenseDTO.from_entity(license, active_sites)
