"""
ListLicensesHandler.

Handler for the operator license listing.
"""
from activations.ports.activation_repository import ActivationRepository
from licenses.application.dto.license_dto import LicenseDTO, LicensePageDTO
from licenses.application.queries.list_licenses import ListLicensesQuery
from licenses.ports.license_repository import LicenseFilters, LicenseRepository

MAX_PER_PAGE = 100


class ListLicensesHandler:
    """Handler for ListLicensesQuery."""

    def __init__(
        self,
        license_repository: LicenseRepository,
        activation_repository: ActivationRepository,
    ):
        """Initialize handler with repositories."""
        self.license_repository = license_repository
        self.activation_repository = activation_repository

    async def handle(self, query: ListLicensesQuery) -> LicensePageDTO:
        """
        Handle list licenses query.

        Args:
            query: ListLicensesQuery

        Returns:
            LicensePageDTO, newest first
        """
        page = max(query.page, 1)
        per_page = min(max(query.per_page, 1), MAX_PER_PAGE)

        if query.customer_email:
            licenses = await self.license_repository.find_by_customer_email(query.customer_email)
            total = len(licenses)
            offset = (page - 1) * per_page
            licenses = licenses[offset : offset + per_page]
        else:
            licenses, total = await self.license_repository.list(
                LicenseFilters(status=query.status, tier=query.tier, search=query.search),
                page=page,
                per_page=per_page,
            )

        items = []
        for license in licenses:
            used = await self.activation_repository.count_active_by_license(license.id)
            dto = LicenseDTO.from_entity(license)
            dto.activations_used = used
            items.append(dto)

        return LicensePageDTO(items=items, total=total, page=page, per_page=per_page)
