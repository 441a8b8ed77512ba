"""
License domain services.

Domain services contain business logic that doesn't naturally
fit within a single entity.
"""
from datetime import datetime
from typing import Optional

from core.domain.value_objects import LicenseStatus, ReasonCode
from licenses.domain.license import License


class LicenseValidator:
    """Domain service deciding whether a license may serve a client request."""

    @staticmethod
    def status_rejection(license: License, current_time: datetime) -> Optional[ReasonCode]:
        """
        Check the license status with lazy expiry applied.

        Args:
            license: License entity
            current_time: Current time

        Returns:
            Rejection reason, or None if the license is active
        """
        status = license.effective_status(current_time)
        if status == LicenseStatus.ACTIVE:
            return None
        return ReasonCode.for_status(status)

    @staticmethod
    def admission_rejection(
        license: License,
        product_slug: Optional[str],
        current_time: datetime,
    ) -> Optional[ReasonCode]:
        """
        Check status and product scope for validate/activate.

        Args:
            license: License entity
            product_slug: Product the request is for
            current_time: Current time

        Returns:
            Rejection reason, or None if the request may proceed
        """
        reason = LicenseValidator.status_rejection(license, current_time)
        if reason is not None:
            return reason
        if not license.authorizes_product(product_slug):
            return ReasonCode.PRODUCT_NOT_LICENSED
        return None
