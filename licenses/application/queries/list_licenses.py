"""
ListLicensesQuery.

Operator query listing licenses.
"""
from dataclasses import dataclass
from typing import Optional

from core.domain.value_objects import LicenseStatus, LicenseTier


@dataclass
class ListLicensesQuery:
    """
    Query to list licenses, newest first.

    ``customer_email`` returns every license of that customer and
    ignores the other filters.
    """

    status: Optional[LicenseStatus] = None
    tier: Optional[LicenseTier] = None
    search: Optional[str] = None
    customer_email: Optional[str] = None
    page: int = 1
    per_page: int = 20
