"""
GetLicenseStatusQuery.

Client query for the current snapshot of a license.
"""
from dataclasses import dataclass
from typing import Optional


@dataclass
class GetLicenseStatusQuery:
    """Query to get license status for a license key."""

    license_key: str
    ip_address: Optional[str] = None
    user_agent: str = ""
