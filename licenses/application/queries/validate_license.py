"""
ValidateLicenseQuery.

Client query checking that a key is usable for a product on a site.
"""
from dataclasses import dataclass
from typing import Optional


@dataclass
class ValidateLicenseQuery:
    """Query to validate a license key."""

    license_key: str
    product_slug: Optional[str] = None
    site_url: Optional[str] = None
    ip_address: Optional[str] = None
    user_agent: str = ""
