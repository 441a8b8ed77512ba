"""
DeactivateSiteCommand.

Command to release the activation held by a site.
"""
from dataclasses import dataclass
from typing import Optional


@dataclass
class DeactivateSiteCommand:
    """Command to deactivate a license on a site."""

    license_key: str
    site_url: str
    ip_address: Optional[str] = None
    user_agent: str = ""
