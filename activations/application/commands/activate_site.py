"""
ActivateSiteCommand.

Command to activate a license on a customer site.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, Optional


@dataclass
class ActivateSiteCommand:
    """Command to activate a license for a site."""

    license_key: str
    site_url: str
    product_slug: Optional[str] = None
    site_name: str = ""
    site_metadata: Dict[str, Any] = field(default_factory=dict)
    ip_address: Optional[str] = None
    user_agent: str = ""
