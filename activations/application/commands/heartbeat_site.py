"""
HeartbeatSiteCommand.

Periodic check-in from an activated site.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, Optional


@dataclass
class HeartbeatSiteCommand:
    """Command recording a site check-in."""

    license_key: str
    site_url: str
    site_metadata: Dict[str, Any] = field(default_factory=dict)
    ip_address: Optional[str] = None
    user_agent: str = ""
