"""
RenewLicenseCommand.

Command to renew a license with a new expiration date.
"""
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass
class RenewLicenseCommand:
    """Command to renew a license. ``expires_at=None`` makes it perpetual."""

    license_id: uuid.UUID
    expires_at: Optional[datetime]
    actor: str = "admin"
