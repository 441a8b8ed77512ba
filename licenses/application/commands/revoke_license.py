"""
RevokeLicenseCommand.

Command to revoke a license.
"""
import uuid
from dataclasses import dataclass
from typing import Optional


@dataclass
class RevokeLicenseCommand:
    """Command to revoke a license."""

    license_id: uuid.UUID
    reason: Optional[str] = None
    actor: str = "admin"
