"""
ReactivateLicenseCommand.

Command to bring a suspended, revoked or expired license back to active.
"""
import uuid
from dataclasses import dataclass


@dataclass
class ReactivateLicenseCommand:
    """Command to reactivate a license."""

    license_id: uuid.UUID
    actor: str = "admin"
