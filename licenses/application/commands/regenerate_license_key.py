"""
RegenerateLicenseKeyCommand.

Command to issue a new key for an existing license.
"""
import uuid
from dataclasses import dataclass


@dataclass
class RegenerateLicenseKeyCommand:
    """Command to regenerate a license key."""

    license_id: uuid.UUID
    send_email: bool = True
    actor: str = "admin"
