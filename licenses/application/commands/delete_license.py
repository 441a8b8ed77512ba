"""
DeleteLicenseCommand.

Command to delete a license and its activations.
"""
import uuid
from dataclasses import dataclass


@dataclass
class DeleteLicenseCommand:
    """Command to delete a license."""

    license_id: uuid.UUID
    actor: str = "admin"
