"""
GetLicenseQuery.

Operator query for one license with its activations.
"""
import uuid
from dataclasses import dataclass


@dataclass
class GetLicenseQuery:
    """Query to get a license by ID."""

    license_id: uuid.UUID
