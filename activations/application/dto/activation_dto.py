"""
Activation DTOs for API responses.
"""
import uuid
from dataclasses import dataclass
from datetime import datetime

from licenses.application.dto.license_dto import LicenseSnapshotDTO


@dataclass
class ActivationResultDTO:
    """DTO for activate, deactivate and heartbeat responses."""

    activation_id: uuid.UUID
    site_identity: str
    activated_at: datetime
    last_checked_at: datetime
    license: LicenseSnapshotDTO
