"""
CreateLicenseCommand.

Command to issue a new license to a customer.
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from core.domain.value_objects import LicenseTier


@dataclass
class CreateLicenseCommand:
    """
    Command to issue a license.

    ``max_activations`` falls back to the tier's quota when omitted.
    An empty ``product_scope`` authorizes every product.
    """

    customer_email: str
    customer_name: str = ""
    tier: LicenseTier = LicenseTier.FREE
    product_scope: List[str] = field(default_factory=list)
    max_activations: Optional[int] = None
    expires_at: Optional[datetime] = None
    send_email: bool = True
    actor: str = "admin"
