"""
TransferLicenseCommand.

Command to reassign a license to another customer.
"""
import uuid
from dataclasses import dataclass


@dataclass
class TransferLicenseCommand:
    """
    Command to transfer a license.

    With ``deactivate_sites`` every active activation is released as
    part of the transfer.
    """

    license_id: uuid.UUID
    customer_email: str
    customer_name: str = ""
    deactivate_sites: bool = False
    send_email: bool = True
    actor: str = "admin"
