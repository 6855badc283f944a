"""
IssueLicenseCommand.

Command to issue a new license code to an owner.
"""
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional


@dataclass
class IssueLicenseCommand:
    """
    Command to issue a license code.

    The code is generated, persisted and emailed to the owner; if the email
    cannot be delivered nothing is kept.
    """

    email: str
    purchase_amount: Decimal
    remark: str = ""
    expires_at: Optional[datetime] = None  # None issues a perpetual license
