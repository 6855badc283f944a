"""
UpdateLicenseCommand.

Command to change administrative fields of a license.
"""
import uuid
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Optional


@dataclass
class UpdateLicenseCommand:
    """
    Command to update a license.

    Fields left as None are not changed. Lock, usage, expiry flags and the
    code itself cannot be changed here.
    """

    license_id: uuid.UUID
    email: Optional[str] = None
    remark: Optional[str] = None
    purchase_amount: Optional[Decimal] = None
    expires_at: Optional[datetime] = None

    def changes(self) -> Dict[str, Any]:
        """Return the fields that were provided."""
        fields = {
            "email": self.email,
            "remark": self.remark,
            "purchase_amount": self.purchase_amount,
            "expires_at": self.expires_at,
        }
        return {name: value for name, value in fields.items() if value is not None}
