"""
InspectLicenseQuery.

Administrative read-only check of a license.
"""
import uuid
from dataclasses import dataclass
from typing import Optional


@dataclass
class InspectLicenseQuery:
    """
    Query to inspect a license by ID or by email and code.

    The ID takes precedence when both are given.
    """

    license_id: Optional[uuid.UUID] = None
    email: Optional[str] = None
    code: Optional[str] = None
