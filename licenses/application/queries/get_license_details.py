"""
GetLicenseDetailsQuery.

Query for a license with its access statistics and risk level.
"""
import uuid
from dataclasses import dataclass


@dataclass
class GetLicenseDetailsQuery:
    """Query to get license details by ID."""

    license_id: uuid.UUID
