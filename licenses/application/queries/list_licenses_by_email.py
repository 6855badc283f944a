"""
ListLicensesByEmailQuery.

Query to list the licenses of an owner.
"""
from dataclasses import dataclass


@dataclass
class ListLicensesByEmailQuery:
    """Query to list licenses by owner email. Codes are returned masked."""

    email: str
