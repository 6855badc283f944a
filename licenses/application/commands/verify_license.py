"""
VerifyLicenseCommand.

Command to verify a license code presented by a client.
"""
from dataclasses import dataclass


@dataclass
class VerifyLicenseCommand:
    """Command to verify an (email, code) pair from a client IP."""

    email: str
    code: str
    ip: str
