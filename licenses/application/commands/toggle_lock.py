"""
ToggleLockCommand.

Command to manually lock or unlock a license.
"""
import uuid
from dataclasses import dataclass


@dataclass
class ToggleLockCommand:
    """Command to set the lock flag of a license."""

    license_id: uuid.UUID
    locked: bool
