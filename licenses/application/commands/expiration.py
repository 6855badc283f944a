"""
Expiration commands.

Commands driving the periodic expiry sweep and expiration reminders.
"""
from dataclasses import dataclass


@dataclass
class MarkExpiredLicensesCommand:
    """
    Command to flag every license past its expiration as expired.

    With ``dry_run`` the affected licenses are only counted.
    """

    dry_run: bool = False


@dataclass
class SendExpirationRemindersCommand:
    """Command to remind owners of licenses expiring within ``days_ahead`` days."""

    days_ahead: int = 7
