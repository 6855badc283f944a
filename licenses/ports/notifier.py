"""
Notifier port (interface).

Notifications are best-effort: implementations report failures through
``NotificationResult`` instead of raising.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class NotificationResult:
    """Outcome of a notification attempt."""

    success: bool
    message_id: Optional[str] = None
    error: Optional[str] = None

    @classmethod
    def sent(cls, message_id: Optional[str] = None) -> "NotificationResult":
        return cls(success=True, message_id=message_id)

    @classmethod
    def failed(cls, error: str) -> "NotificationResult":
        return cls(success=False, error=error)


class Notifier(ABC):
    """Abstract notifier for license owners."""

    @abstractmethod
    async def send_license_code(self, email: str, code: str) -> NotificationResult:
        """
        Deliver a newly issued license code.

        Args:
            email: Recipient
            code: Unmasked license code

        Returns:
            NotificationResult
        """
        pass

    @abstractmethod
    async def send_security_warning(self, email: str, ip: str) -> NotificationResult:
        """Warn the owner about access from a new IP."""
        pass

    @abstractmethod
    async def send_account_lock(self, email: str, reason: str) -> NotificationResult:
        """Tell the owner their license has been locked."""
        pass

    @abstractmethod
    async def send_expiration_reminder(
        self, email: str, code: str, expires_at: datetime, days_left: int
    ) -> NotificationResult:
        """
        Remind the owner of an upcoming expiration.

        Args:
            email: Recipient
            code: License code (implementations should mask it)
            expires_at: Expiration datetime
            days_left: Whole days remaining

        Returns:
            NotificationResult
        """
        pass
