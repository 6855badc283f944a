"""
License domain entity.

This is the core domain entity representing an issued license code.
It contains business logic and is independent of infrastructure.
"""
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional


@dataclass(frozen=True)
class License:
    """
    License domain entity.

    Represents an issued access credential identified by a formatted code.
    Lock and expiry are independent terminal flags: either one denies
    authorization.
    """

    id: uuid.UUID
    code: str
    email: str
    purchase_amount: Decimal
    remark: str
    is_used: bool
    locked: bool
    is_expired: bool
    expires_at: Optional[datetime]
    last_ip: Optional[str]
    warning_count: int
    created_at: datetime
    updated_at: datetime

    def __post_init__(self):
        """Validate license entity."""
        if not self.code or len(self.code.strip()) == 0:
            raise ValueError("License code cannot be empty")
        if not self.email:
            raise ValueError("License email is required")
        if self.warning_count < 0:
            raise ValueError("Warning count cannot be negative")

    @classmethod
    def create(
        cls,
        code: str,
        email: str,
        purchase_amount: Decimal = Decimal("0"),
        remark: str = "",
        expires_at: Optional[datetime] = None,
        license_id: Optional[uuid.UUID] = None,
    ) -> "License":
        """
        Create a new, unused License entity.

        Args:
            code: Formatted license code
            email: Owner email address
            purchase_amount: Amount paid for the license
            remark: Free-form administrative note
            expires_at: Optional expiration datetime (None means perpetual)
            license_id: Optional UUID (generated if not provided)

        Returns:
            License entity instance
        """
        now = datetime.now(timezone.utc)
        return cls(
            id=license_id or uuid.uuid4(),
            code=code,
            email=email,
            purchase_amount=Decimal(purchase_amount),
            remark=remark or "",
            is_used=False,
            locked=False,
            is_expired=False,
            expires_at=expires_at,
            last_ip=None,
            warning_count=0,
            created_at=now,
            updated_at=now,
        )

    @property
    def is_perpetual(self) -> bool:
        return self.expires_at is None

    def has_lapsed(self, current_time: Optional[datetime] = None) -> bool:
        """
        Check whether the expiration time has passed.

        This only looks at ``expires_at``; the cached ``is_expired`` flag is
        checked separately.

        Args:
            current_time: Current time (defaults to now, UTC)

        Returns:
            True if the license has an expiration time in the past
        """
        if self.is_perpetual:
            return False
        check_time = current_time or datetime.now(timezone.utc)
        return check_time > self.expires_at

    def is_expired_at(self, current_time: Optional[datetime] = None) -> bool:
        """Return True if the license is expired by flag or by time."""
        return self.is_expired or self.has_lapsed(current_time)

    def is_valid(self, current_time: Optional[datetime] = None) -> bool:
        """
        Check if license can currently authorize access.

        Args:
            current_time: Current time (defaults to now, UTC)

        Returns:
            True if license is neither locked nor expired
        """
        return not self.locked and not self.is_expired_at(current_time)
