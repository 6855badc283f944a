"""
AccessLog domain entity.

An immutable record of one verification attempt against a license.
"""
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Optional


@dataclass(frozen=True)
class AccessLog:
    """Append-only access record owned by a License."""

    id: uuid.UUID
    license_id: uuid.UUID
    email: str
    ip: str
    is_risky: bool
    accessed_at: datetime

    def __post_init__(self):
        """Validate access log entity."""
        if not self.license_id:
            raise ValueError("License ID is required")
        if not self.ip:
            raise ValueError("IP address is required")

    @classmethod
    def create(
        cls,
        license_id: uuid.UUID,
        email: str,
        ip: str,
        is_risky: bool = False,
        accessed_at: Optional[datetime] = None,
    ) -> "AccessLog":
        """
        Create a new AccessLog entity.

        Args:
            license_id: Owning license UUID
            email: Email used for the attempt
            ip: Client IP address
            is_risky: Whether the attempt was classified as risky
            accessed_at: Attempt time (defaults to now, UTC)

        Returns:
            AccessLog entity instance
        """
        return cls(
            id=uuid.uuid4(),
            license_id=license_id,
            email=email,
            ip=ip,
            is_risky=is_risky,
            accessed_at=accessed_at or datetime.now(timezone.utc),
        )


@dataclass(frozen=True)
class AccessStats:
    """Aggregated access history of a license."""

    total_accesses: int = 0
    recent_risky_accesses: int = 0
    common_ips: List[str] = field(default_factory=list)
    last_access_time: Optional[datetime] = None


@dataclass(frozen=True)
class WarningUpdate:
    """Authoritative license state after an atomic warning increment."""

    warning_count: int
    locked: bool
    newly_locked: bool
