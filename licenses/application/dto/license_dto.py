"""
License DTOs returned by the application layer.
"""
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from licenses.domain.license import License


@dataclass
class LicenseDTO:
    """DTO for license information."""

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

    @classmethod
    def from_entity(cls, license: License) -> "LicenseDTO":
        return cls(
            id=license.id,
            code=license.code,
            email=license.email,
            purchase_amount=license.purchase_amount,
            remark=license.remark,
            is_used=license.is_used,
            locked=license.locked,
            is_expired=license.is_expired,
            expires_at=license.expires_at,
            last_ip=license.last_ip,
            warning_count=license.warning_count,
            created_at=license.created_at,
            updated_at=license.updated_at,
        )


@dataclass
class IssueLicenseResultDTO:
    """DTO for an issued license."""

    license_id: uuid.UUID
    code: str
    message_id: Optional[str]
    expires_at: Optional[datetime]


@dataclass
class VerificationResultDTO:
    """
    DTO for a verification outcome.

    Every denial has the same shape; only the message text differs.
    """

    authorized: bool
    is_risky: bool
    message: str
    warning: Optional[str] = None

    @classmethod
    def denied(
        cls, message: str, is_risky: bool = False, warning: Optional[str] = None
    ) -> "VerificationResultDTO":
        return cls(authorized=False, is_risky=is_risky, message=message, warning=warning)


@dataclass
class LogAccessResultDTO:
    """DTO for a recorded access."""

    success: bool
    message: str


@dataclass
class InspectDetailsDTO:
    """License flags reported by an administrative inspection."""

    is_used: bool
    locked: bool
    expired: bool
    expires_at: Optional[datetime]


@dataclass
class InspectResultDTO:
    """DTO for an administrative inspection."""

    valid: bool
    message: str
    details: Optional[InspectDetailsDTO] = None


@dataclass
class LicenseStatsDTO:
    """Access statistics and risk classification of a license."""

    total_accesses: int
    common_ips: List[str]
    recent_risky_accesses: int
    last_access_time: Optional[datetime]
    risk_level: str
    is_risky: bool


@dataclass
class LicenseDetailsDTO:
    """DTO for license details."""

    license: LicenseDTO
    stats: LicenseStatsDTO


@dataclass
class ToggleLockResultDTO:
    """DTO for a lock state change."""

    license_id: uuid.UUID
    locked: bool


@dataclass
class ExpirySweepResultDTO:
    """DTO for an expiry sweep."""

    count: int
    dry_run: bool = False


@dataclass
class ReminderSummaryDTO:
    """DTO summarizing a reminder run."""

    total: int = 0
    sent: int = 0
    failed: int = 0
    skipped: int = 0
    errors: List[str] = field(default_factory=list)
