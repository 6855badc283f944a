"""
License domain events.

Each event is published once its state change has been persisted.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from core.domain.events import DomainEvent


@dataclass(frozen=True)
class LicenseIssued(DomainEvent):
    """A license code was issued and delivered to its owner."""

    email: str
    expires_at: Optional[datetime] = None


@dataclass(frozen=True)
class RiskyAccessDetected(DomainEvent):
    """A verification attempt was classified as risky and a warning recorded."""

    ip: str
    warning_count: int


@dataclass(frozen=True)
class LicenseLocked(DomainEvent):
    """A license was locked, automatically or by an admin."""

    reason: str


@dataclass(frozen=True)
class LicenseUnlocked(DomainEvent):
    pass


@dataclass(frozen=True)
class LicenseExpired(DomainEvent):
    """Verification found a lapsed license and flagged it expired."""

    expires_at: datetime


@dataclass(frozen=True)
class LicenseDeleted(DomainEvent):
    pass
