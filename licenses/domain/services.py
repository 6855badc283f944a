"""
License domain services.

Domain services contain business logic that doesn't naturally
fit within a single entity.
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Awaitable, Callable, List, Optional, Set

from core.domain.exceptions import LicenseCodeExhaustedError
from core.domain.value_objects import RiskLevel
from licenses.domain.access_log import AccessStats
from licenses.domain.license import License
from licenses.domain.license_code import (
    DEFAULT_LICENSE_CODE_CONFIG,
    LicenseCodeConfig,
    generate_license_code,
)

logger = logging.getLogger(__name__)

# Returns True when the code is already taken.
CodeExistsCheck = Callable[[str], Awaitable[bool]]


class LicenseCodeAllocator:
    """
    Domain service producing codes that are unique against a store.

    Uniqueness is only guaranteed at allocation time; the store's unique
    constraint remains the final arbiter.
    """

    def __init__(self, config: Optional[LicenseCodeConfig] = None):
        self.config = config or DEFAULT_LICENSE_CODE_CONFIG

    async def allocate_one(self, exists: CodeExistsCheck) -> str:
        """
        Allocate a single unique code.

        Args:
            exists: Async predicate returning True if a code is already taken

        Returns:
            A code for which ``exists`` reported False

        Raises:
            LicenseCodeExhaustedError: If ``max_attempts`` candidates were all taken
        """
        for attempt in range(1, self.config.max_attempts + 1):
            candidate = generate_license_code(self.config)
            if not await exists(candidate):
                return candidate
            logger.debug("License code collision on attempt %s", attempt)

        logger.warning(
            "License code allocation exhausted",
            extra={"max_attempts": self.config.max_attempts},
        )
        raise LicenseCodeExhaustedError()

    async def allocate_many(self, count: int, exists: CodeExistsCheck) -> List[str]:
        """
        Allocate ``count`` pairwise distinct unique codes.

        Candidates already produced in this batch are rejected before
        ``exists`` is consulted; such a rejection still consumes an attempt.

        Args:
            count: Number of codes to allocate
            exists: Async predicate returning True if a code is already taken

        Returns:
            List of codes (empty if ``count`` <= 0)

        Raises:
            LicenseCodeExhaustedError: Carrying the 1-based index of the code
                that could not be allocated
        """
        if count <= 0:
            return []

        codes: List[str] = []
        seen: Set[str] = set()

        for i in range(count):
            allocated = None
            for _ in range(self.config.max_attempts):
                candidate = generate_license_code(self.config)
                if candidate in seen:
                    continue
                if not await exists(candidate):
                    allocated = candidate
                    break

            if allocated is None:
                logger.warning(
                    "License code batch allocation exhausted",
                    extra={"index": i + 1, "count": count},
                )
                raise LicenseCodeExhaustedError(
                    f"Unable to generate unique license code #{i + 1}, please retry later",
                    index=i + 1,
                )

            codes.append(allocated)
            seen.add(allocated)

        return codes


@dataclass(frozen=True)
class RiskPolicy:
    """Thresholds driving warnings and automatic locks."""

    warning_threshold: int = 3
    lock_threshold: int = 5
    window: timedelta = timedelta(hours=24)

    def __post_init__(self):
        if self.warning_threshold < 0:
            raise ValueError("Warning threshold cannot be negative")
        if self.lock_threshold < 1:
            raise ValueError("Lock threshold must be positive")

    def is_risky(self, last_ip: Optional[str], ip: str, recent_risky_count: int) -> bool:
        """
        Decide whether an attempt from ``ip`` is risky.

        The first observed IP and a repeat of the last IP are never risky. An
        IP change is risky only once the recent risky history has reached
        the warning threshold.
        """
        if not last_ip or ip == last_ip:
            return False
        return recent_risky_count >= self.warning_threshold

    def window_start(self, now: datetime) -> datetime:
        return now - self.window


DEFAULT_RISK_POLICY = RiskPolicy()


class RiskClassifier:
    """Read-only risk classification used for reporting."""

    HIGH_THRESHOLD = 5
    MEDIUM_THRESHOLD = 3
    COMMON_IPS_THRESHOLD = 3

    @classmethod
    def classify(cls, license: License, stats: AccessStats) -> RiskLevel:
        """
        Classify a license's risk level.

        Args:
            license: License entity
            stats: Aggregated access history

        Returns:
            RiskLevel
        """
        if license.locked:
            return RiskLevel.HIGH

        warnings = license.warning_count
        risky = stats.recent_risky_accesses

        if warnings >= cls.HIGH_THRESHOLD or risky >= cls.HIGH_THRESHOLD:
            return RiskLevel.HIGH
        if (
            warnings >= cls.MEDIUM_THRESHOLD
            or risky >= cls.MEDIUM_THRESHOLD
            or len(stats.common_ips) >= cls.COMMON_IPS_THRESHOLD
        ):
            return RiskLevel.MEDIUM
        if warnings >= 1 or risky >= 1:
            return RiskLevel.LOW
        return RiskLevel.SAFE


@dataclass(frozen=True)
class RemainingTime:
    """Time left until an expiration, in whole units."""

    days: int
    hours: int
    minutes: int
    is_expired: bool

    @classmethod
    def between(cls, now: datetime, expires_at: datetime) -> "RemainingTime":
        """
        Compute the remaining time from ``now`` until ``expires_at``.

        Returns zeros with ``is_expired`` set when ``expires_at`` is not in
        the future.
        """
        delta = expires_at - now
        if delta <= timedelta(0):
            return cls(days=0, hours=0, minutes=0, is_expired=True)

        total_minutes = int(delta.total_seconds() // 60)
        days, remainder = divmod(total_minutes, 24 * 60)
        hours, minutes = divmod(remainder, 60)
        return cls(days=days, hours=hours, minutes=minutes, is_expired=False)

    def __str__(self) -> str:
        if self.is_expired:
            return "expired"
        return f"{self.days} days {self.hours} hours {self.minutes} minutes"
