"""
License repository port (interface).

This defines the contract for license persistence operations.
Implementations are in the infrastructure layer.
"""
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Dict, List, Optional
import uuid

from licenses.domain.access_log import WarningUpdate
from licenses.domain.license import License


class LicenseRepository(ABC):
    """
    Abstract repository for License entities.

    This is a port in hexagonal architecture - it defines
    what operations are available, not how they're implemented.
    Implementations raise ``StoreError`` when the store fails.
    """

    @abstractmethod
    async def find_by_id(self, license_id: uuid.UUID) -> Optional[License]:
        """
        Find a license by ID.

        Args:
            license_id: License UUID

        Returns:
            License entity or None if not found
        """
        pass

    @abstractmethod
    async def find_by_code(self, code: str) -> Optional[License]:
        """Find a license by its formatted code."""
        pass

    @abstractmethod
    async def find_by_email_and_code(self, email: str, code: str) -> Optional[License]:
        """
        Find a license matching both owner email and code.

        Args:
            email: Owner email
            code: Formatted license code

        Returns:
            License entity or None if either does not match
        """
        pass

    @abstractmethod
    async def find_by_email(self, email: str) -> List[License]:
        """Find all licenses owned by an email, newest first."""
        pass

    @abstractmethod
    async def exists_by_code(self, code: str) -> bool:
        """Check if a code is already taken."""
        pass

    @abstractmethod
    async def create(self, license: License) -> License:
        """
        Persist a new license.

        Args:
            license: License entity to create

        Returns:
            Created license entity
        """
        pass

    @abstractmethod
    async def update(self, license_id: uuid.UUID, changes: Dict[str, Any]) -> Optional[License]:
        """
        Apply a partial update.

        Args:
            license_id: License UUID
            changes: Field names mapped to new values

        Returns:
            Updated license entity or None if not found
        """
        pass

    @abstractmethod
    async def delete(self, license_id: uuid.UUID) -> bool:
        """Delete a license and its access logs. Returns False if not found."""
        pass

    @abstractmethod
    async def mark_used(self, license_id: uuid.UUID) -> None:
        """Set ``is_used``; a no-op if already set."""
        pass

    @abstractmethod
    async def mark_expired(self, license_id: uuid.UUID) -> bool:
        """
        Set ``is_expired`` if it is not set yet.

        Returns:
            True if this call flipped the flag
        """
        pass

    @abstractmethod
    async def update_last_ip(self, license_id: uuid.UUID, ip: str) -> bool:
        """
        Record ``ip`` as last seen IP, only while the license is unlocked.

        Returns:
            False if the license is locked (or gone) and nothing was written
        """
        pass

    @abstractmethod
    async def record_warning(
        self, license_id: uuid.UUID, ip: str, lock_threshold: int
    ) -> WarningUpdate:
        """
        Atomically increment ``warning_count`` and set ``last_ip``.

        The lock threshold is evaluated against the post-increment value in
        the same transaction.

        Args:
            license_id: License UUID
            ip: IP of the risky attempt
            lock_threshold: Warning count at which the license is locked

        Returns:
            WarningUpdate with the authoritative post-increment state
        """
        pass

    @abstractmethod
    async def set_locked(self, license_id: uuid.UUID, locked: bool) -> Optional[License]:
        """Set the lock flag. Returns the updated license or None if not found."""
        pass

    @abstractmethod
    async def bulk_mark_expired(self, now: datetime) -> int:
        """
        Flip ``is_expired`` for every license past ``expires_at``.

        Args:
            now: Reference time

        Returns:
            Number of licenses affected
        """
        pass

    @abstractmethod
    async def count_past_expiry(self, now: datetime) -> int:
        """Count licenses a sweep at ``now`` would mark expired."""
        pass

    @abstractmethod
    async def find_expiring_between(self, start: datetime, end: datetime) -> List[License]:
        """Find unexpired, unlocked licenses with ``expires_at`` in ``[start, end]``."""
        pass
