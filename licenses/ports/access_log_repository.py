"""
AccessLog repository port (interface).

Access logs are append-only: there are no update or delete operations.
"""
from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional
import uuid

from licenses.domain.access_log import AccessLog


class AccessLogRepository(ABC):
    """Abstract repository for AccessLog entities."""

    @abstractmethod
    async def create(self, access_log: AccessLog) -> AccessLog:
        """
        Append an access log entry.

        Args:
            access_log: AccessLog entity to persist

        Returns:
            Persisted AccessLog entity
        """
        pass

    @abstractmethod
    async def count_risky_since(self, license_id: uuid.UUID, since: datetime) -> int:
        """Count risky entries of a license accessed at or after ``since``."""
        pass

    @abstractmethod
    async def count_for_license(self, license_id: uuid.UUID) -> int:
        """Count all entries of a license."""
        pass

    @abstractmethod
    async def find_common_ips(self, license_id: uuid.UUID, limit: int = 3) -> List[str]:
        """
        Find the most frequent IPs of a license.

        Args:
            license_id: License UUID
            limit: Maximum number of IPs

        Returns:
            IPs ordered by access count, most frequent first
        """
        pass

    @abstractmethod
    async def find_last_access_time(self, license_id: uuid.UUID) -> Optional[datetime]:
        """Return the most recent ``accessed_at`` of a license, if any."""
        pass
