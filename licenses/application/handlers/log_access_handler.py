"""
LogAccessHandler.

Records page accesses of a client that has already passed verification.
"""
import logging
from datetime import datetime
from typing import Callable, Optional

from django.utils import timezone

from licenses.application.commands.log_access import LogAccessCommand
from licenses.application.dto.license_dto import LogAccessResultDTO
from licenses.domain.access_log import AccessLog
from licenses.ports.access_log_repository import AccessLogRepository
from licenses.ports.license_repository import LicenseRepository

logger = logging.getLogger(__name__)


class LogAccessHandler:
    """Handler for LogAccessCommand."""

    def __init__(
        self,
        license_repository: LicenseRepository,
        access_log_repository: AccessLogRepository,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.license_repository = license_repository
        self.access_log_repository = access_log_repository
        self.clock = clock or timezone.now

    async def handle(self, command: LogAccessCommand) -> LogAccessResultDTO:
        """
        Handle log access command.

        The entry is always recorded as not risky; risk is only assessed
        during verification.

        Args:
            command: LogAccessCommand

        Returns:
            LogAccessResultDTO
        """
        if not command.email or not command.code or not command.ip:
            return LogAccessResultDTO(success=False, message="Invalid license code")

        license = await self.license_repository.find_by_email_and_code(
            command.email, command.code
        )
        if license is None:
            return LogAccessResultDTO(success=False, message="Invalid license code")

        await self.access_log_repository.create(
            AccessLog.create(
                license_id=license.id,
                email=command.email,
                ip=command.ip,
                is_risky=False,
                accessed_at=self.clock(),
            )
        )
        logger.info(
            "Access logged for page %s",
            command.page_path or "unspecified",
            extra={"license_id": str(license.id), "ip": command.ip},
        )
        return LogAccessResultDTO(success=True, message="Access logged")
