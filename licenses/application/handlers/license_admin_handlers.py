"""
License administration handlers.

Handlers for update, delete and manual lock/unlock commands.
"""
import logging
from datetime import datetime
from typing import Callable, Optional

from django.utils import timezone

from core.domain.exceptions import LicenseNotFoundError
from core.infrastructure.events import event_bus
from core.metrics import licenses_locked_total
from licenses.application.commands.delete_license import DeleteLicenseCommand
from licenses.application.commands.toggle_lock import ToggleLockCommand
from licenses.application.commands.update_license import UpdateLicenseCommand
from licenses.application.dto.license_dto import LicenseDTO, ToggleLockResultDTO
from licenses.application.handlers.issue_license_handler import (
    normalize_email,
    parse_amount,
    validate_future_expiration,
)
from licenses.domain.events import LicenseDeleted, LicenseLocked, LicenseUnlocked
from licenses.ports.license_repository import LicenseRepository

logger = logging.getLogger(__name__)

MANUAL_LOCK_REASON = "Locked by an administrator"


class UpdateLicenseHandler:
    """Handler for UpdateLicenseCommand."""

    def __init__(
        self,
        license_repository: LicenseRepository,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """Initialize handler with repository."""
        self.license_repository = license_repository
        self.clock = clock or timezone.now

    async def handle(self, command: UpdateLicenseCommand) -> LicenseDTO:
        """
        Handle update license command.

        Moving ``expires_at`` into the future never clears an already set
        ``is_expired`` flag.

        Args:
            command: UpdateLicenseCommand

        Returns:
            Updated LicenseDTO

        Raises:
            LicenseNotFoundError: If license not found
            InvalidLicenseInputError: If a new value is invalid
        """
        existing = await self.license_repository.find_by_id(command.license_id)
        if existing is None:
            raise LicenseNotFoundError(f"License {command.license_id} not found")

        changes = command.changes()
        if "email" in changes:
            changes["email"] = normalize_email(changes["email"])
        if "purchase_amount" in changes:
            changes["purchase_amount"] = parse_amount(changes["purchase_amount"])
        if "expires_at" in changes:
            validate_future_expiration(changes["expires_at"], self.clock())

        if not changes:
            return LicenseDTO.from_entity(existing)

        updated = await self.license_repository.update(existing.id, changes)
        if updated is None:
            raise LicenseNotFoundError(f"License {command.license_id} not found")

        logger.info(
            "License updated",
            extra={"license_id": str(updated.id), "fields": sorted(changes)},
        )
        return LicenseDTO.from_entity(updated)


class DeleteLicenseHandler:
    """Handler for DeleteLicenseCommand."""

    def __init__(self, license_repository: LicenseRepository):
        """Initialize handler with repository."""
        self.license_repository = license_repository

    async def handle(self, command: DeleteLicenseCommand) -> bool:
        """
        Handle delete license command.

        Args:
            command: DeleteLicenseCommand

        Returns:
            True once the license and its access logs are gone

        Raises:
            LicenseNotFoundError: If license not found
        """
        existing = await self.license_repository.find_by_id(command.license_id)
        if existing is None:
            raise LicenseNotFoundError(f"License {command.license_id} not found")

        deleted = await self.license_repository.delete(existing.id)
        if deleted:
            logger.info("License deleted", extra={"license_id": str(existing.id)})
            await event_bus.publish(LicenseDeleted(license_id=existing.id))
        return deleted


class ToggleLockHandler:
    """Handler for ToggleLockCommand."""

    def __init__(self, license_repository: LicenseRepository):
        """Initialize handler with repository."""
        self.license_repository = license_repository

    async def handle(self, command: ToggleLockCommand) -> ToggleLockResultDTO:
        """
        Handle toggle lock command.

        ``warning_count`` is left untouched, so an unlocked license that
        keeps misbehaving is locked again on its next risky access.

        Args:
            command: ToggleLockCommand

        Returns:
            ToggleLockResultDTO with the resulting lock state

        Raises:
            LicenseNotFoundError: If license not found
        """
        existing = await self.license_repository.find_by_id(command.license_id)
        if existing is None:
            raise LicenseNotFoundError(f"License {command.license_id} not found")

        updated = await self.license_repository.set_locked(existing.id, command.locked)
        if updated is None:
            raise LicenseNotFoundError(f"License {command.license_id} not found")

        if updated.locked != existing.locked:
            if updated.locked:
                licenses_locked_total.labels(trigger="manual").inc()
                await event_bus.publish(
                    LicenseLocked(license_id=updated.id, reason=MANUAL_LOCK_REASON)
                )
            else:
                await event_bus.publish(LicenseUnlocked(license_id=updated.id))
            logger.info(
                "License %s by administrator",
                "locked" if updated.locked else "unlocked",
                extra={"license_id": str(updated.id)},
            )

        return ToggleLockResultDTO(license_id=updated.id, locked=updated.locked)
