"""
IssueLicenseHandler.

Handles the issue license command: allocate a unique code, persist the
license and deliver the code by email.
"""
import logging
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Callable, Optional

from django.utils import timezone

from core.domain.exceptions import (
    InvalidLicenseInputError,
    LicenseCodeExhaustedError,
    NotificationDeliveryError,
    StoreError,
)
from core.domain.value_objects import Email
from core.infrastructure.events import event_bus
from core.instrumentation import get_tracer
from core.metrics import license_issue_failures_total, licenses_issued_total
from licenses.application.commands.issue_license import IssueLicenseCommand
from licenses.application.dto.license_dto import IssueLicenseResultDTO
from licenses.application.handlers.delivery import deliver
from licenses.domain.events import LicenseIssued
from licenses.domain.license import License
from licenses.domain.services import LicenseCodeAllocator
from licenses.ports.license_repository import LicenseRepository
from licenses.ports.notifier import Notifier

logger = logging.getLogger(__name__)
tracer = get_tracer(__name__)


def parse_amount(value) -> Decimal:
    """
    Parse a purchase amount.

    Raises:
        InvalidLicenseInputError: If the value is not a non-negative number
    """
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise InvalidLicenseInputError(f"Invalid purchase amount: {value}")
    if not amount.is_finite() or amount < 0:
        raise InvalidLicenseInputError("Purchase amount must be a non-negative number")
    return amount


def validate_future_expiration(expires_at: datetime, now: datetime) -> None:
    """
    Check that an expiration time is timezone-aware and in the future.

    Raises:
        InvalidLicenseInputError: If it is naive or not after ``now``
    """
    if timezone.is_naive(expires_at):
        raise InvalidLicenseInputError("Expiration time must be timezone-aware")
    if expires_at <= now:
        raise InvalidLicenseInputError("Expiration time must be later than the current time")


def normalize_email(value: str) -> str:
    """Validate and normalize an email address."""
    try:
        return str(Email((value or "").strip()))
    except ValueError as e:
        raise InvalidLicenseInputError(str(e))


class IssueLicenseHandler:
    """Handler for IssueLicenseCommand."""

    def __init__(
        self,
        license_repository: LicenseRepository,
        notifier: Notifier,
        allocator: Optional[LicenseCodeAllocator] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """Initialize handler with repository and collaborators."""
        self.license_repository = license_repository
        self.notifier = notifier
        self.allocator = allocator or LicenseCodeAllocator()
        self.clock = clock or timezone.now

    async def handle(self, command: IssueLicenseCommand) -> IssueLicenseResultDTO:
        """
        Handle issue license command.

        Args:
            command: IssueLicenseCommand

        Returns:
            IssueLicenseResultDTO with the code and the email message ID

        Raises:
            InvalidLicenseInputError: If the parameters are invalid
            LicenseCodeExhaustedError: If no unique code could be allocated
            NotificationDeliveryError: If the code could not be delivered; the
                created license is deleted first
        """
        email = normalize_email(command.email)
        amount = parse_amount(command.purchase_amount)
        if command.expires_at is not None:
            validate_future_expiration(command.expires_at, self.clock())

        with tracer.start_as_current_span("license.issue"):
            try:
                code = await self.allocator.allocate_one(self.license_repository.exists_by_code)
            except LicenseCodeExhaustedError:
                license_issue_failures_total.labels(reason="exhausted").inc()
                raise

            license = License.create(
                code=code,
                email=email,
                purchase_amount=amount,
                remark=command.remark or "",
                expires_at=command.expires_at,
            )
            saved = await self.license_repository.create(license)

            result = await deliver("license_code", self.notifier.send_license_code, email, code)
            if not result.success:
                await self._discard(saved)
                license_issue_failures_total.labels(reason="notification").inc()
                raise NotificationDeliveryError(
                    f"License code could not be delivered to {email}: {result.error}"
                )

        licenses_issued_total.inc()
        logger.info(
            "License issued",
            extra={"license_id": str(saved.id), "message_id": result.message_id},
        )
        await event_bus.publish(
            LicenseIssued(license_id=saved.id, email=email, expires_at=saved.expires_at)
        )

        return IssueLicenseResultDTO(
            license_id=saved.id,
            code=saved.code,
            message_id=result.message_id,
            expires_at=saved.expires_at,
        )

    async def _discard(self, license: License) -> None:
        try:
            await self.license_repository.delete(license.id)
        except StoreError:
            logger.error(
                "Could not delete undelivered license",
                extra={"license_id": str(license.id)},
            )
            raise
