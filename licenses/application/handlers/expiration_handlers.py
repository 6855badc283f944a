"""
Expiration handlers.

The lifecycle sweeper: bulk expiry marking and pre-expiration reminders.
Both run from Celery beat and from management commands.
"""
import logging
from datetime import datetime, timedelta
from typing import Callable, Optional

from django.utils import timezone

from core.domain.exceptions import InvalidLicenseInputError
from core.instrumentation import get_tracer
from core.metrics import expiration_reminders_total, licenses_expired_total
from licenses.application.commands.expiration import (
    MarkExpiredLicensesCommand,
    SendExpirationRemindersCommand,
)
from licenses.application.dto.license_dto import ExpirySweepResultDTO, ReminderSummaryDTO
from licenses.application.handlers.delivery import deliver
from licenses.domain.masking import mask_license_code
from licenses.domain.services import RemainingTime
from licenses.ports.license_repository import LicenseRepository
from licenses.ports.notifier import Notifier

logger = logging.getLogger(__name__)
tracer = get_tracer(__name__)


class MarkExpiredLicensesHandler:
    """Handler for MarkExpiredLicensesCommand."""

    def __init__(
        self,
        license_repository: LicenseRepository,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """Initialize handler with repository."""
        self.license_repository = license_repository
        self.clock = clock or timezone.now

    async def handle(self, command: MarkExpiredLicensesCommand) -> ExpirySweepResultDTO:
        """
        Handle mark expired licenses command.

        Idempotent: a second run finds nothing until more licenses lapse.

        Args:
            command: MarkExpiredLicensesCommand

        Returns:
            ExpirySweepResultDTO with the number of licenses affected
            (or that would be, on a dry run)
        """
        now = self.clock()
        with tracer.start_as_current_span("license.expiry_sweep") as span:
            if command.dry_run:
                count = await self.license_repository.count_past_expiry(now)
            else:
                count = await self.license_repository.bulk_mark_expired(now)
                licenses_expired_total.labels(trigger="sweep").inc(count)
            span.set_attribute("license.expired_count", count)

        logger.info(
            "Expiry sweep %s %s license(s)",
            "would mark" if command.dry_run else "marked",
            count,
            extra={"dry_run": command.dry_run},
        )
        return ExpirySweepResultDTO(count=count, dry_run=command.dry_run)


class SendExpirationRemindersHandler:
    """Handler for SendExpirationRemindersCommand."""

    def __init__(
        self,
        license_repository: LicenseRepository,
        notifier: Notifier,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """Initialize handler with repository and notifier."""
        self.license_repository = license_repository
        self.notifier = notifier
        self.clock = clock or timezone.now

    async def handle(self, command: SendExpirationRemindersCommand) -> ReminderSummaryDTO:
        """
        Handle send expiration reminders command.

        A failed reminder is recorded in the summary and the run continues.

        Args:
            command: SendExpirationRemindersCommand

        Returns:
            ReminderSummaryDTO

        Raises:
            InvalidLicenseInputError: If ``days_ahead`` is not a positive integer
        """
        days_ahead = command.days_ahead
        if isinstance(days_ahead, bool) or not isinstance(days_ahead, int) or days_ahead < 1:
            raise InvalidLicenseInputError("days_ahead must be a positive integer")

        now = self.clock()
        summary = ReminderSummaryDTO()

        with tracer.start_as_current_span("license.expiration_reminders"):
            licenses = await self.license_repository.find_expiring_between(
                now, now + timedelta(days=days_ahead)
            )
            summary.total = len(licenses)

            for license in licenses:
                remaining = RemainingTime.between(now, license.expires_at)
                if remaining.is_expired:
                    summary.skipped += 1
                    continue

                result = await deliver(
                    "expiration_reminder",
                    self.notifier.send_expiration_reminder,
                    license.email,
                    license.code,
                    license.expires_at,
                    remaining.days,
                )
                if result.success:
                    summary.sent += 1
                    expiration_reminders_total.labels(result="sent").inc()
                else:
                    summary.failed += 1
                    expiration_reminders_total.labels(result="failed").inc()
                    summary.errors.append(
                        f"{mask_license_code(license.code)} ({license.email}): {result.error}"
                    )

        logger.info(
            "Expiration reminders: %s sent, %s failed",
            summary.sent,
            summary.failed,
            extra={"days_ahead": days_ahead, "total": summary.total},
        )
        return summary
