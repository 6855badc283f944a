"""
Django management command to send expiration reminders.
"""
import asyncio

from django.conf import settings
from django.core.management.base import BaseCommand, CommandError

from core.domain.exceptions import InvalidLicenseInputError
from licenses.application.services.license_service import build_license_service


class Command(BaseCommand):
    """Command to remind owners of licenses expiring soon."""

    help = "Send reminders for licenses expiring within the given number of days"

    def add_arguments(self, parser):
        """Add command arguments."""
        parser.add_argument(
            "--days",
            type=int,
            default=settings.LICENSE_REMINDER_DAYS_AHEAD,
            help="Reminder horizon in days",
        )

    def handle(self, *args, **options):
        """Execute the command."""
        service = build_license_service()
        try:
            summary = asyncio.run(service.send_reminders(days_ahead=options["days"]))
        except InvalidLicenseInputError as e:
            raise CommandError(e.message)

        self.stdout.write(
            f"Found {summary.total} license(s) expiring within {options['days']} day(s)"
        )
        for error in summary.errors:
            self.stderr.write(f"  - {error}")

        style = self.style.SUCCESS if not summary.failed else self.style.WARNING
        self.stdout.write(style(f"Sent {summary.sent} reminder(s), {summary.failed} failed"))
