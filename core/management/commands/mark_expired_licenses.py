"""
Django management command to mark expired licenses.

This command should be run periodically (e.g., via cron) when Celery beat is
not used.
"""
import asyncio

from django.core.management.base import BaseCommand

from licenses.application.services.license_service import build_license_service


class Command(BaseCommand):
    """Command to mark licenses past their expiration as expired."""

    help = "Mark licenses past their expiration as expired"

    def add_arguments(self, parser):
        """Add command arguments."""
        parser.add_argument(
            "--dry-run",
            action="store_true",
            help="Only count the licenses that would be marked",
        )

    def handle(self, *args, **options):
        """Execute the command."""
        dry_run = options["dry_run"]
        service = build_license_service()
        result = asyncio.run(service.run_expiry_sweep(dry_run=dry_run))

        if dry_run:
            self.stdout.write(self.style.WARNING("DRY RUN - No changes will be made"))
            self.stdout.write(f"Found {result.count} expired license(s)")
            return

        self.stdout.write(
            self.style.SUCCESS(f"Successfully marked {result.count} license(s) as expired")
        )
