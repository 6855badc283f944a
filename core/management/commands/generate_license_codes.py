"""
Django management command to generate unused license codes.

Codes are unique against the store at generation time but are not saved.
"""
import asyncio

from django.core.management.base import BaseCommand, CommandError

from core.domain.exceptions import LicenseCodeExhaustedError
from licenses.application.services.license_service import build_license_service


class Command(BaseCommand):
    """Command to print store-unique license codes."""

    help = "Generate license codes that do not exist in the store yet"

    def add_arguments(self, parser):
        """Add command arguments."""
        parser.add_argument("--count", type=int, default=1, help="Number of codes")

    def handle(self, *args, **options):
        """Execute the command."""
        count = options["count"]
        if count < 1:
            raise CommandError("--count must be a positive integer")

        service = build_license_service()
        try:
            codes = asyncio.run(service.generate_codes(count))
        except LicenseCodeExhaustedError as e:
            raise CommandError(e.message)

        for code in codes:
            self.stdout.write(code)
