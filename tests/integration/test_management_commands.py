"""
Integration tests for management commands and Celery tasks.
"""
from datetime import timedelta
from io import StringIO
from unittest.mock import patch

import pytest
from django.core import mail
from django.core.management import CommandError, call_command
from django.utils import timezone

from licenses.domain.license_code import validate_license_code
from licenses.infrastructure.models import License as LicenseModel
from licenses.tasks import mark_expired_licenses_task, send_expiration_reminders_task


def create_license(code, expires_at=None, **fields):
    return LicenseModel.objects.create(
        code=code, email="owner@example.com", expires_at=expires_at, **fields
    )


@pytest.fixture(autouse=True)
def empty_outbox():
    mail.outbox = []
    yield


@pytest.mark.django_db(transaction=True)
@pytest.mark.integration
class TestMarkExpiredLicensesCommand:
    """Integration tests for the mark_expired_licenses command."""

    def test_marks_lapsed(self):
        """Test lapsed licenses are flagged."""
        lapsed = create_license("AAAA-1111", timezone.now() - timedelta(days=1))
        current = create_license("BBBB-2222", timezone.now() + timedelta(days=1))
        out = StringIO()

        call_command("mark_expired_licenses", stdout=out)

        assert "Successfully marked 1 license(s) as expired" in out.getvalue()
        lapsed.refresh_from_db()
        current.refresh_from_db()
        assert lapsed.is_expired is True
        assert current.is_expired is False

    def test_dry_run(self):
        """Test a dry run changes nothing."""
        lapsed = create_license("AAAA-1111", timezone.now() - timedelta(days=1))
        out = StringIO()

        call_command("mark_expired_licenses", "--dry-run", stdout=out)

        assert "DRY RUN" in out.getvalue()
        assert "Found 1 expired license(s)" in out.getvalue()
        lapsed.refresh_from_db()
        assert lapsed.is_expired is False


@pytest.mark.django_db(transaction=True)
@pytest.mark.integration
class TestSendExpirationRemindersCommand:
    """Integration tests for the send_expiration_reminders command."""

    def test_sends_reminders(self):
        """Test reminders are emailed for licenses in the window."""
        create_license("AAAA-BBBB-CCCC", timezone.now() + timedelta(days=2))
        create_license("DDDD-EEEE-FFFF", timezone.now() + timedelta(days=40))
        out = StringIO()

        call_command("send_expiration_reminders", "--days", "7", stdout=out)

        assert "Found 1 license(s) expiring within 7 day(s)" in out.getvalue()
        assert "Sent 1 reminder(s), 0 failed" in out.getvalue()
        assert len(mail.outbox) == 1
        assert "A**A-B**B-C**C" in mail.outbox[0].body

    def test_invalid_days(self):
        """Test a non-positive horizon is rejected."""
        with pytest.raises(CommandError, match="positive integer"):
            call_command("send_expiration_reminders", "--days", "0")


@pytest.mark.django_db(transaction=True)
@pytest.mark.integration
class TestGenerateLicenseCodesCommand:
    """Integration tests for the generate_license_codes command."""

    def test_generates_codes(self):
        """Test printed codes are valid and distinct."""
        out = StringIO()

        call_command("generate_license_codes", "--count", "3", stdout=out)

        codes = out.getvalue().split()
        assert len(codes) == 3
        assert len(set(codes)) == 3
        assert all(validate_license_code(code) for code in codes)
        assert LicenseModel.objects.count() == 0

    def test_invalid_count(self):
        """Test a non-positive count is rejected."""
        with pytest.raises(CommandError):
            call_command("generate_license_codes", "--count", "0")

    def test_exhausted(self):
        """Test a store full of collisions fails the command."""
        create_license("AAAA-BBBB-CCCC-DDDD-E")

        with patch(
            "licenses.domain.services.generate_license_code",
            return_value="AAAA-BBBB-CCCC-DDDD-E",
        ):
            with pytest.raises(CommandError, match="#1"):
                call_command("generate_license_codes", "--count", "1")


@pytest.mark.django_db(transaction=True)
@pytest.mark.integration
class TestLicenseTasks:
    """Integration tests for the Celery tasks."""

    def test_mark_expired_task(self):
        """Test the expiry sweep task returns the marked count."""
        create_license("AAAA-1111", timezone.now() - timedelta(hours=1))

        assert mark_expired_licenses_task.apply().get() == 1

    def test_send_reminders_task(self):
        """Test the reminder task returns the summary."""
        create_license("AAAA-BBBB-CCCC", timezone.now() + timedelta(days=1))

        summary = send_expiration_reminders_task.apply(kwargs={"days_ahead": 3}).get()

        assert summary["sent"] == 1
        assert summary["failed"] == 0
        assert len(mail.outbox) == 1
