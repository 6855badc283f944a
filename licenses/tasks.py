"""
Celery tasks for license lifecycle maintenance.

Scheduled by ``CELERY_BEAT_SCHEDULE``.
"""
import asyncio
import logging
from dataclasses import asdict

from LicenseGuardService.celery import app

from core.domain.exceptions import StoreError
from licenses.application.services.license_service import build_license_service

logger = logging.getLogger(__name__)


@app.task(bind=True, max_retries=3)
def mark_expired_licenses_task(self):
    """
    Flag every license past its expiration as expired.

    Returns:
        Number of licenses marked
    """
    try:
        result = asyncio.run(build_license_service().run_expiry_sweep())
    except StoreError as exc:
        logger.error("Expiry sweep failed: %s", exc)
        raise self.retry(exc=exc, countdown=2 ** self.request.retries * 60)
    return result.count


@app.task(bind=True, max_retries=3)
def send_expiration_reminders_task(self, days_ahead: int = None):
    """
    Send reminders for licenses expiring within ``days_ahead`` days.

    Returns:
        Reminder summary as a dict
    """
    try:
        summary = asyncio.run(build_license_service().send_reminders(days_ahead=days_ahead))
    except StoreError as exc:
        logger.error("Expiration reminders failed: %s", exc)
        raise self.retry(exc=exc, countdown=2 ** self.request.retries * 60)
    return asdict(summary)
