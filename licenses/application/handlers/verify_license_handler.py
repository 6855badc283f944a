"""
VerifyLicenseHandler.

Verifies a license code on use and drives the access-risk state machine:
first-use marking, lazy expiry, IP risk warnings and automatic locks.
"""
import logging
import time
from datetime import datetime
from typing import Callable, Optional

from django.utils import timezone

from core.domain.exceptions import LicenseNotFoundError, StoreError
from core.infrastructure.events import event_bus
from core.instrumentation import get_tracer
from core.metrics import (
    license_verification_duration_seconds,
    license_verifications_total,
    licenses_expired_total,
    licenses_locked_total,
    notifications_failed_total,
    risky_accesses_total,
)
from licenses.application.commands.verify_license import VerifyLicenseCommand
from licenses.application.dto.license_dto import VerificationResultDTO
from licenses.application.handlers.delivery import deliver
from licenses.domain.access_log import AccessLog
from licenses.domain.events import LicenseExpired, LicenseLocked, RiskyAccessDetected
from licenses.domain.license import License
from licenses.domain.services import DEFAULT_RISK_POLICY, RiskPolicy
from licenses.ports.access_log_repository import AccessLogRepository
from licenses.ports.license_repository import LicenseRepository
from licenses.ports.notifier import Notifier

logger = logging.getLogger(__name__)
tracer = get_tracer(__name__)

MESSAGE_NOT_FOUND = "License code is invalid or does not match"
MESSAGE_LOCKED = "License code has been locked, please contact support"
MESSAGE_EXPIRED = "License code has expired, please renew or contact support"
MESSAGE_LOCKED_NOW = "Abnormal access detected, license code has been locked"
MESSAGE_FAILED = "License verification failed, please try again later"
MESSAGE_SUCCESS = "License verified successfully"

WARNING_SENT = "Access from a new IP detected: {ip}, a security notice has been sent"
WARNING_UNDELIVERED = "Access from a new IP detected: {ip}, the security notice could not be delivered"

LOCK_REASON = "Repeated access from unrecognized IP addresses"


class VerifyLicenseHandler:
    """
    Handler for VerifyLicenseCommand.

    Denials never reveal whether the email or the code was wrong, and
    notification failures never change the outcome of a verification.
    """

    def __init__(
        self,
        license_repository: LicenseRepository,
        access_log_repository: AccessLogRepository,
        notifier: Notifier,
        policy: Optional[RiskPolicy] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """Initialize handler with repositories and collaborators."""
        self.license_repository = license_repository
        self.access_log_repository = access_log_repository
        self.notifier = notifier
        self.policy = policy or DEFAULT_RISK_POLICY
        self.clock = clock or timezone.now

    async def handle(self, command: VerifyLicenseCommand) -> VerificationResultDTO:
        """
        Handle verify license command.

        Args:
            command: VerifyLicenseCommand

        Returns:
            VerificationResultDTO; store failures are reported as a generic
            denial rather than raised
        """
        started = time.perf_counter()
        with tracer.start_as_current_span("license.verify") as span:
            try:
                result, outcome = await self._verify(command)
            except StoreError as e:
                logger.error(
                    "License verification failed: %s",
                    e,
                    extra={"email": command.email, "ip": command.ip},
                )
                result, outcome = VerificationResultDTO.denied(MESSAGE_FAILED), "error"

            span.set_attribute("license.outcome", outcome)
            span.set_attribute("license.risky", result.is_risky)

        license_verifications_total.labels(outcome=outcome).inc()
        license_verification_duration_seconds.observe(time.perf_counter() - started)
        return result

    async def _verify(self, command: VerifyLicenseCommand):
        email = (command.email or "").strip()
        code = (command.code or "").strip()
        ip = (command.ip or "").strip()

        if not email or not code or not ip:
            return VerificationResultDTO.denied(MESSAGE_NOT_FOUND), "not_found"

        license = await self.license_repository.find_by_email_and_code(email, code)
        if license is None:
            logger.info("License verification denied: no match", extra={"ip": ip})
            return VerificationResultDTO.denied(MESSAGE_NOT_FOUND), "not_found"

        if license.locked:
            return VerificationResultDTO.denied(MESSAGE_LOCKED), "locked"

        if not license.is_used:
            await self.license_repository.mark_used(license.id)

        now = self.clock()
        if license.has_lapsed(now):
            if not license.is_expired:
                await self._materialize_expiry(license)
            return VerificationResultDTO.denied(MESSAGE_EXPIRED), "expired"

        # The flag wins even if expires_at was later moved into the future.
        if license.is_expired:
            return VerificationResultDTO.denied(MESSAGE_EXPIRED), "expired"

        recent_risky = 0
        if license.last_ip and ip != license.last_ip:
            recent_risky = await self.access_log_repository.count_risky_since(
                license.id, self.policy.window_start(now)
            )
        is_risky = self.policy.is_risky(license.last_ip, ip, recent_risky)

        try:
            if is_risky:
                return await self._handle_risky_access(license, email, ip, now)

            if not await self.license_repository.update_last_ip(license.id, ip):
                # Locked concurrently since it was read.
                return VerificationResultDTO.denied(MESSAGE_LOCKED), "locked"
        except LicenseNotFoundError:
            return VerificationResultDTO.denied(MESSAGE_NOT_FOUND), "not_found"

        await self._append_access_log(license, email, ip, False, now)
        logger.info(
            "License verified",
            extra={"license_id": str(license.id), "ip": ip},
        )
        return (
            VerificationResultDTO(authorized=True, is_risky=False, message=MESSAGE_SUCCESS),
            "authorized",
        )

    async def _handle_risky_access(self, license: License, email: str, ip: str, now: datetime):
        update = await self.license_repository.record_warning(
            license.id, ip, self.policy.lock_threshold
        )
        risky_accesses_total.inc()
        logger.warning(
            "Risky access detected",
            extra={
                "license_id": str(license.id),
                "ip": ip,
                "previous_ip": license.last_ip,
                "warning_count": update.warning_count,
            },
        )
        await event_bus.publish(
            RiskyAccessDetected(
                license_id=license.id, ip=ip, warning_count=update.warning_count
            )
        )

        notice = await deliver(
            "security_warning", self.notifier.send_security_warning, license.email, ip
        )
        if notice.success:
            warning = WARNING_SENT.format(ip=ip)
        else:
            notifications_failed_total.labels(kind="security_warning").inc()
            logger.warning(
                "Security warning could not be delivered: %s",
                notice.error,
                extra={"license_id": str(license.id)},
            )
            warning = WARNING_UNDELIVERED.format(ip=ip)

        await self._append_access_log(license, email, ip, True, now)

        if update.locked:
            if update.newly_locked:
                await self._on_auto_lock(license, update.warning_count)
                message, outcome = MESSAGE_LOCKED_NOW, "locked_now"
            else:
                message, outcome = MESSAGE_LOCKED, "locked"
            return VerificationResultDTO.denied(message, is_risky=True, warning=warning), outcome

        return (
            VerificationResultDTO(
                authorized=True, is_risky=True, message=MESSAGE_SUCCESS, warning=warning
            ),
            "authorized_risky",
        )

    async def _on_auto_lock(self, license: License, warning_count: int) -> None:
        licenses_locked_total.labels(trigger="automatic").inc()
        logger.warning(
            "License locked after %s warnings",
            warning_count,
            extra={"license_id": str(license.id)},
        )
        await event_bus.publish(LicenseLocked(license_id=license.id, reason=LOCK_REASON))

        result = await deliver(
            "account_lock", self.notifier.send_account_lock, license.email, LOCK_REASON
        )
        if not result.success:
            notifications_failed_total.labels(kind="account_lock").inc()
            logger.warning(
                "Lock notification could not be delivered: %s",
                result.error,
                extra={"license_id": str(license.id)},
            )

    async def _materialize_expiry(self, license: License) -> None:
        if await self.license_repository.mark_expired(license.id):
            licenses_expired_total.labels(trigger="verification").inc()
            logger.info("License expired", extra={"license_id": str(license.id)})
            await event_bus.publish(
                LicenseExpired(license_id=license.id, expires_at=license.expires_at)
            )

    async def _append_access_log(
        self, license: License, email: str, ip: str, is_risky: bool, now: datetime
    ) -> None:
        await self.access_log_repository.create(
            AccessLog.create(
                license_id=license.id,
                email=email,
                ip=ip,
                is_risky=is_risky,
                accessed_at=now,
            )
        )
