"""
Django email implementation of the Notifier port.

Messages are rendered from templates under ``licenses/emails/`` and sent
through Django's configured email backend.
"""
import logging
import smtplib
from datetime import datetime
from email.utils import make_msgid
from typing import Any, Dict

from asgiref.sync import sync_to_async
from django.conf import settings
from django.core.mail import EmailMultiAlternatives
from django.template.loader import render_to_string

from licenses.domain.masking import mask_license_code
from licenses.ports.notifier import NotificationResult, Notifier

logger = logging.getLogger(__name__)


class DjangoEmailNotifier(Notifier):
    """
    Notifier sending plain text and HTML emails.

    Delivery failures are logged and returned as a failed
    ``NotificationResult``; they are never raised.
    """

    def __init__(self, from_email: str = None, message_id_domain: str = None):
        self.from_email = from_email or settings.DEFAULT_FROM_EMAIL
        self.message_id_domain = message_id_domain or getattr(
            settings, "EMAIL_MESSAGE_ID_DOMAIN", "license-guard.local"
        )

    def _send(self, to: str, subject: str, template: str, context: Dict[str, Any]) -> NotificationResult:
        message_id = make_msgid(domain=self.message_id_domain)
        try:
            message = EmailMultiAlternatives(
                subject=subject,
                body=render_to_string(f"licenses/emails/{template}.txt", context),
                from_email=self.from_email,
                to=[to],
                headers={"Message-ID": message_id},
            )
            message.attach_alternative(
                render_to_string(f"licenses/emails/{template}.html", context), "text/html"
            )
            message.send(fail_silently=False)
        except Exception as e:
            # Any backend, including HTTP API providers, raises its own errors.
            logger.error(
                "Failed to send %s email: %s",
                template,
                e,
                exc_info=not isinstance(e, (smtplib.SMTPException, OSError)),
                extra={"template": template, "recipient": to},
            )
            return NotificationResult.failed(f"{type(e).__name__}: {e}")

        logger.info(
            "Sent %s email",
            template,
            extra={"template": template, "message_id": message_id},
        )
        return NotificationResult.sent(message_id)

    @sync_to_async
    def send_license_code(self, email: str, code: str) -> NotificationResult:
        return self._send(
            email,
            "Your license code",
            "license_code",
            {"email": email, "code": code},
        )

    @sync_to_async
    def send_security_warning(self, email: str, ip: str) -> NotificationResult:
        return self._send(
            email,
            "Security notice: access from a new IP",
            "security_warning",
            {"email": email, "ip": ip},
        )

    @sync_to_async
    def send_account_lock(self, email: str, reason: str) -> NotificationResult:
        return self._send(
            email,
            "Your license code has been locked",
            "account_lock",
            {"email": email, "reason": reason},
        )

    @sync_to_async
    def send_expiration_reminder(
        self, email: str, code: str, expires_at: datetime, days_left: int
    ) -> NotificationResult:
        return self._send(
            email,
            f"Your license code expires in {days_left} days",
            "expiration_reminder",
            {
                "email": email,
                "masked_code": mask_license_code(code),
                "expires_at": expires_at,
                "days_left": days_left,
            },
        )
