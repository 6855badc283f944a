"""
Event handlers for domain events.

These handlers process domain events for side effects such as the audit
trail.
"""

import logging

from core.domain.events import DomainEvent, EventHandler
from licenses.domain.events import (
    LicenseDeleted,
    LicenseExpired,
    LicenseIssued,
    LicenseLocked,
    LicenseUnlocked,
    RiskyAccessDetected,
)

logger = logging.getLogger(__name__)

audit_logger = logging.getLogger("licenses.audit")

AUDITED_EVENTS = (
    LicenseIssued,
    RiskyAccessDetected,
    LicenseLocked,
    LicenseUnlocked,
    LicenseExpired,
    LicenseDeleted,
)


class AuditLogEventHandler(EventHandler):
    """
    Event handler for audit logging.

    Writes every license event to the ``licenses.audit`` logger with the
    event payload as structured context.
    """

    async def handle(self, event: DomainEvent) -> None:
        """
        Handle domain event for audit logging.

        Args:
            event: Domain event to log
        """
        audit_logger.info(
            "Audit log: %s - %s",
            event.event_type,
            event.aggregate_id,
            extra={**event.to_dict(), "payload": event.payload()},
        )


_audit_handler = AuditLogEventHandler()


def register_event_handlers(bus=None):
    """Register all event handlers with the event bus."""
    if bus is None:
        from core.infrastructure.events import event_bus as bus

    for event_type in AUDITED_EVENTS:
        bus.subscribe(event_type, _audit_handler)

    logger.info("Event handlers registered")
