"""
Notification delivery from handlers.

Notifications are sent after a state change has been persisted, so a
notifier that raises instead of returning a failed result must not abort
the handler.
"""
import logging
from typing import Awaitable, Callable

from licenses.ports.notifier import NotificationResult

logger = logging.getLogger(__name__)


async def deliver(
    kind: str, send: Callable[..., Awaitable[NotificationResult]], *args
) -> NotificationResult:
    """
    Await ``send(*args)`` and return its result.

    Args:
        kind: Notification kind, used in logs
        send: Bound notifier method
        *args: Arguments for ``send``

    Returns:
        NotificationResult; a raised exception is logged and returned as a
        failed result
    """
    try:
        return await send(*args)
    except Exception as e:
        logger.error(
            "%s notification raised: %s",
            kind,
            e,
            exc_info=True,
            extra={"notification": kind},
        )
        return NotificationResult.failed(f"{type(e).__name__}: {e}")
