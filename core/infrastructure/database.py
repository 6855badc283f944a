"""
Database utilities and error translation.
"""
import functools
import logging
from typing import Callable, TypeVar

from django.db import DatabaseError

from core.domain.exceptions import StoreError

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable)


def translate_store_errors(func: F) -> F:
    """
    Translate Django ``DatabaseError`` into the domain ``StoreError``.

    Apply it below ``@sync_to_async`` so it wraps the synchronous ORM call.

    Usage:
        @sync_to_async
        @translate_store_errors
        def find_by_id(self, license_id):
            ...
    """

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except DatabaseError as e:
            logger.error(
                "Store operation %s failed: %s",
                func.__qualname__,
                e,
                exc_info=True,
            )
            raise StoreError() from e

    return wrapper
