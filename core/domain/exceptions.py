"""
Domain exceptions.

Domain exceptions represent business rule violations
and domain-specific error conditions.
"""
from typing import Optional


class DomainException(Exception):
    """Base exception for all domain exceptions."""

    def __init__(self, message: str, code: str = None):
        """
        Initialize domain exception.

        Args:
            message: Human-readable error message
            code: Machine-readable error code
        """
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__


class LicenseException(DomainException):
    """Base exception for license-related errors."""

    pass


class LicenseNotFoundError(LicenseException):
    """Raised when a license is not found."""

    def __init__(self, message: str = "License not found"):
        super().__init__(message, code="LICENSE_NOT_FOUND")


class InvalidLicenseInputError(LicenseException):
    """Raised when a license operation receives malformed parameters."""

    def __init__(self, message: str = "Invalid license parameters"):
        super().__init__(message, code="INVALID_PARAMETER")


class LicenseCodeExhaustedError(LicenseException):
    """
    Raised when no unique license code could be allocated.

    The condition is transient: callers may retry the whole operation.
    """

    def __init__(
        self,
        message: str = "Unable to generate a unique license code, please retry later",
        index: Optional[int] = None,
    ):
        super().__init__(message, code="LICENSE_CODE_EXHAUSTED")
        self.index = index
        self.retryable = True


class NotificationDeliveryError(LicenseException):
    """Raised when a notification required by an operation could not be delivered."""

    def __init__(self, message: str = "Notification delivery failed"):
        super().__init__(message, code="NOTIFICATION_FAILED")


class StoreError(DomainException):
    """Raised by repositories when the underlying store fails."""

    def __init__(self, message: str = "License store unavailable"):
        super().__init__(message, code="STORE_ERROR")
