"""
Custom Exceptions.

Application-specific exception classes for consistent error handling.
Every error a command can surface derives from ApplicationError; the
command boundary prints the message and exits non-zero.
"""

from enum import Enum
from typing import Any


class ApplicationError(Exception):
    """Base exception for all application errors."""

    def __init__(self, message: str, code: str = "SYS_INTERNAL_ERROR") -> None:
        self.message = message
        self.code = code
        super().__init__(self.message)


class ConfigurationError(ApplicationError):
    """Raised when a command declaration is invalid. Fatal at registration."""

    def __init__(self, message: str = "Invalid command declaration") -> None:
        super().__init__(message, code="CFG_INVALID_DECLARATION")


class InvalidInputError(ApplicationError):
    """Raised when a supplied value fails its declared filter."""

    def __init__(self, message: str = "Invalid input", name: str | None = None, value: Any = None) -> None:
        self.name = name
        self.value = value
        super().__init__(message, code="VAL_INVALID_INPUT")


class ChoiceErrorKind(str, Enum):
    """Reported conditions for a failed choice resolution."""

    NO_CHOICES = "no_choices"
    NO_CLOUD_ACCOUNT_CHOICES = "no_cloud_account_choices"
    NO_BACKUP_CHOICES = "no_backup_choices"
    NO_CLOUD_ACCOUNT_PACKAGE_CHOICES = "no_cloud_account_package_choices"
    NO_MATCHING_CHOICE = "no_matching_choice"
    AMBIGUOUS_CHOICE = "ambiguous_choice"


class ChoiceError(ApplicationError):
    """Raised when an input cannot be resolved to one of its choices."""

    def __init__(self, kind: ChoiceErrorKind, name: str, message: str | None = None) -> None:
        self.kind = kind
        self.name = name
        super().__init__(
            message or f"Cannot resolve '{name}': {kind.value.replace('_', ' ')}",
            code=f"CHOICE_{kind.name}",
        )


class OperationTimeoutError(ApplicationError):
    """Raised when a bounded completion wait elapses."""

    def __init__(self, message: str = "Timed out waiting for the operation to complete") -> None:
        super().__init__(message, code="OP_TIMEOUT")


class ExternalServiceError(ApplicationError):
    """Raised when an external service call fails."""

    def __init__(self, message: str = "External service error", code: str = "SYS_EXTERNAL_SERVICE_ERROR") -> None:
        super().__init__(message, code=code)


class RemoteOperationError(ExternalServiceError):
    """Raised when the API reports that an operation failed."""

    def __init__(self, message: str = "Remote operation failed", details: dict | None = None) -> None:
        self.details = details or {}
        super().__init__(message, code="OP_REMOTE_FAILURE")


class NotFoundError(ApplicationError):
    """Raised when a resource cannot be found."""

    def __init__(self, message: str = "Resource not found") -> None:
        super().__init__(message, code="RES_NOT_FOUND")


class AuthenticationError(ApplicationError):
    """Raised when authentication fails."""

    def __init__(self, message: str = "Authentication required") -> None:
        super().__init__(message, code="AUTH_UNAUTHORIZED")
