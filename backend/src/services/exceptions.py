"""
Custom exceptions for service layer.

Provides specific exception types for business logic errors
that can be translated to appropriate HTTP responses.
"""

from typing import Any, Optional


class ServiceError(Exception):
    """Base exception for service layer errors."""
    pass


class NotFoundError(ServiceError):
    """Raised when a requested resource is not found."""

    def __init__(self, resource: str, identifier: Any):
        self.resource = resource
        self.identifier = identifier
        super().__init__(f"{resource} {identifier} not found")


class ValidationError(ServiceError):
    """Raised when client input is missing or malformed."""

    def __init__(self, message: str, field: Optional[str] = None):
        self.message = message
        self.field = field
        super().__init__(message)


class ConfigurationError(ServiceError):
    """
    Raised when required server configuration is absent.

    Checked before any I/O or input validation.
    """

    def __init__(self, message: str, missing: Optional[list] = None):
        self.message = message
        self.missing = missing or []
        super().__init__(message)


class AccountDeletionError(ServiceError):
    """Raised when the auth service refuses or fails to delete an account."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.message = message
        self.status_code = status_code
        super().__init__(message)
