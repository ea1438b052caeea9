"""
Service layer for business logic.

This module exports all service classes for use in API endpoints.
"""

from backend.src.services.exceptions import (
    ServiceError,
    NotFoundError,
    ValidationError,
    ConfigurationError,
    AccountDeletionError,
)
from backend.src.services.notification_service import NotificationService
from backend.src.services.push_subscription_service import PushSubscriptionService
from backend.src.services.push_service import (
    DispatchResult,
    PushMessage,
    PushService,
)
from backend.src.services.account_service import AccountService

__all__ = [
    "ServiceError",
    "NotFoundError",
    "ValidationError",
    "ConfigurationError",
    "AccountDeletionError",
    "NotificationService",
    "PushSubscriptionService",
    "PushService",
    "PushMessage",
    "DispatchResult",
    "AccountService",
]
