"""
Device-side push subscription client.

Drives the push subscription lifecycle against an abstract platform and
persists subscriptions through a SubscriptionStore.
"""

from backend.src.client.api_client import SubscriptionApiClient
from backend.src.client.errors import (
    MissingServerKeyError,
    PermissionDeniedError,
    PermissionDismissedError,
    PermissionRevokedError,
    PushServiceAbortError,
    PushServiceTimeoutError,
    PushSubscriptionError,
    PushUnsupportedError,
    SubscribeInProgressError,
    SubscriptionStoreError,
    WorkerRegistrationError,
)
from backend.src.client.platform import (
    Permission,
    PlatformError,
    PlatformSubscription,
    PushPlatform,
    WorkerRegistration,
    url_base64_to_bytes,
)
from backend.src.client.push_manager import PushStatus, PushSubscriptionManager
from backend.src.client.store import ServiceSubscriptionStore, SubscriptionStore

__all__ = [
    "PushSubscriptionManager",
    "PushStatus",
    "SubscriptionStore",
    "ServiceSubscriptionStore",
    "SubscriptionApiClient",
    "PushPlatform",
    "WorkerRegistration",
    "PlatformSubscription",
    "PlatformError",
    "Permission",
    "url_base64_to_bytes",
    "PushSubscriptionError",
    "PushUnsupportedError",
    "PermissionDeniedError",
    "PermissionDismissedError",
    "MissingServerKeyError",
    "WorkerRegistrationError",
    "PushServiceTimeoutError",
    "PushServiceAbortError",
    "PermissionRevokedError",
    "SubscribeInProgressError",
    "SubscriptionStoreError",
]
