"""
Push subscription failures surfaced to the user.

Every failure class carries its own user-facing message. Raw platform or
transport errors are translated into one of these before they reach the
caller; they stay reachable through __cause__.
"""

from typing import Optional


class PushSubscriptionError(Exception):
    """Base class; also used for failures with no more specific cause."""

    default_message = "Unexpected error while enabling push notifications."
    retryable = False

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class PushUnsupportedError(PushSubscriptionError):
    default_message = "Push notifications are not supported by this browser."


class PermissionDeniedError(PushSubscriptionError):
    default_message = "Push notifications are blocked in the browser settings."


class PermissionDismissedError(PushSubscriptionError):
    default_message = "Notification permission was not granted."


class MissingServerKeyError(PushSubscriptionError):
    default_message = "Push is not configured: the server public key is missing."


class WorkerRegistrationError(PushSubscriptionError):
    default_message = "The background worker could not be activated. Reload the page and try again."


class PushServiceTimeoutError(PushSubscriptionError):
    """The push service did not answer the subscribe call in time."""

    default_message = (
        "The push service did not respond in time. "
        "It may be blocked on this network; try again later or from another network."
    )
    retryable = True


class PushServiceAbortError(PushSubscriptionError):
    """The browser could not reach the push service at all."""

    default_message = (
        "The browser could not connect to the push service. "
        "Check VPN or firewall settings, or unregister the service worker and try again."
    )
    retryable = True


class PermissionRevokedError(PushSubscriptionError):
    default_message = "Notification permission was revoked while subscribing."


class SubscribeInProgressError(PushSubscriptionError):
    default_message = "A subscription is already in progress, please wait."


class SubscriptionStoreError(PushSubscriptionError):
    """Saving or removing the subscription on the server failed."""

    default_message = "The subscription could not be saved. Please try again."
    retryable = True
