"""
Push subscription manager.

Creates, refreshes and tears down the one push subscription a user holds on
this device, bound to the server's fixed VAPID public key.

State per device:
    unsupported -> the runtime has no push capability (terminal)
    denied      -> the user blocked notifications in the browser (terminal)
    default     -> capable, no active subscription
    subscribed  -> an active subscription exists

subscribe() moves default -> subscribed, unsubscribe() moves back. Only one
subscribe may run at a time per manager; a second call is rejected at once.
"""

import asyncio
import enum
import logging
from typing import Optional

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
    DEFAULT_WORKER_SCOPE,
    DEFAULT_WORKER_SCRIPT,
    Permission,
    PlatformError,
    PlatformSubscription,
    PushPlatform,
    WorkerRegistration,
    url_base64_to_bytes,
)
from backend.src.client.store import SubscriptionStore


logger = logging.getLogger(__name__)


ACTIVATION_TIMEOUT = 10.0  # seconds
SUBSCRIBE_TIMEOUT = 10.0  # seconds
STALE_RELEASE_DELAY = 0.3  # seconds


class PushStatus(str, enum.Enum):
    UNSUPPORTED = "unsupported"
    DENIED = "denied"
    DEFAULT = "default"
    SUBSCRIBED = "subscribed"


class PushSubscriptionManager:
    """
    Device-side push subscription lifecycle.

    Attributes:
        platform: Runtime push/worker APIs
        store: Server-side persistence for the bound user
        vapid_public_key: Base64url VAPID public key of the server
    """

    def __init__(
        self,
        platform: PushPlatform,
        store: SubscriptionStore,
        vapid_public_key: Optional[str],
        worker_script: str = DEFAULT_WORKER_SCRIPT,
        worker_scope: str = DEFAULT_WORKER_SCOPE,
        activation_timeout: float = ACTIVATION_TIMEOUT,
        subscribe_timeout: float = SUBSCRIBE_TIMEOUT,
        stale_release_delay: float = STALE_RELEASE_DELAY,
    ):
        self.platform = platform
        self.store = store
        self.vapid_public_key = vapid_public_key
        self.worker_script = worker_script
        self.worker_scope = worker_scope
        self.activation_timeout = activation_timeout
        self.subscribe_timeout = subscribe_timeout
        self.stale_release_delay = stale_release_delay
        self._subscribing = False

    @property
    def subscribing(self) -> bool:
        """True while a subscribe call is in flight."""
        return self._subscribing

    # -------------------------------------------------------------------------
    # Status
    # -------------------------------------------------------------------------

    async def active_subscription(self) -> Optional[PlatformSubscription]:
        """Current platform subscription for the worker, or None."""
        if not self.platform.is_supported():
            return None
        try:
            registration = await self.platform.get_registration(self.worker_script)
            if registration is None:
                return None
            return await registration.get_subscription()
        except PlatformError as e:
            logger.debug(f"Could not read active subscription: {e}")
            return None

    async def status(self) -> PushStatus:
        if not self.platform.is_supported():
            return PushStatus.UNSUPPORTED
        if self.platform.permission() == Permission.DENIED.value:
            return PushStatus.DENIED
        if await self.active_subscription() is not None:
            return PushStatus.SUBSCRIBED
        return PushStatus.DEFAULT

    # -------------------------------------------------------------------------
    # Subscribe
    # -------------------------------------------------------------------------

    async def subscribe(self) -> PlatformSubscription:
        """
        Enable push on this device and persist the subscription.

        Returns:
            The new platform subscription

        Raises:
            SubscribeInProgressError: If another subscribe is in flight
            PushUnsupportedError: If the runtime cannot do push
            MissingServerKeyError: If the VAPID public key is missing or malformed
            PermissionDeniedError: If notifications are blocked
            PermissionDismissedError: If the permission prompt was not granted
            WorkerRegistrationError: If the worker fails to register or activate
            PushServiceTimeoutError: If the push service did not answer in time
            PushServiceAbortError: If the push service could not be reached
            PermissionRevokedError: If permission was revoked mid-operation
            SubscriptionStoreError: If the server did not save the subscription
            PushSubscriptionError: For any other failure
        """
        # No await between the check and the set, so this is atomic on the loop
        if self._subscribing:
            raise SubscribeInProgressError()
        self._subscribing = True
        try:
            return await self._subscribe()
        finally:
            self._subscribing = False

    async def _subscribe(self) -> PlatformSubscription:
        if not self.platform.is_supported():
            raise PushUnsupportedError()
        if not self.vapid_public_key:
            raise MissingServerKeyError()
        try:
            key = url_base64_to_bytes(self.vapid_public_key)
        except ValueError as e:
            raise MissingServerKeyError(
                "Push is not configured: the server public key is malformed."
            ) from e

        await self._ensure_permission()
        registration = await self._register_worker()
        await self._teardown_stale(registration)
        subscription = await self._create_subscription(registration, key)

        try:
            await self.store.replace(
                subscription.endpoint, subscription.p256dh, subscription.auth
            )
        except PushSubscriptionError:
            raise
        except Exception as e:
            raise SubscriptionStoreError() from e

        logger.info(f"Push subscription saved: {subscription.endpoint[:60]}")
        return subscription

    async def _ensure_permission(self) -> None:
        permission = self.platform.permission()
        if permission == Permission.DENIED.value:
            raise PermissionDeniedError()
        if permission == Permission.GRANTED.value:
            return

        try:
            result = await self.platform.request_permission()
        except PlatformError as e:
            raise PushSubscriptionError(f"Permission request failed: {e}") from e
        if result == Permission.DENIED.value:
            raise PermissionDeniedError()
        if result != Permission.GRANTED.value:
            raise PermissionDismissedError()

    async def _register_worker(self) -> WorkerRegistration:
        try:
            registration = await self.platform.register_worker(
                self.worker_script, self.worker_scope
            )
            await asyncio.wait_for(
                registration.wait_until_activated(), timeout=self.activation_timeout
            )
        except asyncio.TimeoutError as e:
            raise WorkerRegistrationError(
                f"The background worker did not activate within {self.activation_timeout:g}s."
            ) from e
        except PlatformError as e:
            raise WorkerRegistrationError() from e
        return registration

    async def _teardown_stale(self, registration: WorkerRegistration) -> None:
        # A subscription made with a previous server key silently stops receiving
        try:
            existing = await registration.get_subscription()
            if existing is None:
                return
            logger.info(f"Removing stale push subscription: {existing.endpoint[:60]}")
            await existing.unsubscribe()
        except PlatformError as e:
            logger.warning(f"Stale subscription teardown failed: {e}")
            return
        await asyncio.sleep(self.stale_release_delay)

    async def _create_subscription(
        self, registration: WorkerRegistration, key: bytes
    ) -> PlatformSubscription:
        try:
            return await asyncio.wait_for(
                registration.subscribe(key), timeout=self.subscribe_timeout
            )
        except asyncio.TimeoutError as e:
            raise PushServiceTimeoutError() from e
        except PlatformError as e:
            if e.name == "AbortError":
                raise PushServiceAbortError() from e
            if e.name == "NotAllowedError":
                raise PermissionRevokedError() from e
            raise PushSubscriptionError(str(e)) from e

    # -------------------------------------------------------------------------
    # Unsubscribe
    # -------------------------------------------------------------------------

    async def unsubscribe(self) -> bool:
        """
        Disable push on this device.

        Succeeds as a no-op when no worker or no subscription exists.

        Returns:
            True if a subscription was removed

        Raises:
            SubscriptionStoreError: If the server did not remove the subscription
            PushSubscriptionError: If the platform call failed
        """
        if not self.platform.is_supported():
            return False

        try:
            registration = await self.platform.get_registration(self.worker_script)
            if registration is None:
                return False

            subscription = await registration.get_subscription()
            if subscription is None:
                return False

            endpoint = subscription.endpoint
            await subscription.unsubscribe()
        except PlatformError as e:
            raise PushSubscriptionError(
                f"Push notifications could not be disabled: {e}"
            ) from e

        try:
            await self.store.remove(endpoint)
        except PushSubscriptionError:
            raise
        except Exception as e:
            raise SubscriptionStoreError(
                "The subscription could not be removed. Please try again."
            ) from e
        logger.info(f"Push subscription removed: {endpoint[:60]}")
        return True
