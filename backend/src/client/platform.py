"""
Platform interfaces the push subscription manager is written against.

A browser shell, a native wrapper or a test double implements these. All
waiting methods are coroutines; the manager bounds them with timeouts.
"""

import base64
import enum
from typing import Optional, Protocol


DEFAULT_WORKER_SCRIPT = "/sw.js"
DEFAULT_WORKER_SCOPE = "/"


class Permission(str, enum.Enum):
    """Notification permission as reported by the platform."""

    DEFAULT = "default"
    GRANTED = "granted"
    DENIED = "denied"


class PlatformError(Exception):
    """
    Error raised by a platform call.

    Attributes:
        name: Platform error name (e.g. "AbortError", "NotAllowedError")
    """

    def __init__(self, name: str, message: str = ""):
        self.name = name
        super().__init__(message or name)


class PlatformSubscription(Protocol):
    """An active push subscription held by the platform."""

    endpoint: str
    p256dh: str
    auth: str

    async def unsubscribe(self) -> bool: ...


class WorkerRegistration(Protocol):
    """A registered background worker."""

    async def wait_until_activated(self) -> None:
        """
        Resolve once the worker reaches the activated state.

        Driven by the worker's state-change events. Raises PlatformError if
        the worker becomes redundant.
        """
        ...

    async def get_subscription(self) -> Optional[PlatformSubscription]: ...

    async def subscribe(self, application_server_key: bytes) -> PlatformSubscription: ...


class PushPlatform(Protocol):
    """Capability, permission and worker APIs of the runtime."""

    def is_supported(self) -> bool: ...

    def permission(self) -> str: ...

    async def request_permission(self) -> str: ...

    async def register_worker(self, script: str, scope: str) -> WorkerRegistration: ...

    async def get_registration(self, script: str) -> Optional[WorkerRegistration]: ...


def url_base64_to_bytes(value: str) -> bytes:
    """
    Decode a URL-safe base64 string that may lack padding.

    Used to turn the VAPID public key into the application server key.

    Raises:
        ValueError: If the value holds characters outside the URL-safe alphabet
    """
    padding = "=" * (-len(value) % 4)
    return base64.b64decode(value + padding, altchars=b"-_", validate=True)
