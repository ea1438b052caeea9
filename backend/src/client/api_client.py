"""
HTTP subscription store.

Talks to the backend's /api/push/subscribe endpoints with the signed-in
user's access token, so the user is implied by the token.
"""

import logging
from typing import Any, Optional

import httpx

from backend.src.client.errors import SubscriptionStoreError


logger = logging.getLogger(__name__)


# ============================================================================
# Constants
# ============================================================================

SUBSCRIBE_PATH = "/api/push/subscribe"
VAPID_KEY_PATH = "/api/push/vapid-key"
DEFAULT_TIMEOUT = 15.0  # seconds


class SubscriptionApiClient:
    """
    HTTP client implementing the subscription store.

    Attributes:
        server_url: Base URL of the backend
    """

    def __init__(
        self,
        server_url: str,
        access_token: str,
        timeout: float = DEFAULT_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize the API client.

        Args:
            server_url: Base URL of the backend
            access_token: Access token of the signed-in user
            timeout: Request timeout in seconds
            transport: Optional httpx transport (tests)

        Raises:
            ValueError: If server_url or access_token is empty
        """
        if not server_url:
            raise ValueError("server_url is required")
        if not access_token:
            raise ValueError("access_token is required")

        self._server_url = server_url.rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self._server_url,
            headers={
                "Authorization": f"Bearer {access_token}",
                "Content-Type": "application/json",
                "Accept": "application/json",
            },
            timeout=timeout,
            transport=transport,
        )

    @property
    def server_url(self) -> str:
        """Get the server URL."""
        return self._server_url

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        try:
            return await self._client.request(method, path, **kwargs)
        except httpx.ConnectError as e:
            raise SubscriptionStoreError(f"Failed to connect to server: {e}")
        except httpx.TimeoutException as e:
            raise SubscriptionStoreError(f"Connection timed out: {e}")
        except httpx.HTTPError as e:
            raise SubscriptionStoreError(f"Request failed: {e}")

    async def get_vapid_public_key(self) -> str:
        """
        Fetch the server's VAPID public key.

        Raises:
            SubscriptionStoreError: If push is not configured on the server or
                the response carries no key
        """
        response = await self._request("GET", VAPID_KEY_PATH)
        if response.status_code != 200:
            raise SubscriptionStoreError(
                f"Could not fetch server key (status {response.status_code})"
            )
        try:
            key = response.json()["vapid_public_key"]
        except (ValueError, KeyError, TypeError) as e:
            raise SubscriptionStoreError("Server returned an invalid key response") from e
        if not isinstance(key, str) or not key:
            raise SubscriptionStoreError("Server returned an invalid key response")
        return key

    async def replace(self, endpoint: str, p256dh: str, auth: str) -> None:
        """Save the subscription for the signed-in user."""
        response = await self._request(
            "POST",
            SUBSCRIBE_PATH,
            json={"endpoint": endpoint, "keys": {"p256dh": p256dh, "auth": auth}},
        )
        if response.status_code in (200, 201):
            return
        if response.status_code == 401:
            raise SubscriptionStoreError("Sign in again to enable push notifications.")
        logger.warning(f"Saving subscription failed with status {response.status_code}")
        raise SubscriptionStoreError()

    async def remove(self, endpoint: str) -> None:
        """Remove the subscription; an absent subscription is fine."""
        response = await self._request("DELETE", SUBSCRIBE_PATH, json={"endpoint": endpoint})
        if response.status_code in (200, 204, 404):
            return
        raise SubscriptionStoreError(
            f"Removing subscription failed with status {response.status_code}"
        )

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()

    async def __aenter__(self) -> "SubscriptionApiClient":
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.close()
