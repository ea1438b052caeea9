"""
Account deletion service.

Deletes a user through the hosted auth service's admin API. The admin API
needs the service role key, which bypasses row-level security, so this
runs server-side only. Once the auth user is gone, the user's push
subscriptions are purged so no further pushes are attempted.
"""

from typing import Any, Dict, Optional
from urllib.parse import quote

import httpx

from backend.src.services.exceptions import AccountDeletionError, ConfigurationError
from backend.src.services.push_subscription_service import PushSubscriptionService
from backend.src.utils.logging_config import get_logger


logger = get_logger("services")


ADMIN_USERS_PATH = "/auth/v1/admin/users"
DEFAULT_TIMEOUT = 15.0  # seconds


def _error_message(response: httpx.Response) -> str:
    """Pull a readable message out of an admin API error response."""
    try:
        data: Dict[str, Any] = response.json()
    except ValueError:
        return response.text or f"Account deletion failed with status {response.status_code}"

    if isinstance(data, dict):
        for key in ("msg", "message", "error_description", "error"):
            if data.get(key):
                return str(data[key])
    return f"Account deletion failed with status {response.status_code}"


class AccountService:
    """
    Service for deleting user accounts.

    Attributes:
        supabase_url: Base URL of the hosted backend
        service_role_key: Admin key for the auth admin API
    """

    def __init__(
        self,
        supabase_url: str,
        service_role_key: str,
        http_client: Optional[httpx.AsyncClient] = None,
        subscription_service: Optional[PushSubscriptionService] = None,
    ):
        """
        Initialize account service.

        Args:
            supabase_url: Base URL of the hosted backend
            service_role_key: Service role key (server-side secret)
            http_client: Client to use; one is created per call if omitted
            subscription_service: Used to purge subscriptions after deletion
        """
        self.supabase_url = (supabase_url or "").rstrip("/")
        self.service_role_key = service_role_key or ""
        self._client = http_client
        self.subscription_service = subscription_service

    def check_configured(self) -> None:
        """
        Raises:
            ConfigurationError: If the service role key or URL is missing
        """
        if not self.service_role_key:
            raise ConfigurationError(
                "Missing Service Role Key", missing=["SUPABASE_SERVICE_ROLE_KEY"]
            )
        if not self.supabase_url:
            raise ConfigurationError("Missing Supabase URL", missing=["SUPABASE_URL"])

    def _headers(self) -> Dict[str, str]:
        return {
            "apikey": self.service_role_key,
            "Authorization": f"Bearer {self.service_role_key}",
            "Accept": "application/json",
        }

    async def delete_account(self, user_id: str) -> None:
        """
        Delete an auth user and purge their push subscriptions.

        Args:
            user_id: Auth user id

        Raises:
            ConfigurationError: If admin credentials are missing
            AccountDeletionError: If the admin API rejects the request or
                cannot be reached
        """
        self.check_configured()

        url = f"{self.supabase_url}{ADMIN_USERS_PATH}/{quote(user_id, safe='')}"
        try:
            if self._client is not None:
                response = await self._client.delete(url, headers=self._headers())
            else:
                async with httpx.AsyncClient(timeout=DEFAULT_TIMEOUT) as client:
                    response = await client.delete(url, headers=self._headers())
        except httpx.ConnectError as e:
            raise AccountDeletionError(f"Failed to connect to auth service: {e}")
        except httpx.TimeoutException as e:
            raise AccountDeletionError(f"Auth service timed out: {e}")
        except httpx.HTTPError as e:
            raise AccountDeletionError(f"Auth service request failed: {e}")

        if response.status_code >= 400:
            message = _error_message(response)
            logger.warning(
                f"Account deletion rejected: {message}",
                extra={"user_id": user_id, "status_code": response.status_code},
            )
            raise AccountDeletionError(message, status_code=response.status_code)

        logger.info("Deleted user account", extra={"user_id": user_id})

        if self.subscription_service is not None:
            removed = self.subscription_service.remove_all_for_user(user_id)
            if removed:
                logger.info(
                    f"Purged {removed} push subscriptions of deleted user",
                    extra={"user_id": user_id},
                )
