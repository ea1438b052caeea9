"""
Subscription stores used by the push subscription manager.

A store persists the current device's subscription for one user, bound at
construction. Replacing deletes any row with the same endpoint first.
"""

from typing import Protocol

from backend.src.client.errors import SubscriptionStoreError
from backend.src.services.push_subscription_service import PushSubscriptionService
from backend.src.services.exceptions import ServiceError


class SubscriptionStore(Protocol):
    """Persistence for the bound user's push subscriptions."""

    async def replace(self, endpoint: str, p256dh: str, auth: str) -> None: ...

    async def remove(self, endpoint: str) -> None: ...


class ServiceSubscriptionStore:
    """
    Store backed directly by PushSubscriptionService.

    For code running next to the database (server-side shells, tests).
    """

    def __init__(self, service: PushSubscriptionService, user_id: str):
        self.service = service
        self.user_id = user_id

    async def replace(self, endpoint: str, p256dh: str, auth: str) -> None:
        try:
            self.service.replace_subscription(
                user_id=self.user_id,
                endpoint=endpoint,
                p256dh=p256dh,
                auth=auth,
            )
        except ServiceError as e:
            raise SubscriptionStoreError(str(e)) from e

    async def remove(self, endpoint: str) -> None:
        try:
            self.service.remove_subscription(user_id=self.user_id, endpoint=endpoint)
        except ServiceError as e:
            raise SubscriptionStoreError(str(e)) from e
