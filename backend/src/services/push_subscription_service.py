"""
Push subscription service for managing Web Push subscriptions.

Provides business logic for subscribing, unsubscribing, listing,
and garbage-collecting push notification subscriptions.
"""

from typing import Iterable, List

from sqlalchemy.orm import Session

from backend.src.models.push_subscription import PushSubscription
from backend.src.services.exceptions import ValidationError
from backend.src.utils.logging_config import get_logger


logger = get_logger("services")


class PushSubscriptionService:
    """
    Service for managing Web Push subscriptions.

    Handles subscription lifecycle:
    - Replace (delete by endpoint, then insert)
    - Remove (by user + endpoint)
    - List (by user, or batched for dispatch)
    - Remove gone endpoints reported by the push service
    """

    def __init__(self, db: Session):
        self.db = db

    def replace_subscription(
        self,
        user_id: str,
        endpoint: str,
        p256dh: str,
        auth: str,
    ) -> PushSubscription:
        """
        Store a subscription, replacing any row with the same endpoint.

        An endpoint belongs to one browser installation, so a row left by a
        previous subscribe (or by another user on a shared browser) is
        removed before the new one is written. Both happen in one commit.

        Args:
            user_id: Owning user
            endpoint: Push service endpoint URL
            p256dh: ECDH public key (Base64url)
            auth: Auth secret (Base64url)

        Returns:
            The new PushSubscription

        Raises:
            ValidationError: If any field is empty
        """
        for name, value in (("endpoint", endpoint), ("p256dh", p256dh), ("auth", auth)):
            if not value:
                raise ValidationError(f"{name} is required", field=name)

        replaced = (
            self.db.query(PushSubscription)
            .filter(PushSubscription.endpoint == endpoint)
            .delete(synchronize_session=False)
        )
        # Flush the delete so the unique endpoint constraint is free for the insert
        self.db.flush()

        subscription = PushSubscription(
            user_id=user_id,
            endpoint=endpoint,
            p256dh=p256dh,
            auth=auth,
        )
        self.db.add(subscription)
        self.db.commit()
        self.db.refresh(subscription)

        logger.info(
            "Replaced push subscription" if replaced else "Created push subscription",
            extra={"endpoint_prefix": endpoint[:60], "user_id": user_id},
        )
        return subscription

    def remove_subscription(self, user_id: str, endpoint: str) -> bool:
        """
        Remove a push subscription by endpoint for a specific user.

        Removing a subscription that is already gone is not an error.

        Returns:
            True if a row was removed
        """
        count = (
            self.db.query(PushSubscription)
            .filter(
                PushSubscription.endpoint == endpoint,
                PushSubscription.user_id == user_id,
            )
            .delete(synchronize_session=False)
        )
        self.db.commit()

        if count:
            logger.info(
                "Removed push subscription",
                extra={"endpoint_prefix": endpoint[:60], "user_id": user_id},
            )
        return bool(count)

    def list_subscriptions(self, user_id: str) -> List[PushSubscription]:
        """
        List all push subscriptions for a user, newest first.
        """
        return (
            self.db.query(PushSubscription)
            .filter(PushSubscription.user_id == user_id)
            .order_by(PushSubscription.created_at.desc())
            .all()
        )

    def list_for_users(self, user_ids: Iterable[str]) -> List[PushSubscription]:
        """
        Fetch subscriptions of several users in one batched read.

        Args:
            user_ids: Target users

        Returns:
            Every subscription belonging to any of them
        """
        ids = list(dict.fromkeys(u for u in user_ids if u))
        if not ids:
            return []
        return (
            self.db.query(PushSubscription)
            .filter(PushSubscription.user_id.in_(ids))
            .all()
        )

    def remove_endpoints(self, endpoints: Iterable[str]) -> int:
        """
        Remove subscriptions the push service reported as gone.

        Args:
            endpoints: Invalid push service endpoints

        Returns:
            Number of subscriptions removed
        """
        targets = list(set(endpoints))
        if not targets:
            return 0

        count = (
            self.db.query(PushSubscription)
            .filter(PushSubscription.endpoint.in_(targets))
            .delete(synchronize_session=False)
        )
        self.db.commit()

        if count > 0:
            logger.info(f"Removed {count} gone push subscriptions")
        return count

    def remove_all_for_user(self, user_id: str) -> int:
        """
        Remove every subscription of a user (account deletion).

        Returns:
            Number of subscriptions removed
        """
        count = (
            self.db.query(PushSubscription)
            .filter(PushSubscription.user_id == user_id)
            .delete(synchronize_session=False)
        )
        self.db.commit()
        return count
