"""
Notification service for recording, listing, and managing notification events.

Provides business logic for:
- Recording raw events addressed to a receiver (never to the actor themselves)
- Listing recent events, enriched with actor profiles and card titles
- Building the grouped notification feed
- Read-state flips and receiver-scoped deletion
"""

from datetime import datetime
from typing import Dict, List, Optional, Sequence

from sqlalchemy import func
from sqlalchemy.orm import Session

from backend.src.models.card import Card
from backend.src.models.notification import Notification
from backend.src.models.profile import Profile
from backend.src.services.exceptions import NotFoundError, ValidationError
from backend.src.services.notification_grouping import (
    Actor,
    NotificationEvent,
    NotificationGroup,
    group_notifications,
)
from backend.src.utils.logging_config import get_logger


logger = get_logger("services")


# Row limits used by the two notification views
BELL_LIMIT = 20
FEED_LIMIT = 100


class NotificationService:
    """
    Service for the receiver-owned notification event log.

    Rows are immutable apart from is_read. Groups are derived from them on
    every load and never persisted.
    """

    def __init__(self, db: Session):
        """
        Initialize notification service.

        Args:
            db: SQLAlchemy database session
        """
        self.db = db

    # ========================================================================
    # Recording
    # ========================================================================

    def record_event(
        self,
        receiver_id: str,
        actor_id: Optional[str],
        type: str,
        card_id: Optional[str] = None,
    ) -> Optional[Notification]:
        """
        Record a raw notification event.

        Args:
            receiver_id: User the event is addressed to
            actor_id: User who triggered it (None for system events)
            type: Event tag (like, comment, comment_like, follow, ...)
            card_id: Target card, if any

        Returns:
            Created Notification, or None when the actor is the receiver

        Raises:
            ValidationError: If receiver_id or type is empty
        """
        if not receiver_id:
            raise ValidationError("receiver_id is required", field="receiver_id")
        if not type:
            raise ValidationError("type is required", field="type")

        if actor_id is not None and actor_id == receiver_id:
            logger.debug(
                "Skipping self-notification",
                extra={"user_id": receiver_id, "type": type},
            )
            return None

        notification = Notification(
            type=type,
            actor_id=actor_id,
            receiver_id=receiver_id,
            card_id=card_id,
            is_read=False,
            created_at=datetime.utcnow(),
        )
        self.db.add(notification)
        self.db.commit()
        self.db.refresh(notification)
        logger.info(
            "Recorded notification",
            extra={
                "notification_id": notification.id,
                "type": type,
                "receiver_id": receiver_id,
            },
        )
        return notification

    # ========================================================================
    # Listing
    # ========================================================================

    def list_recent(self, receiver_id: str, limit: int = BELL_LIMIT) -> List[Notification]:
        """
        Raw rows for a receiver, newest first.

        Args:
            receiver_id: Owning user
            limit: Maximum rows returned

        Returns:
            List of Notification rows
        """
        return (
            self.db.query(Notification)
            .filter(Notification.receiver_id == receiver_id)
            .order_by(Notification.created_at.desc(), Notification.id.desc())
            .limit(limit)
            .all()
        )

    def list_enriched(self, receiver_id: str, limit: int = BELL_LIMIT) -> List[NotificationEvent]:
        """
        Recent rows joined with actor profiles and card titles.

        Profiles and cards are fetched with one IN lookup each and joined in
        memory. A missing profile leaves the actor unset; a missing card
        leaves the title unset.
        """
        rows = self.list_recent(receiver_id, limit)
        if not rows:
            return []

        actor_ids = {r.actor_id for r in rows if r.actor_id}
        card_ids = {r.card_id for r in rows if r.card_id}

        profiles: Dict[str, Profile] = {}
        if actor_ids:
            profiles = {
                p.id: p
                for p in self.db.query(Profile).filter(Profile.id.in_(actor_ids)).all()
            }

        card_titles: Dict[str, str] = {}
        if card_ids:
            card_titles = {
                c.id: c.title
                for c in self.db.query(Card).filter(Card.id.in_(card_ids)).all()
            }

        events = []
        for row in rows:
            profile = profiles.get(row.actor_id) if row.actor_id else None
            actor = (
                Actor(id=profile.id, username=profile.username, avatar=profile.avatar)
                if profile
                else None
            )
            events.append(
                NotificationEvent(
                    id=row.id,
                    type=row.type,
                    created_at=row.created_at,
                    is_read=bool(row.is_read),
                    actor=actor,
                    card_id=row.card_id,
                    card_title=card_titles.get(row.card_id) if row.card_id else None,
                )
            )
        return events

    def get_grouped(
        self,
        receiver_id: str,
        limit: int = FEED_LIMIT,
        mark_read: bool = True,
    ) -> List[NotificationGroup]:
        """
        Build the grouped notification feed.

        Groups reflect read state as it was when the feed was opened. With
        mark_read, every unread row of the receiver is flipped afterwards.

        Args:
            receiver_id: Owning user
            limit: Maximum raw rows considered
            mark_read: Flip unread rows after grouping

        Returns:
            Groups ordered newest first
        """
        events = self.list_enriched(receiver_id, limit)
        groups = group_notifications(events)

        if mark_read and any(not e.is_read for e in events):
            self.mark_all_as_read(receiver_id)

        return groups

    def get_unread_count(self, receiver_id: str) -> int:
        """
        Get the count of unread notifications for a receiver.

        Uses the (receiver_id, is_read) index.
        """
        return (
            self.db.query(func.count(Notification.id))
            .filter(
                Notification.receiver_id == receiver_id,
                Notification.is_read.is_(False),
            )
            .scalar()
        )

    # ========================================================================
    # Mutations
    # ========================================================================

    def mark_all_as_read(self, receiver_id: str) -> int:
        """
        Mark all unread notifications as read for a receiver.

        Returns:
            Number of notifications that were marked as read
        """
        updated = (
            self.db.query(Notification)
            .filter(
                Notification.receiver_id == receiver_id,
                Notification.is_read.is_(False),
            )
            .update({"is_read": True}, synchronize_session="fetch")
        )
        self.db.commit()
        return updated

    def delete_notification(self, receiver_id: str, notification_id: str) -> None:
        """
        Delete a single notification owned by the receiver.

        Raises:
            NotFoundError: If no such row belongs to the receiver
        """
        notification = (
            self.db.query(Notification)
            .filter(
                Notification.id == notification_id,
                Notification.receiver_id == receiver_id,
            )
            .first()
        )
        if not notification:
            raise NotFoundError("Notification", notification_id)

        self.db.delete(notification)
        self.db.commit()

    def delete_notifications(self, receiver_id: str, ids: Sequence[str]) -> int:
        """
        Delete a set of notifications (a display group) owned by the receiver.

        Ids that do not exist or belong to someone else are ignored.

        Returns:
            Number of rows deleted
        """
        if not ids:
            return 0

        count = (
            self.db.query(Notification)
            .filter(
                Notification.receiver_id == receiver_id,
                Notification.id.in_(list(ids)),
            )
            .delete(synchronize_session=False)
        )
        self.db.commit()
        return count

    def delete_all(self, receiver_id: str, read_only: bool = False) -> int:
        """
        Clear a receiver's notifications.

        Args:
            receiver_id: Owning user
            read_only: Only delete rows already marked read

        Returns:
            Number of rows deleted
        """
        query = self.db.query(Notification).filter(Notification.receiver_id == receiver_id)
        if read_only:
            query = query.filter(Notification.is_read.is_(True))

        count = query.delete(synchronize_session=False)
        self.db.commit()

        if count > 0:
            logger.info(
                f"Deleted {count} notifications",
                extra={"receiver_id": receiver_id, "read_only": read_only},
            )
        return count
