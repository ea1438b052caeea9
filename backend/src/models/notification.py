"""
Notification model for the raw event log.

One row per event (like, comment, comment_like, follow) addressed to a
receiver. Rows are immutable apart from the is_read flag; they are deleted
individually or in bulk by their receiver. Display groups are derived from
these rows on every load and never stored.
"""

from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, Index, String

from backend.src.models import Base
from backend.src.models.mixins import IdentityMixin


class Notification(Base, IdentityMixin):
    """
    Raw notification event.

    Attributes:
        type: Event tag (like, comment, comment_like, follow). Unknown tags
              are stored as-is and rendered with a generic label.
        actor_id: User who triggered the event (null for system events)
        receiver_id: User the event is addressed to (owner of the row)
        card_id: Target card, if the event concerns one
        is_read: Flipped to true when the receiver opens the feed
        created_at: Event time (UTC)
    """

    __tablename__ = "notifications"

    type = Column(String(30), nullable=False)
    actor_id = Column(String(36), nullable=True)
    receiver_id = Column(String(36), nullable=False, index=True)
    card_id = Column(String(36), nullable=True)
    is_read = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)

    __table_args__ = (
        Index("ix_notifications_receiver_unread", "receiver_id", "is_read"),
    )

    def __repr__(self) -> str:
        return (
            f"<Notification(id={self.id}, type='{self.type}', "
            f"receiver_id={self.receiver_id}, is_read={self.is_read})>"
        )
