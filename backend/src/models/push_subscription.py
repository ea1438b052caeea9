"""
PushSubscription model for Web Push notification subscriptions.

Stores the push service endpoint and encryption keys needed to deliver
push notifications to a specific user's device/browser.
"""

from datetime import datetime

from sqlalchemy import Column, DateTime, Index, String

from backend.src.models import Base
from backend.src.models.mixins import IdentityMixin


class PushSubscription(Base, IdentityMixin):
    """
    Web Push subscription for a specific user on a specific device/browser.

    Attributes:
        user_id: Owning user
        endpoint: Push service URL. Globally unique: an endpoint belongs to
                  exactly one browser installation.
        p256dh: ECDH public key for payload encryption (Base64url)
        auth: Auth secret for message authentication (Base64url)

    Lifecycle:
        Created when a user enables push on a device (replacing any row with
        the same endpoint). Removed when the user disables push on that
        device, or when the push service reports the endpoint gone.
    """

    __tablename__ = "user_subscriptions"

    user_id = Column(String(36), nullable=False, index=True)
    endpoint = Column(String(1024), nullable=False)
    p256dh = Column(String(255), nullable=False)
    auth = Column(String(255), nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (
        Index("ix_user_subscriptions_endpoint", "endpoint", unique=True),
    )

    def __repr__(self) -> str:
        return f"<PushSubscription(user_id={self.user_id}, endpoint='{self.endpoint[:60]}')>"
