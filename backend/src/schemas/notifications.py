"""
Pydantic schemas for notification API request/response validation.

Provides data validation and serialization for:
- The recent (bell) list of enriched events
- The grouped notification feed
- Unread count, read-state and deletion operations
- Recording events from feature code
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_serializer


def _utc_iso(v: Optional[datetime]) -> Optional[str]:
    """Serialize naive UTC datetimes as ISO 8601 with an explicit Z."""
    if v is None:
        return None
    if v.tzinfo is not None:
        return v.isoformat()
    return v.isoformat() + "Z"


# ============================================================================
# Notification History Schemas
# ============================================================================


class ActorResponse(BaseModel):
    """User who triggered a notification."""

    id: str
    username: str
    avatar: Optional[str] = None

    model_config = {"from_attributes": True}


class NotificationResponse(BaseModel):
    """Response schema for a single enriched notification event."""

    id: str
    type: str
    is_read: bool
    created_at: datetime
    actor: Optional[ActorResponse] = None
    card_id: Optional[str] = None
    card_title: Optional[str] = None

    @field_serializer("created_at")
    @classmethod
    def serialize_datetime_utc(cls, v: datetime) -> str:
        return _utc_iso(v)

    model_config = {"from_attributes": True}


class NotificationListResponse(BaseModel):
    """Response schema for the recent notification list."""

    items: List[NotificationResponse]
    unread_count: int = Field(..., ge=0)


class NotificationGroupResponse(BaseModel):
    """
    One display group of the notification feed.

    text and href are rendered for the requested locale.
    """

    key: str
    type: str
    actors: List[ActorResponse]
    event_ids: List[str]
    count: int = Field(..., ge=1, description="Number of member events")
    card_id: Optional[str] = None
    card_title: Optional[str] = None
    latest_at: datetime
    is_read: bool
    text: str
    href: str

    @field_serializer("latest_at")
    @classmethod
    def serialize_datetime_utc(cls, v: datetime) -> str:
        return _utc_iso(v)


class GroupedNotificationsResponse(BaseModel):
    """Response schema for the grouped notification feed."""

    groups: List[NotificationGroupResponse]
    locale: str


class UnreadCountResponse(BaseModel):
    """Response schema for unread notification count."""

    unread_count: int = Field(..., ge=0, description="Number of unread notifications")


class MarkAllReadResponse(BaseModel):
    """Response schema for mark-all-read."""

    updated_count: int = Field(..., ge=0)


class DeleteNotificationsRequest(BaseModel):
    """Delete a display group by its event ids."""

    ids: List[str] = Field(..., min_length=1, max_length=500)


class DeleteNotificationsResponse(BaseModel):
    """Response schema for bulk deletion."""

    deleted_count: int = Field(..., ge=0)


# ============================================================================
# Event Recording Schemas
# ============================================================================


class NotificationEventCreate(BaseModel):
    """
    Schema for recording an event caused by the authenticated user.

    Optional title/body/url also send a push to the receiver.
    """

    type: str = Field(..., min_length=1, max_length=30)
    receiver_id: str = Field(..., min_length=1, max_length=36)
    card_id: Optional[str] = Field(default=None, max_length=36)
    title: Optional[str] = Field(default=None, max_length=200)
    body: Optional[str] = Field(default=None, max_length=500)
    url: Optional[str] = Field(default=None, max_length=1024)

    model_config = {
        "json_schema_extra": {
            "example": {
                "type": "comment",
                "receiver_id": "0b9f6c2e-4e9c-4a8b-9d44-1f1c3a0f6b11",
                "card_id": "5d2a1e0c-8f3b-4c6d-a1e2-3b4c5d6e7f80",
                "title": "New comment",
                "body": "alex commented on your card",
                "url": "/card/5d2a1e0c-8f3b-4c6d-a1e2-3b4c5d6e7f80#comments",
            }
        }
    }


class NotificationEventResponse(BaseModel):
    """Response schema for a recorded event."""

    recorded: bool = Field(..., description="False when the actor is the receiver")
    id: Optional[str] = None
    push_scheduled: bool = False
