"""
Pydantic schemas for API request/response validation.
"""

from backend.src.schemas.account import DeleteAccountRequest, DeleteAccountResponse
from backend.src.schemas.notifications import (
    ActorResponse,
    DeleteNotificationsRequest,
    DeleteNotificationsResponse,
    GroupedNotificationsResponse,
    MarkAllReadResponse,
    NotificationEventCreate,
    NotificationEventResponse,
    NotificationGroupResponse,
    NotificationListResponse,
    NotificationResponse,
    UnreadCountResponse,
)
from backend.src.schemas.push import (
    PushSubscriptionCreate,
    PushSubscriptionKeys,
    PushSubscriptionRemove,
    PushSubscriptionResponse,
    SendPushRequest,
    SendPushResponse,
    VapidKeyResponse,
)

__all__ = [
    "DeleteAccountRequest",
    "DeleteAccountResponse",
    "ActorResponse",
    "DeleteNotificationsRequest",
    "DeleteNotificationsResponse",
    "GroupedNotificationsResponse",
    "MarkAllReadResponse",
    "NotificationEventCreate",
    "NotificationEventResponse",
    "NotificationGroupResponse",
    "NotificationListResponse",
    "NotificationResponse",
    "UnreadCountResponse",
    "PushSubscriptionCreate",
    "PushSubscriptionKeys",
    "PushSubscriptionRemove",
    "PushSubscriptionResponse",
    "SendPushRequest",
    "SendPushResponse",
    "VapidKeyResponse",
]
