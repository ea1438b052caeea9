"""
Pydantic schemas for push API request/response validation.

Provides data validation and serialization for:
- Push fan-out requests (send-push)
- Push subscription management (subscribe, unsubscribe)
- VAPID key discovery
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_serializer, field_validator


# ============================================================================
# Push Fan-out Schemas
# ============================================================================


class SendPushRequest(BaseModel):
    """
    Schema for a push fan-out request.

    Every field is optional at the schema level; missing title or targets
    are reported by the handler as a 400 with an error message.
    userIds wins over userId when it is non-empty.
    """

    title: Optional[str] = None
    body: Optional[str] = None
    url: Optional[str] = None
    user_id: Optional[str] = Field(default=None, alias="userId")
    user_ids: Optional[List[str]] = Field(default=None, alias="userIds")

    model_config = {
        "populate_by_name": True,
        "json_schema_extra": {
            "example": {
                "title": "New like",
                "body": "alex liked your card",
                "url": "/card/5d2a1e0c-8f3b-4c6d-a1e2-3b4c5d6e7f80",
                "userIds": ["0b9f6c2e-4e9c-4a8b-9d44-1f1c3a0f6b11"],
            }
        },
    }

    def target_user_ids(self) -> List[str]:
        """Resolve the target list from userIds or userId."""
        ids = [u for u in (self.user_ids or []) if u]
        if ids:
            return ids
        return [self.user_id] if self.user_id else []


class SendPushResponse(BaseModel):
    """Response schema for a push fan-out."""

    sent: int = Field(..., ge=0, description="Subscriptions delivered to")


# ============================================================================
# Push Subscription Schemas
# ============================================================================


class PushSubscriptionKeys(BaseModel):
    p256dh: str = Field(..., min_length=1, description="Base64url-encoded ECDH public key")
    auth: str = Field(..., min_length=1, description="Base64url-encoded auth secret")


class PushSubscriptionCreate(BaseModel):
    """
    Schema for saving a push subscription, in the browser's
    PushSubscription.toJSON() shape.
    """

    endpoint: str = Field(..., max_length=1024, description="Push service endpoint URL (must be HTTPS)")
    keys: PushSubscriptionKeys

    @field_validator("endpoint")
    @classmethod
    def validate_endpoint_https(cls, v: str) -> str:
        """Ensure endpoint uses HTTPS."""
        if not v.startswith("https://"):
            raise ValueError("Push subscription endpoint must use HTTPS")
        return v

    model_config = {
        "json_schema_extra": {
            "example": {
                "endpoint": "https://fcm.googleapis.com/fcm/send/abc123...",
                "keys": {
                    "p256dh": "BNcRdreALRFXTkOOUHK1EtK2wtaz5Ry4YfYCA_0...",
                    "auth": "tBHItJI5svbpC7htUH8g...",
                },
            }
        }
    }


class PushSubscriptionResponse(BaseModel):
    """Response schema for a push subscription."""

    endpoint: str
    created_at: datetime

    @field_serializer("created_at")
    @classmethod
    def serialize_datetime_utc(cls, v: datetime) -> str:
        """Serialize datetime as ISO 8601 with explicit UTC timezone."""
        return v.isoformat() + "Z"

    model_config = {"from_attributes": True}


class PushSubscriptionRemove(BaseModel):
    """Schema for removing a push subscription by endpoint."""

    endpoint: str = Field(..., description="The push service endpoint URL to unsubscribe")


class VapidKeyResponse(BaseModel):
    """Response schema for VAPID public key retrieval."""

    vapid_public_key: str = Field(..., description="Base64url-encoded VAPID public key")
