"""
Push dispatch service.

Fans a push message out to every stored subscription of the target users
and reconciles the subscription store against the push service's answers:

1. Validate configuration (VAPID keys and subject), then input
2. Load the target users' subscriptions in one batched read
3. Deliver to every subscription concurrently, gathering all outcomes
4. Delete every subscription the push service reported as gone

Partial failure never fails the call; it only shows in the counts.
"""

import asyncio
import json
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from fastapi import BackgroundTasks
from sqlalchemy.orm import Session

from backend.src.config.settings import VAPID_SUBJECT_SCHEMES, AppSettings, get_settings
from backend.src.services.exceptions import ConfigurationError, ValidationError
from backend.src.services.push_subscription_service import PushSubscriptionService
from backend.src.utils.logging_config import get_logger


logger = get_logger("push")


# Status codes the push service uses for an expired or unsubscribed endpoint
GONE_STATUS_CODES = (404, 410)


@dataclass
class PushMessage:
    """
    Transient message addressed to a set of users.

    Attributes:
        title: Notification title (required)
        user_ids: Target users (required, non-empty)
        body: Notification text, defaults to ""
        url: Click-through target, defaults to "/"
    """

    title: Optional[str]
    user_ids: List[str] = field(default_factory=list)
    body: Optional[str] = None
    url: Optional[str] = None


@dataclass
class DispatchResult:
    """Outcome of one dispatch call."""

    sent: int = 0
    failed: int = 0
    removed: int = 0

    @property
    def attempted(self) -> int:
        return self.sent + self.failed + self.removed


class PushService:
    """
    Service for Web Push fan-out.

    Each dispatch call is independent; the only shared state is the
    subscription table, accessed through PushSubscriptionService.
    """

    def __init__(
        self,
        db: Session,
        vapid_private_key: str = "",
        vapid_claims: Optional[Dict[str, str]] = None,
        subscription_service: Optional[PushSubscriptionService] = None,
        vapid_public_key: str = "",
        icon: str = "/icon-192.png",
        badge: str = "/badge-72.png",
        ttl: int = 86400,
        session_factory: Optional[Callable[[], Session]] = None,
    ):
        """
        Initialize push service.

        Args:
            db: SQLAlchemy database session
            vapid_private_key: VAPID private key for push authentication
            vapid_claims: VAPID claims dict (e.g., {"sub": "mailto:..."})
            subscription_service: Subscription store (built from db if omitted)
            vapid_public_key: VAPID public key, checked for presence only
            icon / badge: Default payload icon and badge paths
            ttl: Seconds the push service keeps an undelivered message
            session_factory: Opens sessions for background dispatch
        """
        self.db = db
        self.vapid_private_key = vapid_private_key
        self.vapid_claims = vapid_claims or {}
        self.subscription_service = subscription_service or PushSubscriptionService(db)
        self.vapid_public_key = vapid_public_key
        self.icon = icon
        self.badge = badge
        self.ttl = ttl
        self.session_factory = session_factory

    @classmethod
    def from_settings(
        cls,
        db: Session,
        settings: Optional[AppSettings] = None,
        **kwargs: Any,
    ) -> "PushService":
        """Build a PushService from application settings."""
        settings = settings or get_settings()
        return cls(
            db=db,
            vapid_private_key=settings.vapid_private_key,
            vapid_claims=settings.vapid_claims,
            vapid_public_key=settings.vapid_public_key,
            icon=settings.push_icon,
            badge=settings.push_badge,
            ttl=settings.push_ttl_seconds,
            **kwargs,
        )

    # ========================================================================
    # Preconditions
    # ========================================================================

    def check_configured(self) -> None:
        """
        Fail fast when push signing is not configured.

        Raises:
            ConfigurationError: If the VAPID subject or either key is missing,
                or the subject is not a mailto: or https: URI
        """
        missing = []
        subject = self.vapid_claims.get("sub", "")
        if not subject:
            missing.append("VAPID_SUBJECT")
        elif not subject.startswith(VAPID_SUBJECT_SCHEMES):
            raise ConfigurationError(
                "Push is not configured: VAPID_SUBJECT must start with mailto: or https:",
                missing=["VAPID_SUBJECT"],
            )
        if not self.vapid_public_key:
            missing.append("VAPID_PUBLIC_KEY")
        if not self.vapid_private_key:
            missing.append("VAPID_PRIVATE_KEY")

        if missing:
            raise ConfigurationError(
                f"Push is not configured: missing {', '.join(missing)}",
                missing=missing,
            )

    @staticmethod
    def validate_message(message: PushMessage) -> None:
        """
        Raises:
            ValidationError: If there are no target users or no title
        """
        if not message.title:
            raise ValidationError("title is required", field="title")
        if not [u for u in message.user_ids if u]:
            raise ValidationError("userId or userIds is required", field="userIds")

    def build_payload(self, message: PushMessage) -> str:
        """
        Encode the JSON payload the service worker renders.

        Returns:
            JSON with title, body, icon, badge and url
        """
        return json.dumps({
            "title": message.title,
            "body": message.body if message.body is not None else "",
            "icon": self.icon,
            "badge": self.badge,
            "url": message.url or "/",
        })

    # ========================================================================
    # Dispatch
    # ========================================================================

    async def dispatch(self, message: PushMessage) -> DispatchResult:
        """
        Deliver a message to every subscription of its target users.

        Args:
            message: Message and target users

        Returns:
            DispatchResult; sent counts successful deliveries only

        Raises:
            ConfigurationError: If VAPID settings are missing
            ValidationError: If title or target users are missing
        """
        self.check_configured()
        self.validate_message(message)

        subscriptions = self.subscription_service.list_for_users(message.user_ids)
        result = DispatchResult()
        if not subscriptions:
            logger.debug(
                "No push subscriptions for target users",
                extra={"user_count": len(message.user_ids)},
            )
            return result

        payload_json = self.build_payload(message)

        # Snapshot row values so worker threads never touch the session
        targets = [
            {
                "endpoint": sub.endpoint,
                "keys": {"p256dh": sub.p256dh, "auth": sub.auth},
            }
            for sub in subscriptions
        ]

        outcomes = await asyncio.gather(
            *(asyncio.to_thread(self._send_push, info, payload_json) for info in targets),
            return_exceptions=True,
        )

        gone: List[str] = []
        for info, outcome in zip(targets, outcomes):
            endpoint_short = info["endpoint"][:60]
            if isinstance(outcome, PushGoneError):
                gone.append(info["endpoint"])
                logger.info(
                    "Removing expired push subscription",
                    extra={"endpoint": endpoint_short, "status_code": outcome.status_code},
                )
            elif isinstance(outcome, BaseException):
                result.failed += 1
                logger.warning(
                    f"Push delivery failed: {outcome}",
                    extra={"endpoint": endpoint_short},
                )
            else:
                result.sent += 1

        if gone:
            result.removed = self.subscription_service.remove_endpoints(gone)

        logger.info(
            "Push delivery summary",
            extra={
                "user_count": len(message.user_ids),
                "total": len(targets),
                "success": result.sent,
                "failed": result.failed,
                "removed": result.removed,
            },
        )
        return result

    def _send_push(self, subscription_info: Dict[str, Any], payload_json: str) -> None:
        """
        Send a push notification to a single subscription via pywebpush.

        Args:
            subscription_info: {"endpoint": ..., "keys": {"p256dh": ..., "auth": ...}}
            payload_json: JSON-encoded push payload

        Raises:
            PushGoneError: If the subscription returned 410 Gone or 404 Not Found
            PushDeliveryError: If delivery failed for other reasons
        """
        from pywebpush import webpush, WebPushException

        try:
            webpush(
                subscription_info=subscription_info,
                data=payload_json,
                vapid_private_key=self.vapid_private_key,
                vapid_claims=dict(self.vapid_claims),
                ttl=self.ttl,
                headers={"Urgency": "high"},
            )
        except WebPushException as e:
            status_code = None
            if getattr(e, "response", None) is not None:
                status_code = e.response.status_code
            if status_code in GONE_STATUS_CODES:
                raise PushGoneError(subscription_info["endpoint"], status_code) from e
            raise PushDeliveryError(str(e), status_code=status_code) from e
        except Exception as e:
            raise PushDeliveryError(str(e)) from e

    # ========================================================================
    # Fire-and-forget
    # ========================================================================

    def schedule_dispatch(self, background_tasks: BackgroundTasks, message: PushMessage) -> None:
        """
        Queue a dispatch to run after the response has been sent.

        Delivery is at-most-once and unconfirmed: the caller never learns
        the outcome, and failures are logged rather than raised.
        """
        background_tasks.add_task(self._dispatch_detached, message)

    async def _dispatch_detached(self, message: PushMessage) -> None:
        # The request's session is closed by the time background tasks run
        if self.session_factory is None:
            from backend.src.db.database import SessionLocal
            factory = SessionLocal
        else:
            factory = self.session_factory

        db = factory()
        try:
            service = PushService(
                db=db,
                vapid_private_key=self.vapid_private_key,
                vapid_claims=self.vapid_claims,
                vapid_public_key=self.vapid_public_key,
                icon=self.icon,
                badge=self.badge,
                ttl=self.ttl,
            )
            await service.dispatch(message)
        except Exception as e:
            logger.warning(
                f"Background push dispatch failed: {e}",
                extra={"user_count": len(message.user_ids)},
            )
        finally:
            db.close()


# ============================================================================
# Push Delivery Exceptions
# ============================================================================


class PushGoneError(Exception):
    """Raised when the push service reports the subscription gone (410/404)."""

    def __init__(self, endpoint: str, status_code: Optional[int] = 410):
        self.endpoint = endpoint
        self.status_code = status_code
        super().__init__(f"Push subscription gone: {endpoint[:60]}")


class PushDeliveryError(Exception):
    """Raised when push delivery fails."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)
