"""
Push API endpoints for fan-out and device subscriptions.

Provides endpoints for:
- Push fan-out to a set of users (send-push)
- Push subscription management (subscribe, unsubscribe)
- VAPID public key retrieval

send-push answers {error} bodies with the status codes its callers expect:
500 for missing configuration, 400 for missing input, 200 {sent} otherwise.
"""

from typing import Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from backend.src.config.settings import AppSettings, get_settings
from backend.src.db.database import get_db
from backend.src.middleware.auth import UserContext, require_auth
from backend.src.schemas.push import (
    PushSubscriptionCreate,
    PushSubscriptionRemove,
    PushSubscriptionResponse,
    SendPushRequest,
    SendPushResponse,
    VapidKeyResponse,
)
from backend.src.services.exceptions import ConfigurationError, ValidationError
from backend.src.services.push_service import PushMessage, PushService
from backend.src.services.push_subscription_service import PushSubscriptionService
from backend.src.utils.logging_config import get_logger
from backend.src.utils.rate_limit import limiter


logger = get_logger("api")

router = APIRouter(tags=["Push"])


# ============================================================================
# Dependencies
# ============================================================================


def get_push_subscription_service(
    db: Session = Depends(get_db),
) -> PushSubscriptionService:
    """Create PushSubscriptionService instance with database session."""
    return PushSubscriptionService(db=db)


def get_push_service(
    db: Session = Depends(get_db),
    settings: AppSettings = Depends(get_settings),
) -> PushService:
    """Create PushService instance with database session and VAPID config."""
    return PushService.from_settings(db, settings)


# ============================================================================
# Fan-out
# ============================================================================


@router.post(
    "/send-push",
    response_model=SendPushResponse,
    summary="Send a push notification to users",
)
@limiter.limit("60/minute")
async def send_push(
    request: Request,
    body: Optional[SendPushRequest] = Body(default=None),
    service: PushService = Depends(get_push_service),
):
    """
    Deliver a push message to every subscription of the target users.

    Subscriptions the push service reports as gone are deleted. Partial
    failure only lowers the sent count.
    """
    try:
        service.check_configured()
    except ConfigurationError as e:
        logger.error(f"send-push rejected: {e.message}", extra={"missing": e.missing})
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": e.message},
        )

    body = body or SendPushRequest()
    message = PushMessage(
        title=body.title,
        user_ids=body.target_user_ids(),
        body=body.body,
        url=body.url,
    )

    try:
        result = await service.dispatch(message)
    except ValidationError as e:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": e.message},
        )
    except Exception as e:
        logger.error(f"send-push failed: {e}", exc_info=True)
        content = {"error": str(e) or "Server error"}
        status_code = getattr(e, "status_code", None)
        if isinstance(status_code, int):
            content["statusCode"] = status_code
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=content,
        )

    return SendPushResponse(sent=result.sent)


# ============================================================================
# Push Subscription Endpoints
# ============================================================================


@router.get(
    "/push/vapid-key",
    response_model=VapidKeyResponse,
    summary="Get VAPID public key",
)
async def get_vapid_key(settings: AppSettings = Depends(get_settings)):
    """
    Returns the VAPID public key needed by the browser to create push subscriptions.

    Returns 503 if VAPID keys are not configured on the server.
    """
    if not settings.vapid_configured:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Push notifications are not configured on this server",
        )
    return VapidKeyResponse(vapid_public_key=settings.vapid_public_key)


@router.post(
    "/push/subscribe",
    response_model=PushSubscriptionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a push subscription",
)
@limiter.limit("10/minute")
async def create_push_subscription(
    request: Request,
    body: PushSubscriptionCreate,
    ctx: UserContext = Depends(require_auth),
    service: PushSubscriptionService = Depends(get_push_subscription_service),
):
    """
    Register a Web Push subscription for the authenticated user's current device.

    Any existing row with the same endpoint is replaced.
    """
    try:
        subscription = service.replace_subscription(
            user_id=ctx.user_id,
            endpoint=body.endpoint,
            p256dh=body.keys.p256dh,
            auth=body.keys.auth,
        )
    except ValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=e.message,
        ) from e

    return PushSubscriptionResponse.model_validate(subscription)


@router.delete(
    "/push/subscribe",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Remove a push subscription",
)
@limiter.limit("10/minute")
async def remove_push_subscription(
    request: Request,
    body: PushSubscriptionRemove,
    ctx: UserContext = Depends(require_auth),
    service: PushSubscriptionService = Depends(get_push_subscription_service),
):
    """
    Remove the push subscription matching the given endpoint for the authenticated user.

    Removing a subscription that no longer exists succeeds.
    """
    service.remove_subscription(user_id=ctx.user_id, endpoint=body.endpoint)
