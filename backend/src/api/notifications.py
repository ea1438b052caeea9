"""
Notifications API endpoints for the bell, the grouped feed and event recording.

Provides endpoints for:
- Notification history (recent list, grouped feed, unread count)
- Read state (mark all as read)
- Deletion (one, a group, all, read only)
- Recording an event caused by the authenticated user, with an optional
  fire-and-forget push to the receiver

All endpoints act on the authenticated user's own notifications.
"""

from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query, Request, status
from sqlalchemy.orm import Session

from backend.src.config.settings import AppSettings, get_settings
from backend.src.db.database import get_db
from backend.src.middleware.auth import UserContext, require_auth
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
from backend.src.services.exceptions import NotFoundError, ValidationError
from backend.src.services.notification_grouping import (
    NotificationGroup,
    build_group_text,
    group_href,
    resolve_locale,
)
from backend.src.services.notification_service import (
    BELL_LIMIT,
    FEED_LIMIT,
    NotificationService,
)
from backend.src.services.push_service import PushMessage, PushService
from backend.src.utils.logging_config import get_logger
from backend.src.utils.rate_limit import limiter


logger = get_logger("api")

router = APIRouter(
    prefix="/notifications",
    tags=["Notifications"],
)


# ============================================================================
# Dependencies
# ============================================================================


def get_notification_service(
    db: Session = Depends(get_db),
) -> NotificationService:
    """Create NotificationService instance with database session."""
    return NotificationService(db=db)


def _group_response(group: NotificationGroup, locale: str) -> NotificationGroupResponse:
    return NotificationGroupResponse(
        key=group.key,
        type=group.type,
        actors=[
            ActorResponse(id=a.id, username=a.username, avatar=a.avatar)
            for a in group.actors
        ],
        event_ids=list(group.event_ids),
        count=group.count,
        card_id=group.card_id,
        card_title=group.card_title,
        latest_at=group.latest_at,
        is_read=group.is_read,
        text=build_group_text(group, locale),
        href=group_href(group),
    )


# ============================================================================
# Notification History Endpoints
# ============================================================================


@router.get(
    "",
    response_model=NotificationListResponse,
    summary="List recent notifications",
)
async def list_notifications(
    limit: int = Query(BELL_LIMIT, ge=1, le=FEED_LIMIT),
    ctx: UserContext = Depends(require_auth),
    service: NotificationService = Depends(get_notification_service),
):
    """
    Recent notification events for the bell dropdown, newest first, with
    actor profiles and card titles attached.
    """
    events = service.list_enriched(ctx.user_id, limit=limit)
    return NotificationListResponse(
        items=[
            NotificationResponse(
                id=e.id,
                type=e.type,
                is_read=e.is_read,
                created_at=e.created_at,
                actor=(
                    ActorResponse(id=e.actor.id, username=e.actor.username, avatar=e.actor.avatar)
                    if e.actor
                    else None
                ),
                card_id=e.card_id,
                card_title=e.card_title,
            )
            for e in events
        ],
        unread_count=service.get_unread_count(ctx.user_id),
    )


@router.get(
    "/grouped",
    response_model=GroupedNotificationsResponse,
    summary="Grouped notification feed",
)
async def get_grouped_notifications(
    request: Request,
    lang: Optional[str] = Query(None, max_length=35, description="Locale for group text (en, ru)"),
    mark_read: bool = Query(True, description="Mark all notifications read after loading"),
    ctx: UserContext = Depends(require_auth),
    service: NotificationService = Depends(get_notification_service),
):
    """
    The notification feed: events grouped by type and card (all follows in
    one group), newest group first.

    Groups show read state as it was before this request; with mark_read
    every unread notification is marked read afterwards.
    """
    locale = resolve_locale(lang or request.headers.get("accept-language"))
    groups = service.get_grouped(ctx.user_id, limit=FEED_LIMIT, mark_read=mark_read)
    return GroupedNotificationsResponse(
        groups=[_group_response(g, locale) for g in groups],
        locale=locale,
    )


@router.get(
    "/unread-count",
    response_model=UnreadCountResponse,
    summary="Get unread notification count",
)
async def get_unread_count(
    ctx: UserContext = Depends(require_auth),
    service: NotificationService = Depends(get_notification_service),
):
    """
    Returns the number of unread notifications for the authenticated user.

    Used for badge display on the bell icon.
    """
    return UnreadCountResponse(unread_count=service.get_unread_count(ctx.user_id))


@router.post(
    "/mark-all-read",
    response_model=MarkAllReadResponse,
    summary="Mark all notifications as read",
)
async def mark_all_read(
    ctx: UserContext = Depends(require_auth),
    service: NotificationService = Depends(get_notification_service),
):
    """
    Mark all unread notifications as read for the authenticated user.
    """
    count = service.mark_all_as_read(ctx.user_id)
    return MarkAllReadResponse(updated_count=count)


# ============================================================================
# Deletion Endpoints
# ============================================================================


@router.post(
    "/delete",
    response_model=DeleteNotificationsResponse,
    summary="Delete a notification group",
)
async def delete_notification_group(
    body: DeleteNotificationsRequest,
    ctx: UserContext = Depends(require_auth),
    service: NotificationService = Depends(get_notification_service),
):
    """
    Delete the notifications listed in ids (the event_ids of one group).

    Ids that are not the caller's are ignored.
    """
    count = service.delete_notifications(ctx.user_id, body.ids)
    return DeleteNotificationsResponse(deleted_count=count)


@router.delete(
    "",
    response_model=DeleteNotificationsResponse,
    summary="Clear notifications",
)
async def clear_notifications(
    read_only: bool = Query(False, description="Only delete notifications already read"),
    ctx: UserContext = Depends(require_auth),
    service: NotificationService = Depends(get_notification_service),
):
    """
    Delete all of the caller's notifications, or only the read ones.
    """
    count = service.delete_all(ctx.user_id, read_only=read_only)
    return DeleteNotificationsResponse(deleted_count=count)


@router.delete(
    "/{notification_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a notification",
)
async def delete_notification(
    notification_id: str,
    ctx: UserContext = Depends(require_auth),
    service: NotificationService = Depends(get_notification_service),
):
    """
    Delete a single notification owned by the caller.
    """
    try:
        service.delete_notification(ctx.user_id, notification_id)
    except NotFoundError as err:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Notification not found",
        ) from err


# ============================================================================
# Event Recording
# ============================================================================


@router.post(
    "/events",
    response_model=NotificationEventResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Record a notification event",
)
@limiter.limit("60/minute")
async def record_notification_event(
    request: Request,
    body: NotificationEventCreate,
    background_tasks: BackgroundTasks,
    ctx: UserContext = Depends(require_auth),
    db: Session = Depends(get_db),
    settings: AppSettings = Depends(get_settings),
    service: NotificationService = Depends(get_notification_service),
):
    """
    Record an event (like, comment, follow, ...) caused by the authenticated
    user and addressed to receiver_id.

    Nothing is recorded when the caller is the receiver. When a title is
    given and push is configured, a push to the receiver is queued after
    the response; its outcome is not reported back.
    """
    try:
        notification = service.record_event(
            receiver_id=body.receiver_id,
            actor_id=ctx.user_id,
            type=body.type,
            card_id=body.card_id,
        )
    except ValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=e.message,
        ) from e

    if notification is None:
        return NotificationEventResponse(recorded=False)

    push_scheduled = False
    if body.title:
        if settings.vapid_configured:
            PushService.from_settings(db, settings).schedule_dispatch(
                background_tasks,
                PushMessage(
                    title=body.title,
                    user_ids=[body.receiver_id],
                    body=body.body,
                    url=body.url,
                ),
            )
            push_scheduled = True
        else:
            logger.debug(
                "Push not configured, skipping event push",
                extra={"notification_id": notification.id},
            )

    return NotificationEventResponse(
        recorded=True,
        id=notification.id,
        push_scheduled=push_scheduled,
    )
