"""
Account API endpoint.

POST and DELETE /delete-account share one handler. The body carries the
user id; responses use {error} bodies:
- 500 when the admin credentials are missing (checked first)
- 400 when userId is missing, with no deletion attempted
- 500 when the auth service refuses or cannot be reached
"""

from typing import Optional

from fastapi import APIRouter, Body, Depends, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from backend.src.config.settings import AppSettings, get_settings
from backend.src.db.database import get_db
from backend.src.schemas.account import DeleteAccountRequest, DeleteAccountResponse
from backend.src.services.account_service import AccountService
from backend.src.services.exceptions import AccountDeletionError, ConfigurationError
from backend.src.services.push_subscription_service import PushSubscriptionService
from backend.src.utils.logging_config import get_logger
from backend.src.utils.rate_limit import limiter


logger = get_logger("api")

router = APIRouter(tags=["Account"])


def get_account_service(
    db: Session = Depends(get_db),
    settings: AppSettings = Depends(get_settings),
) -> AccountService:
    """Create AccountService with admin credentials and subscription cleanup."""
    return AccountService(
        supabase_url=settings.supabase_url,
        service_role_key=settings.supabase_service_role_key,
        subscription_service=PushSubscriptionService(db=db),
    )


@router.api_route(
    "/delete-account",
    methods=["POST", "DELETE"],
    response_model=DeleteAccountResponse,
    summary="Delete a user account",
)
@limiter.limit("5/minute")
async def delete_account(
    request: Request,
    body: Optional[DeleteAccountRequest] = Body(default=None),
    service: AccountService = Depends(get_account_service),
):
    """
    Delete the auth user identified by userId and purge their push subscriptions.
    """
    try:
        service.check_configured()
    except ConfigurationError as e:
        logger.error(f"delete-account rejected: {e.message}", extra={"missing": e.missing})
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": e.message},
        )

    user_id = body.user_id if body else None
    if not user_id:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": "userId is required"},
        )

    try:
        await service.delete_account(user_id)
    except AccountDeletionError as e:
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": e.message},
        )

    return DeleteAccountResponse(success=True, message="Account deleted")
