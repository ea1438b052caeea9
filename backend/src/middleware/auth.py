"""
Authentication dependencies for API routes.

Provides:
- UserContext: Dataclass describing the authenticated user
- decode_access_token: Verify an access token issued by the hosted auth service
- require_auth: FastAPI dependency that requires a valid Bearer token

Access tokens are HS256 JWTs signed with the auth service's JWT secret and
carry the user id in the "sub" claim.
"""

from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from jose import jwt, JWTError

from backend.src.config.settings import AppSettings, get_settings
from backend.src.utils.logging_config import get_logger


logger = get_logger("api")


TOKEN_ALGORITHM = "HS256"
TOKEN_AUDIENCE = "authenticated"


@dataclass
class UserContext:
    """
    Authenticated user for the current request.

    Attributes:
        user_id: Auth user id (token "sub" claim)
        email: User's email address, if present in the token
        role: Auth role claim (normally "authenticated")

    Usage:
        @router.get("/items")
        async def list_items(
            ctx: UserContext = Depends(require_auth)
        ):
            items = service.list_items(owner_id=ctx.user_id)
            return items
    """

    user_id: str
    email: Optional[str] = None
    role: Optional[str] = None


def decode_access_token(token: str, secret: str) -> Optional[UserContext]:
    """
    Verify an access token and extract the user.

    Args:
        token: Raw JWT
        secret: Auth service JWT secret

    Returns:
        UserContext if the token is valid, None otherwise
    """
    if not token or not secret:
        return None

    try:
        payload = jwt.decode(
            token,
            secret,
            algorithms=[TOKEN_ALGORITHM],
            audience=TOKEN_AUDIENCE,
        )
    except JWTError as e:
        logger.warning(f"Token validation failed: JWT error - {e}")
        return None

    user_id = payload.get("sub")
    if not user_id:
        logger.warning("Token validation failed: missing sub claim")
        return None

    return UserContext(
        user_id=str(user_id),
        email=payload.get("email"),
        role=payload.get("role"),
    )


async def require_auth(
    request: Request,
    settings: AppSettings = Depends(get_settings),
) -> UserContext:
    """
    FastAPI dependency that requires authentication.

    Raises:
        HTTPException 401: If the Bearer token is missing, invalid or expired
    """
    auth_header = request.headers.get("Authorization")
    if auth_header and auth_header.startswith("Bearer "):
        ctx = decode_access_token(auth_header[7:], settings.supabase_jwt_secret)
        if ctx is not None:
            return ctx
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired access token",
            headers={"WWW-Authenticate": "Bearer"}
        )

    raise HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Authentication required",
        headers={"WWW-Authenticate": "Bearer"}
    )


__all__ = [
    "UserContext",
    "decode_access_token",
    "require_auth",
]
