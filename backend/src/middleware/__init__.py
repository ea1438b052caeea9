"""
Middleware components for the roadmap backend.

This module provides:
- UserContext: Dataclass representing the authenticated user
- require_auth: FastAPI dependency for requiring authentication
"""

from backend.src.middleware.auth import UserContext, decode_access_token, require_auth

__all__ = [
    "UserContext",
    "decode_access_token",
    "require_auth",
]
