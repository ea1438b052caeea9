"""
Application settings configuration for the roadmap backend.

Centralized settings loaded from environment variables.
"""

from functools import lru_cache
from typing import Dict

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings


# A VAPID subject is a contact URI with one of these schemes
VAPID_SUBJECT_SCHEMES = ("mailto:", "https:")


class AppSettings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Environment Variables:
        VAPID_PUBLIC_KEY: Web Push VAPID public key (Base64url-encoded).
            NEXT_PUBLIC_VAPID_PUBLIC_KEY is accepted as well.
        VAPID_PRIVATE_KEY: Web Push VAPID private key (Base64url-encoded)
        VAPID_SUBJECT: VAPID subject identifier (mailto: or https: URL)
        SUPABASE_URL: Hosted backend URL (NEXT_PUBLIC_SUPABASE_URL accepted)
        SUPABASE_SERVICE_ROLE_KEY: Admin key used for account deletion
        SUPABASE_JWT_SECRET: Secret used to verify user access tokens
        PUSH_ICON / PUSH_BADGE: Default icon and badge paths for push payloads
        PUSH_TTL_SECONDS: How long the push provider keeps undelivered messages
        RATE_LIMIT_STORAGE_URI: Storage backend URI for rate limiting (default: "memory://")
            Use "redis://host:6379" for multi-worker deployments.
    """

    # VAPID settings for Web Push notifications
    vapid_public_key: str = Field(
        default="",
        validation_alias=AliasChoices("VAPID_PUBLIC_KEY", "NEXT_PUBLIC_VAPID_PUBLIC_KEY"),
        description="Base64url-encoded VAPID public key for Web Push subscriptions"
    )

    vapid_private_key: str = Field(
        default="",
        validation_alias="VAPID_PRIVATE_KEY",
        description="Base64url-encoded VAPID private key for signing push messages"
    )

    vapid_subject: str = Field(
        default="",
        validation_alias="VAPID_SUBJECT",
        description="VAPID subject (mailto: or https: URL identifying the push sender)"
    )

    # Hosted backend (auth admin API and access-token verification)
    supabase_url: str = Field(
        default="",
        validation_alias=AliasChoices("SUPABASE_URL", "NEXT_PUBLIC_SUPABASE_URL"),
    )

    supabase_service_role_key: str = Field(
        default="",
        validation_alias="SUPABASE_SERVICE_ROLE_KEY",
        description="Service role key; bypasses row-level security, server-side only"
    )

    supabase_jwt_secret: str = Field(
        default="",
        validation_alias="SUPABASE_JWT_SECRET",
        description="HS256 secret used by the auth service to sign access tokens"
    )

    # Push payload defaults
    push_icon: str = Field(default="/icon-192.png", validation_alias="PUSH_ICON")
    push_badge: str = Field(default="/badge-72.png", validation_alias="PUSH_BADGE")
    push_ttl_seconds: int = Field(
        default=86400,
        validation_alias="PUSH_TTL_SECONDS",
        ge=0,
        le=2419200,
    )

    # Rate limiting storage backend
    rate_limit_storage_uri: str = Field(
        default="memory://",
        validation_alias="RATE_LIMIT_STORAGE_URI",
        description="Storage backend URI for rate limiting counters"
    )

    class Config:
        env_file = ".env"
        extra = "ignore"

    @field_validator("supabase_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @property
    def vapid_configured(self) -> bool:
        """Check if VAPID keys are properly configured for Web Push."""
        return bool(self.vapid_public_key and self.vapid_private_key and self.vapid_subject_valid)

    @property
    def vapid_subject_valid(self) -> bool:
        """A subject that is set but not a mailto: or https: URI counts as unset."""
        return self.vapid_subject.startswith(VAPID_SUBJECT_SCHEMES)

    @property
    def vapid_claims(self) -> Dict[str, str]:
        return {"sub": self.vapid_subject} if self.vapid_subject else {}

    @property
    def supabase_admin_configured(self) -> bool:
        """Check if the auth admin API can be called."""
        return bool(self.supabase_url and self.supabase_service_role_key)


@lru_cache()
def get_settings() -> AppSettings:
    """
    Get cached application settings instance.

    Returns:
        AppSettings: Configured application settings from environment
    """
    return AppSettings()
