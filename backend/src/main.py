"""
FastAPI application entry point for the roadmap notification backend.

This module initializes the FastAPI application with:
- CORS middleware for the web frontend
- Rate limiting (slowapi)
- Exception handlers for consistent error responses
- Startup checks that report missing push/admin configuration
- Logging configuration

Environment Variables:
    ROADMAP_ENV: Environment (production/development, default: development)
    ROADMAP_LOG_LEVEL: Log level (DEBUG/INFO/WARNING/ERROR/CRITICAL, default: INFO)
    ROADMAP_CORS_ORIGINS: Comma-separated allowed origins (default: localhost:3000)
"""

import os
from contextlib import asynccontextmanager
from typing import Any, Dict

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from sqlalchemy.exc import SQLAlchemyError

from backend.src.config.settings import get_settings
from backend.src.db.database import dispose_engine
from backend.src.utils.logging_config import get_logger, init_logging
from backend.src.utils.rate_limit import limiter


APP_VERSION = "1.0.0"


def _cors_origins() -> list:
    raw = os.environ.get("ROADMAP_CORS_ORIGINS", "")
    origins = [o.strip() for o in raw.split(",") if o.strip()]
    return origins or [
        "http://localhost:3000",  # Next.js dev server
        "http://127.0.0.1:3000",
    ]


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan context manager.

    Handles startup and shutdown events:
    - Startup: Report which optional integrations are configured
    - Shutdown: Dispose of database connections

    Missing push or admin configuration does not stop the app; the affected
    endpoints answer 500 with an explicit error instead.
    """
    # Startup
    logger = get_logger("api")
    logger.info("Starting roadmap backend application")

    settings = get_settings()
    if not settings.vapid_configured:
        logger.warning(
            "Web Push is not configured: set VAPID_PUBLIC_KEY, VAPID_PRIVATE_KEY and VAPID_SUBJECT"
        )
        if settings.vapid_subject and not settings.vapid_subject_valid:
            logger.warning("VAPID_SUBJECT must start with mailto: or https:")
    if not settings.supabase_admin_configured:
        logger.warning(
            "Account deletion is not configured: set SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY"
        )
    if not settings.supabase_jwt_secret:
        logger.warning("SUPABASE_JWT_SECRET is not set: authenticated endpoints will reject all requests")

    yield

    # Shutdown
    logger.info("Shutting down roadmap backend application")
    dispose_engine()


# Initialize logging before creating app
init_logging()

# Create FastAPI application
app = FastAPI(
    title="Roadmap Notifications API",
    description="Notification feed, push subscriptions and push fan-out "
                "for the roadmap cards application.",
    version=APP_VERSION,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Exception handlers


@app.exception_handler(ValidationError)
async def validation_exception_handler(
    request: Request, exc: ValidationError
) -> JSONResponse:
    """
    Handle Pydantic validation errors raised outside request parsing.

    Returns:
        JSON response with validation error details
    """
    logger = get_logger("api")
    logger.warning(
        "Validation error",
        extra={
            "path": request.url.path,
            "method": request.method,
            "errors": exc.errors(),
        }
    )

    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "error": "Validation Error",
            "message": "Request validation failed",
            "details": exc.errors(include_url=False, include_context=False),
        }
    )


@app.exception_handler(SQLAlchemyError)
async def database_exception_handler(
    request: Request, exc: SQLAlchemyError
) -> JSONResponse:
    """
    Handle SQLAlchemy database errors.

    Returns:
        JSON response with database error message
    """
    logger = get_logger("db")
    logger.error(
        "Database error",
        extra={
            "path": request.url.path,
            "method": request.method,
            "error": str(exc),
        }
    )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": "Database Error",
            "message": "An error occurred while accessing the database. "
                      "Please try again later.",
        }
    )


@app.exception_handler(Exception)
async def generic_exception_handler(
    request: Request, exc: Exception
) -> JSONResponse:
    """
    Handle all other unhandled exceptions.

    Returns:
        JSON response with generic error message
    """
    logger = get_logger("api")
    logger.error(
        "Unhandled exception",
        extra={
            "path": request.url.path,
            "method": request.method,
            "error_type": type(exc).__name__,
            "error": str(exc),
        },
        exc_info=True,
    )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": "Internal Server Error",
            "message": "An unexpected error occurred. Please try again later.",
        }
    )


# Health check endpoint


@app.get("/health", tags=["Health"])
async def health_check() -> Dict[str, Any]:
    """
    Health check endpoint.

    Returns:
        Health status and which integrations are configured
    """
    settings = get_settings()
    return {
        "status": "healthy",
        "service": "roadmap-backend",
        "version": APP_VERSION,
        "push_configured": settings.vapid_configured,
        "account_admin_configured": settings.supabase_admin_configured,
    }


# API routers
from backend.src.api import account, notifications, push

app.include_router(push.router, prefix="/api")
app.include_router(account.router, prefix="/api")
app.include_router(notifications.router, prefix="/api")
