"""
SQLAlchemy models for the roadmap backend.

This module provides the declarative base class and imports all models
to ensure they are registered with SQLAlchemy's metadata.
"""

from sqlalchemy.orm import declarative_base

# All models inherit from this Base class
Base = declarative_base()


# Import all models here so they are registered with Base.metadata
# This is required for Alembic autogenerate to detect models
from backend.src.models.notification import Notification
from backend.src.models.push_subscription import PushSubscription

# Read-only mappings of tables owned by the wider application
from backend.src.models.profile import Profile
from backend.src.models.card import Card

__all__ = [
    "Base",
    "Notification",
    "PushSubscription",
    "Profile",
    "Card",
]
