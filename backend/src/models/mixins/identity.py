"""
Identity mixin for SQLAlchemy models.

Rows created by this service get a string UUID primary key, matching the
identifiers the hosted auth service hands out for users. Ids are UUIDv7,
so they sort by creation time.
"""

from sqlalchemy import Column, String
from uuid_extensions import uuid7


def new_id() -> str:
    """Generate a new time-ordered UUID string."""
    return str(uuid7())


class IdentityMixin:
    """
    Mixin providing a string UUID primary key.

    Usage:
        class MyEntity(Base, IdentityMixin):
            __tablename__ = "my_entities"
    """

    id = Column(String(36), primary_key=True, default=new_id)
