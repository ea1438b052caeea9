"""
Profile model (read-only mapping).

Public user profiles are owned by the wider application; this service only
reads them to attach usernames and avatars to notification actors.
"""

from sqlalchemy import Column, String

from backend.src.models import Base


class Profile(Base):
    """Public profile of a user, keyed by the auth user id."""

    __tablename__ = "profiles"

    id = Column(String(36), primary_key=True)
    username = Column(String(100), nullable=False)
    avatar = Column(String(1024), nullable=True)
