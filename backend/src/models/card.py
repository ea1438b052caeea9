"""
Card model (read-only mapping).

Roadmap cards are owned by the wider application; this service reads the
title to label card-related notifications.
"""

from sqlalchemy import Column, String

from backend.src.models import Base


class Card(Base):
    """A roadmap card."""

    __tablename__ = "cards"

    id = Column(String(36), primary_key=True)
    user_id = Column(String(36), nullable=False, index=True)
    title = Column(String(255), nullable=False)
