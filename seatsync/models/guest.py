"""
Guest model
"""

import uuid
from datetime import datetime
from typing import Optional
from sqlalchemy import Column, String, Text, DateTime, ForeignKey
from sqlalchemy.orm import relationship

from seatsync.core.db import Base


def guest_display_name(
    first_name: Optional[str],
    last_name: Optional[str],
    name: Optional[str] = None,
) -> str:
    """Canonical display name for a guest.

    Guests imported before first/last names existed only carry the legacy
    ``name`` field; it is used when both name parts are empty.
    """
    if first_name or last_name:
        return f"{first_name or ''} {last_name or ''}".strip()
    return name or ""


class Guest(Base):
    __tablename__ = "guests"

    id = Column(String(36), primary_key=True, default=lambda: uuid.uuid4().hex)
    event_id = Column(String(36), ForeignKey("events.id"), nullable=False, index=True)
    user_id = Column(String(128), nullable=False)
    name = Column(String(255), nullable=True)  # legacy single-field name
    first_name = Column(String(120), nullable=True)
    last_name = Column(String(120), nullable=True)
    phone_number = Column(String(40), nullable=True)
    email = Column(String(255), nullable=True)
    notes = Column(Text, nullable=True)
    # Plain column, not a foreign key: tables live in the same event and
    # table deletion clears this field explicitly.
    table_id = Column(String(36), nullable=True, index=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    event = relationship("Event", back_populates="guests")

    @property
    def display_name(self) -> str:
        return guest_display_name(self.first_name, self.last_name, self.name)
