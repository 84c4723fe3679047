"""
Models for the events service.

Each Event belongs to the user who created it. EventParticipant is the join
table recording which users registered for which events.
"""

import enum
from typing import Any, Dict

from sqlalchemy import Column, DateTime, Enum, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from backend.database.db_connection import Base
from backend.database.time_utils import isoformat_utc, utcnow

TITLE_MAX_LENGTH = 255


class EventCategory(str, enum.Enum):
    CONCERT = "concert"
    LECTURE = "lecture"
    EXHIBITION = "exhibition"

    @classmethod
    def values(cls) -> list:
        return [c.value for c in cls]


class Event(Base):
    __tablename__ = "events"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(TITLE_MAX_LENGTH), nullable=False)
    description = Column(Text, nullable=True)
    date = Column(DateTime, nullable=False, index=True)
    category = Column(
        Enum(EventCategory, name="event_category", values_callable=lambda e: [c.value for c in e]),
        nullable=False,
    )
    created_by = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE", onupdate="CASCADE"),
        nullable=False,
        index=True,
    )
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    creator = relationship("User", back_populates="events")
    participants = relationship(
        "EventParticipant",
        back_populates="event",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "date": isoformat_utc(self.date),
            "category": self.category.value if self.category else None,
            "createdBy": self.created_by,
            "createdAt": isoformat_utc(self.created_at),
            "updatedAt": isoformat_utc(self.updated_at),
        }

    def __repr__(self) -> str:
        return f"<Event id={self.id} title={self.title!r}>"


class EventParticipant(Base):
    __tablename__ = "event_participants"

    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    event_id = Column(Integer, ForeignKey("events.id", ondelete="CASCADE"), primary_key=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    user = relationship("User", back_populates="participations")
    event = relationship("Event", back_populates="participants")
