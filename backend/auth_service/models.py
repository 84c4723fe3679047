"""
Models for the authentication service.

- User: an account that can log in, create events and register for them.
- BlacklistedToken: a JWT that was logged out (or belonged to a deleted
  account) and must no longer be accepted, even though its signature is valid.
"""

from typing import Any, Dict

from sqlalchemy import Column, DateTime, Integer, String, Text
from sqlalchemy.orm import relationship

from backend.database.db_connection import Base
from backend.database.time_utils import isoformat_utc, utcnow


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    # Deleting a user removes their events and registrations as well
    events = relationship(
        "Event",
        back_populates="creator",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    participations = relationship(
        "EventParticipant",
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def to_dict(self) -> Dict[str, Any]:
        """Public representation; never includes the password hash."""
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "createdAt": isoformat_utc(self.created_at),
        }

    def __repr__(self) -> str:
        return f"<User id={self.id} email={self.email}>"


class BlacklistedToken(Base):
    __tablename__ = "blacklisted_tokens"

    id = Column(Integer, primary_key=True, index=True)
    token = Column(Text, unique=True, nullable=False)
    expires_at = Column(DateTime, nullable=False)

    def __repr__(self) -> str:
        return f"<BlacklistedToken id={self.id} expires_at={self.expires_at}>"


# User.events / User.participations resolve these classes by name
from backend.events_service import models as _events_models  # noqa: E402,F401
