"""
Create the schema and run a quick integrity check.

This script creates all tables, then performs a full cycle on the key
tables (insert a user, an event owned by another user and a registration,
read them back through a join, delete the owner) to make sure the foreign
keys and cascades behave as expected. All test rows are removed afterwards.

Usage:
    python -m backend.database.init_db
"""

import logging
import sys
from datetime import timedelta

from sqlalchemy import inspect

from backend.auth_service.models import User
from backend.database.db_connection import engine, get_db, init_db
from backend.database.time_utils import utcnow
from backend.events_service.models import Event, EventCategory, EventParticipant

REQUIRED_TABLES = ["users", "events", "event_participants", "blacklisted_tokens"]

CHECK_EMAILS = ("integrity.organizer@example.com", "integrity.guest@example.com")


def missing_tables() -> list:
    existing = set(inspect(engine).get_table_names())
    return [t for t in REQUIRED_TABLES if t not in existing]


def _cleanup(db) -> None:
    db.query(User).filter(User.email.in_(CHECK_EMAILS)).delete(synchronize_session=False)
    db.commit()


def run_quick_check() -> bool:
    """
    Run the integrity check against the configured database.

    Returns:
        bool: True if every step passed.
    """
    init_db()

    missing = missing_tables()
    for table in REQUIRED_TABLES:
        logging.info(f" - {table}: {'MISSING' if table in missing else 'Found'}")
    if missing:
        logging.error("One or more critical tables are missing.")
        return False

    with get_db() as db:
        try:
            # Leftovers from an interrupted run would break the unique emails
            _cleanup(db)

            organizer = User(name="Integrity Organizer", email=CHECK_EMAILS[0], password_hash="not-a-real-hash")
            guest = User(name="Integrity Guest", email=CHECK_EMAILS[1], password_hash="not-a-real-hash")
            db.add_all([organizer, guest])
            db.flush()

            event = Event(
                title="Integrity Check Lecture",
                description="Created by the schema integrity check.",
                date=utcnow() + timedelta(days=7),
                category=EventCategory.LECTURE,
                created_by=organizer.id,
            )
            db.add(event)
            db.flush()

            db.add(EventParticipant(user_id=guest.id, event_id=event.id))
            db.commit()
            event_id = event.id
            logging.info(f"Inserted organizer={organizer.id}, guest={guest.id}, event={event_id}")

            row = (
                db.query(Event.title, User.name)
                .join(EventParticipant, EventParticipant.event_id == Event.id)
                .join(User, User.id == EventParticipant.user_id)
                .filter(Event.id == event_id)
                .first()
            )
            if row is None:
                logging.error("Failed to read the registration back. Relationships may be incorrect.")
                return False
            logging.info(f"Found registration: '{row.name}' -> '{row.title}'")

            # Deleting the owner must take the event and its registrations with it
            db.delete(organizer)
            db.commit()
            db.expire_all()

            leftovers = (
                db.query(Event).filter(Event.id == event_id).count()
                + db.query(EventParticipant).filter(EventParticipant.event_id == event_id).count()
            )
            if leftovers:
                logging.error("Cascade delete did not remove the owner's event and registrations.")
                return False

            logging.info("Database integrity check PASSED.")
            return True
        finally:
            db.rollback()
            _cleanup(db)


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="[%(levelname)s] %(asctime)s - %(message)s")
    sys.exit(0 if run_quick_check() else 1)
