import os

# Must be set before any backend module is imported
os.environ["JWT_SECRET"] = "test_secret"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.pop("MAX_EVENTS_PER_DAY", None)

import pytest

from backend.auth_service.models import User
from backend.auth_service.routes import ph
from backend.auth_service.utils import create_token
from backend.database.db_connection import Base, engine, get_db
from backend.database.time_utils import utcnow
from backend.events_service.models import Event, EventCategory, EventParticipant
from backend.gateway.server import create_app


@pytest.fixture
def app():
    app = create_app()
    app.config["TESTING"] = True
    yield app
    # Fresh in-memory database for every test
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def make_user(app):
    """
    Insert a user directly and return (user_id, auth_headers).
    """
    def _make_user(name="Test User", email="test@example.com", password="password123"):
        with get_db() as db:
            user = User(name=name, email=email, password_hash=ph.hash(password))
            db.add(user)
            db.commit()
            user_id = user.id
        token = create_token(user_id)
        return user_id, {"Authorization": f"Bearer {token}"}

    return _make_user


@pytest.fixture
def make_event(app):
    """
    Insert an event directly and return its id.
    """
    def _make_event(created_by, title="Test Event", category=EventCategory.CONCERT, date=None, created_at=None):
        with get_db() as db:
            event = Event(
                title=title,
                description="Desc",
                date=date or utcnow(),
                category=category,
                created_by=created_by,
            )
            if created_at is not None:
                event.created_at = created_at
            db.add(event)
            db.commit()
            return event.id

    return _make_event


@pytest.fixture
def join_event(app):
    def _join_event(user_id, event_id):
        with get_db() as db:
            db.add(EventParticipant(user_id=user_id, event_id=event_id))
            db.commit()

    return _join_event
