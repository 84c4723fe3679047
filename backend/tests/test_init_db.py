from backend.auth_service.models import User
from backend.database.db_connection import get_db
from backend.database.init_db import missing_tables, run_quick_check


def test_quick_check_passes_and_cleans_up(app):
    assert run_quick_check() is True

    with get_db() as db:
        assert db.query(User).count() == 0


def test_missing_tables_after_init(app):
    assert missing_tables() == []
