import pytest
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import Session, sessionmaker

from Song_Stats_Console.app.db import session_scope, translate_db_errors
from Song_Stats_Console.app.errors import DatabaseConnectionError
from Song_Stats_Console.app.services.accounts import list_accounts
from Song_Stats_Console.app.services.credentials import authenticate
from Song_Stats_Console.scripts.seed_admin import seed_admin


def test_seed_admin_creates_first_admin(db_session, capsys):
    assert seed_admin(db_session, "admin", "admin123") is True

    account = authenticate(db_session, "admin", "admin123")
    assert account.role == "admin"
    assert "created" in capsys.readouterr().out


def test_seed_admin_is_idempotent(db_session, admin, capsys):
    assert seed_admin(db_session, "admin", "other") is False

    assert len(list_accounts(db_session)) == 1
    assert "already exists" in capsys.readouterr().out
    # password untouched
    assert authenticate(db_session, "admin", "admin-pw").username == "admin"


def test_translate_db_errors_maps_connection_failures():
    with pytest.raises(DatabaseConnectionError):
        with translate_db_errors():
            raise OperationalError("SELECT 1", {}, Exception("server has gone away"))


def test_translate_db_errors_leaves_other_errors_alone():
    with pytest.raises(IntegrityError):
        with translate_db_errors():
            raise IntegrityError("INSERT", {}, Exception("UNIQUE constraint failed"))


def test_session_scope_closes_on_error(db_engine):
    closed = []

    class TrackingSession(Session):
        def close(self):
            closed.append(True)
            super().close()

    factory = sessionmaker(bind=db_engine, class_=TrackingSession)
    with pytest.raises(RuntimeError):
        with session_scope(factory):
            raise RuntimeError("boom")

    assert closed == [True]
