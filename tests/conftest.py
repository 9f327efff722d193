import os

# before any Song_Stats_Console import: no MySQL, cheap bcrypt
os.environ.setdefault("DB_URI", "sqlite://")
os.environ.setdefault("BCRYPT_ROUNDS", "4")

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker

from Song_Stats_Console.app.db import init_db
from Song_Stats_Console.app.models import Account, Song
from Song_Stats_Console.app.services.accounts import create_account

SONGS = [
    # title, artist, genre, year, duration_sec, popularity, streams, danceability, energy, tempo
    ("Alpha", "Artist A", "Rock", 1990, 200, 80, 1000, 0.50, 0.80, 120.0),
    ("Beta", "Artist A", "Rock", 1990, 240, 60, 500, 0.40, 0.90, 130.0),
    ("Gamma", "Artist B", "Rock", 2000, 300, 90, 3000, 0.70, 0.60, 100.0),
    ("Delta", "Artist B", "Pop", 2000, 180, 90, 2500, 0.90, 0.70, 110.0),
    ("Epsilon", "Artist C", "Pop", 2010, 210, 70, 800, 0.85, 0.40, 125.0),
    ("Zeta", "Artist A", "Jazz", 1980, 400, 40, 100, 0.30, 0.20, 90.0),
    ("Eta", "Artist C", "Rock", 2010, 260, 75, 900, None, 0.95, 140.0),
]


@pytest.fixture(scope="function")
def db_engine():
    engine = create_engine("sqlite:///:memory:")
    init_db(bind=engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture(scope="function")
def db_session(db_engine):
    """Clean in-memory SQLite session per test."""
    Session = sessionmaker(bind=db_engine)
    sess = Session()
    try:
        yield sess
    finally:
        sess.close()


@pytest.fixture
def statements(db_engine):
    """Records every SQL statement sent to the database."""
    seen = []

    def _record(conn, cursor, statement, parameters, context, executemany):
        seen.append(statement)

    event.listen(db_engine, "before_cursor_execute", _record)
    try:
        yield seen
    finally:
        event.remove(db_engine, "before_cursor_execute", _record)


@pytest.fixture
def admin(db_session):
    return create_account(db_session, "admin", "admin-pw", "admin")


@pytest.fixture
def songs(db_session):
    for title, artist, genre, year, duration, popularity, streams, dance, energy, tempo in SONGS:
        db_session.add(
            Song(
                title=title,
                artist=artist,
                genre=genre,
                year=year,
                duration_sec=duration,
                popularity=popularity,
                streams=streams,
                danceability=dance,
                energy=energy,
                tempo=tempo,
            )
        )
    db_session.commit()
    return db_session


@pytest.fixture
def accounts_snapshot(db_session):
    """Callable returning (username, role, hash) for every account row."""
    def _snapshot():
        db_session.expire_all()
        return [
            (a.username, a.role, a.pass_hash)
            for a in db_session.query(Account).order_by(Account.username).all()
        ]

    return _snapshot
