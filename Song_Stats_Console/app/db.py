import logging
from contextlib import contextmanager

from sqlalchemy import create_engine, text
from sqlalchemy.orm import sessionmaker, declarative_base
from sqlalchemy.exc import InterfaceError, OperationalError, SQLAlchemyError

from Song_Stats_Console.app.config import settings
from Song_Stats_Console.app.errors import DatabaseConnectionError

logger = logging.getLogger(__name__)

# ORM declarative base
Base = declarative_base()

# Engine
engine = create_engine(settings.DB_URI, pool_pre_ping=True, echo=False)

# Session factory
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db():
    """Session generator for services and scripts."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def session_scope(factory=None):
    """Holds one session (one pooled connection) for a whole console session.

    The session is always closed, including on errors or Ctrl+C.
    """
    db = (factory or SessionLocal)()
    try:
        yield db
    finally:
        try:
            db.rollback()
        except SQLAlchemyError as exc:
            logger.warning("Rollback on close failed: %s", exc)
        db.close()
        logger.debug("Database session released.")


@contextmanager
def translate_db_errors():
    """Turns connection-level SQLAlchemy failures into DatabaseConnectionError."""
    try:
        yield
    except (OperationalError, InterfaceError) as exc:
        logger.error("Database connection failure: %s", exc)
        raise DatabaseConnectionError(f"Database connection failed: {exc.orig or exc}") from exc


def init_db(bind=None):
    """Creates the tables if they do not exist yet."""
    from .models import account, song  # noqa: F401  (registers the tables)

    target = bind or engine
    try:
        with translate_db_errors():
            Base.metadata.create_all(bind=target)
        logger.info("Tables created/verified.")
    except SQLAlchemyError as e:
        logger.error("Error creating tables: %s", e)
        raise


def test_connection():
    try:
        with engine.connect() as connection:
            res = connection.execute(text("SELECT 1"))
            logger.info("Database connection OK. Result: %s", res.scalar())
    except SQLAlchemyError as e:
        logger.error("Connection failed: %s", e)
        raise DatabaseConnectionError(f"Database connection failed: {e}") from e
