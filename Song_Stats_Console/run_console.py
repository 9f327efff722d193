# run_console.py

# python -m Song_Stats_Console.run_console --init-db
# First admin (when the accounts table is empty):
#   python -m Song_Stats_Console.scripts.seed_admin --username admin --password admin123

import argparse
import logging
from pathlib import Path
from urllib.parse import urlsplit, urlunsplit
import sys

from Song_Stats_Console.app.config import settings
from Song_Stats_Console.app.db import init_db, session_scope, test_connection
from Song_Stats_Console.app.errors import DatabaseConnectionError
from Song_Stats_Console.app.services.session_controller import SessionController
from Song_Stats_Console.ui.console import ConsoleIO


def _mask_db_uri(uri: str) -> str:
    """Hides the password in the URI for logging."""
    try:
        parts = urlsplit(uri)
        if not parts.username:
            return uri
        host_port = parts.hostname or ""
        if parts.port:
            host_port = f"{host_port}:{parts.port}"
        user_part = f"{parts.username}:****@" if parts.username else ""
        netloc = f"{user_part}{host_port}"
        return urlunsplit((parts.scheme, netloc, parts.path, parts.query, parts.fragment))
    except ValueError:
        return uri


def _setup_logging() -> Path:
    """Logs to stderr and to a file (next to the package unless LOG_FILE is set)."""
    log_path = Path(settings.LOG_FILE) if settings.LOG_FILE else Path(__file__).resolve().parent / "song_stats_console.log"
    level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)
    fmt = "%(asctime)s %(levelname)s %(name)s: %(message)s"

    # stderr keeps the log lines out of the menus
    console = logging.StreamHandler(sys.stderr)
    console.setLevel(logging.WARNING)
    handlers = [console]
    try:
        fh = logging.FileHandler(log_path, encoding="utf-8")
        fh.setFormatter(logging.Formatter(fmt))
        fh.setLevel(level)
        handlers.append(fh)
    except OSError as exc:
        logging.basicConfig(level=level, format=fmt, handlers=handlers)
        logging.getLogger(__name__).warning("Could not open log file (%s)", exc)
        return log_path

    logging.basicConfig(level=level, format=fmt, handlers=handlers)
    logging.getLogger("passlib.handlers.bcrypt").setLevel(logging.ERROR)

    logging.getLogger(__name__).info("Logging to: %s", log_path)
    logging.getLogger(__name__).info("DB_URI in use: %s", _mask_db_uri(settings.DB_URI))
    return log_path


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Song statistics admin console")
    parser.add_argument("--init-db", action="store_true", help="create missing tables before starting")
    parser.add_argument("--check-connection", action="store_true", help="test the database connection and exit")
    args = parser.parse_args(argv)

    log_path = _setup_logging()
    logger = logging.getLogger(__name__)
    logger.info("Starting %s (logs in %s)", settings.APP_NAME, log_path)

    try:
        if args.check_connection:
            test_connection()
            print("Database connection OK.")
            return 0
        if args.init_db:
            init_db()

        with session_scope() as db:
            SessionController(db, ConsoleIO()).run()
    except DatabaseConnectionError as exc:
        print(f"[ERROR] {exc}", file=sys.stderr)
        return 2
    except KeyboardInterrupt:
        print()
        logger.info("Interrupted by user")
        return 130
    return 0


if __name__ == "__main__":
    sys.exit(main())
