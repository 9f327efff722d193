import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..db import translate_db_errors
from ..errors import AuthenticationError, AuthenticationReason
from ..models import Account
from ..security import dummy_verify, verify_password

logger = logging.getLogger(__name__)


def get_account(db: Session, username: str):
    """Exact, case-sensitive lookup. Returns None when absent."""
    with translate_db_errors():
        return db.execute(
            select(Account).where(Account.username == username)
        ).scalar_one_or_none()


def authenticate(db: Session, username: str, password: str) -> Account:
    """Returns the account whose credentials match, or raises AuthenticationError.

    Unknown user and wrong password raise the same message; a dummy hash check
    runs for unknown users so both paths cost the same.
    """
    account = get_account(db, username) if username else None
    if account is None:
        dummy_verify()
        logger.warning("Login failed for %r: unknown username", username)
        raise AuthenticationError(AuthenticationReason.NOT_FOUND)

    if not verify_password(password or "", account.pass_hash):
        logger.warning("Login failed for %r: bad password", username)
        raise AuthenticationError(AuthenticationReason.BAD_PASSWORD)

    logger.info("User %r authenticated (role=%s)", account.username, account.role)
    return account
