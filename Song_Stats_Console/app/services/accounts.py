"""Account management (admin only).

Every mutation validates first and then writes a single row in its own
commit, so a rejected call never leaves a partial change behind. The
"at least one admin" rule is checked here before the write because the
database cannot express it as a constraint.
"""
import logging
from typing import List, Optional

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..db import translate_db_errors
from ..errors import (
    DatabaseConnectionError,
    DuplicateUsernameError,
    InvariantViolationError,
    NotFoundError,
    ValidationError,
)
from ..models import Account, Role
from ..security import hash_password
from .credentials import get_account
from .sessions import parse_role

logger = logging.getLogger(__name__)

USERNAME_MAX_LEN = 64


def _clean_username(username: Optional[str]) -> str:
    if username is not None and not isinstance(username, str):
        raise ValidationError("Username must be text.")
    value = (username or "").strip()
    if not value:
        raise ValidationError("Username must not be empty.")
    if len(value) > USERNAME_MAX_LEN:
        raise ValidationError(f"Username must have at most {USERNAME_MAX_LEN} characters.")
    if any(ch.isspace() for ch in value):
        raise ValidationError("Username must not contain spaces.")
    return value


def _check_password(password: Optional[str]) -> str:
    if password is not None and not isinstance(password, str):
        raise ValidationError("Password must be text.")
    if not password:
        raise ValidationError("Password must not be empty.")
    return password


def _require_account(db: Session, username: str) -> Account:
    account = get_account(db, username) if username else None
    if account is None:
        raise NotFoundError(username)
    return account


def _commit(db: Session) -> None:
    try:
        with translate_db_errors():
            db.commit()
    except (SQLAlchemyError, DatabaseConnectionError):
        db.rollback()
        raise


def count_admins(db: Session) -> int:
    with translate_db_errors():
        return db.execute(
            select(func.count(Account.id)).where(Account.role == Role.ADMIN.value)
        ).scalar_one()


def list_accounts(db: Session) -> List[Account]:
    with translate_db_errors():
        return db.execute(
            select(Account).order_by(Account.username.asc())
        ).scalars().all()


def create_account(db: Session, username: str, password: str, role=Role.USER) -> Account:
    username = _clean_username(username)
    _check_password(password)
    role = parse_role(role)

    if get_account(db, username) is not None:
        raise DuplicateUsernameError(username)

    account = Account(username=username, pass_hash=hash_password(password), role=role.value)
    db.add(account)
    try:
        _commit(db)
    except IntegrityError:
        # unique constraint beat the pre-check
        raise DuplicateUsernameError(username) from None
    db.refresh(account)
    logger.info("Account %r created (role=%s)", account.username, account.role)
    return account


def update_account(
    db: Session,
    username: str,
    new_password: Optional[str] = None,
    new_role=None,
) -> Account:
    if new_password is None and new_role is None:
        raise ValidationError("Nothing to update: give a new password and/or a new role.")
    if new_password is not None:
        _check_password(new_password)
    role = parse_role(new_role) if new_role is not None else None

    account = _require_account(db, username)

    if role is Role.USER and account.is_admin and count_admins(db) <= 1:
        raise InvariantViolationError(
            f"Cannot demote '{account.username}': it is the last admin account."
        )

    if new_password is not None:
        account.pass_hash = hash_password(new_password)
    if role is not None:
        account.role = role.value
    _commit(db)
    db.refresh(account)
    logger.info(
        "Account %r updated (password=%s, role=%s)",
        account.username,
        "changed" if new_password is not None else "kept",
        account.role,
    )
    return account


def delete_account(db: Session, username: str) -> None:
    account = _require_account(db, username)

    if account.is_admin and count_admins(db) <= 1:
        raise InvariantViolationError(
            f"Cannot delete '{account.username}': it is the last admin account."
        )

    db.delete(account)
    _commit(db)
    logger.info("Account %r deleted", username)
