"""Login + menu loop of one console session.

States::

    UNAUTHENTICATED -> AUTHENTICATING -> ADMIN_MENU | USER_MENU -> TERMINATED

A failed login goes back to UNAUTHENTICATED until the attempts run out.
Each menu selection returns to the same menu state. TERMINATED is final.

The controller talks to the operator through an ``io`` object with
``ask_credentials()``, ``choose_operation(session, operations)``,
``show_result(operation_id, result)``, ``show_error(message)`` and
``show_message(message)`` (see ``Song_Stats_Console.ui.console.ConsoleIO``).
"""
import logging
from enum import Enum
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..config import settings
from ..errors import AuthenticationError, DatabaseConnectionError, SongStatsError
from .credentials import authenticate
from .dispatcher import available_operations, dispatch
from .sessions import UserSession

logger = logging.getLogger(__name__)


class SessionState(str, Enum):
    UNAUTHENTICATED = "unauthenticated"
    AUTHENTICATING = "authenticating"
    ADMIN_MENU = "admin_menu"
    USER_MENU = "user_menu"
    TERMINATED = "terminated"


MENU_STATES = (SessionState.ADMIN_MENU, SessionState.USER_MENU)


class SessionController:
    def __init__(self, db: Session, io, max_attempts: Optional[int] = None):
        self.db = db
        self.io = io
        self.max_attempts = settings.LOGIN_MAX_ATTEMPTS if max_attempts is None else max_attempts
        self.state = SessionState.UNAUTHENTICATED
        self.session: Optional[UserSession] = None
        self.failed_attempts = 0

    @property
    def terminated(self) -> bool:
        return self.state is SessionState.TERMINATED

    def _move(self, new_state: SessionState) -> None:
        if new_state is not self.state:
            logger.debug("Session state %s -> %s", self.state.value, new_state.value)
        self.state = new_state

    def terminate(self, message: Optional[str] = None) -> None:
        if self.terminated:
            return
        if self.session is not None:
            self.session.close()
        if message:
            self.io.show_message(message)
        self._move(SessionState.TERMINATED)
        logger.info("Session terminated")

    def login(self) -> Optional[UserSession]:
        if self.terminated:
            return None

        while self.state is SessionState.UNAUTHENTICATED:
            credentials = self.io.ask_credentials()
            if not credentials:
                self.terminate("Login cancelled.")
                return None
            username, password = credentials
            self._move(SessionState.AUTHENTICATING)
            try:
                account = authenticate(self.db, username, password)
            except AuthenticationError as exc:
                self.failed_attempts += 1
                self.io.show_error(str(exc))
                if self.max_attempts and self.failed_attempts >= self.max_attempts:
                    logger.warning("Giving up after %d failed login attempt(s)", self.failed_attempts)
                    self.terminate("Too many failed login attempts.")
                    return None
                self._move(SessionState.UNAUTHENTICATED)
                continue
            except DatabaseConnectionError as exc:
                self.io.show_error(str(exc))
                self.terminate()
                return None

            self.session = UserSession.open(account)
            self._move(SessionState.ADMIN_MENU if self.session.is_admin else SessionState.USER_MENU)
            self.io.show_message(f"Welcome, {self.session.username} ({self.session.role.value}).")

        return self.session

    def logout(self) -> None:
        self.terminate("Goodbye.")

    def step(self) -> bool:
        """One menu iteration. Returns False once the session is over."""
        if self.state not in MENU_STATES:
            return False

        operation_id = None
        try:
            selection = self.io.choose_operation(self.session, available_operations(self.session))
            if selection is None:
                self.logout()
                return False
            operation_id, args = selection
            result = dispatch(self.db, self.session, operation_id, args)
        except DatabaseConnectionError as exc:
            self.io.show_error(str(exc))
            self.terminate()
            return False
        except SongStatsError as exc:
            self.io.show_error(str(exc))
            return True
        except SQLAlchemyError as exc:
            # e.g. a dataset table missing; the held session must stay usable
            logger.exception("Database error while running %s", operation_id)
            self.db.rollback()
            self.io.show_error(f"Database error: {exc.__class__.__name__}. See the log for details.")
            return True

        self.io.show_result(operation_id, result)
        return True

    def run(self) -> None:
        try:
            if self.login() is None:
                return
            while self.step():
                pass
        finally:
            self.terminate()
