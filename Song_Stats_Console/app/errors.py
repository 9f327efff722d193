"""Typed errors raised by the services and shown verbatim by the console."""
from enum import Enum


class SongStatsError(Exception):
    """Base class for every error the console knows how to display."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message


class AuthenticationReason(str, Enum):
    NOT_FOUND = "not_found"
    BAD_PASSWORD = "bad_password"


class AuthenticationError(SongStatsError):
    # The message is the same for both reasons; only the logs tell them apart.
    def __init__(self, reason: AuthenticationReason, message: str = "Invalid username or password."):
        super().__init__(message)
        self.reason = reason


class AuthorizationError(SongStatsError):
    pass


class ValidationError(SongStatsError, ValueError):
    pass


class ParameterValidationError(ValidationError):
    def __init__(self, message: str, query_id=None):
        super().__init__(message)
        self.query_id = query_id


class DuplicateUsernameError(SongStatsError):
    def __init__(self, username: str):
        super().__init__(f"Username '{username}' already exists.")
        self.username = username


class NotFoundError(SongStatsError, LookupError):
    def __init__(self, username: str):
        super().__init__(f"Account '{username}' not found.")
        self.username = username


class InvariantViolationError(SongStatsError):
    pass


class DatabaseConnectionError(SongStatsError, ConnectionError):
    """Backend unreachable. Fatal for the current console session."""
