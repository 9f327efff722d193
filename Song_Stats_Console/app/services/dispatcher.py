import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple

from sqlalchemy.orm import Session

from ..db import translate_db_errors
from ..errors import AuthorizationError, ValidationError
from . import accounts as svc_accounts
from . import queries as svc_queries
from .sessions import Capability, UserSession

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Operation:
    id: str
    label: str
    capability: Capability
    handler: Callable[..., Any]
    required_args: Tuple[str, ...] = ()
    optional_args: Tuple[str, ...] = ()


# Registry order is the menu order.
OPERATIONS: Dict[str, Operation] = {
    op.id: op
    for op in (
        Operation(
            "run_query", "Run an analytical query", Capability.RUN_QUERIES,
            svc_queries.run_query, ("query_id",), ("parameters",),
        ),
        Operation(
            "list_accounts", "List accounts", Capability.MANAGE_ACCOUNTS,
            svc_accounts.list_accounts,
        ),
        Operation(
            "create_account", "Create account", Capability.MANAGE_ACCOUNTS,
            svc_accounts.create_account, ("username", "password", "role"),
        ),
        Operation(
            "update_account", "Update account", Capability.MANAGE_ACCOUNTS,
            svc_accounts.update_account, ("username",), ("new_password", "new_role"),
        ),
        Operation(
            "delete_account", "Delete account", Capability.MANAGE_ACCOUNTS,
            svc_accounts.delete_account, ("username",),
        ),
    )
}


def available_operations(session: Optional[UserSession]) -> List[Operation]:
    if session is None or not session.active:
        return []
    return [op for op in OPERATIONS.values() if op.capability in session.capabilities]


def _check_args(operation: Operation, args: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    args = dict(args or {})
    missing = [name for name in operation.required_args if name not in args]
    allowed = set(operation.required_args) | set(operation.optional_args)
    unexpected = sorted(k for k in args if k not in allowed)
    if missing:
        raise ValidationError(f"Missing argument(s) for {operation.id}: {', '.join(missing)}")
    if unexpected:
        raise ValidationError(f"Unexpected argument(s) for {operation.id}: {', '.join(unexpected)}")
    return args


def dispatch(db: Session, session: Optional[UserSession], operation_id: str, args=None) -> Any:
    """Runs one operation on behalf of the session.

    Session state and capability are checked before anything reaches the
    database; errors from the services propagate unchanged.
    """
    if session is None or not session.active:
        raise AuthorizationError("No active session. Please log in again.")

    operation = OPERATIONS.get(operation_id)
    if operation is None:
        raise ValidationError(f"Unknown operation '{operation_id}'.")

    if operation.capability not in session.capabilities:
        logger.warning(
            "Denied %s for %r (role=%s)", operation.id, session.username, session.role.value
        )
        raise AuthorizationError(
            f"User '{session.username}' is not allowed to run '{operation.id}'."
        )

    kwargs = _check_args(operation, args)
    logger.debug("Dispatching %s for %r", operation.id, session.username)
    with translate_db_errors():
        return operation.handler(db, **kwargs)
