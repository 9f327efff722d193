import datetime
from dataclasses import dataclass, field
from enum import Enum
from typing import FrozenSet

from ..errors import ValidationError
from ..models import Account, Role


class Capability(str, Enum):
    MANAGE_ACCOUNTS = "manage_accounts"
    RUN_QUERIES = "run_queries"


ROLE_CAPABILITIES = {
    Role.ADMIN: frozenset({Capability.MANAGE_ACCOUNTS, Capability.RUN_QUERIES}),
    Role.USER: frozenset({Capability.RUN_QUERIES}),
}


def parse_role(value) -> Role:
    if isinstance(value, Role):
        return value
    try:
        return Role(str(value or "").strip().lower())
    except ValueError:
        raise ValidationError(f"Invalid role '{value}'. Use 'admin' or 'user'.") from None


def capabilities_for_role(role) -> FrozenSet[Capability]:
    return ROLE_CAPABILITIES[parse_role(role)]


@dataclass
class UserSession:
    """Live authenticated context of the console operator. Never persisted."""

    account_id: int
    username: str
    role: Role
    capabilities: FrozenSet[Capability]
    started_at: datetime.datetime = field(
        default_factory=lambda: datetime.datetime.now(datetime.timezone.utc)
    )
    active: bool = True

    @classmethod
    def open(cls, account: Account) -> "UserSession":
        role = parse_role(account.role)
        return cls(
            account_id=account.id,
            username=account.username,
            role=role,
            capabilities=capabilities_for_role(role),
        )

    def can(self, capability: Capability) -> bool:
        return self.active and capability in self.capabilities

    @property
    def is_admin(self) -> bool:
        return self.role is Role.ADMIN

    def close(self) -> None:
        self.active = False
