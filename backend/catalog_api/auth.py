"""Principal and role primitives supplied by the authenticating gateway."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from .errors import PermissionDeniedError


class Role(str, Enum):
    USER = "USER"
    ADMIN = "ADMIN"


@dataclass(frozen=True, slots=True)
class Principal:
    """A verified caller identity with its role claim."""

    subject: str
    role: Role

    @property
    def is_admin(self) -> bool:
        return self.role is Role.ADMIN


def require_admin(principal: Principal) -> None:
    """Reject callers that do not hold the ADMIN role."""

    if not principal.is_admin:
        raise PermissionDeniedError(
            f"Principal {principal.subject} requires the {Role.ADMIN.value} role"
        )
