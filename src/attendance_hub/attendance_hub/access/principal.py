from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..core.enums import Role
from ..users.model import User


@dataclass(frozen=True)
class Principal:
    """The authenticated actor of an operation."""

    user_id: int
    role: Role
    department: Optional[str] = None

    @classmethod
    def from_user(cls, user: User) -> "Principal":
        return cls(user_id=user.user_id, role=user.role, department=user.department)

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    @property
    def is_manager(self) -> bool:
        return self.role == Role.MANAGER


@dataclass(frozen=True)
class RecordScope:
    """Predicate narrowing ledger/request/user queries.

    Both fields empty means unrestricted (admin breadth).
    """

    user_id: Optional[int] = None
    department: Optional[str] = None

    @property
    def unrestricted(self) -> bool:
        return self.user_id is None and self.department is None
