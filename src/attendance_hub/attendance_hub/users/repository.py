from __future__ import annotations

from datetime import time
from typing import Any, Optional, Protocol, Sequence

from ..core.enums import Role
from .model import User


class UserRepository(Protocol):
    """Repository interface for User.

    Note (DIP): services depend on this interface, never on a concrete DB.
    """

    def get_by_id(self, user_id: int) -> Optional[User]:
        raise NotImplementedError

    def get_by_email(self, email: str) -> Optional[User]:
        raise NotImplementedError

    def create_user(
        self,
        *,
        email: str,
        display_name: str,
        password_hash: str,
        role: Role,
        department: Optional[str],
        position: Optional[str],
        work_start: time,
        work_end: time,
    ) -> int:
        raise NotImplementedError

    def update_user(self, user_id: int, *, changes: dict[str, Any]) -> bool:
        """Apply column changes (already validated) to one user."""

        raise NotImplementedError

    def set_active(self, user_id: int, *, is_active: bool) -> bool:
        raise NotImplementedError

    def list_users(
        self,
        *,
        department: Optional[str] = None,
        role: Optional[Role] = None,
        active_only: bool = False,
    ) -> Sequence[User]:
        raise NotImplementedError

    def count_active_admins(self) -> int:
        raise NotImplementedError

    def count_all(self) -> int:
        raise NotImplementedError
