"""Role-scoped access decisions.

Every scoped service operation takes a `Principal` and asks this policy for
the scope to query with, or for a yes/no on a mutation. Callers never pass a
pre-filtered predicate of their own.

- employee: own records only, read-only own profile
- manager: everything belonging to users of their own department; may create
  and edit `employee` users there and review their requests
- admin: unscoped
"""

from __future__ import annotations

from typing import Optional

from ..core.enums import Role
from ..core.exceptions import AuthorizationError, NotFoundError
from ..users.model import User
from ..users.repository import UserRepository
from .principal import Principal, RecordScope


class AccessPolicy:
    def __init__(self, users: UserRepository):
        self._users = users

    @staticmethod
    def _same_department(principal: Principal, user: User) -> bool:
        return principal.department is not None and user.department == principal.department

    def can_view_user(self, principal: Principal, user: User) -> bool:
        if principal.is_admin:
            return True
        if user.user_id == principal.user_id:
            return True
        if principal.is_manager:
            return self._same_department(principal, user)
        return False

    def ensure_can_view_user(self, principal: Principal, user: User) -> None:
        if not self.can_view_user(principal, user):
            raise AuthorizationError("You are not allowed to view this user's records")

    def record_scope(self, principal: Principal, *, user_id: Optional[int] = None) -> RecordScope:
        """Scope for a list query, optionally pinned to one user."""

        if user_id is not None:
            if int(user_id) != principal.user_id and not principal.is_admin:
                target = self._users.get_by_id(int(user_id))
                if not target:
                    raise NotFoundError("User not found")
                self.ensure_can_view_user(principal, target)
            return RecordScope(user_id=int(user_id))

        if principal.is_admin:
            return RecordScope()
        if principal.is_manager and principal.department is not None:
            return RecordScope(department=principal.department)
        return RecordScope(user_id=principal.user_id)

    def ensure_self(self, principal: Principal, user_id: int, action: str) -> None:
        """Clock actions and request submissions are only made for oneself."""

        if int(user_id) != principal.user_id:
            raise AuthorizationError(f"You can only {action} for yourself")

    def ensure_admin(self, principal: Principal, action: str) -> None:
        if not principal.is_admin:
            raise AuthorizationError(f"Only administrators can {action}")

    def ensure_can_assign(self, principal: Principal, *, role: Role, department: Optional[str]) -> None:
        """Creating a user, or moving one into (role, department)."""

        if principal.is_admin:
            return
        if not principal.is_manager:
            raise AuthorizationError("You are not allowed to manage users")
        if role != Role.EMPLOYEE:
            raise AuthorizationError("Managers can only assign the employee role")
        if principal.department is None or department != principal.department:
            raise AuthorizationError("Managers can only manage users in their own department")

    def ensure_can_edit_user(self, principal: Principal, target: User) -> None:
        if principal.is_admin:
            return
        if not principal.is_manager:
            raise AuthorizationError("You are not allowed to manage users")
        if target.role != Role.EMPLOYEE or not self._same_department(principal, target):
            raise AuthorizationError("Managers can only edit employees in their own department")

    def ensure_can_review(self, principal: Principal, owner: User) -> None:
        if principal.is_admin:
            return
        if owner.user_id == principal.user_id:
            raise AuthorizationError("You cannot review your own request")
        if principal.is_manager and self._same_department(principal, owner):
            return
        raise AuthorizationError("You are not allowed to review this request")
