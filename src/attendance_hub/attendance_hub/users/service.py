from __future__ import annotations

from dataclasses import dataclass
from datetime import time
from typing import Any, Optional, Sequence

import structlog
from werkzeug.security import check_password_hash, generate_password_hash

from ..access.policy import AccessPolicy
from ..access.principal import Principal
from ..common.datetime_utils import parse_hhmm
from ..common.validators import require_email, require_min_length, require_non_empty
from ..core.constants import DEFAULT_MIN_PASSWORD_LENGTH
from ..core.enums import Role
from ..core.exceptions import (
    AccountDisabledError,
    AuthenticationError,
    AuthorizationError,
    NotFoundError,
    ValidationError,
)
from .model import User
from .repository import UserRepository

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class SessionUser:
    """What we store into the Flask session after login."""

    user_id: int
    email: str
    display_name: str
    role: Role
    department: Optional[str]

    @property
    def principal(self) -> Principal:
        return Principal(user_id=self.user_id, role=self.role, department=self.department)


def _session_user(user: User) -> SessionUser:
    return SessionUser(
        user_id=user.user_id,
        email=user.email,
        display_name=user.display_name,
        role=user.role,
        department=user.department,
    )


def _parse_work_time(value: Any, field_name: str) -> time:
    if isinstance(value, time):
        return value
    try:
        return parse_hhmm(str(value or "").strip())
    except ValueError:
        raise ValidationError(f"{field_name} must be HH:MM")


class AuthService:
    """Use case: sign in, and re-validate an existing session."""

    def __init__(self, users: UserRepository):
        self._users = users

    def authenticate(self, email: str, password: str) -> SessionUser:
        user = self._users.get_by_email((email or "").strip().lower())
        if not user:
            raise AuthenticationError("Invalid email or password")

        try:
            ok = check_password_hash(user.password_hash, password or "")
        except ValueError:
            # placeholder or corrupted hashes
            ok = False

        if not ok:
            raise AuthenticationError("Invalid email or password")

        if not user.is_active:
            logger.info("sign_in_refused_disabled", user_id=user.user_id)
            raise AccountDisabledError("Account disabled")

        return _session_user(user)

    def resolve_session(self, user_id: int) -> SessionUser:
        """Reload the profile behind a session.

        A missing or deactivated user invalidates the session; callers must clear it.
        """

        user = self._users.get_by_id(int(user_id))
        if not user:
            raise AuthenticationError("Session user no longer exists")
        if not user.is_active:
            logger.info("session_terminated_disabled", user_id=user.user_id)
            raise AccountDisabledError("Account disabled")
        return _session_user(user)


class UserService:
    """Use case: manage users (admins everywhere, managers in their department)."""

    def __init__(self, users: UserRepository, policy: AccessPolicy):
        self._users = users
        self._policy = policy

    def _get(self, user_id: int) -> User:
        user = self._users.get_by_id(int(user_id))
        if not user:
            raise NotFoundError("User not found")
        return user

    def register(
        self,
        *,
        email: str,
        password: str,
        display_name: str,
        role: Role,
        department: Optional[str] = None,
        position: Optional[str] = None,
        work_start: Any = "09:00",
        work_end: Any = "18:00",
    ) -> int:
        """Create an account without a principal check.

        Only used by system initialization and by `create_user` after authorization.
        """

        email = require_email(email)
        display_name = require_non_empty(display_name, "Display name")
        require_min_length(password, "Password", DEFAULT_MIN_PASSWORD_LENGTH)
        start = _parse_work_time(work_start, "Work start")
        end = _parse_work_time(work_end, "Work end")
        if end <= start:
            raise ValidationError("Work end must be after work start")

        if self._users.get_by_email(email):
            raise ValidationError("Email is already registered")

        user_id = self._users.create_user(
            email=email,
            display_name=display_name,
            password_hash=generate_password_hash(password),
            role=role,
            department=(department or "").strip() or None,
            position=(position or "").strip() or None,
            work_start=start,
            work_end=end,
        )
        logger.info("user_created", user_id=user_id, role=role.value)
        return user_id

    def create_user(self, principal: Principal, **fields: Any) -> int:
        role = fields.get("role", Role.EMPLOYEE)
        try:
            role = Role(role)
        except ValueError:
            raise ValidationError("Unknown role")

        department = (fields.get("department") or "").strip() or None
        if principal.is_manager and department is None:
            department = principal.department
        self._policy.ensure_can_assign(principal, role=role, department=department)

        fields.update(role=role, department=department)
        return self.register(**fields)

    def update_user(self, principal: Principal, user_id: int, changes: dict[str, Any]) -> User:
        target = self._get(user_id)
        self._policy.ensure_can_edit_user(principal, target)

        updates: dict[str, Any] = {}
        if "display_name" in changes:
            updates["display_name"] = require_non_empty(changes["display_name"], "Display name")
        if "position" in changes:
            updates["position"] = (changes["position"] or "").strip() or None
        if "work_start" in changes:
            updates["work_start"] = _parse_work_time(changes["work_start"], "Work start")
        if "work_end" in changes:
            updates["work_end"] = _parse_work_time(changes["work_end"], "Work end")
        if "password" in changes:
            require_min_length(changes["password"], "Password", DEFAULT_MIN_PASSWORD_LENGTH)
            updates["password_hash"] = generate_password_hash(changes["password"])

        new_role = target.role
        new_department = target.department
        if "role" in changes:
            try:
                new_role = Role(changes["role"])
            except ValueError:
                raise ValidationError("Unknown role")
        if "department" in changes:
            new_department = (changes["department"] or "").strip() or None
        if new_role != target.role or new_department != target.department:
            self._policy.ensure_can_assign(principal, role=new_role, department=new_department)
            if target.user_id == principal.user_id and new_role != target.role:
                raise AuthorizationError("You cannot change your own role")
            updates["role"] = new_role
            updates["department"] = new_department

        start = updates.get("work_start", target.work_start)
        end = updates.get("work_end", target.work_end)
        if end <= start:
            raise ValidationError("Work end must be after work start")

        self._users.update_user(target.user_id, changes=updates)
        logger.info("user_updated", user_id=target.user_id, by=principal.user_id, fields=sorted(updates))
        return self._get(target.user_id)

    def deactivate_user(self, principal: Principal, user_id: int) -> None:
        """Users are never deleted; deactivation ends their sessions on next check."""

        target = self._get(user_id)
        self._policy.ensure_can_edit_user(principal, target)
        if target.user_id == principal.user_id:
            raise ValidationError("You cannot deactivate your own account")
        if target.role == Role.ADMIN and target.is_active and self._users.count_active_admins() <= 1:
            raise ValidationError("Cannot deactivate the last active administrator")

        if not self._users.set_active(target.user_id, is_active=False):
            raise ValidationError("Failed to deactivate user")
        logger.info("user_deactivated", user_id=target.user_id, by=principal.user_id)

    def activate_user(self, principal: Principal, user_id: int) -> None:
        target = self._get(user_id)
        self._policy.ensure_can_edit_user(principal, target)
        if not self._users.set_active(target.user_id, is_active=True):
            raise ValidationError("Failed to activate user")
        logger.info("user_activated", user_id=target.user_id, by=principal.user_id)

    def get_user(self, principal: Principal, user_id: int) -> User:
        target = self._get(user_id)
        self._policy.ensure_can_view_user(principal, target)
        return target

    def list_users(self, principal: Principal, *, active_only: bool = False) -> Sequence[User]:
        scope = self._policy.record_scope(principal)
        if scope.unrestricted:
            return self._users.list_users(active_only=active_only)
        if scope.department is not None:
            return self._users.list_users(department=scope.department, active_only=active_only)
        return [self._get(principal.user_id)]

    def find_reviewers(self, owner: User) -> list[User]:
        """Who gets notified about `owner`'s requests: department managers, else admins."""

        managers: list[User] = []
        if owner.department:
            managers = [
                u
                for u in self._users.list_users(department=owner.department, role=Role.MANAGER, active_only=True)
                if u.user_id != owner.user_id
            ]
        if managers:
            return managers
        return [u for u in self._users.list_users(role=Role.ADMIN, active_only=True) if u.user_id != owner.user_id]
