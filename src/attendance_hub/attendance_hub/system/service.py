from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import structlog

from ..attendance.repository import AttendanceRepository
from ..common.datetime_utils import now_local
from ..core.constants import SYSTEM_CONFIG_KEY, SYSTEM_VERSION
from ..core.enums import Role
from ..core.exceptions import ValidationError
from ..requests.repository import RequestRepository
from ..settings.service import SettingsService
from ..users.repository import UserRepository
from ..users.service import UserService
from .document_repository import DocumentRepository

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class SystemStatus:
    initialized: bool
    has_admin: bool
    has_config: bool
    admin_count: int

    def as_dict(self) -> dict:
        return {
            "initialized": self.initialized,
            "has_admin": self.has_admin,
            "has_config": self.has_config,
            "admin_count": self.admin_count,
        }


class SystemService:
    """Bootstrap gate: first-admin creation and the initialization marker."""

    def __init__(
        self,
        documents: DocumentRepository,
        users: UserRepository,
        user_service: UserService,
        settings: SettingsService,
        attendance: AttendanceRepository,
        requests: RequestRepository,
    ):
        self._documents = documents
        self._users = users
        self._user_service = user_service
        self._settings = settings
        self._attendance = attendance
        self._requests = requests

    def status(self) -> SystemStatus:
        admin_count = self._users.count_active_admins()
        has_config = self._documents.get(SYSTEM_CONFIG_KEY) is not None
        return SystemStatus(
            initialized=admin_count > 0 and has_config,
            has_admin=admin_count > 0,
            has_config=has_config,
            admin_count=admin_count,
        )

    def is_initialized(self) -> bool:
        return self.status().initialized

    def initialize_system(
        self,
        *,
        email: str,
        password: str,
        display_name: str,
        department: Optional[str] = None,
        position: Optional[str] = None,
    ) -> int:
        """Create the first administrator, write the marker and seed settings.

        Refused once the system is initialized. A half-finished earlier run
        (admin exists, marker missing) is completed without adding a second admin.
        """

        current = self.status()
        if current.initialized:
            raise ValidationError("System is already initialized")

        admin_id: Optional[int] = None
        if not current.has_admin:
            admin_id = self._user_service.register(
                email=email,
                password=password,
                display_name=display_name,
                role=Role.ADMIN,
                department=department,
                position=position or "System Administrator",
            )

        self._documents.put(
            SYSTEM_CONFIG_KEY,
            {
                "initialized": True,
                "initialized_at": now_local().isoformat(timespec="seconds"),
                "version": SYSTEM_VERSION,
            },
        )
        self._settings.get()

        logger.info("system_initialized", admin_id=admin_id)
        if admin_id is None:
            admins = self._users.list_users(role=Role.ADMIN, active_only=True)
            admin_id = admins[0].user_id
        return admin_id

    def get_system_stats(self) -> dict:
        return {
            "total_users": self._users.count_all(),
            "total_attendance": self._attendance.count_all(),
            "total_leave_requests": self._requests.count_leave(),
        }
