from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Optional


@dataclass(frozen=True)
class Department:
    id: str
    name: str
    description: str = ""
    is_default: bool = False
    created_at: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Department":
        return cls(
            id=str(data["id"]),
            name=str(data["name"]),
            description=str(data.get("description") or ""),
            is_default=bool(data.get("is_default", False)),
            created_at=data.get("created_at"),
        )

    def as_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class LeaveType:
    id: str
    name: str
    description: str = ""
    days_allowed: int = 0
    require_approval: bool = True
    color: str = "#1890ff"
    is_default: bool = False
    is_active: bool = True
    created_at: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "LeaveType":
        return cls(
            id=str(data["id"]),
            name=str(data["name"]),
            description=str(data.get("description") or ""),
            days_allowed=int(data.get("days_allowed") or 0),
            require_approval=bool(data.get("require_approval", True)),
            color=str(data.get("color") or "#1890ff"),
            is_default=bool(data.get("is_default", False)),
            is_active=bool(data.get("is_active", True)),
            created_at=data.get("created_at"),
        )

    def as_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class SettingsSnapshot:
    """The settings singleton as read, with the version token to write back against."""

    data: dict[str, Any]
    version: int
    departments: list[Department] = field(default_factory=list)
    leave_types: list[LeaveType] = field(default_factory=list)

    @classmethod
    def of(cls, data: dict[str, Any], version: int) -> "SettingsSnapshot":
        return cls(
            data=data,
            version=version,
            departments=[Department.from_dict(d) for d in data.get("departments") or []],
            leave_types=[LeaveType.from_dict(t) for t in data.get("leave_types") or []],
        )

    def section(self, name: str) -> dict[str, Any]:
        return dict(self.data.get(name) or {})

    def as_dict(self) -> dict[str, Any]:
        return {**self.data, "version": self.version}


def default_settings(created_at: str) -> dict[str, Any]:
    """Seed payload written the first time settings are read."""

    return {
        "company": {
            "name": "Attendance Hub",
            "address": "",
            "phone": "",
            "email": "",
        },
        "working_hours": {
            "default_start": "09:00",
            "default_end": "18:00",
            "flexible": False,
        },
        "attendance": {
            "allow_early_clock_in": 30,
            "allow_late_clock_out": 30,
            "auto_clock_out": False,
        },
        "leave": {
            "require_approval": True,
            "max_advance_days": 30,
            "allow_same_day": False,
        },
        "notifications": {
            "email_notifications": True,
            "reminder_time": "08:30",
            "weekend_reminders": False,
        },
        "email": {
            "sender_name": "",
            "sender_email": "",
            "admin_email": "",
        },
        "departments": [
            Department(
                id="general",
                name="General",
                description="Default department",
                is_default=True,
                created_at=created_at,
            ).as_dict(),
        ],
        "leave_types": [
            LeaveType(
                id="annual",
                name="Annual Leave",
                description="Paid annual leave",
                days_allowed=14,
                color="#52c41a",
                is_default=True,
                created_at=created_at,
            ).as_dict(),
            LeaveType(
                id="sick",
                name="Sick Leave",
                description="Leave for illness or medical care",
                days_allowed=30,
                color="#fa8c16",
                is_default=True,
                created_at=created_at,
            ).as_dict(),
            LeaveType(
                id="personal",
                name="Personal Leave",
                description="Leave for personal matters",
                days_allowed=7,
                color="#1890ff",
                is_default=True,
                created_at=created_at,
            ).as_dict(),
        ],
    }
