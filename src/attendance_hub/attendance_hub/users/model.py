from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, time
from typing import Optional

from ..core.enums import Role


@dataclass(frozen=True)
class User:
    """Domain entity: an authenticated principal merged with its HR profile.

    Note: Plain data object, no DB access here.
    """

    user_id: int
    email: str
    display_name: str
    password_hash: str
    role: Role
    department: Optional[str]
    work_start: time = time(9, 0)
    work_end: time = time(18, 0)
    is_active: bool = True
    position: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def as_dict(self) -> dict:
        return {
            "user_id": self.user_id,
            "email": self.email,
            "display_name": self.display_name,
            "role": self.role.value,
            "department": self.department,
            "position": self.position,
            "work_start": self.work_start.strftime("%H:%M"),
            "work_end": self.work_end.strftime("%H:%M"),
            "is_active": self.is_active,
        }
