from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time
from typing import Any, Optional

from ..core.enums import RequestStatus


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


@dataclass(frozen=True)
class LeaveRequest:
    request_id: int
    user_id: int
    leave_type: str
    start_date: date
    end_date: date
    days: int
    reason: str
    status: RequestStatus
    created_at: datetime
    leave_type_name: Optional[str] = None
    reviewer_id: Optional[int] = None
    review_comment: Optional[str] = None
    reviewed_at: Optional[datetime] = None

    @property
    def is_pending(self) -> bool:
        return self.status == RequestStatus.PENDING

    def as_dict(self) -> dict[str, Any]:
        return {
            "request_id": self.request_id,
            "user_id": self.user_id,
            "leave_type": self.leave_type,
            "leave_type_name": self.leave_type_name or self.leave_type,
            "start_date": self.start_date.isoformat(),
            "end_date": self.end_date.isoformat(),
            "days": self.days,
            "reason": self.reason,
            "status": self.status.value,
            "created_at": _iso(self.created_at),
            "reviewer_id": self.reviewer_id,
            "review_comment": self.review_comment,
            "reviewed_at": _iso(self.reviewed_at),
        }


@dataclass(frozen=True)
class OvertimeRequest:
    request_id: int
    user_id: int
    work_date: date
    start_time: time
    end_time: time
    hours: float
    reason: str
    status: RequestStatus
    created_at: datetime
    reviewer_id: Optional[int] = None
    review_comment: Optional[str] = None
    reviewed_at: Optional[datetime] = None

    @property
    def is_pending(self) -> bool:
        return self.status == RequestStatus.PENDING

    def as_dict(self) -> dict[str, Any]:
        return {
            "request_id": self.request_id,
            "user_id": self.user_id,
            "date": self.work_date.isoformat(),
            "start_time": self.start_time.strftime("%H:%M"),
            "end_time": self.end_time.strftime("%H:%M"),
            "hours": self.hours,
            "reason": self.reason,
            "status": self.status.value,
            "created_at": _iso(self.created_at),
            "reviewer_id": self.reviewer_id,
            "review_comment": self.review_comment,
            "reviewed_at": _iso(self.reviewed_at),
        }
