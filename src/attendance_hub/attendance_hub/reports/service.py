from __future__ import annotations

import math
from collections import Counter
from dataclasses import dataclass
from datetime import date
from typing import Sequence

from ..access.policy import AccessPolicy
from ..access.principal import Principal
from ..attendance.model import AttendanceEvent
from ..attendance.service import AttendanceService
from ..common.datetime_utils import inclusive_day_span
from ..core.constants import UNASSIGNED_DEPARTMENT
from ..core.enums import ClockEventType, RequestStatus
from ..core.exceptions import AuthorizationError, ValidationError
from ..requests.model import LeaveRequest
from ..requests.service import RequestService
from ..users.model import User
from ..users.repository import UserRepository


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


@dataclass(frozen=True)
class ReportData:
    attendance: dict
    departments: list[dict]
    leave: dict
    monthly: list[dict]

    def as_dict(self) -> dict:
        return {
            "attendance_stats": self.attendance,
            "department_stats": self.departments,
            "leave_stats": self.leave,
            "monthly_trends": self.monthly,
        }


class ReportService:
    """Date-range aggregates over the ledger and leave requests, for admins and managers."""

    def __init__(
        self,
        attendance: AttendanceService,
        requests: RequestService,
        users: UserRepository,
        policy: AccessPolicy,
    ):
        self._attendance = attendance
        self._requests = requests
        self._users = users
        self._policy = policy

    def build_report(self, principal: Principal, *, start: date, end: date) -> ReportData:
        if not (principal.is_admin or principal.is_manager):
            raise AuthorizationError("Only administrators and managers can view reports")
        if end < start:
            raise ValidationError("End date must be on or after start date")

        scope = self._policy.record_scope(principal)
        events = self._attendance.get_attendance_records(scope.user_id, start, end, department=scope.department)
        users = list(self._users.list_users(department=scope.department))
        leaves = [
            r
            for r in self._requests.list_leave(scope.user_id, department=scope.department)
            if start <= r.created_at.date() <= end
        ]

        return ReportData(
            attendance=attendance_stats(events, users, days=inclusive_day_span(start, end)),
            departments=department_stats(events, users),
            leave=leave_stats(leaves),
            monthly=monthly_trends(events),
        )


def attendance_stats(events: Sequence[AttendanceEvent], users: Sequence[User], *, days: int) -> dict:
    total = len(events)
    return {
        "total_records": total,
        "total_users": len(users),
        "clock_in_count": sum(1 for e in events if e.event_type == ClockEventType.CLOCK_IN),
        "clock_out_count": sum(1 for e in events if e.event_type == ClockEventType.CLOCK_OUT),
        "active_users": len({e.user_id for e in events}),
        "average_daily": _round_half_up(total / days) if days > 0 else 0,
    }


def department_stats(events: Sequence[AttendanceEvent], users: Sequence[User]) -> list[dict]:
    dept_of: dict[int, str] = {}
    headcount: Counter = Counter()
    for u in users:
        dept = u.department or UNASSIGNED_DEPARTMENT
        dept_of[u.user_id] = dept
        headcount[dept] += 1

    records: Counter = Counter()
    active: dict[str, set[int]] = {}
    for e in events:
        dept = dept_of.get(e.user_id)
        # Events of users outside the listed population are not attributed.
        if dept is None:
            continue
        records[dept] += 1
        active.setdefault(dept, set()).add(e.user_id)

    out: list[dict] = []
    for dept, n_users in headcount.items():
        n_active = len(active.get(dept, ()))
        out.append(
            {
                "department": dept,
                "total_records": records[dept],
                "total_users": n_users,
                "active_users": n_active,
                "average_per_user": _round_half_up(records[dept] / n_active) if n_active else 0,
                "activity_rate": _round_half_up(n_active / n_users * 100) if n_users else 0,
            }
        )
    return out


def leave_stats(leaves: Sequence[LeaveRequest]) -> dict:
    statuses = Counter(r.status for r in leaves)
    return {
        "total": len(leaves),
        "pending": statuses[RequestStatus.PENDING],
        "approved": statuses[RequestStatus.APPROVED],
        "rejected": statuses[RequestStatus.REJECTED],
        "type_breakdown": dict(Counter(r.leave_type_name or r.leave_type or "other" for r in leaves)),
    }


def monthly_trends(events: Sequence[AttendanceEvent]) -> list[dict]:
    months: dict[str, dict] = {}
    for e in events:
        key = e.timestamp.strftime("%Y-%m")
        row = months.setdefault(key, {"month": key, "clock_in": 0, "clock_out": 0})
        if e.event_type == ClockEventType.CLOCK_IN:
            row["clock_in"] += 1
        else:
            row["clock_out"] += 1

    return [
        {**row, "total": row["clock_in"] + row["clock_out"]}
        for _, row in sorted(months.items())
    ]
