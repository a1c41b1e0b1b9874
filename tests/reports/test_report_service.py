from __future__ import annotations

from datetime import date, datetime

import pytest

from src.attendance_hub.attendance_hub.core.enums import Role
from src.attendance_hub.attendance_hub.core.exceptions import AuthorizationError, ValidationError


def _day(hub, user, day: int, month: int = 6):
    hub.attendance.clock_in(user.user_id, now=datetime(2025, month, day, 9))
    hub.attendance.clock_out(user.user_id, now=datetime(2025, month, day, 18))


@pytest.fixture()
def populated(hub):
    hub.users.add("nobody@example.test", Role.EMPLOYEE, None)
    _day(hub, hub.employee, 2)
    _day(hub, hub.employee, 3)
    _day(hub, hub.manager, 3)
    _day(hub, hub.outsider, 30, month=5)
    hub.attendance.clock_in(hub.outsider.user_id, now=datetime(2025, 6, 4, 9))

    first = hub.requests.submit_leave(
        hub.employee.user_id, leave_type="sick", start_date="2025-06-10", end_date="2025-06-11", reason="flu"
    )
    hub.requests.submit_leave(
        hub.outsider.user_id, leave_type="annual", start_date="2025-06-20", end_date="2025-06-22", reason="trip"
    )
    hub.requests.approve_leave(first.request_id, hub.principal(hub.admin))
    return hub


def test_admin_report(populated):
    report = populated.reports.build_report(
        populated.principal(populated.admin), start=date(2025, 5, 1), end=date(2025, 6, 30)
    )

    assert report.attendance == {
        "total_records": 9,
        "total_users": 5,
        "clock_in_count": 5,
        "clock_out_count": 4,
        "active_users": 3,
        "average_daily": 0,
    }

    by_dept = {d["department"]: d for d in report.departments}
    assert by_dept["Engineering"] == {
        "department": "Engineering",
        "total_records": 6,
        "total_users": 2,
        "active_users": 2,
        "average_per_user": 3,
        "activity_rate": 100,
    }
    assert by_dept["Unassigned"]["total_users"] == 2
    assert by_dept["Unassigned"]["activity_rate"] == 0
    assert by_dept["Sales"]["total_records"] == 3

    assert report.leave == {
        "total": 2,
        "pending": 1,
        "approved": 1,
        "rejected": 0,
        "type_breakdown": {"Sick Leave": 1, "Annual Leave": 1},
    }
    assert report.monthly == [
        {"month": "2025-05", "clock_in": 1, "clock_out": 1, "total": 2},
        {"month": "2025-06", "clock_in": 4, "clock_out": 3, "total": 7},
    ]


def test_manager_report_covers_own_department(populated):
    report = populated.reports.build_report(
        populated.principal(populated.manager), start=date(2025, 6, 1), end=date(2025, 6, 3)
    )

    assert report.attendance["total_records"] == 6
    assert report.attendance["total_users"] == 2
    assert report.attendance["average_daily"] == 2
    assert [d["department"] for d in report.departments] == ["Engineering"]
    assert report.leave["total"] == 1


def test_employees_cannot_view_reports(populated):
    with pytest.raises(AuthorizationError):
        populated.reports.build_report(
            populated.principal(populated.employee), start=date(2025, 6, 1), end=date(2025, 6, 30)
        )


def test_range_must_be_ordered(populated):
    with pytest.raises(ValidationError):
        populated.reports.build_report(
            populated.principal(populated.admin), start=date(2025, 6, 30), end=date(2025, 6, 1)
        )
