from __future__ import annotations

from datetime import datetime

import pytest

from src.attendance_hub.attendance_hub.core.constants import SYSTEM_CONFIG_KEY, SYSTEM_SETTINGS_KEY, SYSTEM_VERSION
from src.attendance_hub.attendance_hub.core.enums import Role
from src.attendance_hub.attendance_hub.core.exceptions import ValidationError


def _initialize(hub, **overrides):
    fields = dict(email="founder@example.test", password="hunter22", display_name="Founder")
    fields.update(overrides)
    return hub.system.initialize_system(**fields)


def test_fresh_system_is_not_initialized(empty_hub):
    status = empty_hub.system.status()
    assert not status.initialized
    assert status.admin_count == 0
    assert not empty_hub.system.is_initialized()


def test_initialize_creates_admin_marker_and_settings(empty_hub):
    admin_id = _initialize(empty_hub, department="Management")

    admin = empty_hub.users.get_by_id(admin_id)
    assert admin.role == Role.ADMIN
    assert admin.position == "System Administrator"

    marker = empty_hub.documents.get(SYSTEM_CONFIG_KEY).payload
    assert marker["initialized"] is True
    assert marker["version"] == SYSTEM_VERSION
    datetime.fromisoformat(marker["initialized_at"])

    assert empty_hub.documents.get(SYSTEM_SETTINGS_KEY) is not None
    assert empty_hub.system.is_initialized()


def test_second_initialization_is_refused(empty_hub):
    _initialize(empty_hub)
    with pytest.raises(ValidationError, match="already initialized"):
        _initialize(empty_hub, email="another@example.test")
    assert empty_hub.users.count_active_admins() == 1


def test_admin_without_marker_is_not_initialized(hub):
    assert hub.system.status().has_admin
    assert not hub.system.is_initialized()

    admin_id = _initialize(hub)
    assert admin_id == hub.admin.user_id
    assert hub.users.count_active_admins() == 1
    assert hub.system.is_initialized()


def test_invalid_admin_details_leave_system_uninitialized(empty_hub):
    with pytest.raises(ValidationError):
        _initialize(empty_hub, password="123")
    assert empty_hub.documents.get(SYSTEM_CONFIG_KEY) is None


def test_system_stats(hub):
    hub.attendance.clock_in(hub.employee.user_id, now=datetime(2025, 6, 10, 9))
    hub.requests.submit_leave(
        hub.employee.user_id, leave_type="annual", start_date="2025-06-20", end_date="2025-06-22", reason="trip"
    )

    assert hub.system.get_system_stats() == {
        "total_users": 4,
        "total_attendance": 1,
        "total_leave_requests": 1,
    }
