from __future__ import annotations

import pytest

from src.attendance_hub.attendance_hub.core.constants import SYSTEM_SETTINGS_KEY
from src.attendance_hub.attendance_hub.core.exceptions import (
    AuthorizationError,
    ConcurrentUpdateError,
    DuplicateNameError,
    NotFoundError,
    ProtectedEntryError,
    ValidationError,
)
from src.attendance_hub.attendance_hub.settings.service import merge_settings


def test_first_read_persists_seed_defaults(hub):
    snapshot = hub.settings.get()

    assert snapshot.version == 1
    assert [d.id for d in snapshot.departments] == ["general"]
    assert [t.id for t in snapshot.leave_types] == ["annual", "sick", "personal"]
    assert all(t.is_default for t in snapshot.leave_types)
    assert hub.documents.get(SYSTEM_SETTINGS_KEY) is not None

    # A second read sees the stored document, not a fresh seed.
    assert hub.settings.get().version == 1


def test_patch_preserves_untouched_lists_and_keys(hub):
    admin = hub.principal(hub.admin)
    hub.settings.add_department(admin, name="Engineering")

    updated = hub.settings.update(admin, {"company": {"name": "Acme"}})

    assert updated.data["company"]["name"] == "Acme"
    assert "address" in updated.data["company"]
    assert [d.name for d in updated.departments] == ["General", "Engineering"]
    assert len(updated.leave_types) == 3
    assert updated.data["working_hours"]["default_start"] == "09:00"


def test_merge_replaces_lists_only_when_present():
    current = {"a": {"x": 1, "y": 2}, "items": [1, 2], "flag": True}

    assert merge_settings(current, {"a": {"y": 3}}) == {"a": {"x": 1, "y": 3}, "items": [1, 2], "flag": True}
    assert merge_settings(current, {"items": [9]})["items"] == [9]
    assert merge_settings(current, {"version": 7}) == current


def test_duplicate_department_name_is_rejected(hub):
    admin = hub.principal(hub.admin)
    with pytest.raises(DuplicateNameError):
        hub.settings.add_department(admin, name="General")

    dept = hub.settings.add_department(admin, name="Sales")
    with pytest.raises(DuplicateNameError):
        hub.settings.update_department(admin, dept.id, {"name": "General"})


def test_default_entries_cannot_be_deleted(hub):
    admin = hub.principal(hub.admin)
    with pytest.raises(ProtectedEntryError):
        hub.settings.delete_department(admin, "general")
    with pytest.raises(ProtectedEntryError):
        hub.settings.delete_leave_type(admin, "annual")

    assert [d.id for d in hub.settings.list_departments()] == ["general"]


def test_patch_cannot_drop_default_entries_or_duplicate_names(hub):
    admin = hub.principal(hub.admin)
    with pytest.raises(ProtectedEntryError):
        hub.settings.update(admin, {"departments": []})

    general = hub.settings.get().departments[0].as_dict()
    with pytest.raises(DuplicateNameError):
        hub.settings.update(admin, {"departments": [general, {**general, "id": "copy"}]})


def test_added_entries_get_generated_ids_and_can_be_removed(hub):
    admin = hub.principal(hub.admin)
    leave_type = hub.settings.add_leave_type(admin, name="Study Leave", days_allowed=5, color="#722ed1")

    assert leave_type.id not in {"annual", "sick", "personal"}
    assert leave_type.is_default is False
    assert hub.settings.get_leave_type(leave_type.id) == leave_type

    hub.settings.delete_leave_type(admin, leave_type.id)
    assert hub.settings.get_leave_type(leave_type.id) is None

    with pytest.raises(NotFoundError):
        hub.settings.delete_leave_type(admin, leave_type.id)


def test_update_keeps_id_and_default_flag(hub):
    admin = hub.principal(hub.admin)
    updated = hub.settings.update_leave_type(
        admin, "annual", {"id": "hijack", "is_default": False, "days_allowed": 20}
    )

    assert updated.id == "annual"
    assert updated.is_default is True
    assert updated.days_allowed == 20
    assert [t.id for t in hub.settings.list_leave_types()] == ["annual", "sick", "personal"]


def test_active_only_filter(hub):
    admin = hub.principal(hub.admin)
    hub.settings.update_leave_type(admin, "sick", {"is_active": False})
    assert [t.id for t in hub.settings.list_leave_types(active_only=True)] == ["annual", "personal"]


def test_stale_writer_gets_concurrent_update_error(hub):
    admin = hub.principal(hub.admin)
    seen_by_a = hub.settings.get().version
    seen_by_b = hub.settings.get().version

    hub.settings.update(admin, {"company": {"name": "A"}}, expected_version=seen_by_a)
    with pytest.raises(ConcurrentUpdateError):
        hub.settings.update(admin, {"company": {"phone": "123"}}, expected_version=seen_by_b)

    company = hub.settings.get().data["company"]
    assert company["name"] == "A"
    assert company["phone"] == ""


def test_lost_race_on_write_is_detected(hub, monkeypatch):
    admin = hub.principal(hub.admin)
    hub.settings.get()
    monkeypatch.setattr(hub.documents, "replace", lambda *a, **kw: False)

    with pytest.raises(ConcurrentUpdateError):
        hub.settings.add_department(admin, name="Ops")


def test_reset_restores_defaults(hub):
    admin = hub.principal(hub.admin)
    hub.settings.add_department(admin, name="Ops")
    hub.settings.update(admin, {"company": {"name": "Acme"}})

    reset = hub.settings.reset(admin)

    assert [d.id for d in reset.departments] == ["general"]
    assert reset.data["company"]["name"] == "Attendance Hub"
    assert reset.version == 4


def test_only_admins_change_settings(hub):
    for user in (hub.manager, hub.employee):
        with pytest.raises(AuthorizationError):
            hub.settings.update(hub.principal(user), {"company": {"name": "x"}})
        with pytest.raises(AuthorizationError):
            hub.settings.add_department(hub.principal(user), name="x")


@pytest.mark.parametrize(
    "patch",
    [
        {"departments": [{"id": "general", "name": "General", "is_default": True}, {"name": "NoId"}]},
        {"departments": "Engineering"},
        {"leave_types": [{"id": "annual", "name": "Annual Leave", "days_allowed": "ten"}]},
        {"company": "Acme"},
        {"email": {"sender_email": "not-an-address"}},
    ],
)
def test_malformed_patch_is_rejected_before_writing(hub, patch):
    admin = hub.principal(hub.admin)
    before = hub.settings.get()

    with pytest.raises(ValidationError):
        hub.settings.update(admin, patch)

    assert hub.settings.get() == before


def test_non_integer_version_is_a_validation_error(hub):
    with pytest.raises(ValidationError):
        hub.settings.update(hub.principal(hub.admin), {"company": {"name": "Acme"}}, expected_version="abc")
    assert hub.settings.get().version == 1


def test_days_allowed_must_be_a_whole_number(hub):
    admin = hub.principal(hub.admin)

    with pytest.raises(ValidationError):
        hub.settings.add_leave_type(admin, name="Study", days_allowed="ten")
    with pytest.raises(ValidationError):
        hub.settings.update_leave_type(admin, "annual", {"days_allowed": "ten"})
    with pytest.raises(ValidationError):
        hub.settings.update_department(admin, "general", "General")

    assert hub.settings.get_leave_type("annual").days_allowed == 14
    assert hub.settings.update_leave_type(admin, "annual", {"days_allowed": "20"}).days_allowed == 20


def test_email_settings_are_admin_editable(hub):
    admin = hub.principal(hub.admin)
    assert hub.settings.email_settings() == {"sender_name": "", "sender_email": "", "admin_email": ""}

    updated = hub.settings.update_email_settings(admin, {"sender_name": " HR Desk ", "admin_email": "hr@example.test"})

    assert updated == {"sender_name": "HR Desk", "sender_email": "", "admin_email": "hr@example.test"}
    assert hub.settings.get().data["company"]["name"] == "Attendance Hub"

    with pytest.raises(ValidationError):
        hub.settings.update_email_settings(admin, {"smtp_host": "mail"})
    with pytest.raises(AuthorizationError):
        hub.settings.update_email_settings(hub.principal(hub.manager), {"sender_name": "Mia"})
