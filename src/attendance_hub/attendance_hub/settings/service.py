from __future__ import annotations

import copy
import uuid
from dataclasses import replace
from typing import Any, Callable, Optional, Sequence

import structlog

from ..access.policy import AccessPolicy
from ..access.principal import Principal
from ..common.datetime_utils import now_local
from ..common.validators import require_email, require_non_empty
from ..core.constants import SYSTEM_SETTINGS_KEY
from ..core.exceptions import (
    ConcurrentUpdateError,
    DuplicateNameError,
    NotFoundError,
    ProtectedEntryError,
    ValidationError,
)
from ..system.document_repository import DocumentRepository
from .model import Department, LeaveType, SettingsSnapshot, default_settings

logger = structlog.get_logger(__name__)

_LIST_KEYS = ("departments", "leave_types")
_EMAIL_KEYS = ("sender_name", "sender_email", "admin_email")
_LABELS = {"departments": "Department", "leave_types": "Leave type"}
_ENTRY_TYPES: dict[str, Callable[[dict], Any]] = {
    "departments": Department.from_dict,
    "leave_types": LeaveType.from_dict,
}


def merge_settings(current: dict[str, Any], patch: dict[str, Any]) -> dict[str, Any]:
    """Overlay `patch` on `current` without losing anything the patch does not name.

    Top-level keys missing from the patch are carried over, dict sections are
    merged key by key, lists and scalars are replaced.
    """

    merged = copy.deepcopy(current)
    for key, value in patch.items():
        if key == "version":
            continue
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            section = dict(merged[key])
            section.update(copy.deepcopy(value))
            merged[key] = section
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def _as_days_allowed(value: Any) -> int:
    try:
        days = int(value or 0)
    except (TypeError, ValueError):
        raise ValidationError("Days allowed must be a whole number")
    if days < 0:
        raise ValidationError("Days allowed cannot be negative")
    return days


def _parse_entries(list_key: str, raw: Any) -> list[Any]:
    label = _LABELS[list_key]
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise ValidationError(f"{label} entries must be a list")

    entries = []
    for item in raw:
        if not isinstance(item, dict) or not item.get("id") or not str(item.get("name") or "").strip():
            raise ValidationError(f"Each {label.lower()} needs an id and a name")
        if list_key == "leave_types":
            _as_days_allowed(item.get("days_allowed"))
        try:
            entries.append(_ENTRY_TYPES[list_key](item))
        except (TypeError, ValueError):
            raise ValidationError(f"{label} '{item.get('name')}' has an invalid field")
    return entries


def _check_sections(after: dict[str, Any]) -> None:
    for key, default in default_settings("").items():
        if isinstance(default, dict) and key in after and not isinstance(after[key], dict):
            raise ValidationError(f"Settings section '{key}' must be an object")

    email = after.get("email") or {}
    for key, label in (("sender_email", "Sender email"), ("admin_email", "Admin email")):
        if email.get(key):
            require_email(str(email[key]), label)


def _check_lists(before: dict[str, Any], after: dict[str, Any]) -> None:
    for list_key in _LIST_KEYS:
        label = _LABELS[list_key]
        entries = _parse_entries(list_key, after.get(list_key))

        names = [e.name for e in entries]
        if len(names) != len(set(names)):
            raise DuplicateNameError(f"{label} names must be unique")

        kept_ids = {e.id for e in entries}
        for old in before.get(list_key) or []:
            if old.get("is_default") and old.get("id") not in kept_ids:
                raise ProtectedEntryError(f"Default {label.lower()} '{old.get('name')}' cannot be removed")


class SettingsService:
    """Read/merge/write of the settings singleton with a version token."""

    def __init__(self, documents: DocumentRepository, policy: AccessPolicy):
        self._documents = documents
        self._policy = policy

    @staticmethod
    def _timestamp() -> str:
        return now_local().isoformat(timespec="seconds")

    def get(self) -> SettingsSnapshot:
        """Return the singleton, persisting the seed defaults on first read."""

        doc = self._documents.get(SYSTEM_SETTINGS_KEY)
        if doc is None:
            payload = default_settings(self._timestamp())
            if self._documents.create(SYSTEM_SETTINGS_KEY, payload):
                logger.info("settings_seeded")
                return SettingsSnapshot.of(payload, 1)
            # Created concurrently by someone else; read theirs.
            doc = self._documents.get(SYSTEM_SETTINGS_KEY)
            if doc is None:
                raise ConcurrentUpdateError("Settings could not be initialized")

        data = dict(doc.payload)
        # Sections added after the document was seeded read as their defaults.
        for key, value in default_settings(self._timestamp()).items():
            if key in _LIST_KEYS:
                data.setdefault(key, [])
            else:
                data.setdefault(key, value)
        return SettingsSnapshot.of(data, doc.version)

    def _write(
        self,
        mutate: Callable[[dict[str, Any]], dict[str, Any]],
        *,
        expected_version: Optional[int] = None,
    ) -> SettingsSnapshot:
        if expected_version is not None:
            try:
                expected_version = int(expected_version)
            except (TypeError, ValueError):
                raise ValidationError("Settings version must be an integer")

        current = self.get()
        if expected_version is not None and expected_version != current.version:
            raise ConcurrentUpdateError("Settings were changed by someone else; reload and retry")

        updated = mutate(copy.deepcopy(current.data))
        _check_sections(updated)
        _check_lists(current.data, updated)

        if not self._documents.replace(SYSTEM_SETTINGS_KEY, updated, expected_version=current.version):
            raise ConcurrentUpdateError("Settings were changed by someone else; reload and retry")
        return SettingsSnapshot.of(updated, current.version + 1)

    def update(self, principal: Principal, patch: dict[str, Any], *, expected_version: Optional[int] = None) -> SettingsSnapshot:
        self._policy.ensure_admin(principal, "change settings")
        if not isinstance(patch, dict):
            raise ValidationError("Settings patch must be an object")

        snapshot = self._write(lambda data: merge_settings(data, patch), expected_version=expected_version)
        logger.info("settings_updated", by=principal.user_id, keys=sorted(patch), version=snapshot.version)
        return snapshot

    def reset(self, principal: Principal) -> SettingsSnapshot:
        """Replace everything, lists included, with the seed defaults."""

        self._policy.ensure_admin(principal, "reset settings")
        current = self.get()
        payload = default_settings(self._timestamp())
        if not self._documents.replace(SYSTEM_SETTINGS_KEY, payload, expected_version=current.version):
            raise ConcurrentUpdateError("Settings were changed by someone else; reload and retry")
        logger.info("settings_reset", by=principal.user_id)
        return SettingsSnapshot.of(payload, current.version + 1)

    # -------- embedded lists --------
    def _add_entry(self, principal: Principal, list_key: str, entry: Any) -> Any:
        self._policy.ensure_admin(principal, "manage settings")
        label = _LABELS[list_key]

        def mutate(data: dict[str, Any]) -> dict[str, Any]:
            entries = data.get(list_key) or []
            if any(e.get("name") == entry.name for e in entries):
                raise DuplicateNameError(f"{label} '{entry.name}' already exists")
            data[list_key] = entries + [entry.as_dict()]
            return data

        self._write(mutate)
        logger.info("settings_entry_added", list=list_key, entry_id=entry.id, by=principal.user_id)
        return entry

    def _update_entry(self, principal: Principal, list_key: str, entry_id: str, changes: dict[str, Any]) -> Any:
        self._policy.ensure_admin(principal, "manage settings")
        label = _LABELS[list_key]
        if not isinstance(changes, dict):
            raise ValidationError(f"{label} changes must be an object")
        parse = _ENTRY_TYPES[list_key]
        result: list[Any] = []

        def mutate(data: dict[str, Any]) -> dict[str, Any]:
            entries = data.get(list_key) or []
            for i, raw in enumerate(entries):
                if raw.get("id") != entry_id:
                    continue
                current = parse(raw)
                allowed = {k: v for k, v in changes.items() if k not in {"id", "is_default", "created_at"}}
                if "name" in allowed:
                    allowed["name"] = require_non_empty(allowed["name"], f"{label} name")
                    if any(e.get("name") == allowed["name"] and e.get("id") != entry_id for e in entries):
                        raise DuplicateNameError(f"{label} '{allowed['name']}' already exists")
                try:
                    updated = replace(current, **allowed)
                except TypeError:
                    raise ValidationError(f"Unknown {label.lower()} field")
                updated = parse(updated.as_dict())
                entries[i] = updated.as_dict()
                result.append(updated)
                data[list_key] = entries
                return data
            raise NotFoundError(f"{label} not found")

        self._write(mutate)
        logger.info("settings_entry_updated", list=list_key, entry_id=entry_id, by=principal.user_id)
        return result[0]

    def _delete_entry(self, principal: Principal, list_key: str, entry_id: str) -> None:
        self._policy.ensure_admin(principal, "manage settings")
        label = _LABELS[list_key]

        def mutate(data: dict[str, Any]) -> dict[str, Any]:
            entries = data.get(list_key) or []
            target = next((e for e in entries if e.get("id") == entry_id), None)
            if target is None:
                raise NotFoundError(f"{label} not found")
            if target.get("is_default"):
                raise ProtectedEntryError(f"Default {label.lower()} '{target.get('name')}' cannot be deleted")
            data[list_key] = [e for e in entries if e.get("id") != entry_id]
            return data

        self._write(mutate)
        logger.info("settings_entry_deleted", list=list_key, entry_id=entry_id, by=principal.user_id)

    def list_departments(self) -> Sequence[Department]:
        return self.get().departments

    def add_department(self, principal: Principal, *, name: str, description: str = "") -> Department:
        entry = Department(
            id=uuid.uuid4().hex,
            name=require_non_empty(name, "Department name"),
            description=(description or "").strip(),
            is_default=False,
            created_at=self._timestamp(),
        )
        return self._add_entry(principal, "departments", entry)

    def update_department(self, principal: Principal, department_id: str, changes: dict[str, Any]) -> Department:
        return self._update_entry(principal, "departments", department_id, changes)

    def delete_department(self, principal: Principal, department_id: str) -> None:
        self._delete_entry(principal, "departments", department_id)

    def list_leave_types(self, *, active_only: bool = False) -> Sequence[LeaveType]:
        types = self.get().leave_types
        if active_only:
            return [t for t in types if t.is_active]
        return types

    def get_leave_type(self, leave_type_id: str) -> Optional[LeaveType]:
        return next((t for t in self.get().leave_types if t.id == leave_type_id), None)

    def add_leave_type(
        self,
        principal: Principal,
        *,
        name: str,
        description: str = "",
        days_allowed: int = 0,
        require_approval: bool = True,
        color: str = "#1890ff",
        is_active: bool = True,
    ) -> LeaveType:
        days_allowed = _as_days_allowed(days_allowed)
        entry = LeaveType(
            id=uuid.uuid4().hex,
            name=require_non_empty(name, "Leave type name"),
            description=(description or "").strip(),
            days_allowed=days_allowed,
            require_approval=bool(require_approval),
            color=color or "#1890ff",
            is_default=False,
            is_active=bool(is_active),
            created_at=self._timestamp(),
        )
        return self._add_entry(principal, "leave_types", entry)

    def update_leave_type(self, principal: Principal, leave_type_id: str, changes: dict[str, Any]) -> LeaveType:
        if isinstance(changes, dict) and "days_allowed" in changes:
            changes = {**changes, "days_allowed": _as_days_allowed(changes["days_allowed"])}
        return self._update_entry(principal, "leave_types", leave_type_id, changes)

    def delete_leave_type(self, principal: Principal, leave_type_id: str) -> None:
        self._delete_entry(principal, "leave_types", leave_type_id)

    def email_notifications_enabled(self) -> bool:
        return bool(self.get().section("notifications").get("email_notifications", True))

    def email_settings(self) -> dict[str, Any]:
        """Sender name/email and admin address; blank values fall back to the relay config."""

        return self.get().section("email")

    def update_email_settings(self, principal: Principal, changes: dict[str, Any]) -> dict[str, Any]:
        if not isinstance(changes, dict):
            raise ValidationError("Email settings must be an object")
        unknown = set(changes) - set(_EMAIL_KEYS)
        if unknown:
            raise ValidationError(f"Unknown email setting: {sorted(unknown)[0]}")

        patch = {k: str(v or "").strip() for k, v in changes.items()}
        return self.update(principal, {"email": patch}).section("email")
