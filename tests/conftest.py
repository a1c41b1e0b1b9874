from __future__ import annotations

import copy
import json
import threading
from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from typing import Any, Optional

import httpx
import pytest
from werkzeug.security import generate_password_hash

from src.attendance_hub.attendance_hub.access.policy import AccessPolicy
from src.attendance_hub.attendance_hub.access.principal import Principal
from src.attendance_hub.attendance_hub.attendance.model import AttendanceEvent
from src.attendance_hub.attendance_hub.attendance.service import AttendanceService
from src.attendance_hub.attendance_hub.core.enums import EmailStatus, RequestStatus, Role
from src.attendance_hub.attendance_hub.notifications.model import EmailLogEntry
from src.attendance_hub.attendance_hub.notifications.relay_client import MailRelayClient
from src.attendance_hub.attendance_hub.notifications.service import NotificationService
from src.attendance_hub.attendance_hub.reports.service import ReportService
from src.attendance_hub.attendance_hub.requests.model import LeaveRequest, OvertimeRequest
from src.attendance_hub.attendance_hub.requests.service import RequestService
from src.attendance_hub.attendance_hub.settings.service import SettingsService
from src.attendance_hub.attendance_hub.system.document_repository import VersionedDocument
from src.attendance_hub.attendance_hub.system.service import SystemService
from src.attendance_hub.attendance_hub.users.model import User
from src.attendance_hub.attendance_hub.users.service import AuthService, UserService

PASSWORD = "secret123"
# Low iteration count keeps the suite fast; werkzeug still verifies it normally.
PASSWORD_HASH = generate_password_hash(PASSWORD, method="pbkdf2:sha256:1000")


class InMemoryUsers:
    def __init__(self):
        self.users: dict[int, User] = {}
        self._next_id = 1

    def add(self, email: str, role: Role, department: Optional[str] = None, *, is_active: bool = True, **extra) -> User:
        user = User(
            user_id=self._next_id,
            email=email,
            display_name=extra.pop("display_name", email.split("@")[0].title()),
            password_hash=extra.pop("password_hash", PASSWORD_HASH),
            role=role,
            department=department,
            is_active=is_active,
            **extra,
        )
        self.users[user.user_id] = user
        self._next_id += 1
        return user

    def get_by_id(self, user_id: int) -> Optional[User]:
        return self.users.get(int(user_id))

    def get_by_email(self, email: str) -> Optional[User]:
        return next((u for u in self.users.values() if u.email == email), None)

    def create_user(self, *, email, display_name, password_hash, role, department, position, work_start, work_end) -> int:
        user = self.add(
            email,
            role,
            department,
            display_name=display_name,
            password_hash=password_hash,
            position=position,
            work_start=work_start,
            work_end=work_end,
        )
        return user.user_id

    def update_user(self, user_id: int, *, changes: dict[str, Any]) -> bool:
        user = self.users.get(int(user_id))
        if not user:
            return False
        self.users[user.user_id] = replace(user, **changes)
        return True

    def set_active(self, user_id: int, *, is_active: bool) -> bool:
        return self.update_user(user_id, changes={"is_active": is_active})

    def list_users(self, *, department=None, role=None, active_only=False):
        out = list(self.users.values())
        if department is not None:
            out = [u for u in out if u.department == department]
        if role is not None:
            out = [u for u in out if u.role == role]
        if active_only:
            out = [u for u in out if u.is_active]
        return out

    def count_active_admins(self) -> int:
        return len(self.list_users(role=Role.ADMIN, active_only=True))

    def count_all(self) -> int:
        return len(self.users)


class InMemoryAttendance:
    """Conditional append guarded by a lock, like the row lock in MySQL."""

    def __init__(self, users: InMemoryUsers):
        self._users = users
        self._lock = threading.Lock()
        self.events: list[AttendanceEvent] = []

    def append_if_latest_in(self, *, user_id, event_type, timestamp, window_start, window_end, allowed_previous):
        with self._lock:
            todays = [
                e for e in self.events
                if e.user_id == user_id and window_start <= e.timestamp < window_end
            ]
            latest = max(todays, key=lambda e: (e.timestamp, e.event_id), default=None)
            if (latest.event_type if latest else None) not in allowed_previous:
                return None
            event = AttendanceEvent(
                event_id=len(self.events) + 1,
                user_id=user_id,
                event_type=event_type,
                timestamp=timestamp,
                created_at=timestamp,
            )
            self.events.append(event)
            return event

    def list_events(self, *, user_id=None, department=None, start=None, end=None):
        out = list(self.events)
        if user_id is not None:
            out = [e for e in out if e.user_id == user_id]
        if department is not None:
            out = [e for e in out if getattr(self._users.get_by_id(e.user_id), "department", None) == department]
        if start is not None:
            out = [e for e in out if e.timestamp >= start]
        if end is not None:
            out = [e for e in out if e.timestamp < end]
        return sorted(out, key=lambda e: (e.timestamp, e.event_id), reverse=True)

    def count_all(self) -> int:
        return len(self.events)


class InMemoryDocuments:
    def __init__(self):
        self._lock = threading.Lock()
        self.docs: dict[str, tuple[dict, int]] = {}

    def get(self, key):
        with self._lock:
            if key not in self.docs:
                return None
            payload, version = self.docs[key]
            return VersionedDocument(key=key, payload=copy.deepcopy(payload), version=version)

    def create(self, key, payload):
        with self._lock:
            if key in self.docs:
                return False
            self.docs[key] = (copy.deepcopy(payload), 1)
            return True

    def replace(self, key, payload, *, expected_version):
        with self._lock:
            if key not in self.docs or self.docs[key][1] != expected_version:
                return False
            self.docs[key] = (copy.deepcopy(payload), expected_version + 1)
            return True

    def put(self, key, payload):
        with self._lock:
            version = self.docs[key][1] + 1 if key in self.docs else 1
            self.docs[key] = (copy.deepcopy(payload), version)


class InMemoryRequests:
    def __init__(self, users: InMemoryUsers):
        self._users = users
        self._next_id = 1
        self.leave: dict[int, LeaveRequest] = {}
        self.overtime: dict[int, OvertimeRequest] = {}
        # Submissions are stamped one minute apart from here.
        self.clock = datetime(2025, 6, 1, 9, 0)

    def _stamp(self) -> tuple[int, datetime]:
        rid = self._next_id
        self._next_id += 1
        self.clock += timedelta(minutes=1)
        return rid, self.clock

    def create_leave(self, *, user_id, leave_type, leave_type_name, start_date, end_date, days, reason):
        rid, created = self._stamp()
        self.leave[rid] = LeaveRequest(
            request_id=rid,
            user_id=user_id,
            leave_type=leave_type,
            leave_type_name=leave_type_name,
            start_date=start_date,
            end_date=end_date,
            days=days,
            reason=reason,
            status=RequestStatus.PENDING,
            created_at=created,
        )
        return rid

    def create_overtime(self, *, user_id, work_date, start_time, end_time, hours, reason):
        rid, created = self._stamp()
        self.overtime[rid] = OvertimeRequest(
            request_id=rid,
            user_id=user_id,
            work_date=work_date,
            start_time=start_time,
            end_time=end_time,
            hours=hours,
            reason=reason,
            status=RequestStatus.PENDING,
            created_at=created,
        )
        return rid

    def get_leave(self, *, request_id):
        return self.leave.get(int(request_id))

    def get_overtime(self, *, request_id):
        return self.overtime.get(int(request_id))

    def _list(self, rows, *, user_id, department, status, limit):
        out = list(rows)
        if user_id is not None:
            out = [r for r in out if r.user_id == user_id]
        if department is not None:
            out = [r for r in out if getattr(self._users.get_by_id(r.user_id), "department", None) == department]
        if status is not None:
            out = [r for r in out if r.status == status]
        out.sort(key=lambda r: (r.created_at, r.request_id), reverse=True)
        return out[:limit] if limit is not None else out

    def list_leave(self, *, user_id=None, department=None, status=None, limit=None):
        return self._list(self.leave.values(), user_id=user_id, department=department, status=status, limit=limit)

    def list_overtime(self, *, user_id=None, department=None, status=None, limit=None):
        return self._list(self.overtime.values(), user_id=user_id, department=department, status=status, limit=limit)

    def _decide(self, rows, *, request_id, status, reviewer_id, review_comment, reviewed_at):
        req = rows.get(int(request_id))
        if not req or req.status != RequestStatus.PENDING:
            return False
        rows[req.request_id] = replace(
            req,
            status=status,
            reviewer_id=reviewer_id,
            review_comment=review_comment,
            reviewed_at=reviewed_at,
        )
        return True

    def decide_leave(self, **kwargs):
        return self._decide(self.leave, **kwargs)

    def decide_overtime(self, **kwargs):
        return self._decide(self.overtime, **kwargs)

    def count_leave(self) -> int:
        return len(self.leave)


class InMemoryEmailLogs:
    def __init__(self):
        self.entries: list[EmailLogEntry] = []

    def append(self, *, to, subject, email_type, related_id, status, error_message, sent_at):
        entry = EmailLogEntry(
            log_id=len(self.entries) + 1,
            to=to,
            subject=subject,
            email_type=email_type,
            related_id=related_id,
            status=EmailStatus(status),
            error_message=error_message,
            sent_at=sent_at,
        )
        self.entries.append(entry)
        return entry.log_id

    def list_recent(self, *, limit):
        return sorted(self.entries, key=lambda e: (e.sent_at, e.log_id), reverse=True)[:limit]


class RecordingRelay:
    """httpx transport standing in for the mail relay; answers with `reply` or raises `error`."""

    def __init__(self):
        self.sent: list[dict] = []
        self.reply: dict = {"success": True, "message": "queued"}
        self.error: Optional[Exception] = None

    def __call__(self, request: httpx.Request) -> httpx.Response:
        if self.error is not None:
            raise self.error
        self.sent.append(json.loads(request.content))
        return httpx.Response(200, json=self.reply)


@dataclass
class Hub:
    users: InMemoryUsers
    attendance_repo: InMemoryAttendance
    documents: InMemoryDocuments
    requests_repo: InMemoryRequests
    email_logs: InMemoryEmailLogs
    relay: RecordingRelay
    policy: AccessPolicy
    auth: AuthService
    user_service: UserService
    attendance: AttendanceService
    settings: SettingsService
    notifications: NotificationService
    requests: RequestService
    reports: ReportService
    system: SystemService

    admin: User
    manager: User
    employee: User
    outsider: User

    @staticmethod
    def principal(user: User) -> Principal:
        return Principal.from_user(user)


def build_hub(*, seed_users: bool = True) -> Hub:
    users = InMemoryUsers()
    attendance_repo = InMemoryAttendance(users)
    documents = InMemoryDocuments()
    requests_repo = InMemoryRequests(users)
    email_logs = InMemoryEmailLogs()
    relay = RecordingRelay()

    policy = AccessPolicy(users)
    auth = AuthService(users)
    user_service = UserService(users, policy)
    attendance = AttendanceService(attendance_repo, users, policy)
    settings = SettingsService(documents, policy)
    client = MailRelayClient(
        "https://relay.example.test/send",
        "noreply@example.test",
        "Attendance Hub",
        timeout=5,
        transport=httpx.MockTransport(relay),
    )
    notifications = NotificationService(email_logs, client, user_service, settings, executor=None)
    requests = RequestService(requests_repo, users, settings, policy, notifications)
    reports = ReportService(attendance, requests, users, policy)
    system = SystemService(documents, users, user_service, settings, attendance_repo, requests_repo)

    seeded: dict[str, Optional[User]] = {"admin": None, "manager": None, "employee": None, "outsider": None}
    if seed_users:
        seeded["admin"] = users.add("admin@example.test", Role.ADMIN, None, display_name="Ada Admin")
        seeded["manager"] = users.add("mia@example.test", Role.MANAGER, "Engineering", display_name="Mia Manager")
        seeded["employee"] = users.add("eli@example.test", Role.EMPLOYEE, "Engineering", display_name="Eli Employee")
        seeded["outsider"] = users.add("sam@example.test", Role.EMPLOYEE, "Sales", display_name="Sam Sales")

    return Hub(
        users=users,
        attendance_repo=attendance_repo,
        documents=documents,
        requests_repo=requests_repo,
        email_logs=email_logs,
        relay=relay,
        policy=policy,
        auth=auth,
        user_service=user_service,
        attendance=attendance,
        settings=settings,
        notifications=notifications,
        requests=requests,
        reports=reports,
        system=system,
        **seeded,
    )


@pytest.fixture()
def hub() -> Hub:
    return build_hub()


@pytest.fixture()
def empty_hub() -> Hub:
    return build_hub(seed_users=False)


@pytest.fixture()
def password() -> str:
    return PASSWORD
