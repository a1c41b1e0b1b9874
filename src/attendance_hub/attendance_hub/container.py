from __future__ import annotations

from concurrent.futures import Executor, ThreadPoolExecutor
from dataclasses import dataclass
from typing import Optional

from .access.policy import AccessPolicy
from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.service import AttendanceService
from .core.constants import DEFAULT_NOTIFICATION_TIMEOUT_SECONDS
from .database.connection import DBConfig, DatabaseConnection
from .notifications.mysql_email_log_repository import MySQLEmailLogRepository
from .notifications.relay_client import MailRelayClient
from .notifications.service import NotificationService
from .reports.service import ReportService
from .requests.mysql_request_repository import MySQLRequestRepository
from .requests.service import RequestService
from .settings.service import SettingsService
from .system.mysql_document_repository import MySQLDocumentRepository
from .system.service import SystemService
from .users.mysql_user_repository import MySQLUserRepository
from .users.service import AuthService, UserService


@dataclass(frozen=True)
class Container:
    conn: DatabaseConnection

    users_repo: MySQLUserRepository
    attendance_repo: MySQLAttendanceRepository
    requests_repo: MySQLRequestRepository
    documents_repo: MySQLDocumentRepository
    email_logs_repo: MySQLEmailLogRepository

    policy: AccessPolicy
    auth_service: AuthService
    user_service: UserService
    attendance_service: AttendanceService
    settings_service: SettingsService
    notification_service: NotificationService
    request_service: RequestService
    report_service: ReportService
    system_service: SystemService


def build_container(
    *,
    db_config: dict,
    mail_config: Optional[dict] = None,
    executor: Optional[Executor] = None,
) -> Container:
    config = DBConfig(
        host=str(db_config["host"]),
        port=int(db_config.get("port", 3306)),
        user=str(db_config["user"]),
        password=str(db_config["password"]),
        database=str(db_config["database"]),
    )
    conn = DatabaseConnection.get_instance(config)
    mail_config = mail_config or {}

    users_repo = MySQLUserRepository(conn)
    attendance_repo = MySQLAttendanceRepository(conn)
    requests_repo = MySQLRequestRepository(conn)
    documents_repo = MySQLDocumentRepository(conn)
    email_logs_repo = MySQLEmailLogRepository(conn)

    policy = AccessPolicy(users_repo)
    auth_service = AuthService(users_repo)
    user_service = UserService(users_repo, policy)
    attendance_service = AttendanceService(attendance_repo, users_repo, policy)
    settings_service = SettingsService(documents_repo, policy)

    relay = MailRelayClient(
        mail_config.get("url"),
        mail_config.get("sender_email"),
        mail_config.get("sender_name") or "Attendance Hub",
        timeout=float(mail_config.get("timeout") or DEFAULT_NOTIFICATION_TIMEOUT_SECONDS),
    )
    notification_service = NotificationService(
        email_logs_repo,
        relay,
        user_service,
        settings_service,
        executor=executor if executor is not None else ThreadPoolExecutor(max_workers=2, thread_name_prefix="notify"),
    )
    request_service = RequestService(requests_repo, users_repo, settings_service, policy, notification_service)
    report_service = ReportService(attendance_service, request_service, users_repo, policy)
    system_service = SystemService(
        documents_repo,
        users_repo,
        user_service,
        settings_service,
        attendance_repo,
        requests_repo,
    )

    return Container(
        conn=conn,
        users_repo=users_repo,
        attendance_repo=attendance_repo,
        requests_repo=requests_repo,
        documents_repo=documents_repo,
        email_logs_repo=email_logs_repo,
        policy=policy,
        auth_service=auth_service,
        user_service=user_service,
        attendance_service=attendance_service,
        settings_service=settings_service,
        notification_service=notification_service,
        request_service=request_service,
        report_service=report_service,
        system_service=system_service,
    )
