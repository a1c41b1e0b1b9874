from __future__ import annotations

from concurrent.futures import Executor
from datetime import date, time
from typing import Any, Callable, Optional, Sequence

import structlog

from ..common.datetime_utils import now_local
from ..common.validators import require_email
from ..core.constants import DEFAULT_EMAIL_LOG_LIMIT
from ..core.enums import EmailStatus
from ..core.exceptions import NotificationDeliveryError
from ..requests.model import LeaveRequest, OvertimeRequest
from ..settings.service import SettingsService
from ..users.model import User
from ..users.service import UserService
from .model import EmailLogEntry, NotificationResult
from .relay_client import MailRelayClient
from .repository import EmailLogRepository

logger = structlog.get_logger(__name__)

LEAVE_REQUEST = "leave_request"
OVERTIME_REQUEST = "overtime_request"
TEST = "test"

_FOOTER = (
    "Please sign in to review the details and approve or reject the request.\n\n"
    "This is an automated message, please do not reply."
)


def _fmt_date(value: Optional[date]) -> str:
    return value.strftime("%Y/%m/%d") if value else "not specified"


def _fmt_time(value: Optional[time]) -> str:
    return value.strftime("%H:%M") if value else "not specified"


def leave_request_message(request: LeaveRequest, *, reviewer_name: str, applicant_name: str) -> tuple[str, str]:
    subject = f"Leave request - {applicant_name}"
    body = (
        f"Dear {reviewer_name},\n\n"
        "A new leave request is waiting for your review:\n\n"
        f"Applicant: {applicant_name}\n"
        f"Leave type: {request.leave_type_name or request.leave_type or 'not specified'}\n"
        f"Period: {_fmt_date(request.start_date)} to {_fmt_date(request.end_date)}\n"
        f"Days: {request.days or 0}\n"
        f"Reason: {request.reason or 'not provided'}\n\n"
        f"{_FOOTER}"
    )
    return subject, body


def overtime_request_message(request: OvertimeRequest, *, reviewer_name: str, applicant_name: str) -> tuple[str, str]:
    subject = f"Overtime request - {applicant_name}"
    body = (
        f"Dear {reviewer_name},\n\n"
        "A new overtime request is waiting for your review:\n\n"
        f"Applicant: {applicant_name}\n"
        f"Date: {_fmt_date(request.work_date)}\n"
        f"Time: {_fmt_time(request.start_time)} to {_fmt_time(request.end_time)}\n"
        f"Hours: {request.hours or 0}\n"
        f"Reason: {request.reason or 'not provided'}\n\n"
        f"{_FOOTER}"
    )
    return subject, body


class NotificationService:
    """Best-effort outbound email. Nothing here raises into the caller's workflow."""

    def __init__(
        self,
        logs: EmailLogRepository,
        relay: MailRelayClient,
        users: UserService,
        settings: SettingsService,
        *,
        executor: Optional[Executor] = None,
    ):
        self._logs = logs
        self._relay = relay
        self._users = users
        self._settings = settings
        self._executor = executor

    def _record(
        self,
        *,
        to: str,
        subject: str,
        email_type: str,
        related_id: Optional[Any],
        status: EmailStatus,
        error_message: Optional[str] = None,
    ) -> None:
        try:
            self._logs.append(
                to=to,
                subject=subject,
                email_type=email_type,
                related_id=str(related_id) if related_id is not None else None,
                status=status,
                error_message=error_message,
                sent_at=now_local(),
            )
        except Exception:
            logger.exception("email_log_write_failed", to=to, email_type=email_type)

    def send_notification(
        self,
        to: str,
        subject: str,
        body: str,
        type: str,
        related_id: Optional[Any] = None,
        recipient_name: Optional[str] = None,
        sender_name: Optional[str] = None,
    ) -> NotificationResult:
        """Send one message and append one email log entry for the attempt.

        The sender comes from the `email` settings section, falling back to the relay defaults.
        """

        sender = self._email_settings()
        try:
            result = self._relay.send(
                to=to,
                subject=subject,
                text=body,
                sender_name=sender_name or sender.get("sender_name") or None,
                sender_email=sender.get("sender_email") or None,
            )
        except NotificationDeliveryError as exc:
            logger.warning("notification_failed", to=to, email_type=type, related_id=related_id, error=str(exc))
            self._record(
                to=to,
                subject=subject,
                email_type=type,
                related_id=related_id,
                status=EmailStatus.FAILED,
                error_message=str(exc),
            )
            return NotificationResult(success=False, error=str(exc))

        logger.info("notification_sent", to=to, recipient=recipient_name, email_type=type, related_id=related_id)
        self._record(to=to, subject=subject, email_type=type, related_id=related_id, status=EmailStatus.SENT)
        return result

    def _dispatch(self, job: Callable[[], None], **context: Any) -> None:
        def guarded() -> None:
            try:
                job()
            except Exception:
                logger.exception("notification_job_failed", **context)

        if self._executor is None:
            guarded()
        else:
            self._executor.submit(guarded)

    def _email_settings(self) -> dict[str, Any]:
        try:
            return self._settings.email_settings()
        except Exception:
            logger.exception("email_settings_unavailable")
            return {}

    def _enabled(self) -> bool:
        try:
            return self._settings.email_notifications_enabled()
        except Exception:
            logger.exception("notification_settings_unavailable")
            return False

    def _notify_reviewers(self, owner: User, email_type: str, related_id: int, compose: Callable[[User], tuple[str, str]]) -> None:
        if not self._enabled():
            logger.info("notification_skipped_disabled", email_type=email_type, related_id=related_id)
            return

        reviewers = self._users.find_reviewers(owner)
        if not reviewers:
            logger.warning("notification_no_reviewers", owner_id=owner.user_id, email_type=email_type)
            return

        for reviewer in reviewers:
            subject, body = compose(reviewer)
            self.send_notification(
                reviewer.email,
                subject,
                body,
                email_type,
                related_id=related_id,
                recipient_name=reviewer.display_name,
                sender_name=owner.display_name,
            )

    def notify_leave_request(self, request: LeaveRequest, owner: User) -> None:
        def job() -> None:
            self._notify_reviewers(
                owner,
                LEAVE_REQUEST,
                request.request_id,
                lambda r: leave_request_message(request, reviewer_name=r.display_name, applicant_name=owner.display_name),
            )

        self._dispatch(job, email_type=LEAVE_REQUEST, related_id=request.request_id)

    def notify_overtime_request(self, request: OvertimeRequest, owner: User) -> None:
        def job() -> None:
            self._notify_reviewers(
                owner,
                OVERTIME_REQUEST,
                request.request_id,
                lambda r: overtime_request_message(request, reviewer_name=r.display_name, applicant_name=owner.display_name),
            )

        self._dispatch(job, email_type=OVERTIME_REQUEST, related_id=request.request_id)

    def get_email_logs(self, limit: int = DEFAULT_EMAIL_LOG_LIMIT) -> Sequence[EmailLogEntry]:
        return self._logs.list_recent(limit=max(1, int(limit)))

    def send_test_email(self, to: Optional[str] = None) -> NotificationResult:
        """Send a test message to `to`, or to the configured admin address."""

        sender = self._email_settings()
        recipient = require_email(to or sender.get("admin_email") or "", "Test recipient")
        sender_name = sender.get("sender_name") or self._relay.sender_name
        sender_email = sender.get("sender_email") or self._relay.sender_email or "not configured"
        body = (
            "This is a test message. If you received it, outbound email is configured correctly.\n\n"
            f"Sender name: {sender_name}\n"
            f"Sender email: {sender_email}\n\n"
            "This is an automated message, please do not reply."
        )
        return self.send_notification(recipient, "Email service test", body, TEST, recipient_name=recipient)
