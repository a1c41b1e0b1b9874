from __future__ import annotations

from datetime import date, time
from typing import Any, Optional, Sequence, Union

import structlog

from ..access.policy import AccessPolicy
from ..access.principal import Principal
from ..common.datetime_utils import hours_between, inclusive_day_span, now_local, parse_hhmm, parse_iso_date
from ..common.validators import require_non_empty
from ..core.enums import RequestKind, RequestStatus
from ..core.exceptions import AccountDisabledError, NotFoundError, RequestAlreadyReviewedError, ValidationError
from ..notifications.service import NotificationService
from ..settings.service import SettingsService
from ..users.model import User
from ..users.repository import UserRepository
from .model import LeaveRequest, OvertimeRequest
from .repository import RequestRepository

logger = structlog.get_logger(__name__)

AnyRequest = Union[LeaveRequest, OvertimeRequest]


def _as_date(value: Any, field_name: str) -> date:
    if isinstance(value, date):
        return value
    try:
        return parse_iso_date(str(value or "").strip())
    except ValueError:
        raise ValidationError(f"{field_name} must be YYYY-MM-DD")


def _as_time(value: Any, field_name: str) -> time:
    if isinstance(value, time):
        return value
    try:
        return parse_hhmm(str(value or "").strip())
    except ValueError:
        raise ValidationError(f"{field_name} must be HH:MM")


def _as_status(value: Any) -> Optional[RequestStatus]:
    if value in (None, ""):
        return None
    try:
        return RequestStatus(value)
    except ValueError:
        raise ValidationError("Unknown request status")


class RequestService:
    """Leave/overtime workflow: pending -> approved | rejected, terminal afterwards."""

    def __init__(
        self,
        requests: RequestRepository,
        users: UserRepository,
        settings: SettingsService,
        policy: AccessPolicy,
        notifications: Optional[NotificationService] = None,
    ):
        self._requests = requests
        self._users = users
        self._settings = settings
        self._policy = policy
        self._notifications = notifications

    def _owner(self, user_id: int) -> User:
        user = self._users.get_by_id(int(user_id))
        if not user:
            raise NotFoundError("User not found")
        if not user.is_active:
            raise AccountDisabledError("Account disabled")
        return user

    # -------- Submission --------
    def submit_leave(
        self,
        user_id: int,
        *,
        leave_type: str,
        start_date: Any,
        end_date: Any,
        reason: str,
        principal: Optional[Principal] = None,
    ) -> LeaveRequest:
        if principal is not None:
            self._policy.ensure_self(principal, user_id, "submit leave requests")

        start = _as_date(start_date, "Start date")
        end = _as_date(end_date, "End date")
        if end < start:
            raise ValidationError("End date must be on or after start date")
        reason = require_non_empty(reason, "Reason")
        leave_type = require_non_empty(leave_type, "Leave type")

        kind = self._settings.get_leave_type(leave_type)
        if kind is None or not kind.is_active:
            raise ValidationError("Unknown or inactive leave type")

        days = inclusive_day_span(start, end)
        if kind.days_allowed > 0 and days > kind.days_allowed:
            raise ValidationError(f"{kind.name} allows at most {kind.days_allowed} days per request")

        owner = self._owner(user_id)
        request_id = self._requests.create_leave(
            user_id=owner.user_id,
            leave_type=kind.id,
            leave_type_name=kind.name,
            start_date=start,
            end_date=end,
            days=days,
            reason=reason,
        )
        created = self._requests.get_leave(request_id=request_id)
        if created is None:
            raise NotFoundError("Leave request not found after submission")

        logger.info("leave_submitted", request_id=request_id, user_id=owner.user_id, days=days)
        if self._notifications is not None:
            self._notifications.notify_leave_request(created, owner)
        return created

    def submit_overtime(
        self,
        user_id: int,
        *,
        work_date: Any,
        start_time: Any,
        end_time: Any,
        reason: str,
        principal: Optional[Principal] = None,
    ) -> OvertimeRequest:
        if principal is not None:
            self._policy.ensure_self(principal, user_id, "submit overtime requests")

        day = _as_date(work_date, "Date")
        start = _as_time(start_time, "Start time")
        end = _as_time(end_time, "End time")
        reason = require_non_empty(reason, "Reason")

        hours = hours_between(start, end)
        if hours <= 0:
            raise ValidationError("Overtime must end after it starts")

        owner = self._owner(user_id)
        request_id = self._requests.create_overtime(
            user_id=owner.user_id,
            work_date=day,
            start_time=start,
            end_time=end,
            hours=hours,
            reason=reason,
        )
        created = self._requests.get_overtime(request_id=request_id)
        if created is None:
            raise NotFoundError("Overtime request not found after submission")

        logger.info("overtime_submitted", request_id=request_id, user_id=owner.user_id, hours=hours)
        if self._notifications is not None:
            self._notifications.notify_overtime_request(created, owner)
        return created

    # -------- Listing --------
    def list_leave(
        self,
        owner_id: Optional[int] = None,
        status: Any = None,
        *,
        department: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> Sequence[LeaveRequest]:
        return self._requests.list_leave(
            user_id=int(owner_id) if owner_id is not None else None,
            department=department,
            status=_as_status(status),
            limit=limit,
        )

    def list_overtime(
        self,
        owner_id: Optional[int] = None,
        status: Any = None,
        *,
        department: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> Sequence[OvertimeRequest]:
        return self._requests.list_overtime(
            user_id=int(owner_id) if owner_id is not None else None,
            department=department,
            status=_as_status(status),
            limit=limit,
        )

    def list_visible(
        self,
        principal: Principal,
        kind: RequestKind,
        *,
        user_id: Optional[int] = None,
        status: Any = None,
        limit: Optional[int] = None,
    ) -> Sequence[AnyRequest]:
        """Every visible request, newest first; `limit` only when the caller asks for one."""

        if limit is not None and int(limit) <= 0:
            raise ValidationError("limit must be positive")
        scope = self._policy.record_scope(principal, user_id=user_id)
        lister = self.list_leave if RequestKind(kind) == RequestKind.LEAVE else self.list_overtime
        return lister(scope.user_id, status, department=scope.department, limit=limit)

    def get_request(self, principal: Principal, kind: RequestKind, request_id: int) -> AnyRequest:
        req = self._get(RequestKind(kind), request_id)
        self._policy.record_scope(principal, user_id=req.user_id)
        return req

    # -------- Review --------
    def _get(self, kind: RequestKind, request_id: int) -> AnyRequest:
        if kind == RequestKind.LEAVE:
            req = self._requests.get_leave(request_id=int(request_id))
        else:
            req = self._requests.get_overtime(request_id=int(request_id))
        if req is None:
            raise NotFoundError(f"{kind.value.capitalize()} request not found")
        return req

    def _review(
        self,
        kind: RequestKind,
        request_id: int,
        reviewer: Principal,
        status: RequestStatus,
        comment: str,
    ) -> AnyRequest:
        req = self._get(kind, request_id)

        owner = self._users.get_by_id(req.user_id)
        if not owner:
            raise NotFoundError("Request owner not found")
        self._policy.ensure_can_review(reviewer, owner)

        if not req.is_pending:
            raise RequestAlreadyReviewedError(f"Request has already been {req.status.value}")

        decide = self._requests.decide_leave if kind == RequestKind.LEAVE else self._requests.decide_overtime
        changed = decide(
            request_id=req.request_id,
            status=status,
            reviewer_id=reviewer.user_id,
            review_comment=(comment or "").strip(),
            reviewed_at=now_local(),
        )
        if not changed:
            # Reviewed by someone else between our read and write.
            raise RequestAlreadyReviewedError("Request has already been reviewed")

        logger.info(
            "request_reviewed",
            kind=kind.value,
            request_id=req.request_id,
            status=status.value,
            reviewer_id=reviewer.user_id,
        )
        return self._get(kind, req.request_id)

    def approve_leave(self, request_id: int, reviewer: Principal, comment: str = "") -> LeaveRequest:
        return self._review(RequestKind.LEAVE, request_id, reviewer, RequestStatus.APPROVED, comment)

    def reject_leave(self, request_id: int, reviewer: Principal, comment: str = "") -> LeaveRequest:
        return self._review(RequestKind.LEAVE, request_id, reviewer, RequestStatus.REJECTED, comment)

    def approve_overtime(self, request_id: int, reviewer: Principal, comment: str = "") -> OvertimeRequest:
        return self._review(RequestKind.OVERTIME, request_id, reviewer, RequestStatus.APPROVED, comment)

    def reject_overtime(self, request_id: int, reviewer: Principal, comment: str = "") -> OvertimeRequest:
        return self._review(RequestKind.OVERTIME, request_id, reviewer, RequestStatus.REJECTED, comment)
