from __future__ import annotations

from datetime import date, datetime, time
from typing import Optional, Protocol, Sequence

from ..core.enums import RequestStatus
from .model import LeaveRequest, OvertimeRequest


class RequestRepository(Protocol):
    """Leave and overtime requests.

    `decide_*` only transitions rows that are still pending and reports
    whether a row changed; the status of a terminal request is never touched.
    """

    # Leave requests
    def create_leave(
        self,
        *,
        user_id: int,
        leave_type: str,
        leave_type_name: Optional[str],
        start_date: date,
        end_date: date,
        days: int,
        reason: str,
    ) -> int:
        raise NotImplementedError

    def get_leave(self, *, request_id: int) -> Optional[LeaveRequest]:
        raise NotImplementedError

    def list_leave(
        self,
        *,
        user_id: Optional[int] = None,
        department: Optional[str] = None,
        status: Optional[RequestStatus] = None,
        limit: Optional[int] = None,
    ) -> Sequence[LeaveRequest]:
        """Newest created first."""

        raise NotImplementedError

    def decide_leave(
        self,
        *,
        request_id: int,
        status: RequestStatus,
        reviewer_id: int,
        review_comment: str,
        reviewed_at: datetime,
    ) -> bool:
        raise NotImplementedError

    # Overtime requests
    def create_overtime(
        self,
        *,
        user_id: int,
        work_date: date,
        start_time: time,
        end_time: time,
        hours: float,
        reason: str,
    ) -> int:
        raise NotImplementedError

    def get_overtime(self, *, request_id: int) -> Optional[OvertimeRequest]:
        raise NotImplementedError

    def list_overtime(
        self,
        *,
        user_id: Optional[int] = None,
        department: Optional[str] = None,
        status: Optional[RequestStatus] = None,
        limit: Optional[int] = None,
    ) -> Sequence[OvertimeRequest]:
        raise NotImplementedError

    def decide_overtime(
        self,
        *,
        request_id: int,
        status: RequestStatus,
        reviewer_id: int,
        review_comment: str,
        reviewed_at: datetime,
    ) -> bool:
        raise NotImplementedError

    def count_leave(self) -> int:
        raise NotImplementedError
