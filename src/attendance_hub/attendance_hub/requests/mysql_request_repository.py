from __future__ import annotations

from datetime import date, datetime, time
from typing import Any, Optional, Sequence

from ..core.enums import RequestStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, normalize_mysql_time
from .model import LeaveRequest, OvertimeRequest
from .repository import RequestRepository

_LEAVE_COLUMNS = """
    r.request_id, r.user_id, r.leave_type, r.leave_type_name,
    r.start_date, r.end_date, r.days, r.reason, r.status, r.created_at,
    r.reviewer_id, r.review_comment, r.reviewed_at
"""

_OVERTIME_COLUMNS = """
    r.request_id, r.user_id, r.work_date, r.start_time, r.end_time,
    r.hours, r.reason, r.status, r.created_at,
    r.reviewer_id, r.review_comment, r.reviewed_at
"""


def _to_leave(r: dict[str, Any]) -> LeaveRequest:
    return LeaveRequest(
        request_id=int(r["request_id"]),
        user_id=int(r["user_id"]),
        leave_type=r["leave_type"],
        leave_type_name=r.get("leave_type_name"),
        start_date=r["start_date"],
        end_date=r["end_date"],
        days=int(r["days"]),
        reason=r["reason"],
        status=RequestStatus(r["status"]),
        created_at=r["created_at"],
        reviewer_id=int(r["reviewer_id"]) if r.get("reviewer_id") is not None else None,
        review_comment=r.get("review_comment"),
        reviewed_at=r.get("reviewed_at"),
    )


def _to_overtime(r: dict[str, Any]) -> OvertimeRequest:
    return OvertimeRequest(
        request_id=int(r["request_id"]),
        user_id=int(r["user_id"]),
        work_date=r["work_date"],
        start_time=normalize_mysql_time(r["start_time"]),
        end_time=normalize_mysql_time(r["end_time"]),
        hours=float(r["hours"]),
        reason=r["reason"],
        status=RequestStatus(r["status"]),
        created_at=r["created_at"],
        reviewer_id=int(r["reviewer_id"]) if r.get("reviewer_id") is not None else None,
        review_comment=r.get("review_comment"),
        reviewed_at=r.get("reviewed_at"),
    )


def _filters(
    *,
    user_id: Optional[int],
    department: Optional[str],
    status: Optional[RequestStatus],
) -> tuple[str, list[object]]:
    clauses = ["1=1"]
    params: list[object] = []

    if user_id is not None:
        clauses.append("r.user_id=%s")
        params.append(int(user_id))
    if department is not None:
        clauses.append("u.department=%s")
        params.append(department)
    if status is not None:
        clauses.append("r.status=%s")
        params.append(status.value)

    return " AND ".join(clauses), params


class MySQLRequestRepository(RequestRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _list(self, table: str, columns: str, where: str, params: list[object], limit: Optional[int]) -> list[dict]:
        sql = f"""
            SELECT {columns}
            FROM {table} r
            JOIN users u ON u.user_id = r.user_id
            WHERE {where}
            ORDER BY r.created_at DESC, r.request_id DESC
        """
        if limit is not None:
            sql += " LIMIT %s"
            params = params + [int(limit)]

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
            return fetchall(cur)

    def _decide(
        self,
        table: str,
        *,
        request_id: int,
        status: RequestStatus,
        reviewer_id: int,
        review_comment: str,
        reviewed_at: datetime,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                UPDATE {table}
                SET status=%s, reviewer_id=%s, review_comment=%s, reviewed_at=%s
                WHERE request_id=%s AND status=%s
                """,
                (
                    status.value,
                    int(reviewer_id),
                    review_comment,
                    reviewed_at,
                    int(request_id),
                    RequestStatus.PENDING.value,
                ),
            )
            return cur.rowcount > 0

    # -------- Leave requests --------
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
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO leave_requests(
                    user_id, leave_type, leave_type_name, start_date, end_date, days, reason, status
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    int(user_id),
                    leave_type,
                    leave_type_name,
                    start_date,
                    end_date,
                    int(days),
                    reason,
                    RequestStatus.PENDING.value,
                ),
            )
            return int(cur.lastrowid)

    def get_leave(self, *, request_id: int) -> Optional[LeaveRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_LEAVE_COLUMNS} FROM leave_requests r WHERE r.request_id=%s",
                (int(request_id),),
            )
            r = fetchone(cur)
            return _to_leave(r) if r else None

    def list_leave(
        self,
        *,
        user_id: Optional[int] = None,
        department: Optional[str] = None,
        status: Optional[RequestStatus] = None,
        limit: Optional[int] = None,
    ) -> Sequence[LeaveRequest]:
        where, params = _filters(user_id=user_id, department=department, status=status)
        return [_to_leave(r) for r in self._list("leave_requests", _LEAVE_COLUMNS, where, params, limit)]

    def decide_leave(
        self,
        *,
        request_id: int,
        status: RequestStatus,
        reviewer_id: int,
        review_comment: str,
        reviewed_at: datetime,
    ) -> bool:
        return self._decide(
            "leave_requests",
            request_id=request_id,
            status=status,
            reviewer_id=reviewer_id,
            review_comment=review_comment,
            reviewed_at=reviewed_at,
        )

    def count_leave(self) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT COUNT(*) AS n FROM leave_requests")
            r = fetchone(cur)
            return int(r["n"]) if r else 0

    # -------- Overtime requests --------
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
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO overtime_requests(
                    user_id, work_date, start_time, end_time, hours, reason, status
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    int(user_id),
                    work_date,
                    start_time,
                    end_time,
                    hours,
                    reason,
                    RequestStatus.PENDING.value,
                ),
            )
            return int(cur.lastrowid)

    def get_overtime(self, *, request_id: int) -> Optional[OvertimeRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_OVERTIME_COLUMNS} FROM overtime_requests r WHERE r.request_id=%s",
                (int(request_id),),
            )
            r = fetchone(cur)
            return _to_overtime(r) if r else None

    def list_overtime(
        self,
        *,
        user_id: Optional[int] = None,
        department: Optional[str] = None,
        status: Optional[RequestStatus] = None,
        limit: Optional[int] = None,
    ) -> Sequence[OvertimeRequest]:
        where, params = _filters(user_id=user_id, department=department, status=status)
        return [_to_overtime(r) for r in self._list("overtime_requests", _OVERTIME_COLUMNS, where, params, limit)]

    def decide_overtime(
        self,
        *,
        request_id: int,
        status: RequestStatus,
        reviewer_id: int,
        review_comment: str,
        reviewed_at: datetime,
    ) -> bool:
        return self._decide(
            "overtime_requests",
            request_id=request_id,
            status=status,
            reviewer_id=reviewer_id,
            review_comment=review_comment,
            reviewed_at=reviewed_at,
        )
