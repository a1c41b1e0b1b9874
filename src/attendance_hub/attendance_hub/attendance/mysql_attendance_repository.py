from __future__ import annotations

from datetime import datetime
from typing import AbstractSet, Optional, Sequence

from ..core.enums import ClockEventType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import AttendanceEvent
from .repository import AttendanceRepository


def _to_event(r: dict) -> AttendanceEvent:
    return AttendanceEvent(
        event_id=int(r["event_id"]),
        user_id=int(r["user_id"]),
        event_type=ClockEventType(r["event_type"]),
        timestamp=r["event_time"],
        created_at=r.get("created_at"),
    )


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def append_if_latest_in(
        self,
        *,
        user_id: int,
        event_type: ClockEventType,
        timestamp: datetime,
        window_start: datetime,
        window_end: datetime,
        allowed_previous: AbstractSet[Optional[ClockEventType]],
    ) -> Optional[AttendanceEvent]:
        with db_cursor(self._conn_factory) as (_, cur):
            # Row lock on the owner serializes concurrent clock actions of one user.
            cur.execute("SELECT user_id FROM users WHERE user_id=%s FOR UPDATE", (int(user_id),))
            if not fetchone(cur):
                return None

            cur.execute(
                """
                SELECT event_type
                FROM attendance_events
                WHERE user_id=%s AND event_time >= %s AND event_time < %s
                ORDER BY event_time DESC, event_id DESC
                LIMIT 1
                """,
                (int(user_id), window_start, window_end),
            )
            latest = fetchone(cur)
            previous = ClockEventType(latest["event_type"]) if latest else None
            if previous not in allowed_previous:
                return None

            cur.execute(
                """
                INSERT INTO attendance_events(user_id, event_type, event_time)
                VALUES(%s,%s,%s)
                """,
                (int(user_id), event_type.value, timestamp),
            )
            event_id = int(cur.lastrowid)

            cur.execute(
                "SELECT event_id, user_id, event_type, event_time, created_at FROM attendance_events WHERE event_id=%s",
                (event_id,),
            )
            return _to_event(fetchone(cur))

    def list_events(
        self,
        *,
        user_id: Optional[int] = None,
        department: Optional[str] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> Sequence[AttendanceEvent]:
        clauses = ["1=1"]
        params: list[object] = []

        if user_id is not None:
            clauses.append("a.user_id=%s")
            params.append(int(user_id))
        if department is not None:
            clauses.append("u.department=%s")
            params.append(department)
        if start is not None:
            clauses.append("a.event_time >= %s")
            params.append(start)
        if end is not None:
            clauses.append("a.event_time < %s")
            params.append(end)

        where = " AND ".join(clauses)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT a.event_id, a.user_id, a.event_type, a.event_time, a.created_at
                FROM attendance_events a
                JOIN users u ON u.user_id = a.user_id
                WHERE {where}
                ORDER BY a.event_time DESC, a.event_id DESC
                """,
                tuple(params),
            )
            return [_to_event(r) for r in fetchall(cur)]

    def count_all(self) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT COUNT(*) AS n FROM attendance_events")
            row = fetchone(cur)
            return int(row["n"]) if row else 0
