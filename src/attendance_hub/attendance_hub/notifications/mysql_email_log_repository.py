from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from ..core.enums import EmailStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall
from .model import EmailLogEntry
from .repository import EmailLogRepository


class MySQLEmailLogRepository(EmailLogRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def append(
        self,
        *,
        to: str,
        subject: str,
        email_type: str,
        related_id: Optional[str],
        status: EmailStatus,
        error_message: Optional[str],
        sent_at: datetime,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO email_logs(recipient, subject, email_type, related_id, status, error_message, sent_at)
                VALUES(%s,%s,%s,%s,%s,%s,%s)
                """,
                (to, subject, email_type, related_id, status.value, error_message, sent_at),
            )
            return int(cur.lastrowid)

    def list_recent(self, *, limit: int) -> Sequence[EmailLogEntry]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT log_id, recipient, subject, email_type, related_id, status, error_message, sent_at
                FROM email_logs
                ORDER BY sent_at DESC, log_id DESC
                LIMIT %s
                """,
                (int(limit),),
            )
            return [
                EmailLogEntry(
                    log_id=int(r["log_id"]),
                    to=r["recipient"],
                    subject=r["subject"],
                    email_type=r["email_type"],
                    related_id=r.get("related_id"),
                    status=EmailStatus(r["status"]),
                    error_message=r.get("error_message"),
                    sent_at=r["sent_at"],
                )
                for r in fetchall(cur)
            ]
