from __future__ import annotations

from datetime import time
from typing import Any, Optional, Sequence

from ..core.enums import Role
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, normalize_mysql_time
from .model import User
from .repository import UserRepository

_COLUMNS = """
    user_id, email, display_name, password_hash, role, department, position,
    work_start, work_end, is_active, created_at, updated_at
"""

# Columns update_user may touch; anything else is a programming error.
_UPDATABLE = {"display_name", "role", "department", "position", "work_start", "work_end", "password_hash"}


def _to_user(row: dict) -> User:
    return User(
        user_id=int(row["user_id"]),
        email=row["email"],
        display_name=row["display_name"],
        password_hash=row["password_hash"],
        role=Role(row["role"]),
        department=row.get("department"),
        position=row.get("position"),
        work_start=normalize_mysql_time(row.get("work_start")) or time(9, 0),
        work_end=normalize_mysql_time(row.get("work_end")) or time(18, 0),
        is_active=bool(row.get("is_active", True)),
        created_at=row.get("created_at"),
        updated_at=row.get("updated_at"),
    )


class MySQLUserRepository(UserRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, user_id: int) -> Optional[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM users WHERE user_id=%s", (int(user_id),))
            row = fetchone(cur)
            return _to_user(row) if row else None

    def get_by_email(self, email: str) -> Optional[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM users WHERE email=%s", (email,))
            row = fetchone(cur)
            return _to_user(row) if row else None

    def create_user(
        self,
        *,
        email: str,
        display_name: str,
        password_hash: str,
        role: Role,
        department: Optional[str],
        position: Optional[str],
        work_start: time,
        work_end: time,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO users(email, display_name, password_hash, role, department, position,
                                  work_start, work_end, is_active)
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,1)
                """,
                (email, display_name, password_hash, role.value, department, position, work_start, work_end),
            )
            return int(cur.lastrowid)

    def update_user(self, user_id: int, *, changes: dict[str, Any]) -> bool:
        unknown = set(changes) - _UPDATABLE
        if unknown:
            raise ValueError(f"Unsupported user columns: {sorted(unknown)}")
        if not changes:
            return True

        assignments = ", ".join(f"{col}=%s" for col in changes)
        params = [v.value if isinstance(v, Role) else v for v in changes.values()]

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"UPDATE users SET {assignments} WHERE user_id=%s",
                tuple(params + [int(user_id)]),
            )
            return cur.rowcount > 0

    def set_active(self, user_id: int, *, is_active: bool) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE users SET is_active=%s WHERE user_id=%s", (1 if is_active else 0, int(user_id)))
            return cur.rowcount > 0

    def list_users(
        self,
        *,
        department: Optional[str] = None,
        role: Optional[Role] = None,
        active_only: bool = False,
    ) -> Sequence[User]:
        clauses = ["1=1"]
        params: list[object] = []

        if department is not None:
            clauses.append("department=%s")
            params.append(department)
        if role is not None:
            clauses.append("role=%s")
            params.append(role.value)
        if active_only:
            clauses.append("is_active=1")

        where = " AND ".join(clauses)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM users WHERE {where} ORDER BY created_at DESC, user_id DESC",
                tuple(params),
            )
            return [_to_user(r) for r in fetchall(cur)]

    def count_active_admins(self) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT COUNT(*) AS n FROM users WHERE role=%s AND is_active=1", (Role.ADMIN.value,))
            row = fetchone(cur)
            return int(row["n"]) if row else 0

    def count_all(self) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT COUNT(*) AS n FROM users")
            row = fetchone(cur)
            return int(row["n"]) if row else 0
