from __future__ import annotations

from typing import Any, Optional

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, dump_json, fetchone, load_json
from .document_repository import DocumentRepository, VersionedDocument


class MySQLDocumentRepository(DocumentRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get(self, key: str) -> Optional[VersionedDocument]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT doc_key, payload, version FROM system_documents WHERE doc_key=%s",
                (key,),
            )
            r = fetchone(cur)
            if not r:
                return None
            return VersionedDocument(
                key=r["doc_key"],
                payload=load_json(r["payload"]) or {},
                version=int(r["version"]),
            )

    def create(self, key: str, payload: dict[str, Any]) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "INSERT IGNORE INTO system_documents(doc_key, payload, version) VALUES(%s,%s,1)",
                (key, dump_json(payload)),
            )
            return cur.rowcount > 0

    def replace(self, key: str, payload: dict[str, Any], *, expected_version: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE system_documents
                SET payload=%s, version=version+1
                WHERE doc_key=%s AND version=%s
                """,
                (dump_json(payload), key, int(expected_version)),
            )
            return cur.rowcount > 0

    def put(self, key: str, payload: dict[str, Any]) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO system_documents(doc_key, payload, version)
                VALUES(%s,%s,1)
                ON DUPLICATE KEY UPDATE payload=VALUES(payload), version=version+1
                """,
                (key, dump_json(payload)),
            )
